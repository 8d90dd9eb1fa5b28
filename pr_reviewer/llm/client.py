"""
LLM Client（基于 OpenAI SDK，对接 OpenAI-compatible 接口）。

目标：
- **尽量薄**：只做协议适配与错误处理
- **统一接口**：默认走 Gemini 的 OpenAI-compatible endpoint，也可以换成 LiteLLM Proxy 等任意网关
- **不重试**：SDK 自带重试关闭；失败直接抛出，由 invoker 换下一个候选模型
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """OpenAI chat message 的最小结构。"""

    role: str
    content: str


class OpenAICompatLLMClient:
    """通过 OpenAI-compatible API 调用 LLM；模型名按调用传入，便于跨模型降级。"""

    def __init__(self, api_key: str, base_url: str, http_client: httpx.AsyncClient) -> None:
        """
        - api_key: LLM API key
        - base_url: OpenAI-compatible base URL
        - http_client: 复用 httpx.AsyncClient 连接池
        """
        self._base_url = base_url.rstrip("/")
        self._client = AsyncOpenAI(api_key=api_key, base_url=self._base_url, http_client=http_client, max_retries=0)

    async def complete_text(self, messages: Sequence[ChatMessage], model: str) -> str:
        """
        调用 chat completion 并返回纯文本 content。

        出错直接抛异常，便于上游统一处理（降级到下一个模型）。
        """
        try:
            logger.info(f"LLM request: model={model}, messages={len(messages)} msg(s)")
            response = await self._client.chat.completions.create(
                model=model,
                messages=[m.model_dump() for m in messages],
            )
        except OpenAIError as exc:
            logger.error(f"LLM API error: {exc}")
            raise
        except httpx.HTTPError as exc:
            logger.error(f"LLM HTTP error: {exc}")
            raise

        if not response.choices:
            logger.error("LLM returned no choices")
            raise RuntimeError("LLM returned no choices")
        content = response.choices[0].message.content
        if not content:
            logger.error("LLM returned empty content")
            raise RuntimeError("LLM returned empty content")

        logger.info(f"LLM response: model={model}, {len(content)} chars")
        return str(content)

    async def generate(self, model: str, prompt: str) -> str:
        """invoker 使用的 generate 能力：单条 user message。"""
        return await self.complete_text(messages=[ChatMessage(role="user", content=prompt)], model=model)
