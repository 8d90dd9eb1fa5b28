"""
本地 Mock OpenAI-compatible LLM server。

用途：
- 在没有真实 LLM 网关的情况下，本地跑通闭环（review / tests 两个 JSON 输出）
- 故意像真实模型一样，把 JSON 包在解释文字 + ```json 代码块里，顺便走一遍 normalizer

启动：
  python -m pr_reviewer.dev.mock_openai_server
  LLM_BASE_URL=http://127.0.0.1:9001/v1 LLM_API_KEY=dummy pr-review <PR_URL>
"""

from __future__ import annotations

import json
from collections.abc import Sequence

import uvicorn
from fastapi import FastAPI
from pydantic import BaseModel, Field

from pr_reviewer.llm.client import ChatMessage


class ChatCompletionRequest(BaseModel):
    model: str
    messages: list[ChatMessage] = Field(default_factory=list)


def _extract_paths_from_prompt(prompt: str) -> list[str]:
    """从 prompt 里提取 `File: <path>` 行。"""
    paths: list[str] = []
    for line in prompt.splitlines():
        stripped = line.strip()
        if stripped.startswith("File: "):
            path = stripped.removeprefix("File: ").strip()
            if path:
                paths.append(path)
    return paths


def _build_mock_review(paths: list[str]) -> dict[str, object]:
    files = ", ".join(paths) if paths else "no files"
    return {
        "summary": f"[MOCK] Reviewed {len(paths)} file(s): {files}.",
        "strengths": ["[MOCK] 变更范围小，易于审查。"],
        "improvements": ["[MOCK] 建议补充更严格的错误处理与边界校验。"],
        "security": ["[MOCK] 未发现明显的安全问题（基于 diff 的有限上下文）。"],
        "performance": [],
        "testCoverage": {"current": "[MOCK] unknown", "missing": [f"[MOCK] tests for {p}" for p in paths]},
    }


def _build_mock_tests(paths: list[str]) -> dict[str, object]:
    return {
        "unitTests": [f"// [MOCK] unit test for {p}" for p in paths],
        "integrationTests": [],
        "e2eTests": [],
    }


def _wrap_like_a_model(payload: dict[str, object]) -> str:
    body = json.dumps(payload, ensure_ascii=False, indent=2)
    return f"Here is the result:\n\n```json\n{body}\n```\n"


def _decide_mock_response(messages: Sequence[ChatMessage]) -> str:
    user_texts = [m.content for m in messages if m.role == "user"]
    if not user_texts:
        raise ValueError("Mock server expects at least one user message")
    prompt = "\n".join(user_texts)
    paths = _extract_paths_from_prompt(prompt=prompt)

    if "\"unitTests\"" in prompt:
        return _wrap_like_a_model(_build_mock_tests(paths=paths))
    return _wrap_like_a_model(_build_mock_review(paths=paths))


app = FastAPI(title="Mock OpenAI-compatible LLM", version="0.1.0")


@app.post("/v1/chat/completions")
async def chat_completions(req: ChatCompletionRequest) -> dict[str, object]:
    content = _decide_mock_response(messages=req.messages)
    return {
        "id": "chatcmpl-mock",
        "object": "chat.completion",
        "created": 0,
        "model": req.model,
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=9001)


if __name__ == "__main__":
    main()
