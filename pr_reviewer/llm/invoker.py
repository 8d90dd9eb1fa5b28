"""
Resilient Model Invoker（跨模型降级调用）。

流程（每个候选模型）：
generate -> normalize -> json.loads -> schema 校验

- 候选模型按配置的优先级**严格串行**尝试（不并发、不随机、不轮询）
- 任一环节失败：记录失败原因，换下一个模型（不会对同一个模型重试）
- 第一个完整成功的结果立即返回
- 全部失败：抛 `AllModelsExhaustedError`，汇总每个模型的失败信息
- 每次调用都从第一个候选模型重新开始，不保留任何跨调用状态
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from pr_reviewer.errors import AllModelsExhaustedError
from pr_reviewer.errors import GenerationError
from pr_reviewer.errors import ModelFailure
from pr_reviewer.errors import ResponseParseError
from pr_reviewer.errors import SchemaMismatchError
from pr_reviewer.llm.normalizer import normalize_response
from pr_reviewer.llm.validator import validate_payload

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# (model_id, prompt) -> 模型原始文本输出
GenerateText = Callable[[str, str], Awaitable[str]]


@dataclass(frozen=True)
class InvocationResult(Generic[ModelT]):
    """成功结果 + 成功的模型名 + 成功之前记录的失败。"""

    value: ModelT
    model: str
    failures: tuple[ModelFailure, ...]


def parse_model_output(raw: str, schema: type[ModelT]) -> ModelT:
    """normalize -> json.loads -> schema 校验。失败抛 `ResponseParseError` / `SchemaMismatchError`。"""
    normalized = normalize_response(raw)
    try:
        # strict=False：允许字符串里出现未转义的换行（模型输出代码时很常见）
        parsed = json.loads(normalized, strict=False)
    except (ValueError, RecursionError) as exc:
        # JSONDecodeError 之外：超长整数 -> ValueError，嵌套过深 -> RecursionError
        logger.error(f"Invalid JSON from LLM. Raw content: {raw}")
        raise ResponseParseError(f"LLM did not return valid JSON ({exc})", raw=raw) from exc
    return validate_payload(parsed, schema)


async def invoke_with_fallback(
    prompt: str,
    candidate_models: Sequence[str],
    generate: GenerateText,
    schema: type[ModelT],
) -> InvocationResult[ModelT]:
    if not candidate_models:
        raise ValueError("candidate_models must be non-empty")

    failures: list[ModelFailure] = []
    for model in candidate_models:
        try:
            raw = await generate(model, prompt)
        except Exception as exc:
            error: Exception = GenerationError(model=model, cause=exc)
            error.__cause__ = exc
        else:
            try:
                value = parse_model_output(raw, schema)
            except (ResponseParseError, SchemaMismatchError) as exc:
                error = exc
            else:
                logger.info(f"{schema.__name__} accepted from model={model} after {len(failures)} fallback(s)")
                return InvocationResult(value=value, model=model, failures=tuple(failures))

        logger.warning(f"Model {model} failed for {schema.__name__}: {error}. Falling back...")
        failures.append(ModelFailure(model=model, error=error))

    raise AllModelsExhaustedError(failures=tuple(failures))
