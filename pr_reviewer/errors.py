"""
错误类型（统一定义）。

约定：
- 所有错误都继承 `ReviewBotError`，CLI 只需要捕获这一个基类即可统一报错退出
- 同时继承 Python 内置异常（输入/结构问题用 `ValueError`，上游/运行时问题用 `RuntimeError`），
  便于调用方按熟悉的类型处理
"""

from __future__ import annotations

from dataclasses import dataclass


class ReviewBotError(Exception):
    """本项目所有错误的基类。"""

    pass


class InvalidPRUrlError(ReviewBotError, ValueError):
    """PR URL 不匹配任何已知平台格式。"""

    pass


class MissingCredentialError(ReviewBotError, ValueError):
    """缺少必要的 token / API key。"""

    pass


class UpstreamFetchError(ReviewBotError, RuntimeError):
    """托管平台拉取 PR 信息时返回非成功状态码。"""

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class CommentPostError(ReviewBotError, RuntimeError):
    """回写 PR 评论时返回非成功状态码。"""

    def __init__(self, message: str, status_code: int, body: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ReviewTimeoutError(ReviewBotError, TimeoutError):
    """整次 review 超过配置的超时时间（两个分支都已取消）。"""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(f"PR review timed out after {timeout_seconds:g}s")
        self.timeout_seconds = timeout_seconds


class GenerationError(ReviewBotError, RuntimeError):
    """单个模型的生成调用本身抛错。"""

    def __init__(self, model: str, cause: BaseException) -> None:
        super().__init__(f"Generation failed for model {model}: {cause}")
        self.model = model


class ResponseParseError(ReviewBotError, ValueError):
    """归一化之后仍然不是合法 JSON（消息里带原始输出，便于排查）。"""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(f"{message}. Raw: {raw}")
        self.raw = raw


class SchemaMismatchError(ReviewBotError, ValueError):
    """JSON 缺少必填字段或字段类型不对。"""

    def __init__(self, schema_name: str, field: str, reason: str) -> None:
        super().__init__(f"LLM JSON does not match schema {schema_name}: {field}: {reason}")
        self.schema_name = schema_name
        self.field = field
        self.reason = reason


@dataclass(frozen=True)
class ModelFailure:
    """一次候选模型失败的记录。"""

    model: str
    error: Exception


class AllModelsExhaustedError(ReviewBotError, RuntimeError):
    """所有候选模型都失败了；消息中汇总每个模型的失败原因。"""

    def __init__(self, failures: tuple[ModelFailure, ...]) -> None:
        details = "\n".join(f"- {f.model}: {f.error}" for f in failures)
        super().__init__(f"All {len(failures)} candidate model(s) failed:\n{details}")
        self.failures = failures
