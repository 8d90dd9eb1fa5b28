"""
Review 领域模型（Pydantic）。

用途：
- 明确各阶段输入/输出的数据结构
- 作为 LLM JSON 输出的 schema 校验（CodeReview / TestGeneration）

注意：
- 全部 `frozen=True`，序列字段一律存成 tuple：解析/校验完成后整棵对象树都不可变
- LLM 输出的两个 schema 使用 `strict=True`：不做类型转换，结构不对就整体失败（不产生半成品对象）
- 多余的未知字段忽略，不报错
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

ChangeType = Literal["added", "modified", "deleted"]


def _json_array_to_tuple(value: object) -> object:
    # json.loads 产出的数组是 list；严格模式下 tuple 字段不接受 list，这里只做容器转换，元素仍按 str 严格校验
    if isinstance(value, list):
        return tuple(value)
    return value


StrTuple = Annotated[tuple[str, ...], BeforeValidator(_json_array_to_tuple)]


class FileChange(BaseModel):
    """单个文件的变更（从 unified diff 解析而来）。"""

    model_config = ConfigDict(frozen=True)

    path: str = Field(min_length=1)
    content: str
    type: ChangeType


class PRContext(BaseModel):
    """一次 PR 的上下文（供 prompt 构造使用）。changes 保持 diff 中的出现顺序。"""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    changes: tuple[FileChange, ...] = ()
    base_branch: str
    target_branch: str


class TestCoverage(BaseModel):
    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    current: str
    missing: StrTuple


class CodeReview(BaseModel):
    """review 阶段的结构化输出（必须 JSON-only）。"""

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    summary: str
    strengths: StrTuple
    improvements: StrTuple
    security: StrTuple
    performance: StrTuple
    testCoverage: TestCoverage


class TestGeneration(BaseModel):
    """测试生成阶段的结构化输出（必须 JSON-only）。"""

    model_config = ConfigDict(frozen=True, strict=True, extra="ignore")

    unitTests: StrTuple
    integrationTests: StrTuple
    e2eTests: StrTuple


class PRReviewResult(BaseModel):
    """orchestrator 的唯一输出。"""

    model_config = ConfigDict(frozen=True)

    review: CodeReview
    tests: TestGeneration
