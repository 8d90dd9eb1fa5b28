"""
Schema Validator：把已解析的 JSON 校验为 `CodeReview` / `TestGeneration`。

- 严格模式：不做类型转换（数字不能当字符串、字符串不能当列表）
- 多余字段忽略
- 失败统一转换为 `SchemaMismatchError`，并指出是哪个字段出错
"""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from pr_reviewer.errors import SchemaMismatchError

ModelT = TypeVar("ModelT", bound=BaseModel)


def _field_path(loc: tuple[int | str, ...]) -> str:
    if not loc:
        return "<root>"
    return ".".join(str(part) for part in loc)


def validate_payload(payload: object, schema: type[ModelT]) -> ModelT:
    try:
        return schema.model_validate(payload, strict=True)
    except ValidationError as exc:
        first = exc.errors()[0]
        raise SchemaMismatchError(
            schema_name=schema.__name__,
            field=_field_path(first["loc"]),
            reason=f"{first['msg']} ({first['type']})",
        ) from exc
