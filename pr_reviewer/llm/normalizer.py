"""
Response Normalizer：从模型的自由文本输出中提取并修复 JSON。

为什么需要：
- 模型经常把 JSON 包在 markdown 代码块里，或者前后带解释性文字
- 也经常输出“差不多是 JSON”的文本（尾逗号、非法转义等）

策略（按顺序）：
1. 有 ```json ... ``` 代码块：直接返回块内内容（最常见、最干净的情况）
2. 否则去掉所有代码块标记
3. 依次应用 `REPAIRS` 中的纯文本修复函数

这里永远不抛错；修不好的输出交给下游 JSON 解析/校验去拒绝。
"""

from __future__ import annotations

import re
from collections.abc import Callable

_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\r?\n(.*?)\r?\n?[ \t]*```", re.DOTALL)
_FENCE_MARKER = re.compile(r"```(?:json)?")
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
# 逐对扫描反斜杠转义，保证 `\\` 不会被误认为下一个转义的开头
_ESCAPE = re.compile(r"\\(u[0-9a-fA-F]{4}|.)", re.DOTALL)
_WHITESPACE_ESCAPES = re.compile(r"(?:\\[nrt])+|\\.", re.DOTALL)
_ESCAPED_QUOTE = re.compile(r'(\\+)"')

_VALID_ESCAPES = frozenset('"\\/bfnrtu')


def _slice_outer_object(text: str) -> str:
    """JSON 前后有解释性文字时，只保留最外层 `{...}`。"""
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return text
    return text[start : end + 1]


def _remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def _drop_invalid_escapes(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if escaped[0] in _VALID_ESCAPES:
            return match.group(0)
        return escaped

    return _ESCAPE.sub(replace, text)


def _decode_unicode_escapes(text: str) -> str:
    """
    `\\uXXXX` 解码成字面字符。

    引号、反斜杠、控制字符和孤立代理项保持转义形式，否则解码后 JSON 本身会被破坏。
    """

    def replace(match: re.Match[str]) -> str:
        escaped = match.group(1)
        if len(escaped) != 5:
            return match.group(0)
        code_point = int(escaped[1:], 16)
        if code_point < 0x20 or code_point in (0x22, 0x5C) or 0xD800 <= code_point <= 0xDFFF:
            return match.group(0)
        return chr(code_point)

    return _ESCAPE.sub(replace, text)


def _collapse_whitespace_escapes(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        sequence = match.group(0)
        if sequence[1] in "nrt":
            return " "
        return sequence

    return _WHITESPACE_ESCAPES.sub(replace, text)


def _normalize_quote_escaping(text: str) -> str:
    """
    过度转义的引号（例如 `\\\\\\"`）收敛为 `\\"`。

    启发式：字符串里合法的“字面反斜杠 + 引号”也会被改写。
    """

    def replace(match: re.Match[str]) -> str:
        if len(match.group(1)) % 2 == 1:
            return '\\"'
        return match.group(0)

    return _ESCAPED_QUOTE.sub(replace, text)


REPAIRS: tuple[Callable[[str], str], ...] = (
    _slice_outer_object,
    _remove_trailing_commas,
    _drop_invalid_escapes,
    _decode_unicode_escapes,
    _collapse_whitespace_escapes,
    _normalize_quote_escaping,
)


def extract_fenced_json(text: str) -> str | None:
    """返回第一个（可选 json 标记的）代码块内容；没有代码块返回 None。"""
    match = _FENCED_BLOCK.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def normalize_response(raw: str) -> str:
    """把模型原始输出变成“尽量可以 json.loads 的文本”。"""
    fenced = extract_fenced_json(raw)
    if fenced is not None:
        return fenced

    text = _FENCE_MARKER.sub("", raw).strip()
    for repair in REPAIRS:
        text = repair(text)
    return text.strip()
