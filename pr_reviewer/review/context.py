"""
Context 辅助（非 AI）。

做最少量的工程推断（例如通过扩展名推断语言），供 prompt 和评论渲染使用。
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from pr_reviewer.review.models import FileChange

_EXTENSION_LANGUAGES: tuple[tuple[tuple[str, ...], str], ...] = (
    ((".py",), "python"),
    ((".ts", ".tsx"), "typescript"),
    ((".js", ".jsx", ".mjs", ".cjs"), "javascript"),
    ((".go",), "go"),
    ((".java",), "java"),
    ((".kt", ".kts"), "kotlin"),
    ((".rb",), "ruby"),
    ((".php",), "php"),
    ((".rs",), "rust"),
    ((".cs",), "csharp"),
    ((".sql",), "sql"),
)


def infer_language_from_path(path: str) -> str:
    """
    通过文件扩展名推断语言。

    这是一个非常“工程”的步骤：不需要 LLM，且必须确定性。
    """
    lowered = path.lower()
    for extensions, language in _EXTENSION_LANGUAGES:
        if lowered.endswith(extensions):
            return language
    return "unknown"


def dominant_language(changes: Sequence[FileChange]) -> str:
    """本次变更中出现最多的已知语言（用于给建议测试的代码块打语言标记）；没有则返回空串。"""
    counts = Counter(infer_language_from_path(path=c.path) for c in changes)
    counts.pop("unknown", None)
    if not counts:
        return ""
    return counts.most_common(1)[0][0]
