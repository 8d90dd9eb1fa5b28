from __future__ import annotations

"""
Synthesis（汇总输出）。

注意：
- 这里是**确定性输出**（不依赖 LLM），便于稳定回写到 PR 评论
"""

from collections.abc import Sequence

from pr_reviewer.review.models import PRReviewResult


def _bullets(items: Sequence[str]) -> list[str]:
    return [f"- {item}" for item in items]


def _code_blocks(tests: Sequence[str], code_language: str) -> list[str]:
    return [f"```{code_language}\n{test}\n```" for test in tests]


def format_review_comment(result: PRReviewResult, code_language: str = "") -> str:
    """
    将 review + tests 拼成一段 markdown 评论正文。

    - code_language：建议测试代码块的语言标记（例如 `python`），为空则不标记
    """
    review = result.review
    tests = result.tests

    lines: list[str] = ["## Code Review Summary"]
    if review.summary.strip():
        lines.append("")
        lines.append(review.summary.strip())

    lines.extend(["", "### Strengths", *_bullets(review.strengths)])
    lines.extend(["", "### Improvements", *_bullets(review.improvements)])
    lines.extend(["", "### Security Considerations", *_bullets(review.security)])
    lines.extend(["", "### Performance", *_bullets(review.performance)])

    lines.extend(["", "### Test Coverage", f"Current: {review.testCoverage.current}"])
    lines.extend(["", "Missing Tests:", *_bullets(review.testCoverage.missing)])

    lines.extend(["", "### Suggested Tests"])
    lines.extend(["", "#### Unit Tests", *_code_blocks(tests.unitTests, code_language)])
    lines.extend(["", "#### Integration Tests", *_code_blocks(tests.integrationTests, code_language)])
    lines.extend(["", "#### E2E Tests", *_code_blocks(tests.e2eTests, code_language)])

    return "\n".join(lines)
