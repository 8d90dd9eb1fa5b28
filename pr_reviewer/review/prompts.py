"""
Prompt 构造（确定性，纯字符串拼接）。

两个独立 prompt：
- review：标题 + 描述 + 每个文件的 path/type/language/content
- tests：每个文件的 path/language/content
两者都要求模型只输出符合 schema 的 JSON。
"""

from __future__ import annotations

from pr_reviewer.review.context import infer_language_from_path
from pr_reviewer.review.models import PRContext

_REVIEW_SCHEMA = """{
  "summary": string,
  "strengths": string[],
  "improvements": string[],
  "security": string[],
  "performance": string[],
  "testCoverage": {
    "current": string,
    "missing": string[]
  }
}"""

_TESTS_SCHEMA = """{
  "unitTests": string[],
  "integrationTests": string[],
  "e2eTests": string[]
}"""


def build_review_prompt(context: PRContext) -> str:
    files = "\n".join(
        (
            f"File: {c.path}\n"
            f"Type: {c.type}\n"
            f"Language: {infer_language_from_path(path=c.path)}\n"
            f"Content:\n{c.content}\n"
        )
        for c in context.changes
    )
    return (
        "Review the following pull request:\n"
        f"Title: {context.title}\n"
        f"Description: {context.description}\n"
        f"Base branch: {context.base_branch}\n"
        f"Source branch: {context.target_branch}\n\n"
        f"Changes:\n{files}\n"
        "Please provide a structured review focusing on:\n"
        "1. Language best practices and idioms\n"
        "2. Architecture and code organization\n"
        "3. Security considerations\n"
        "4. Performance\n"
        "5. Test coverage\n\n"
        "Respond with a single JSON object (no explanations) matching this schema:\n"
        f"{_REVIEW_SCHEMA}\n"
    )


def build_test_prompt(context: PRContext) -> str:
    files = "\n".join(
        (
            f"File: {c.path}\n"
            f"Language: {infer_language_from_path(path=c.path)}\n"
            f"Content:\n{c.content}\n"
        )
        for c in context.changes
    )
    return (
        "Generate tests for the following code changes:\n"
        f"{files}\n"
        "Please provide test implementations for:\n"
        "1. Unit tests\n"
        "2. Integration tests\n"
        "3. E2E tests\n\n"
        "Each test must be a complete code snippet stored as one JSON string.\n"
        "Respond with a single JSON object (no explanations) matching this schema:\n"
        f"{_TESTS_SCHEMA}\n"
    )
