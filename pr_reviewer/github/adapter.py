"""
GitHub -> Review domain adapter。

职责：
- 将 GitHub PR 元信息 + diff 文本转为平台无关的 `PRContext`
"""

from __future__ import annotations

from pr_reviewer.github.schemas import GitHubPullRequest
from pr_reviewer.review.diff_parser import parse_diff
from pr_reviewer.review.models import PRContext


def build_pr_context_from_github(pull_request: GitHubPullRequest, diff: str) -> PRContext:
    return PRContext(
        title=pull_request.title,
        description=pull_request.body or "",
        changes=parse_diff(diff),
        base_branch=pull_request.base.ref,
        target_branch=pull_request.head.ref,
    )
