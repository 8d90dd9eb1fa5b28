"""
Bitbucket -> Review domain adapter。
"""

from __future__ import annotations

from pr_reviewer.bitbucket.schemas import BitbucketPullRequest
from pr_reviewer.review.diff_parser import parse_diff
from pr_reviewer.review.models import PRContext


def build_pr_context_from_bitbucket(pull_request: BitbucketPullRequest, diff: str) -> PRContext:
    return PRContext(
        title=pull_request.title,
        description=pull_request.description or "",
        changes=parse_diff(diff),
        base_branch=pull_request.destination.branch.name,
        target_branch=pull_request.source.branch.name,
    )
