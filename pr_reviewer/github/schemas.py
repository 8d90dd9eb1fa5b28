"""
GitHub API response schemas（Pydantic）。

说明：
- 字段只覆盖当前需要的子集（PR 元信息：标题、描述、分支）。
"""

from __future__ import annotations

from pydantic import BaseModel


class GitHubPullRequestHead(BaseModel):
    ref: str


class GitHubPullRequestBase(BaseModel):
    ref: str


class GitHubPullRequest(BaseModel):
    """GET /repos/{owner}/{repo}/pulls/{pull_number}（最小结构）。body 可能为 null。"""

    number: int
    title: str
    body: str | None = None
    head: GitHubPullRequestHead
    base: GitHubPullRequestBase


class GitHubIssueComment(BaseModel):
    id: int
    html_url: str | None = None
