"""
Bitbucket Cloud API response schemas（Pydantic）。

说明：
- 字段只覆盖当前需要的子集（PR 元信息：标题、描述、源/目标分支）。
"""

from __future__ import annotations

from pydantic import BaseModel


class BitbucketBranch(BaseModel):
    name: str


class BitbucketEndpoint(BaseModel):
    branch: BitbucketBranch


class BitbucketPullRequest(BaseModel):
    """
    GET /repositories/{workspace}/{repo}/pullrequests/{id}（最小结构）。

    source = 提交改动的分支；destination = 合入的目标分支（base）。
    """

    id: int
    title: str
    description: str | None = None
    source: BitbucketEndpoint
    destination: BitbucketEndpoint


class BitbucketComment(BaseModel):
    id: int
