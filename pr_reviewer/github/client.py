"""
GitHub API 客户端（外部系统连接器）。

约定：
- 这里只做 HTTP 调用 + 错误处理 + schema 校验
- 出错直接抛错（不要吞），便于定位与告警
"""

from __future__ import annotations

import logging

import httpx

from pr_reviewer.errors import CommentPostError
from pr_reviewer.errors import UpstreamFetchError
from pr_reviewer.github.schemas import GitHubIssueComment
from pr_reviewer.github.schemas import GitHubPullRequest

logger = logging.getLogger(__name__)


class GitHubClient:
    """最小 GitHub API client（PR 元信息 + PR diff + 评论）。"""

    def __init__(self, api_base_url: str, token: str, http_client: httpx.AsyncClient) -> None:
        self._api_base_url = api_base_url.rstrip("/")
        self._token = token
        self._http_client = http_client

    def _headers(self, accept: str = "application/vnd.github+json") -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": accept,
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _pull_url(self, owner: str, repo: str, pull_number: int) -> str:
        return f"{self._api_base_url}/repos/{owner}/{repo}/pulls/{pull_number}"

    async def get_pull_request(self, owner: str, repo: str, pull_number: int) -> GitHubPullRequest:
        response = await self._http_client.get(self._pull_url(owner, repo, pull_number), headers=self._headers())
        if response.status_code >= 400:
            raise UpstreamFetchError(
                f"GitHub API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return GitHubPullRequest.model_validate(response.json())

    async def get_pull_request_diff(self, owner: str, repo: str, pull_number: int) -> str:
        """用 `application/vnd.github.diff` 拿整段 unified diff（原始文本）。"""
        response = await self._http_client.get(
            self._pull_url(owner, repo, pull_number),
            headers=self._headers(accept="application/vnd.github.diff"),
        )
        if response.status_code >= 400:
            raise UpstreamFetchError(
                f"GitHub API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.text

    async def create_issue_comment(self, owner: str, repo: str, pull_number: int, body: str) -> GitHubIssueComment:
        """
        在 PR 下发布一条全局评论（PR 在 GitHub 里也是 issue）。
        """
        url = f"{self._api_base_url}/repos/{owner}/{repo}/issues/{pull_number}/comments"
        logger.info(f"GitHub comment: POST {url} ({len(body)} chars)")
        response = await self._http_client.post(url, headers=self._headers(), json={"body": body})
        if response.status_code >= 400:
            raise CommentPostError(
                f"GitHub API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return GitHubIssueComment.model_validate(response.json())
