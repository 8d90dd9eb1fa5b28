"""
Bitbucket Cloud API 客户端（外部系统连接器）。

约定：
- 这里只做“HTTP 调用 + 错误处理 + schema 校验”，不做业务决策。
- 发生错误时**直接抛错**，不要吞异常（便于定位与告警）。
"""

from __future__ import annotations

import logging

import httpx

from pr_reviewer.bitbucket.schemas import BitbucketComment
from pr_reviewer.bitbucket.schemas import BitbucketPullRequest
from pr_reviewer.errors import CommentPostError
from pr_reviewer.errors import UpstreamFetchError

logger = logging.getLogger(__name__)


class BitbucketClient:
    """最小 Bitbucket API client。"""

    def __init__(self, api_base_url: str, access_token: str, http_client: httpx.AsyncClient) -> None:
        """
        - api_base_url: 例如 https://api.bitbucket.org/2.0（不包含末尾 /）
        - access_token: Bearer token（repository / workspace access token）
        - http_client: 复用的 httpx.AsyncClient
        """
        self._api_base_url = api_base_url.rstrip("/")
        self._access_token = access_token
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        """Bitbucket API 鉴权头。"""
        return {"Authorization": f"Bearer {self._access_token}"}

    def _pull_request_url(self, workspace: str, repo: str, pr_id: int) -> str:
        return f"{self._api_base_url}/repositories/{workspace}/{repo}/pullrequests/{pr_id}"

    async def get_pull_request(self, workspace: str, repo: str, pr_id: int) -> BitbucketPullRequest:
        response = await self._http_client.get(self._pull_request_url(workspace, repo, pr_id), headers=self._headers())
        if response.status_code >= 400:
            raise UpstreamFetchError(
                f"Bitbucket API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return BitbucketPullRequest.model_validate(response.json())

    async def get_pull_request_diff(self, workspace: str, repo: str, pr_id: int) -> str:
        """
        获取 PR 的 unified diff 原始文本。

        说明：Bitbucket 会 302 跳转到真正的 diff 地址，所以这里需要跟随重定向。
        """
        url = f"{self._pull_request_url(workspace, repo, pr_id)}/diff"
        response = await self._http_client.get(url, headers=self._headers(), follow_redirects=True)
        if response.status_code >= 400:
            raise UpstreamFetchError(
                f"Bitbucket API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return response.text

    async def add_pull_request_comment(self, workspace: str, repo: str, pr_id: int, body: str) -> BitbucketComment:
        """在 PR 下发布一条全局评论（markdown 原文放在 content.raw）。"""
        url = f"{self._pull_request_url(workspace, repo, pr_id)}/comments"
        logger.info(f"Bitbucket comment: POST {url} ({len(body)} chars)")
        response = await self._http_client.post(url, headers=self._headers(), json={"content": {"raw": body}})
        if response.status_code >= 400:
            raise CommentPostError(
                f"Bitbucket API error {response.status_code}: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )
        return BitbucketComment.model_validate(response.json())
