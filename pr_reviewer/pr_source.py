"""
PR 来源（URL 识别 + 平台分发）。

职责：
- 识别 PR URL 属于哪个平台（Bitbucket / GitHub），解析出 workspace(owner)/repo/PR 编号
- 按平台选择 client：拉取 PR 上下文、回写评论
- 只检查**当前平台**需要的 token，另一个平台的 token 不需要
"""

from __future__ import annotations

import logging
import re
from typing import Literal

import httpx
from pydantic import BaseModel, ConfigDict

from pr_reviewer.bitbucket.adapter import build_pr_context_from_bitbucket
from pr_reviewer.bitbucket.client import BitbucketClient
from pr_reviewer.config import AppConfig
from pr_reviewer.config import require_bitbucket
from pr_reviewer.config import require_github
from pr_reviewer.errors import InvalidPRUrlError
from pr_reviewer.github.adapter import build_pr_context_from_github
from pr_reviewer.github.client import GitHubClient
from pr_reviewer.review.models import PRContext
from pr_reviewer.review.models import PRReviewResult
from pr_reviewer.review.synthesis import format_review_comment

logger = logging.getLogger(__name__)

Platform = Literal["bitbucket", "github"]

_URL_PATTERNS: tuple[tuple[Platform, re.Pattern[str]], ...] = (
    ("bitbucket", re.compile(r"^https?://(?:www\.)?bitbucket\.org/([^/]+)/([^/]+)/pull-requests/(\d+)(?:[/?#].*)?$")),
    ("github", re.compile(r"^https?://(?:www\.)?github\.com/([^/]+)/([^/]+)/pull/(\d+)(?:[/?#].*)?$")),
)


class PullRequestRef(BaseModel):
    """从 URL 解析出的 PR 标识。workspace：Bitbucket workspace 或 GitHub owner。"""

    model_config = ConfigDict(frozen=True)

    platform: Platform
    workspace: str
    repo: str
    pr_id: int
    url: str


def parse_pr_url(url: str) -> PullRequestRef:
    stripped = url.strip()
    for platform, pattern in _URL_PATTERNS:
        match = pattern.match(stripped)
        if match:
            workspace, repo, pr_id = match.groups()
            return PullRequestRef(platform=platform, workspace=workspace, repo=repo, pr_id=int(pr_id), url=stripped)
    raise InvalidPRUrlError(
        f"Invalid PR URL format: {url!r}. Expected "
        "https://bitbucket.org/<workspace>/<repo>/pull-requests/<id> or "
        "https://github.com/<owner>/<repo>/pull/<number>"
    )


def _bitbucket_client(config: AppConfig, http_client: httpx.AsyncClient) -> BitbucketClient:
    bitbucket = require_bitbucket(config)
    return BitbucketClient(
        api_base_url=str(bitbucket.api_base_url),
        access_token=bitbucket.access_token,
        http_client=http_client,
    )


def _github_client(config: AppConfig, http_client: httpx.AsyncClient) -> GitHubClient:
    github = require_github(config)
    return GitHubClient(api_base_url=str(github.api_base_url), token=github.token, http_client=http_client)


async def fetch_pr_context(ref: PullRequestRef, config: AppConfig, http_client: httpx.AsyncClient) -> PRContext:
    """拉取 PR 元信息 + diff，并转换为平台无关的 `PRContext`。"""
    logger.info(f"Fetching {ref.platform} PR {ref.workspace}/{ref.repo}#{ref.pr_id}")
    if ref.platform == "bitbucket":
        bitbucket_client = _bitbucket_client(config, http_client)
        bitbucket_pr = await bitbucket_client.get_pull_request(ref.workspace, ref.repo, ref.pr_id)
        diff = await bitbucket_client.get_pull_request_diff(ref.workspace, ref.repo, ref.pr_id)
        context = build_pr_context_from_bitbucket(pull_request=bitbucket_pr, diff=diff)
    else:
        github_client = _github_client(config, http_client)
        github_pr = await github_client.get_pull_request(ref.workspace, ref.repo, ref.pr_id)
        diff = await github_client.get_pull_request_diff(ref.workspace, ref.repo, ref.pr_id)
        context = build_pr_context_from_github(pull_request=github_pr, diff=diff)
    logger.info(f"Fetched PR '{context.title}' with {len(context.changes)} changed file(s)")
    return context


async def post_review_comment(
    ref: PullRequestRef,
    result: PRReviewResult,
    config: AppConfig,
    http_client: httpx.AsyncClient,
    code_language: str = "",
) -> None:
    """渲染 markdown 并回写到 PR 所在平台（发评论时才检查该平台 token）。"""
    body = format_review_comment(result, code_language=code_language)
    if ref.platform == "bitbucket":
        await _bitbucket_client(config, http_client).add_pull_request_comment(ref.workspace, ref.repo, ref.pr_id, body)
    else:
        await _github_client(config, http_client).create_issue_comment(ref.workspace, ref.repo, ref.pr_id, body)
    logger.info(f"Posted review comment to {ref.url}")
