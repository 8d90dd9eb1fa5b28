from __future__ import annotations

import json

import httpx
import pytest

from pr_reviewer.config import load_config_from_env
from pr_reviewer.errors import CommentPostError
from pr_reviewer.errors import InvalidPRUrlError
from pr_reviewer.errors import MissingCredentialError
from pr_reviewer.errors import UpstreamFetchError
from pr_reviewer.pr_source import fetch_pr_context
from pr_reviewer.pr_source import parse_pr_url
from pr_reviewer.pr_source import post_review_comment
from pr_reviewer.review import models

DIFF = "\n".join(
    [
        "diff --git a/calc.js b/calc.js",
        "new file mode 100644",
        "+function add(a,b){return a+b;}",
        "diff --git a/README.md b/README.md",
        "+docs",
    ]
)

BASE_ENV = {"LLM_API_KEY": "k"}


def _result() -> models.PRReviewResult:
    return models.PRReviewResult(
        review=models.CodeReview(
            summary="s",
            strengths=[],
            improvements=[],
            security=[],
            performance=[],
            testCoverage=models.TestCoverage(current="c", missing=[]),
        ),
        tests=models.TestGeneration(unitTests=["t()"], integrationTests=[], e2eTests=[]),
    )


def test_parse_bitbucket_url() -> None:
    ref = parse_pr_url("https://bitbucket.org/acme/web-app/pull-requests/42/overview")
    assert (ref.platform, ref.workspace, ref.repo, ref.pr_id) == ("bitbucket", "acme", "web-app", 42)


def test_parse_github_url() -> None:
    ref = parse_pr_url("https://github.com/octo/hello/pull/7")
    assert (ref.platform, ref.workspace, ref.repo, ref.pr_id) == ("github", "octo", "hello", 7)


@pytest.mark.parametrize(
    "url",
    [
        "https://gitlab.com/acme/web/-/merge_requests/1",
        "https://github.com/octo/hello/issues/7",
        "https://bitbucket.org/acme/web-app/pull-requests/abc",
        "not a url",
    ],
)
def test_parse_unknown_url_raises(url: str) -> None:
    with pytest.raises(InvalidPRUrlError):
        parse_pr_url(url)


@pytest.mark.asyncio
async def test_fetch_bitbucket_pr_context() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        path = request.url.path
        if path == "/2.0/repositories/acme/web/pullrequests/3":
            return httpx.Response(
                200,
                json={
                    "id": 3,
                    "title": "Add calculator",
                    "description": "adds add()",
                    "source": {"branch": {"name": "feature"}},
                    "destination": {"branch": {"name": "main"}},
                },
            )
        if path == "/2.0/repositories/acme/web/pullrequests/3/diff":
            return httpx.Response(302, headers={"Location": "https://api.bitbucket.org/2.0/raw-diff/3"})
        if path == "/2.0/raw-diff/3":
            return httpx.Response(200, text=DIFF)
        return httpx.Response(404, text="not found")

    config = load_config_from_env({**BASE_ENV, "BITBUCKET_ACCESS_TOKEN": "bb-token"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        ref = parse_pr_url("https://bitbucket.org/acme/web/pull-requests/3")
        context = await fetch_pr_context(ref=ref, config=config, http_client=http_client)

    assert context.title == "Add calculator"
    assert context.description == "adds add()"
    assert (context.base_branch, context.target_branch) == ("main", "feature")
    assert [(c.path, c.type) for c in context.changes] == [("calc.js", "added"), ("README.md", "modified")]
    assert all(r.headers["Authorization"] == "Bearer bb-token" for r in seen[:2])


@pytest.mark.asyncio
async def test_fetch_github_pr_context_requests_raw_diff() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/octo/hello/pulls/7"
        assert request.headers["Authorization"] == "Bearer gh-token"
        if request.headers["Accept"] == "application/vnd.github.diff":
            return httpx.Response(200, text=DIFF)
        return httpx.Response(
            200,
            json={"number": 7, "title": "Calc", "body": None, "head": {"ref": "feat"}, "base": {"ref": "main"}},
        )

    config = load_config_from_env({**BASE_ENV, "GITHUB_TOKEN": "gh-token"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        context = await fetch_pr_context(
            ref=parse_pr_url("https://github.com/octo/hello/pull/7"), config=config, http_client=http_client
        )

    assert context.description == ""
    assert (context.base_branch, context.target_branch) == ("main", "feat")
    assert len(context.changes) == 2


@pytest.mark.asyncio
async def test_fetch_non_success_status_raises_with_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403, text="forbidden: bad token")

    config = load_config_from_env({**BASE_ENV, "GITHUB_TOKEN": "t"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        with pytest.raises(UpstreamFetchError) as exc_info:
            await fetch_pr_context(
                ref=parse_pr_url("https://github.com/octo/hello/pull/7"), config=config, http_client=http_client
            )
    assert exc_info.value.status_code == 403
    assert "forbidden: bad token" in str(exc_info.value)


@pytest.mark.asyncio
async def test_fetch_requires_only_the_target_platform_token() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    config = load_config_from_env({**BASE_ENV, "GITHUB_TOKEN": "t"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        with pytest.raises(MissingCredentialError):
            await fetch_pr_context(
                ref=parse_pr_url("https://bitbucket.org/acme/web/pull-requests/3"),
                config=config,
                http_client=http_client,
            )


@pytest.mark.asyncio
async def test_post_bitbucket_comment_sends_raw_markdown() -> None:
    bodies: list[dict[str, object]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/2.0/repositories/acme/web/pullrequests/3/comments"
        bodies.append(json.loads(request.content))
        return httpx.Response(201, json={"id": 99})

    config = load_config_from_env({**BASE_ENV, "BITBUCKET_ACCESS_TOKEN": "bb"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        await post_review_comment(
            ref=parse_pr_url("https://bitbucket.org/acme/web/pull-requests/3"),
            result=_result(),
            config=config,
            http_client=http_client,
            code_language="javascript",
        )

    raw = bodies[0]["content"]["raw"]  # type: ignore[index]
    assert raw.startswith("## Code Review Summary")
    assert "```javascript\nt()\n```" in raw


@pytest.mark.asyncio
async def test_post_github_comment_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/repos/octo/hello/issues/7/comments"
        return httpx.Response(422, text="Validation Failed")

    config = load_config_from_env({**BASE_ENV, "GITHUB_TOKEN": "t"})
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
        with pytest.raises(CommentPostError) as exc_info:
            await post_review_comment(
                ref=parse_pr_url("https://github.com/octo/hello/pull/7"),
                result=_result(),
                config=config,
                http_client=http_client,
            )
    assert "422" in str(exc_info.value)
    assert "Validation Failed" in str(exc_info.value)
