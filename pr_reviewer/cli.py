"""
命令行入口：`pr-review <PR_URL> [--post]`。

这里做四件事：
- 加载配置（.env + 严格校验环境变量）
- 组装外部依赖（HTTP Client / LLM Client / orchestrator）
- 跑一次 fetch -> review，输出 JSON
- 可选：把结果回写为 PR 评论

注意：
- 业务流程不写在这里（由 `review/orchestrator.py` 负责）
- 一次运行只创建一个 `httpx.AsyncClient`，平台 API 与 LLM 调用共用
"""

from __future__ import annotations

import asyncio
import logging
import os

import click
import httpx
from dotenv import load_dotenv

from pr_reviewer.config import AppConfig
from pr_reviewer.config import load_config_from_env
from pr_reviewer.errors import ReviewBotError
from pr_reviewer.llm.client import OpenAICompatLLMClient
from pr_reviewer.pr_source import fetch_pr_context
from pr_reviewer.pr_source import parse_pr_url
from pr_reviewer.pr_source import post_review_comment
from pr_reviewer.review.context import dominant_language
from pr_reviewer.review.models import PRReviewResult
from pr_reviewer.review.orchestrator import build_review_orchestrator

logger = logging.getLogger(__name__)


async def run_review(config: AppConfig, pr_url: str, post: bool) -> PRReviewResult:
    """fetch -> review ->（可选）post。出错直接抛，由 CLI 统一处理。"""
    # 1) URL 识别：不认识的格式直接失败，不发任何请求
    ref = parse_pr_url(pr_url)

    async with httpx.AsyncClient(timeout=httpx.Timeout(30.0)) as http_client:
        # 2) 拉取 PR 上下文（只要求当前平台的 token）
        context = await fetch_pr_context(ref=ref, config=config, http_client=http_client)

        # 3) LLM client + orchestrator：候选模型按配置的优先级降级
        llm_client = OpenAICompatLLMClient(
            api_key=config.llm.api_key,
            base_url=str(config.llm.base_url),
            http_client=http_client,
        )
        orchestrator = build_review_orchestrator(
            generate=llm_client.generate,
            candidate_models=config.llm.models,
            timeout_seconds=config.review_timeout_seconds,
        )
        result = await orchestrator.review_pr(context)

        if post:
            await post_review_comment(
                ref=ref,
                result=result,
                config=config,
                http_client=http_client,
                code_language=dominant_language(context.changes),
            )
    return result


@click.command()
@click.argument("pr_url")
@click.option("--post", is_flag=True, help="Also post the review as a comment on the pull request.")
def main(pr_url: str, post: bool) -> None:
    """Review the pull request at PR_URL (Bitbucket or GitHub) with an LLM."""
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config_from_env(os.environ)
        result = asyncio.run(run_review(config=config, pr_url=pr_url, post=post))
    except (ReviewBotError, ValueError, httpx.HTTPError) as exc:
        logger.error(f"PR review failed: {exc}")
        raise click.ClickException(str(exc)) from exc

    click.echo(result.model_dump_json(indent=2))
    if post:
        click.echo("Review comment posted.", err=True)


if __name__ == "__main__":
    main()
