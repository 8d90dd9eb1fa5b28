"""
Review Orchestrator（核心流程编排）。

关键思想：
- **流程由工程代码控制**：两个独立 prompt（review / tests），并发调用
- **LLM 只负责“生成结构化输出”**：每次调用都经过 invoker 的跨模型降级 + schema 校验

流程：
PRContext -> build prompts -> invoke_with_fallback × 2（并发） -> PRReviewResult

失败策略：任一分支耗尽所有模型就整体失败（不返回半成品），另一分支会被取消。
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from pr_reviewer.errors import ReviewTimeoutError
from pr_reviewer.llm.invoker import GenerateText
from pr_reviewer.llm.invoker import invoke_with_fallback
from pr_reviewer.review.models import CodeReview
from pr_reviewer.review.models import PRContext
from pr_reviewer.review.models import PRReviewResult
from pr_reviewer.review.models import TestGeneration
from pr_reviewer.review.prompts import build_review_prompt
from pr_reviewer.review.prompts import build_test_prompt

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOrchestrator:
    """Orchestrator 运行时依赖集合：generate 能力 + 只读的候选模型优先级列表。"""

    generate: GenerateText
    candidate_models: tuple[str, ...]
    timeout_seconds: float | None = None

    async def review_pr(self, context: PRContext) -> PRReviewResult:
        """
        跑一次完整 review。

        - review / tests 两个分支互不依赖，并发执行后 join
        - 超时或外部取消时，两个分支都会被取消
        """
        logger.info(f"Reviewing PR '{context.title}': {len(context.changes)} file(s)")
        if self.timeout_seconds is None:
            return await self._run(context)
        try:
            return await asyncio.wait_for(self._run(context), timeout=self.timeout_seconds)
        except asyncio.TimeoutError as exc:
            raise ReviewTimeoutError(timeout_seconds=self.timeout_seconds) from exc

    async def _run(self, context: PRContext) -> PRReviewResult:
        review_task = asyncio.ensure_future(
            invoke_with_fallback(
                prompt=build_review_prompt(context),
                candidate_models=self.candidate_models,
                generate=self.generate,
                schema=CodeReview,
            )
        )
        tests_task = asyncio.ensure_future(
            invoke_with_fallback(
                prompt=build_test_prompt(context),
                candidate_models=self.candidate_models,
                generate=self.generate,
                schema=TestGeneration,
            )
        )
        try:
            review, tests = await asyncio.gather(review_task, tests_task)
        except BaseException:
            # gather 不会因为一个子任务失败而取消另一个，这里显式取消
            review_task.cancel()
            tests_task.cancel()
            raise

        logger.info(f"Review generated by {review.model} ({len(review.failures)} fallback(s))")
        logger.info(f"Tests generated by {tests.model} ({len(tests.failures)} fallback(s))")
        return PRReviewResult(review=review.value, tests=tests.value)


def build_review_orchestrator(
    generate: GenerateText,
    candidate_models: Sequence[str],
    timeout_seconds: float | None = None,
) -> ReviewOrchestrator:
    """创建 orchestrator（候选模型列表在这里定型为只读 tuple）。"""
    if not candidate_models:
        raise ValueError("candidate_models must be non-empty")
    return ReviewOrchestrator(
        generate=generate,
        candidate_models=tuple(candidate_models),
        timeout_seconds=timeout_seconds,
    )
