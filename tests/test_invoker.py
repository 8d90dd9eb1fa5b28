from __future__ import annotations

import asyncio
import json

import pytest

from pr_reviewer.errors import AllModelsExhaustedError
from pr_reviewer.errors import GenerationError
from pr_reviewer.errors import ResponseParseError
from pr_reviewer.errors import SchemaMismatchError
from pr_reviewer.llm.invoker import invoke_with_fallback
from pr_reviewer.review import models

TESTS_PAYLOAD = {"unitTests": ["u"], "integrationTests": ["i"], "e2eTests": []}


class ScriptedGenerate:
    """按模型名返回预设结果；值是 Exception 时抛出。记录调用顺序。"""

    def __init__(self, script: dict[str, object]) -> None:
        self.script = script
        self.calls: list[str] = []

    async def __call__(self, model: str, prompt: str) -> str:
        self.calls.append(model)
        outcome = self.script[model]
        if isinstance(outcome, Exception):
            raise outcome
        return str(outcome)


@pytest.mark.asyncio
async def test_first_valid_model_wins_without_trying_others() -> None:
    generate = ScriptedGenerate({"m1": json.dumps(TESTS_PAYLOAD), "m2": json.dumps(TESTS_PAYLOAD)})
    result = await invoke_with_fallback("p", ["m1", "m2"], generate, models.TestGeneration)
    assert result.model == "m1"
    assert result.failures == ()
    assert generate.calls == ["m1"]


@pytest.mark.asyncio
async def test_two_throwing_models_then_third_succeeds() -> None:
    generate = ScriptedGenerate(
        {
            "m1": RuntimeError("quota exceeded"),
            "m2": TimeoutError("deadline"),
            "m3": f"```json\n{json.dumps(TESTS_PAYLOAD)}\n```",
        }
    )
    result = await invoke_with_fallback("p", ["m1", "m2", "m3"], generate, models.TestGeneration)
    assert result.model == "m3"
    assert result.value.unitTests == ("u",)
    assert len(result.failures) == 2
    assert [f.model for f in result.failures] == ["m1", "m2"]
    assert all(isinstance(f.error, GenerationError) for f in result.failures)
    assert generate.calls == ["m1", "m2", "m3"]


@pytest.mark.asyncio
async def test_parse_and_schema_failures_fall_back() -> None:
    generate = ScriptedGenerate(
        {
            "m1": "no json here",
            "m2": json.dumps({"unitTests": []}),
            "m3": json.dumps(TESTS_PAYLOAD),
        }
    )
    result = await invoke_with_fallback("p", ["m1", "m2", "m3"], generate, models.TestGeneration)
    assert result.model == "m3"
    assert isinstance(result.failures[0].error, ResponseParseError)
    assert "no json here" in str(result.failures[0].error)
    assert isinstance(result.failures[1].error, SchemaMismatchError)


@pytest.mark.parametrize(
    "unparseable",
    [
        '{"unitTests": [' + "1" * 5000 + "]}",
        "[" * 100000,
    ],
)
@pytest.mark.asyncio
async def test_oversized_or_deeply_nested_output_falls_back(unparseable: str) -> None:
    generate = ScriptedGenerate({"m1": unparseable, "m2": json.dumps(TESTS_PAYLOAD)})
    result = await invoke_with_fallback("p", ["m1", "m2"], generate, models.TestGeneration)
    assert result.model == "m2"
    assert len(result.failures) == 1
    # Python 3.10 has no int digit limit, so the long number parses and fails the schema instead
    assert isinstance(result.failures[0].error, (ResponseParseError, SchemaMismatchError))


@pytest.mark.asyncio
async def test_all_models_failing_aggregates_every_message() -> None:
    generate = ScriptedGenerate(
        {
            "m1": RuntimeError("boom-1"),
            "m2": "not json",
            "m3": json.dumps({"unitTests": "nope", "integrationTests": [], "e2eTests": []}),
        }
    )
    with pytest.raises(AllModelsExhaustedError) as exc_info:
        await invoke_with_fallback("p", ["m1", "m2", "m3"], generate, models.TestGeneration)

    failures = exc_info.value.failures
    assert len(failures) == 3
    message = str(exc_info.value)
    for failure in failures:
        assert failure.model in message
        assert str(failure.error) in message
    assert "boom-1" in message


@pytest.mark.asyncio
async def test_every_invocation_restarts_from_first_candidate() -> None:
    generate = ScriptedGenerate({"m1": RuntimeError("down"), "m2": json.dumps(TESTS_PAYLOAD)})
    await invoke_with_fallback("p", ["m1", "m2"], generate, models.TestGeneration)
    await invoke_with_fallback("p", ["m1", "m2"], generate, models.TestGeneration)
    assert generate.calls == ["m1", "m2", "m1", "m2"]


@pytest.mark.asyncio
async def test_empty_candidate_list_is_rejected() -> None:
    generate = ScriptedGenerate({})
    with pytest.raises(ValueError):
        await invoke_with_fallback("p", [], generate, models.TestGeneration)


@pytest.mark.asyncio
async def test_cancellation_is_not_swallowed() -> None:
    async def generate(model: str, prompt: str) -> str:
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await invoke_with_fallback("p", ["m1", "m2"], generate, models.TestGeneration)
