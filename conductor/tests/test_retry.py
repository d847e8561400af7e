"""Tests for bounded retry and stage combinators."""

import asyncio

import pytest

from conductor.errors import RetryExhaustedError
from conductor.pipelines.models import PipelineChainContext
from conductor.pipelines.retry import retry_async
from conductor.pipelines.stages import parallel_assign, sequence


class FlakyOperation:
    def __init__(self, failures: int, result="done"):
        self.failures = failures
        self.result = result
        self.attempts = 0

    async def __call__(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError(f"attempt {self.attempts} failed")
        return self.result


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


class TestRetryAsync:
    """Bounded retry semantics."""

    async def test_second_attempt_success_returns_plain_result(self):
        """A success on the second attempt returns the bare result."""
        operation = FlakyOperation(failures=1)
        sleep = RecordingSleep()

        result = await retry_async(operation, label="modify", max_attempts=2, backoff_seconds=1.0, sleep=sleep)

        assert result == "done"
        assert operation.attempts == 2
        assert sleep.delays == [1.0]

    async def test_all_attempts_fail(self):
        """Exhaustion raises with the attempt count and last error."""
        operation = FlakyOperation(failures=2)
        sleep = RecordingSleep()

        with pytest.raises(RetryExhaustedError) as exc_info:
            await retry_async(operation, label="Modify mesocycle", max_attempts=2, sleep=sleep)

        error = exc_info.value
        assert error.attempts == 2
        assert str(error) == "Modify mesocycle failed after 2 attempts. Last error: attempt 2 failed"
        assert isinstance(error.__cause__, RuntimeError)
        # no sleep after the final attempt
        assert len(sleep.delays) == 1

    async def test_backoff_doubles(self):
        """Backoff doubles between attempts."""
        sleep = RecordingSleep()

        with pytest.raises(RetryExhaustedError):
            await retry_async(FlakyOperation(failures=4), label="x", max_attempts=4, backoff_seconds=0.5, sleep=sleep)

        assert sleep.delays == [0.5, 1.0, 2.0]

    async def test_first_attempt_success_does_not_sleep(self):
        """No sleep when the first attempt succeeds."""
        sleep = RecordingSleep()

        assert await retry_async(FlakyOperation(failures=0), label="x", sleep=sleep) == "done"
        assert sleep.delays == []

    async def test_invalid_bound(self):
        """max_attempts below one is rejected."""
        with pytest.raises(ValueError):
            await retry_async(FlakyOperation(failures=0), label="x", max_attempts=0)


class TestStages:
    """sequence and parallel_assign."""

    async def test_sequence_threads_value(self):
        """Each stage receives the previous stage's output."""
        async def add_one(x):
            return x + 1

        async def double(x):
            return x * 2

        assert await sequence(add_one, double)(3) == 8

    async def test_parallel_assign_merges_into_model(self, user):
        """Both stages run at the same time and land on a copy of the context."""
        timeline = []

        async def formatted(ctx):
            timeline.append(("start", "formatted"))
            await asyncio.sleep(0.01)
            timeline.append(("end", "formatted"))
            return f"# {ctx.long_form_output}"

        async def message(ctx):
            timeline.append(("start", "message"))
            await asyncio.sleep(0.01)
            timeline.append(("end", "message"))
            return "short"

        context = PipelineChainContext(long_form_output="Plan", user=user)
        result = await parallel_assign(formatted=formatted, message=message)(context)

        assert result.formatted == "# Plan"
        assert result.message == "short"
        assert context.formatted is None
        starts = [i for i, (event, _) in enumerate(timeline) if event == "start"]
        ends = [i for i, (event, _) in enumerate(timeline) if event == "end"]
        assert len(starts) == 2 and len(ends) == 2
        assert max(starts) < min(ends)

    async def test_parallel_assign_merges_into_dict(self):
        """Mapping contexts gain the stage outputs as keys."""
        async def count(ctx):
            return len(ctx["items"])

        assert await parallel_assign(n=count)({"items": [1, 2]}) == {"items": [1, 2], "n": 2}

    async def test_parallel_assign_fails_fast(self):
        """The first failing stage raises."""
        async def ok(ctx):
            await asyncio.sleep(0.05)
            return "ok"

        async def bad(ctx):
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await parallel_assign(a=ok, b=bad)({})
