"""Unit tests for PollPolicy and poll_until."""

import pytest

from wplookup.services.poll_policy import PollPolicy, PollResult, poll_until


def scripted_probe(answers: list[bool]):
    """Probe that returns the scripted answers in turn, then the last one forever."""
    calls = {"count": 0}

    async def probe() -> bool:
        index = min(calls["count"], len(answers) - 1)
        calls["count"] += 1
        return answers[index]

    return probe, calls


class TestPollPolicy:
    """Test PollPolicy initialization."""

    def test_default_policy(self):
        """Test default policy values."""
        policy = PollPolicy()

        assert policy.interval == 1.0
        assert policy.max_attempts == 30
        assert policy.debounce_rounds == 1

    def test_custom_policy(self):
        """Test custom policy values."""
        policy = PollPolicy(interval_seconds=0.5, max_attempts=5, debounce_rounds=0)

        assert policy.interval == 0.5
        assert policy.max_attempts == 5
        assert policy.debounce_rounds == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_attempts": 0},
            {"debounce_rounds": -1},
            {"interval_seconds": -0.1},
        ],
    )
    def test_invalid_policy_rejected(self, kwargs):
        """Test out-of-range values raise ValueError."""
        with pytest.raises(ValueError):
            PollPolicy(**kwargs)


class TestPollUntil:
    """Test the debounced polling loop."""

    @pytest.mark.asyncio
    async def test_condition_true_from_start(self, no_sleep, sleeps):
        """Test immediate success still takes one debounce probe."""
        probe, calls = scripted_probe([True])

        result = await poll_until(probe, PollPolicy(interval_seconds=1.0), "t", no_sleep)

        assert result == PollResult(satisfied=True, attempts=1, probes=2)
        assert calls["count"] == 2
        assert sleeps == [1.0]

    @pytest.mark.asyncio
    async def test_no_debounce_believes_first_positive(self, no_sleep, sleeps):
        """Test debounce_rounds=0 returns on the first positive probe."""
        probe, _ = scripted_probe([True])

        result = await poll_until(probe, PollPolicy(debounce_rounds=0), "t", no_sleep)

        assert result.satisfied
        assert result.probes == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_flicker_during_debounce_restarts(self, no_sleep):
        """Test a condition that drops out during debounce is not believed."""
        probe, _ = scripted_probe([True, False, True, True])

        result = await poll_until(probe, PollPolicy(), "t", no_sleep)

        assert result.satisfied
        assert result.attempts == 2
        assert result.probes == 4

    @pytest.mark.asyncio
    async def test_budget_exhausted(self, no_sleep, sleeps):
        """Test running out of attempts reports failure without raising."""
        probe, calls = scripted_probe([False])

        result = await poll_until(
            probe, PollPolicy(interval_seconds=0.5, max_attempts=3), "t", no_sleep
        )

        assert not result
        assert result.attempts == 3
        assert calls["count"] == 3
        # No sleep after the final attempt
        assert sleeps == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_probe_errors_consume_attempts(self, no_sleep):
        """Test a raising probe counts as a failed attempt and polling continues."""
        calls = {"count": 0}

        async def probe() -> bool:
            calls["count"] += 1
            if calls["count"] == 1:
                raise RuntimeError("navigation in progress")
            return True

        result = await poll_until(probe, PollPolicy(max_attempts=3), "t", no_sleep)

        assert result.satisfied
        assert result.attempts == 2
        assert result.probes == 3
