"""
Unit tests for the per-caller rate gate (in-memory limits storage).
"""

import pytest

from app.core.rate_limit import RateGate


@pytest.mark.asyncio
async def test_first_request_allowed_second_denied() -> None:
    """One request per window: the second call from the same caller is denied."""
    gate = RateGate.from_config("1 per 10 seconds", "async+memory://")
    assert await gate.check("10.0.0.1") is True
    assert await gate.check("10.0.0.1") is False


@pytest.mark.asyncio
async def test_quota_is_per_caller() -> None:
    """Exhausting one caller's quota does not affect another caller."""
    gate = RateGate.from_config("1 per 10 seconds", "async+memory://")
    assert await gate.check("10.0.0.1") is True
    assert await gate.check("10.0.0.2") is True
    assert await gate.check("10.0.0.1") is False


@pytest.mark.asyncio
async def test_larger_quota() -> None:
    gate = RateGate.from_config("3 per minute", "async+memory://")
    results = [await gate.check("10.0.0.1") for _ in range(4)]
    assert results == [True, True, True, False]
