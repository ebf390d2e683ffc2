"""Unit tests for RangeExpiryWorker

Tests cover:
- run_once delegating to ExpireSequenceRanges
- Failed runs returning None
- run_forever stopping on shutdown
"""

import pytest
from datetime import date
from unittest.mock import AsyncMock, MagicMock, patch

from libs.result import Return, Error
from src.app.use_cases.sequences import ExpireSequenceRangesResultDTO
from src.worker.range_expiry import RangeExpiryWorker

TODAY = date(2025, 6, 1)


@pytest.fixture
def mock_session():
    """Mock async session"""
    session = MagicMock()
    session.__aenter__ = AsyncMock(return_value=session)
    session.__aexit__ = AsyncMock()
    return session


@pytest.fixture
def worker(mock_session):
    return RangeExpiryWorker(
        interval_seconds=1,
        today=lambda: TODAY,
        session_factory=MagicMock(return_value=mock_session),
    )


@pytest.mark.asyncio
class TestRangeExpiryWorker:

    async def test_run_once_expires_ranges(self, worker):
        """
        Given: Two overdue ranges
        When: run_once is called
        Then: The expiry result is returned
        """
        # Arrange
        expected = ExpireSequenceRangesResultDTO(expired_count=2, run_date=TODAY)
        with patch("src.worker.range_expiry.ExpireSequenceRanges") as use_case_cls:
            use_case_cls.return_value.execute = AsyncMock(return_value=Return.ok(expected))

            # Act
            result = await worker.run_once()

        # Assert
        assert result == expected
        assert use_case_cls.call_args.kwargs["today"]() == TODAY

    async def test_run_once_returns_none_on_failure(self, worker):
        with patch("src.worker.range_expiry.ExpireSequenceRanges") as use_case_cls:
            use_case_cls.return_value.execute = AsyncMock(
                return_value=Return.err(Error(code="EXPIRE_RANGES_FAILED", message="db down"))
            )

            result = await worker.run_once()

        assert result is None

    async def test_run_forever_stops_after_shutdown(self, worker):
        calls = []

        async def fake_run_once():
            calls.append(1)
            await worker.shutdown()

        worker.run_once = fake_run_once

        with patch("src.worker.range_expiry.asyncio.sleep", new=AsyncMock()):
            await worker.run_forever()

        assert len(calls) == 1
        assert worker._running is False

    async def test_run_forever_survives_cycle_errors(self, worker):
        attempts = []

        async def flaky_run_once():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            await worker.shutdown()

        worker.run_once = flaky_run_once

        with patch("src.worker.range_expiry.asyncio.sleep", new=AsyncMock()):
            await worker.run_forever()

        assert len(attempts) == 2

    async def test_shutdown_without_engine(self, worker):
        assert worker.engine is None

        await worker.shutdown()

        assert worker._running is False
