"""Sequence Range Expiry Background Worker

Moves active/alert ranges past their expiration date to expired, so lists
and stats reflect expirations even when nobody touches the range.
Can be run as a standalone script or integrated with a scheduler.
"""

import asyncio
import logging
import time
from datetime import date
from typing import Callable, Optional
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.adapter.repositories.sequence_range_repository import SqlAlchemySequenceRangeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.sequences import ExpireSequenceRanges, ExpireSequenceRangesResultDTO

logger = logging.getLogger(__name__)


class RangeExpiryWorker:
    """
    Background worker for sequence range expiry

    Features:
    - Idempotent: ranges already expired, exhausted or inactive are untouched
    - Types 32 and 34 never expire
    - Can run once or continuously

    Usage:
        worker = RangeExpiryWorker()
        result = await worker.run_once()

        worker = RangeExpiryWorker()
        await worker.run_forever()
    """

    def __init__(
        self,
        db_uri: Optional[str] = None,
        interval_seconds: Optional[int] = None,
        today: Optional[Callable[[], date]] = None,
        session_factory=None,
    ):
        """
        Initialize the worker

        Args:
            db_uri: Database URI (defaults to ApplicationConfig.DB_URI)
            interval_seconds: Pause between runs in continuous mode
            today: Date source, for tests
            session_factory: Use an existing session factory instead of creating an engine
        """
        self.db_uri = db_uri or ApplicationConfig.DB_URI
        self.interval_seconds = interval_seconds or ApplicationConfig.RANGE_EXPIRY_INTERVAL_SECONDS
        self.today = today or date.today
        self._running = False

        if session_factory is not None:
            self.engine = None
            self.async_session_factory = session_factory
        else:
            self.engine = create_async_engine(self.db_uri, echo=False, future=True)
            self.async_session_factory = sessionmaker(
                self.engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
            )

        logger.info("RangeExpiryWorker initialized")

    async def run_once(self) -> Optional[ExpireSequenceRangesResultDTO]:
        """
        Expire overdue ranges once

        Returns:
            Result summary, or None when the run failed
        """
        start_time = time.time()

        async with self.async_session_factory() as session:
            use_case = ExpireSequenceRanges(
                uow=SqlAlchemyUnitOfWork(session),
                range_repo=SqlAlchemySequenceRangeRepository(session),
                today=self.today,
            )
            result = await use_case.execute()

        execution_time_ms = int((time.time() - start_time) * 1000)

        if result.is_err():
            logger.error(f"Range expiry failed: {result.error.message} ({result.error.reason})")
            return None

        logger.info(
            f"Range expiry complete: {result.value.expired_count} expired, {execution_time_ms}ms"
        )
        return result.value

    async def run_forever(self):
        """Run expiry continuously until shutdown() is called"""
        logger.info(f"Starting continuous range expiry with {self.interval_seconds}s interval")
        self._running = True

        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Range expiry cycle failed: {e}")

            await asyncio.sleep(self.interval_seconds)

    async def shutdown(self):
        """Cleanup resources"""
        self._running = False
        if self.engine is not None:
            await self.engine.dispose()
        logger.info("RangeExpiryWorker shutdown complete")


async def main():
    """
    Entry point for running the worker as a standalone script

    Usage:
        python -m src.worker.range_expiry
        python -m src.worker.range_expiry --continuous --interval 600
    """
    import argparse

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    parser = argparse.ArgumentParser(description="Sequence Range Expiry Worker")
    parser.add_argument("--continuous", action="store_true", help="Run continuously")
    parser.add_argument("--interval", type=int, help="Seconds between runs")
    args = parser.parse_args()

    if not ApplicationConfig.RANGE_EXPIRY_ENABLED:
        logger.info("Range expiry is disabled (RANGE_EXPIRY_ENABLED=false)")
        return

    worker = RangeExpiryWorker(interval_seconds=args.interval)

    try:
        if args.continuous:
            await worker.run_forever()
        else:
            result = await worker.run_once()
            if result is not None:
                print("Range expiry complete:")
                print(f"  Run date: {result.run_date.isoformat()}")
                print(f"  Ranges expired: {result.expired_count}")
    except KeyboardInterrupt:
        logger.info("Received shutdown signal")
    finally:
        await worker.shutdown()


if __name__ == "__main__":
    asyncio.run(main())
