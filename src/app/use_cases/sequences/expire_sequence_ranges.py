"""ExpireSequenceRanges Use Case

Bulk transition of active/alert ranges past their expiration date to
expired. Run periodically by the range expiry worker.
"""

import logging
from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from .dtos import ExpireSequenceRangesResultDTO

logger = logging.getLogger(__name__)


class ExpireSequenceRanges:
    def __init__(
        self,
        uow: UnitOfWork,
        range_repo: SequenceRangeRepository,
        today: Optional[Callable[[], date]] = None,
    ):
        self.uow = uow
        self.range_repo = range_repo
        self.today = today or date.today

    async def execute(self) -> Result[ExpireSequenceRangesResultDTO]:
        try:
            today = self.today()
            expired = await self.range_repo.mark_expired(today)
            await self.uow.commit()
            if expired:
                logger.warning(f"{expired} sequence ranges expired as of {today.isoformat()}")
            return Return.ok(ExpireSequenceRangesResultDTO(expired_count=expired, run_date=today))
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="EXPIRE_RANGES_FAILED",
                    message="Failed to expire sequence ranges",
                    reason=str(e),
                )
            )
