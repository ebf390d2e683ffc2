"""GetSequenceStats Use Case

Dashboard aggregate: counts and number totals per status, plus ranges
that need attention (expiring soon, in alert).
"""

from datetime import date, timedelta
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.sequence_range import SequenceStatus
from .dtos import SequenceStatsDTO, StatusTotalsDTO


class GetSequenceStats:
    def __init__(
        self,
        range_repo: SequenceRangeRepository,
        expiring_window_days: int = 30,
        today: Optional[Callable[[], date]] = None,
    ):
        self.range_repo = range_repo
        self.expiring_window_days = expiring_window_days
        self.today = today or date.today

    async def execute(self, owner_id: Optional[str] = None) -> Result[SequenceStatsDTO]:
        try:
            today = self.today()
            totals = await self.range_repo.totals_by_status(owner_id=owner_id)
            expiring = await self.range_repo.count_expiring(
                today, today + timedelta(days=self.expiring_window_days), owner_id=owner_id
            )

            by_status = {}
            for status in SequenceStatus:
                row = totals.get(status.value, {})
                total_numbers = row.get("total_numbers", 0)
                used_numbers = row.get("used_numbers", 0)
                by_status[status.value] = StatusTotalsDTO(
                    count=row.get("count", 0),
                    total_numbers=total_numbers,
                    used_numbers=used_numbers,
                    available_numbers=total_numbers - used_numbers,
                )

            total_numbers = sum(s.total_numbers for s in by_status.values())
            used_numbers = sum(s.used_numbers for s in by_status.values())
            return Return.ok(
                SequenceStatsDTO(
                    by_status=by_status,
                    total_ranges=sum(s.count for s in by_status.values()),
                    total_numbers=total_numbers,
                    used_numbers=used_numbers,
                    available_numbers=total_numbers - used_numbers,
                    expiring_soon=expiring,
                    in_alert=by_status[SequenceStatus.ALERT.value].count,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="SEQUENCE_STATS_FAILED",
                    message="Failed to compute sequence statistics",
                    reason=str(e),
                )
            )
