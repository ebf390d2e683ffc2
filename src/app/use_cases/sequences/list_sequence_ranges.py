"""ListSequenceRanges and GetSequenceRange Use Cases"""

from datetime import date, timedelta
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from .common import to_range_dto
from .dtos import ListSequenceRangesQueryDTO, ListSequenceRangesResponseDTO, SequenceRangeDTO


class ListSequenceRanges:
    """
    Use Case: Paginated range listing

    Filters: owner, status, document type, tax id (partial match) and
    "expiring soon" (expiration within the warning window).
    """

    def __init__(
        self,
        range_repo: SequenceRangeRepository,
        expiring_window_days: int = 30,
        today: Optional[Callable[[], date]] = None,
    ):
        self.range_repo = range_repo
        self.expiring_window_days = expiring_window_days
        self.today = today or date.today

    async def execute(self, query: ListSequenceRangesQueryDTO) -> Result[ListSequenceRangesResponseDTO]:
        try:
            today = self.today()
            expiring_before = (
                today + timedelta(days=self.expiring_window_days) if query.expiring_soon else None
            )
            ranges, total = await self.range_repo.list_ranges(
                owner_id=query.owner_id,
                status=query.status,
                document_type=query.document_type,
                tax_id=query.tax_id,
                expiring_before=expiring_before,
                today=today,
                limit=query.limit,
                offset=query.offset,
            )
            return Return.ok(
                ListSequenceRangesResponseDTO(
                    items=[to_range_dto(r, today) for r in ranges],
                    total=total,
                    limit=query.limit,
                    offset=query.offset,
                )
            )
        except Exception as e:
            return Return.err(
                Error(
                    code="LIST_RANGES_FAILED",
                    message="Failed to list sequence ranges",
                    reason=str(e),
                )
            )


class GetSequenceRange:
    def __init__(
        self,
        range_repo: SequenceRangeRepository,
        today: Optional[Callable[[], date]] = None,
    ):
        self.range_repo = range_repo
        self.today = today or date.today

    async def execute(self, range_id: int, owner_id: Optional[str] = None) -> Result[SequenceRangeDTO]:
        try:
            sequence_range = await self.range_repo.get_by_id(range_id, owner_id=owner_id)
            if sequence_range is None:
                return Return.err(
                    Error(code="RANGE_NOT_FOUND", message=f"Sequence range {range_id} not found")
                )
            return Return.ok(to_range_dto(sequence_range, self.today()))
        except Exception as e:
            return Return.err(
                Error(
                    code="GET_RANGE_FAILED",
                    message="Failed to get sequence range",
                    reason=str(e),
                )
            )
