"""PreviewNextNumber Use Case

Read-only look at the number the next consume call would return.
"""

from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.sequence_range import SequenceStatus
from .dtos import PreviewNextNumberResponseDTO


class PreviewNextNumber:
    """
    Use Case: Preview the next number of a range

    Business Rules:
    1. Never mutates the range
    2. Exhausted ranges have no next number
    """

    def __init__(
        self,
        range_repo: SequenceRangeRepository,
        today: Optional[Callable[[], date]] = None,
    ):
        self.range_repo = range_repo
        self.today = today or date.today

    async def execute(
        self, range_id: int, owner_id: Optional[str] = None
    ) -> Result[PreviewNextNumberResponseDTO]:
        try:
            sequence_range = await self.range_repo.get_by_id(range_id, owner_id=owner_id)
            if sequence_range is None:
                return Return.err(
                    Error(
                        code="RANGE_NOT_FOUND",
                        message=f"Sequence range {range_id} not found",
                    )
                )

            next_number = sequence_range.next_number
            if next_number is None:
                return Return.err(
                    Error(
                        code="RANGE_EXHAUSTED",
                        message=f"Sequence range {range_id} has no numbers left",
                        reason=f"status={SequenceStatus.EXHAUSTED.value}",
                    )
                )

            return Return.ok(
                PreviewNextNumberResponseDTO(
                    range_id=sequence_range.id,
                    next_number=next_number,
                    formatted_number=sequence_range.format(next_number),
                    available_count=sequence_range.available_count,
                    status=sequence_range.derived_status(self.today()).value,
                    expiration_date=sequence_range.expiration_date,
                )
            )

        except Exception as e:
            return Return.err(
                Error(
                    code="PREVIEW_NUMBER_FAILED",
                    message="Failed to preview next number",
                    reason=str(e),
                )
            )
