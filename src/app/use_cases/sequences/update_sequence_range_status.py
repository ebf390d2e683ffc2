"""UpdateSequenceRangeStatus Use Case

Administrative deactivation and re-activation of a range.
"""

import logging
from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.base import utc_now
from src.domain.sequence_range import CONSUMABLE_STATUSES, SequenceStatus
from .common import to_range_dto
from .dtos import SequenceRangeDTO, UpdateSequenceRangeStatusCommandDTO

logger = logging.getLogger(__name__)

DEACTIVATABLE = (
    SequenceStatus.ACTIVE.value,
    SequenceStatus.ALERT.value,
    SequenceStatus.EXHAUSTED.value,
)


class UpdateSequenceRangeStatus:
    """
    Use Case: Deactivate or re-activate a range

    Business Rules:
    1. Only "inactive" and "active" may be requested
    2. active/alert/exhausted -> inactive
    3. "active" re-derives the status from counters and expiry, so the
       range may land on alert, exhausted or expired
    4. Re-activation must not overlap another active/alert range
    """

    def __init__(
        self,
        uow: UnitOfWork,
        range_repo: SequenceRangeRepository,
        today: Optional[Callable[[], date]] = None,
    ):
        self.uow = uow
        self.range_repo = range_repo
        self.today = today or date.today

    async def execute(self, command: UpdateSequenceRangeStatusCommandDTO) -> Result[SequenceRangeDTO]:
        try:
            today = self.today()
            target = command.status.lower().strip()
            if target not in (SequenceStatus.ACTIVE.value, SequenceStatus.INACTIVE.value):
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="status must be 'active' or 'inactive'",
                        reason=f"status={command.status}",
                    )
                )

            sequence_range = await self.range_repo.get_by_id(command.range_id, owner_id=command.owner_id)
            if sequence_range is None:
                return Return.err(
                    Error(code="RANGE_NOT_FOUND", message=f"Sequence range {command.range_id} not found")
                )

            if target == SequenceStatus.INACTIVE.value:
                if sequence_range.status == SequenceStatus.INACTIVE.value:
                    return Return.ok(to_range_dto(sequence_range, today))
                if sequence_range.status not in DEACTIVATABLE:
                    return Return.err(
                        Error(
                            code="INVALID_RANGE_STATE",
                            message=f"Cannot deactivate a range in status {sequence_range.status}",
                            reason=f"status={sequence_range.status}",
                        )
                    )
                new_status = SequenceStatus.INACTIVE
            else:
                new_status = sequence_range.derived_status(today, keep_inactive=False)
                if new_status.value in CONSUMABLE_STATUSES:
                    overlapping = await self.range_repo.find_overlapping(
                        owner_id=sequence_range.owner_id,
                        tax_id=sequence_range.tax_id,
                        document_type=sequence_range.document_type,
                        start_number=sequence_range.start_number,
                        end_number=sequence_range.end_number,
                        exclude_id=sequence_range.id,
                    )
                    if overlapping:
                        return Return.err(
                            Error(
                                code="RANGE_OVERLAP",
                                message=f"Range overlaps active range {overlapping.id}",
                                details={"overlapping_range_id": overlapping.id},
                            )
                        )

            previous = sequence_range.status
            await self.range_repo.update_status(sequence_range.id, new_status)
            await self.uow.commit()

            sequence_range.status = new_status.value
            sequence_range.updated_at = utc_now()
            logger.info(f"Sequence range {sequence_range.id} status {previous} -> {new_status.value}")
            return Return.ok(to_range_dto(sequence_range, today))

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="UPDATE_RANGE_STATUS_FAILED",
                    message="Failed to update sequence range status",
                    reason=str(e),
                )
            )
