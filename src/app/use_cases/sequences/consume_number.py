"""ConsumeNumber Use Case

Hands out the next e-NCF of a range. Safe under concurrent callers: the
repository performs the increment as one conditional update.
"""

import logging
from datetime import date
from typing import Callable, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.sequence_range import SequenceRange, SequenceStatus
from .common import to_consume_response
from .dtos import ConsumeNumberCommandDTO, ConsumeNumberResponseDTO

logger = logging.getLogger(__name__)


async def explain_consume_failure(
    range_repo: SequenceRangeRepository,
    uow: UnitOfWork,
    range_id: int,
    owner_id: Optional[str],
    today: date,
) -> Error:
    """
    Classify why the conditional update matched no row

    A range found past its expiry is persisted as expired.
    """
    sequence_range = await range_repo.get_by_id(range_id, owner_id=owner_id)
    if sequence_range is None:
        return Error(
            code="RANGE_NOT_FOUND",
            message=f"Sequence range {range_id} not found",
            reason="Range does not exist or belongs to another owner",
        )

    if sequence_range.status == SequenceStatus.INACTIVE.value:
        return Error(
            code="INVALID_RANGE_STATE",
            message=f"Sequence range {range_id} is inactive",
            reason="status=inactive",
            suggestion="Re-activate the range or use another one",
        )

    if sequence_range.available_count <= 0 or sequence_range.status == SequenceStatus.EXHAUSTED.value:
        return Error(
            code="RANGE_EXHAUSTED",
            message=f"Sequence range {range_id} has no numbers left",
            reason=f"consumed={sequence_range.consumed_count}, quantity={sequence_range.quantity}",
            suggestion="Request a new range from DGII",
        )

    if sequence_range.status == SequenceStatus.EXPIRED.value or sequence_range.is_expired_on(today):
        if sequence_range.status != SequenceStatus.EXPIRED.value:
            await range_repo.update_status(range_id, SequenceStatus.EXPIRED)
            await uow.commit()
            logger.warning(f"Sequence range {range_id} expired on {sequence_range.expiration_date}")
        return Error(
            code="RANGE_EXPIRED",
            message=f"Sequence range {range_id} expired on {sequence_range.expiration_date}",
            reason="status=expired",
            suggestion="Request a new range from DGII",
        )

    return Error(
        code="INVALID_RANGE_STATE",
        message=f"Sequence range {range_id} could not be consumed",
        reason=f"status={sequence_range.status}",
        retryable=True,
    )


class ConsumeNumber:
    """
    Use Case: Consume the next number of a range

    Business Rules:
    1. Only active/alert, non-empty, non-expired ranges can be consumed
    2. Two concurrent callers never receive the same number
    3. Status is recomputed with the increment (alert, exhausted)
    4. An alert message is returned when entering alert or exhausted

    Flow:
    1. Conditional increment (single UPDATE)
    2. If nothing matched, classify the failure
    3. Commit and return the consumed number
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

    async def execute(self, command: ConsumeNumberCommandDTO) -> Result[ConsumeNumberResponseDTO]:
        try:
            today = self.today()

            # Step 1: Atomic increment
            updated = await self.range_repo.consume_one(
                command.range_id, today, owner_id=command.owner_id
            )

            # Step 2: Nothing consumed - find out why
            if updated is None:
                await self.uow.rollback()
                error = await explain_consume_failure(
                    self.range_repo, self.uow, command.range_id, command.owner_id, today
                )
                return Return.err(error)

            # Step 3: Commit
            await self.uow.commit()

            response = self._to_response(updated)
            if response.alert:
                logger.warning(f"Sequence range {updated.id}: {response.alert_message}")
            return Return.ok(response)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONSUME_NUMBER_FAILED",
                    message="Failed to consume sequence number",
                    reason=str(e),
                )
            )

    def _to_response(self, sequence_range: SequenceRange) -> ConsumeNumberResponseDTO:
        consumed_number = sequence_range.start_number + sequence_range.consumed_count - 1
        return to_consume_response(sequence_range, consumed_number)
