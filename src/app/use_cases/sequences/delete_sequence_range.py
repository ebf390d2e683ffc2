"""DeleteSequenceRange Use Case"""

import logging
from typing import Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository

logger = logging.getLogger(__name__)


class DeleteSequenceRange:
    """
    Use Case: Delete a range that was never used

    Business Rules:
    1. Deletion only while consumed_count == 0
    2. The delete itself is conditional, so a concurrent consume wins
    """

    def __init__(self, uow: UnitOfWork, range_repo: SequenceRangeRepository):
        self.uow = uow
        self.range_repo = range_repo

    async def execute(self, range_id: int, owner_id: Optional[str] = None) -> Result[int]:
        try:
            sequence_range = await self.range_repo.get_by_id(range_id, owner_id=owner_id)
            if sequence_range is None:
                return Return.err(
                    Error(code="RANGE_NOT_FOUND", message=f"Sequence range {range_id} not found")
                )

            in_use = Error(
                code="RANGE_IN_USE",
                message=f"Sequence range {range_id} has consumed numbers and cannot be deleted",
                reason=f"consumed_count={sequence_range.consumed_count}",
                suggestion="Deactivate the range instead",
            )
            if sequence_range.consumed_count > 0:
                return Return.err(in_use)

            deleted = await self.range_repo.delete_unused(range_id)
            if not deleted:
                await self.uow.rollback()
                return Return.err(in_use)

            await self.uow.commit()
            logger.info(f"Sequence range {range_id} deleted")
            return Return.ok(range_id)

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="DELETE_RANGE_FAILED",
                    message="Failed to delete sequence range",
                    reason=str(e),
                )
            )
