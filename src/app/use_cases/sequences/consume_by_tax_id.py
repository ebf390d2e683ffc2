"""ConsumeNumberByTaxId Use Case

Takes (or previews) the next e-NCF for a taxpayer and document type
without the caller knowing which range serves it.
"""

import logging
from datetime import date
from typing import Callable, List, Optional
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.document_type import DocumentType
from src.domain.tax_id import normalize_tax_id
from .common import to_consume_response
from .dtos import ConsumeByTaxIdCommandDTO, ConsumeNumberResponseDTO

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class ConsumeNumberByTaxId:
    """
    Use Case: Consume the next number for a tax id / document type

    Business Rules:
    1. The oldest active/alert range with numbers left and not expired is used
    2. preview_only reports the next number without consuming it
    3. If another caller drains the chosen range first, the next usable
       range is tried

    Flow:
    1. Validate tax id and document type
    2. Find the oldest usable range
    3. Preview, or consume atomically
    4. Commit and return the number
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

    async def execute(self, command: ConsumeByTaxIdCommandDTO) -> Result[ConsumeNumberResponseDTO]:
        try:
            today = self.today()

            # Step 1: Validate
            errors: List[str] = []
            tax_id = normalize_tax_id(command.tax_id)
            if tax_id is None:
                errors.append("tax_id must contain 9 to 11 digits")
            document_type = DocumentType.parse(command.document_type)
            if document_type is None:
                errors.append(f"document_type must be one of {', '.join(DocumentType.codes())}")
            if errors:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Invalid number request",
                        reason="; ".join(errors),
                        details={"errors": errors},
                    )
                )

            for _ in range(MAX_ATTEMPTS):
                # Step 2: Oldest usable range
                candidate = await self.range_repo.find_consumable(
                    owner_id=command.owner_id,
                    tax_id=tax_id,
                    document_type=document_type.value,
                    today=today,
                )
                if candidate is None:
                    return Return.err(
                        Error(
                            code="SEQUENCE_NOT_FOUND",
                            message=(
                                f"No usable sequence range for tax id {tax_id} "
                                f"and document type {document_type.value}"
                            ),
                            reason="No active/alert range with numbers left",
                            suggestion="Register a new range authorized by DGII",
                        )
                    )

                # Step 3a: Preview only
                if command.preview_only:
                    return Return.ok(
                        to_consume_response(candidate, candidate.next_number, preview=True)
                    )

                # Step 3b: Atomic consume
                updated = await self.range_repo.consume_one(candidate.id, today)
                if updated is None:
                    logger.info(f"Sequence range {candidate.id} drained concurrently, retrying")
                    await self.uow.rollback()
                    continue

                # Step 4: Commit
                await self.uow.commit()
                consumed_number = updated.start_number + updated.consumed_count - 1
                response = to_consume_response(updated, consumed_number)
                if response.alert:
                    logger.warning(f"Sequence range {updated.id}: {response.alert_message}")
                return Return.ok(response)

            return Return.err(
                Error(
                    code="INVALID_RANGE_STATE",
                    message="Could not consume a number after several attempts",
                    reason="Ranges were drained concurrently",
                    retryable=True,
                )
            )

        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CONSUME_NUMBER_FAILED",
                    message="Failed to consume sequence number",
                    reason=str(e),
                )
            )
