"""CreateSequenceRange Use Case

Registers a DGII-authorized block of e-NCF numbers for an owner,
taxpayer and document type.
"""

import logging
from datetime import date
from typing import Callable, List, Optional
from sqlalchemy.exc import IntegrityError
from libs.result import Result, Return, Error
from src.app.services.unit_of_work import UnitOfWork
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.base import utc_now
from src.domain.document_type import DocumentType, requires_expiration
from src.domain.ncf import MAX_SEQUENCE
from src.domain.sequence_range import SequenceRange
from src.domain.tax_id import normalize_tax_id
from .common import to_range_dto
from .dtos import CreateSequenceRangeCommandDTO, SequenceRangeDTO

logger = logging.getLogger(__name__)


class CreateSequenceRange:
    """
    Use Case: Register a new sequence range

    Business Rules:
    1. Tax ID must be 9-11 digits, document type one of the 8 e-CF types
    2. start >= 1, quantity >= 1 and the end must fit in 10 digits
    3. Expiration date cannot be in the past; types 32/34 never carry one
    4. No overlap with an active/alert range of the same owner/tax id/type

    Flow:
    1. Validate every field (all errors reported together)
    2. Check for overlapping active/alert ranges
    3. Persist the range with its derived initial status
    4. Commit and return the range
    """

    def __init__(
        self,
        uow: UnitOfWork,
        range_repo: SequenceRangeRepository,
        default_alert_threshold: int = 10,
        today: Optional[Callable[[], date]] = None,
    ):
        self.uow = uow
        self.range_repo = range_repo
        self.default_alert_threshold = default_alert_threshold
        self.today = today or date.today

    async def execute(self, command: CreateSequenceRangeCommandDTO) -> Result[SequenceRangeDTO]:
        try:
            today = self.today()

            # Step 1: Validate input
            errors: List[str] = []
            tax_id = normalize_tax_id(command.tax_id)
            if tax_id is None:
                errors.append("tax_id must contain 9 to 11 digits")

            document_type = DocumentType.parse(command.document_type)
            if document_type is None:
                errors.append(
                    f"document_type must be one of {', '.join(DocumentType.codes())}"
                )

            if command.start_number < 1:
                errors.append("start_number must be >= 1")
            if command.quantity < 1:
                errors.append("quantity must be >= 1 (end number cannot precede start number)")
            end_number = command.start_number + command.quantity - 1
            if command.quantity >= 1 and end_number > MAX_SEQUENCE:
                errors.append(f"end number {end_number} exceeds {MAX_SEQUENCE}")

            alert_threshold = (
                command.alert_threshold
                if command.alert_threshold is not None
                else self.default_alert_threshold
            )
            if alert_threshold < 0:
                errors.append("alert_threshold must be >= 0")

            expiration_date = command.expiration_date
            if document_type is not None and not requires_expiration(document_type):
                expiration_date = None
            if expiration_date is not None and expiration_date < today:
                errors.append(f"expiration_date {expiration_date.isoformat()} is in the past")

            if not command.prefix or len(command.prefix) != 1 or not command.prefix.isalpha():
                errors.append("prefix must be a single letter")

            if errors:
                return Return.err(
                    Error(
                        code="VALIDATION_ERROR",
                        message="Invalid sequence range",
                        reason="; ".join(errors),
                        details={"errors": errors},
                    )
                )

            # Step 2: Reject overlapping active/alert windows
            overlapping = await self.range_repo.find_overlapping(
                owner_id=command.owner_id,
                tax_id=tax_id,
                document_type=document_type.value,
                start_number=command.start_number,
                end_number=end_number,
            )
            if overlapping:
                return Return.err(
                    Error(
                        code="RANGE_OVERLAP",
                        message=(
                            f"Range {command.start_number}-{end_number} overlaps existing range "
                            f"{overlapping.start_number}-{overlapping.end_number}"
                        ),
                        reason=f"overlapping_range_id={overlapping.id}",
                        details={"overlapping_range_id": overlapping.id},
                    )
                )

            # Step 3: Build and persist
            now = utc_now()
            sequence_range = SequenceRange(
                owner_id=command.owner_id,
                tax_id=tax_id,
                document_type=document_type.value,
                prefix=command.prefix.upper(),
                start_number=command.start_number,
                quantity=command.quantity,
                end_number=end_number,
                consumed_count=0,
                alert_threshold=alert_threshold,
                expiration_date=expiration_date,
                created_at=now,
                updated_at=now,
            )
            sequence_range.status = sequence_range.derived_status(today, keep_inactive=False).value

            created = await self.range_repo.create(sequence_range)

            # Step 4: Commit
            await self.uow.commit()

            logger.info(
                f"Sequence range {created.id} created: owner={created.owner_id}, "
                f"tax_id={created.tax_id}, type={created.document_type}, "
                f"numbers {created.start_number}-{created.end_number}"
            )
            return Return.ok(to_range_dto(created, today))

        except IntegrityError as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="RANGE_OVERLAP",
                    message="A range with the same start number already exists",
                    reason=str(e.orig) if e.orig else str(e),
                )
            )
        except Exception as e:
            await self.uow.rollback()
            return Return.err(
                Error(
                    code="CREATE_RANGE_FAILED",
                    message="Failed to create sequence range",
                    reason=str(e),
                )
            )
