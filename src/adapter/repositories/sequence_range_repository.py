"""SQLAlchemy implementation of SequenceRangeRepository

Number consumption is a single conditional UPDATE, so two concurrent
consumers of the same range can never be handed the same number.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple
from sqlalchemy import and_, case, delete, func, or_, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.sequence_range_repository import SequenceRangeRepository
from src.domain.base import utc_now
from src.domain.document_type import DocumentType
from src.domain.sequence_range import CONSUMABLE_STATUSES, SequenceRange, SequenceStatus

NON_EXPIRING_TYPES = (DocumentType.FINAL_CONSUMER.value, DocumentType.CREDIT_NOTE.value)


class SqlAlchemySequenceRangeRepository(SequenceRangeRepository):
    """
    SQLAlchemy implementation of SequenceRangeRepository

    Features:
    - Atomic consume via conditional UPDATE (no read-then-write)
    - Status recomputed in SQL with the same precedence as derive_status
    - Aggregates for the stats dashboard
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, sequence_range: SequenceRange) -> SequenceRange:
        self.session.add(sequence_range)
        await self.session.flush()
        await self.session.refresh(sequence_range)
        return sequence_range

    async def get_by_id(self, range_id: int, owner_id: Optional[str] = None) -> Optional[SequenceRange]:
        stmt = (
            select(SequenceRange)
            .where(SequenceRange.id == range_id)
            .execution_options(populate_existing=True)
        )
        if owner_id is not None:
            stmt = stmt.where(SequenceRange.owner_id == owner_id)

        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_overlapping(
        self,
        owner_id: str,
        tax_id: str,
        document_type: str,
        start_number: int,
        end_number: int,
        exclude_id: Optional[int] = None,
    ) -> Optional[SequenceRange]:
        stmt = (
            select(SequenceRange)
            .where(
                SequenceRange.owner_id == owner_id,
                SequenceRange.tax_id == tax_id,
                SequenceRange.document_type == document_type,
                SequenceRange.status.in_(CONSUMABLE_STATUSES),
                SequenceRange.start_number <= end_number,
                SequenceRange.end_number >= start_number,
            )
            .limit(1)
        )
        if exclude_id is not None:
            stmt = stmt.where(SequenceRange.id != exclude_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_consumable(
        self,
        owner_id: str,
        tax_id: str,
        document_type: str,
        today: date,
    ) -> Optional[SequenceRange]:
        stmt = (
            select(SequenceRange)
            .where(
                SequenceRange.owner_id == owner_id,
                SequenceRange.tax_id == tax_id,
                SequenceRange.document_type == document_type,
                SequenceRange.status.in_(CONSUMABLE_STATUSES),
                SequenceRange.consumed_count < SequenceRange.quantity,
                or_(
                    SequenceRange.expiration_date.is_(None),
                    SequenceRange.expiration_date >= today,
                    SequenceRange.document_type.in_(NON_EXPIRING_TYPES),
                ),
            )
            .order_by(SequenceRange.created_at.asc(), SequenceRange.id.asc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def consume_one(
        self, range_id: int, today: date, owner_id: Optional[str] = None
    ) -> Optional[SequenceRange]:
        """
        Take the next number with one conditional UPDATE

        The WHERE clause carries every precondition (consumable status,
        numbers left, not expired); the SET clause recomputes the status from
        the incremented counter. rowcount tells whether we won.
        """
        new_count = SequenceRange.consumed_count + 1
        new_status = case(
            (new_count >= SequenceRange.quantity, SequenceStatus.EXHAUSTED.value),
            (
                and_(
                    SequenceRange.quantity > SequenceRange.alert_threshold,
                    SequenceRange.quantity - new_count <= SequenceRange.alert_threshold,
                ),
                SequenceStatus.ALERT.value,
            ),
            else_=SequenceStatus.ACTIVE.value,
        )

        stmt = (
            update(SequenceRange)
            .where(
                SequenceRange.id == range_id,
                SequenceRange.status.in_(CONSUMABLE_STATUSES),
                SequenceRange.consumed_count < SequenceRange.quantity,
                or_(
                    SequenceRange.expiration_date.is_(None),
                    SequenceRange.expiration_date >= today,
                    SequenceRange.document_type.in_(NON_EXPIRING_TYPES),
                ),
            )
            .values(
                consumed_count=new_count,
                status=new_status,
                updated_at=utc_now(),
            )
            .execution_options(synchronize_session=False)
        )
        if owner_id is not None:
            stmt = stmt.where(SequenceRange.owner_id == owner_id)

        result = await self.session.execute(stmt)
        if result.rowcount != 1:
            return None

        # Same transaction, so this sees our own increment
        return await self.get_by_id(range_id)

    async def update_status(self, range_id: int, status: SequenceStatus) -> None:
        stmt = (
            update(SequenceRange)
            .where(SequenceRange.id == range_id)
            .values(status=status.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def mark_expired(self, today: date) -> int:
        stmt = (
            update(SequenceRange)
            .where(
                SequenceRange.status.in_(CONSUMABLE_STATUSES),
                SequenceRange.expiration_date.is_not(None),
                SequenceRange.expiration_date < today,
                SequenceRange.document_type.not_in(NON_EXPIRING_TYPES),
            )
            .values(status=SequenceStatus.EXPIRED.value, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def delete_unused(self, range_id: int) -> bool:
        stmt = (
            delete(SequenceRange)
            .where(SequenceRange.id == range_id, SequenceRange.consumed_count == 0)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def list_ranges(
        self,
        owner_id: Optional[str] = None,
        status: Optional[str] = None,
        document_type: Optional[str] = None,
        tax_id: Optional[str] = None,
        expiring_before: Optional[date] = None,
        today: Optional[date] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[SequenceRange], int]:
        conditions = []
        if owner_id is not None:
            conditions.append(SequenceRange.owner_id == owner_id)
        if status:
            conditions.append(SequenceRange.status == status)
        if document_type:
            conditions.append(SequenceRange.document_type == document_type)
        if tax_id:
            conditions.append(SequenceRange.tax_id.contains(tax_id))
        if expiring_before is not None:
            conditions.append(SequenceRange.expiration_date.is_not(None))
            conditions.append(SequenceRange.expiration_date <= expiring_before)
            if today is not None:
                conditions.append(SequenceRange.expiration_date >= today)

        count_stmt = select(func.count()).select_from(SequenceRange).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            select(SequenceRange)
            .where(*conditions)
            .order_by(SequenceRange.created_at.desc(), SequenceRange.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all()), total

    async def totals_by_status(self, owner_id: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        stmt = select(
            SequenceRange.status,
            func.count(SequenceRange.id),
            func.coalesce(func.sum(SequenceRange.quantity), 0),
            func.coalesce(func.sum(SequenceRange.consumed_count), 0),
        ).group_by(SequenceRange.status)
        if owner_id is not None:
            stmt = stmt.where(SequenceRange.owner_id == owner_id)

        result = await self.session.execute(stmt)
        return {
            status: {
                "count": int(count),
                "total_numbers": int(total_numbers),
                "used_numbers": int(used_numbers),
            }
            for status, count, total_numbers, used_numbers in result.all()
        }

    async def count_expiring(
        self, today: date, until: date, owner_id: Optional[str] = None
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(SequenceRange)
            .where(
                SequenceRange.status.in_(CONSUMABLE_STATUSES),
                SequenceRange.expiration_date.is_not(None),
                SequenceRange.expiration_date >= today,
                SequenceRange.expiration_date <= until,
            )
        )
        if owner_id is not None:
            stmt = stmt.where(SequenceRange.owner_id == owner_id)
        return (await self.session.execute(stmt)).scalar_one()
