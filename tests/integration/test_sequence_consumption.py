"""Integration tests for sequence range consumption

Tests cover:
- Registering a range and consuming it to exhaustion with a real database
- Concurrent consumers never receiving the same number
- Overlap rejection, expiry and deletion rules
"""

import asyncio
import pytest
from datetime import date

from sqlmodel.ext.asyncio.session import AsyncSession
from src.adapter.repositories.sequence_range_repository import SqlAlchemySequenceRangeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.domain.sequence_range import SequenceRange
from src.app.use_cases.sequences import (
    ConsumeNumber,
    ConsumeNumberByTaxId,
    ConsumeByTaxIdCommandDTO,
    ConsumeNumberCommandDTO,
    CreateSequenceRange,
    CreateSequenceRangeCommandDTO,
    DeleteSequenceRange,
    ExpireSequenceRanges,
    GetSequenceStats,
)

TODAY = date(2025, 6, 1)


def today():
    return TODAY


async def create_range(session: AsyncSession, **overrides):
    data = {
        "owner_id": "owner_int",
        "tax_id": "130862346",
        "document_type": "31",
        "start_number": 1,
        "quantity": 100,
        "expiration_date": date(2026, 12, 31),
    }
    data.update(overrides)
    use_case = CreateSequenceRange(
        SqlAlchemyUnitOfWork(session), SqlAlchemySequenceRangeRepository(session), today=today
    )
    result = await use_case.execute(CreateSequenceRangeCommandDTO(**data))
    assert result.is_ok(), result.error
    return result.value


async def consume(session: AsyncSession, range_id: int):
    use_case = ConsumeNumber(
        SqlAlchemyUnitOfWork(session), SqlAlchemySequenceRangeRepository(session), today=today
    )
    return await use_case.execute(ConsumeNumberCommandDTO(range_id=range_id))


@pytest.mark.asyncio
class TestSequenceConsumptionIntegration:
    """Integration tests with real database"""

    async def test_small_range_consumed_to_exhaustion(self, db_session: AsyncSession):
        """
        Given: Type 32 range with three numbers
        When: Four numbers are requested
        Then: Numbers 1..3 in order, the third exhausts the range, the fourth fails
        """
        # Arrange
        created = await create_range(
            db_session, document_type="32", quantity=3, expiration_date=None
        )

        # Act
        results = [await consume(db_session, created.id) for _ in range(4)]

        # Assert
        assert [r.value.formatted_number for r in results[:3]] == [
            "E320000000001",
            "E320000000002",
            "E320000000003",
        ]
        assert [r.value.status for r in results[:3]] == ["active", "active", "exhausted"]
        assert results[2].value.alert_message == "Last number in range used - request a new range urgently"
        assert results[3].error.code == "RANGE_EXHAUSTED"

    async def test_concurrent_consumers_get_distinct_numbers(self, session_factory, db_session):
        """
        Given: Range of ten numbers
        When: Ten consumers run concurrently, each with its own session
        Then: Every number 1..10 is handed out exactly once
        """
        created = await create_range(db_session, quantity=10, alert_threshold=0)

        async def consumer():
            async with session_factory() as session:
                return await consume(session, created.id)

        results = await asyncio.gather(*(consumer() for _ in range(10)))

        assert all(r.is_ok() for r in results), [r.error for r in results if r.is_err()]
        assert sorted(r.value.consumed_number for r in results) == list(range(1, 11))

        extra = await consume(db_session, created.id)
        assert extra.error.code == "RANGE_EXHAUSTED"

    async def test_alert_threshold_reached(self, db_session: AsyncSession):
        created = await create_range(db_session, quantity=12, alert_threshold=10)

        first = await consume(db_session, created.id)
        second = await consume(db_session, created.id)

        assert first.value.status == "active"
        assert second.value.status == "alert"
        assert second.value.alert_message == "10 numbers left - request a new range soon"

    async def test_overlapping_range_rejected(self, db_session: AsyncSession):
        await create_range(db_session, start_number=1, quantity=100)
        use_case = CreateSequenceRange(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemySequenceRangeRepository(db_session), today=today
        )

        result = await use_case.execute(
            CreateSequenceRangeCommandDTO(
                owner_id="owner_int",
                tax_id="130862346",
                document_type="31",
                start_number=50,
                quantity=100,
                expiration_date=date(2026, 12, 31),
            )
        )

        assert result.error.code == "RANGE_OVERLAP"

    async def test_same_numbers_for_another_type_do_not_overlap(self, db_session: AsyncSession):
        await create_range(db_session, document_type="31")

        created = await create_range(db_session, document_type="32", expiration_date=None)

        assert created.start_number == 1

    async def test_consume_by_tax_id_uses_oldest_range_first(self, db_session: AsyncSession):
        first = await create_range(db_session, start_number=1, quantity=1)
        second = await create_range(db_session, start_number=101, quantity=5)
        use_case = ConsumeNumberByTaxId(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemySequenceRangeRepository(db_session), today=today
        )
        command = ConsumeByTaxIdCommandDTO(owner_id="owner_int", tax_id="130-86234-6", document_type="31")

        a = await use_case.execute(command)
        b = await use_case.execute(command)

        assert (a.value.range_id, a.value.consumed_number) == (first.id, 1)
        assert (b.value.range_id, b.value.consumed_number) == (second.id, 101)

    async def test_expired_range_is_marked_and_refused(self, db_session: AsyncSession):
        created = await create_range(db_session, expiration_date=date(2025, 6, 15))
        later = date(2025, 7, 1)
        use_case = ConsumeNumber(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemySequenceRangeRepository(db_session),
            today=lambda: later,
        )

        result = await use_case.execute(ConsumeNumberCommandDTO(range_id=created.id))

        assert result.error.code == "RANGE_EXPIRED"
        stored = await SqlAlchemySequenceRangeRepository(db_session).get_by_id(created.id)
        assert stored.status == "expired"
        assert stored.consumed_count == 0

    async def test_expiry_sweep_skips_non_expiring_types(self, db_session: AsyncSession):
        await create_range(db_session, document_type="31", expiration_date=date(2025, 6, 15))
        await create_range(db_session, document_type="32", expiration_date=None)
        sweep = ExpireSequenceRanges(
            SqlAlchemyUnitOfWork(db_session),
            SqlAlchemySequenceRangeRepository(db_session),
            today=lambda: date(2025, 7, 1),
        )

        result = await sweep.execute()

        assert result.value.expired_count == 1

    async def test_only_unused_range_can_be_deleted(self, db_session: AsyncSession):
        used = await create_range(db_session, start_number=1, quantity=10)
        unused = await create_range(db_session, start_number=11, quantity=10)
        await consume(db_session, used.id)
        use_case = DeleteSequenceRange(
            SqlAlchemyUnitOfWork(db_session), SqlAlchemySequenceRangeRepository(db_session)
        )

        assert (await use_case.execute(used.id)).error.code == "RANGE_IN_USE"
        assert (await use_case.execute(unused.id)).value == unused.id
        assert await SqlAlchemySequenceRangeRepository(db_session).get_by_id(unused.id) is None

    async def test_stats_reflect_consumption(self, db_session: AsyncSession):
        created = await create_range(db_session, quantity=20, alert_threshold=5)
        for _ in range(16):
            await consume(db_session, created.id)
        await create_range(db_session, document_type="32", quantity=5, expiration_date=None)

        result = await GetSequenceStats(
            SqlAlchemySequenceRangeRepository(db_session), today=today
        ).execute("owner_int")

        stats = result.value
        assert stats.total_ranges == 2
        assert stats.total_numbers == 25
        assert stats.used_numbers == 16
        assert stats.in_alert == 1
        assert stats.by_status["active"].count == 1

    async def test_range_timestamps_persist_through_flush(self, db_session: AsyncSession):
        """
        Given: Range entity built with default timestamps
        When: It is flushed and committed to the database, then consumed
        Then: Timestamps are timezone aware and the row round-trips
        """
        sequence_range = SequenceRange(
            owner_id="owner_int",
            tax_id="130862346",
            document_type="32",
            start_number=1,
            quantity=3,
            end_number=3,
        )
        assert sequence_range.created_at.tzinfo is not None
        assert sequence_range.updated_at.tzinfo is not None

        db_session.add(sequence_range)
        await db_session.commit()
        result = await consume(db_session, sequence_range.id)

        assert result.value.consumed_number == 1
        stored = await SqlAlchemySequenceRangeRepository(db_session).get_by_id(sequence_range.id)
        assert stored.created_at is not None
        assert stored.updated_at is not None
        assert stored.consumed_count == 1
