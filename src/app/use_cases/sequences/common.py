"""Helpers shared by the sequence range use cases"""

from datetime import date
from typing import Optional
from src.domain.sequence_range import SequenceRange, SequenceStatus
from .dtos import ConsumeNumberResponseDTO, SequenceRangeDTO


def alert_message_for(status: str, available_count: int) -> Optional[str]:
    if status == SequenceStatus.EXHAUSTED.value:
        return "Last number in range used - request a new range urgently"
    if status == SequenceStatus.ALERT.value:
        return f"{available_count} numbers left - request a new range soon"
    return None


def to_range_dto(sequence_range: SequenceRange, today: date) -> SequenceRangeDTO:
    next_number = sequence_range.next_number
    return SequenceRangeDTO(
        id=sequence_range.id,
        owner_id=sequence_range.owner_id,
        tax_id=sequence_range.tax_id,
        document_type=sequence_range.document_type,
        prefix=sequence_range.prefix,
        start_number=sequence_range.start_number,
        end_number=sequence_range.end_number,
        quantity=sequence_range.quantity,
        consumed_count=sequence_range.consumed_count,
        available_count=sequence_range.available_count,
        alert_threshold=sequence_range.alert_threshold,
        status=sequence_range.derived_status(today).value,
        expiration_date=sequence_range.expiration_date,
        next_number=next_number,
        next_formatted_number=sequence_range.format(next_number) if next_number else None,
        created_at=sequence_range.created_at,
        updated_at=sequence_range.updated_at,
    )


def to_consume_response(
    sequence_range: SequenceRange, number: int, preview: bool = False
) -> ConsumeNumberResponseDTO:
    status = sequence_range.status
    message = alert_message_for(status, sequence_range.available_count)
    return ConsumeNumberResponseDTO(
        range_id=sequence_range.id,
        consumed_number=number,
        formatted_number=sequence_range.format(number),
        available_count=sequence_range.available_count,
        status=status,
        alert=message is not None,
        alert_message=message,
        expiration_date=sequence_range.expiration_date,
        preview=preview,
    )
