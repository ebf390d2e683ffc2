"""Sequence range use cases"""
from .create_sequence_range import CreateSequenceRange
from .preview_next_number import PreviewNextNumber
from .consume_number import ConsumeNumber
from .consume_by_tax_id import ConsumeNumberByTaxId
from .update_sequence_range_status import UpdateSequenceRangeStatus
from .delete_sequence_range import DeleteSequenceRange
from .list_sequence_ranges import ListSequenceRanges, GetSequenceRange
from .get_sequence_stats import GetSequenceStats
from .expire_sequence_ranges import ExpireSequenceRanges
from .dtos import (
    CreateSequenceRangeCommandDTO,
    SequenceRangeDTO,
    PreviewNextNumberResponseDTO,
    ConsumeNumberCommandDTO,
    ConsumeByTaxIdCommandDTO,
    ConsumeNumberResponseDTO,
    UpdateSequenceRangeStatusCommandDTO,
    ListSequenceRangesQueryDTO,
    ListSequenceRangesResponseDTO,
    StatusTotalsDTO,
    SequenceStatsDTO,
    ExpireSequenceRangesResultDTO,
)

__all__ = [
    "CreateSequenceRange",
    "PreviewNextNumber",
    "ConsumeNumber",
    "ConsumeNumberByTaxId",
    "UpdateSequenceRangeStatus",
    "DeleteSequenceRange",
    "ListSequenceRanges",
    "GetSequenceRange",
    "GetSequenceStats",
    "ExpireSequenceRanges",
    "CreateSequenceRangeCommandDTO",
    "SequenceRangeDTO",
    "PreviewNextNumberResponseDTO",
    "ConsumeNumberCommandDTO",
    "ConsumeByTaxIdCommandDTO",
    "ConsumeNumberResponseDTO",
    "UpdateSequenceRangeStatusCommandDTO",
    "ListSequenceRangesQueryDTO",
    "ListSequenceRangesResponseDTO",
    "StatusTotalsDTO",
    "SequenceStatsDTO",
    "ExpireSequenceRangesResultDTO",
]
