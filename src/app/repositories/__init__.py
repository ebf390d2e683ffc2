from .sequence_range_repository import SequenceRangeRepository

__all__ = [
    "SequenceRangeRepository",
]
