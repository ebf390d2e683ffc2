from .sequence_range_repository import SqlAlchemySequenceRangeRepository

__all__ = [
    "SqlAlchemySequenceRangeRepository",
]
