"""Sequence Range Repository Interface

Defines the contract for sequence range persistence operations.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional, Tuple
from src.domain.sequence_range import SequenceRange, SequenceStatus


class SequenceRangeRepository(ABC):
    """
    Repository interface for SequenceRange persistence

    Number consumption is a single conditional update: implementations must
    never read the counter and write it back in two steps.
    """

    @abstractmethod
    async def create(self, sequence_range: SequenceRange) -> SequenceRange:
        """
        Persist a new sequence range

        Args:
            sequence_range: SequenceRange entity to persist

        Returns:
            Created SequenceRange with generated ID
        """
        pass

    @abstractmethod
    async def get_by_id(self, range_id: int, owner_id: Optional[str] = None) -> Optional[SequenceRange]:
        """
        Retrieve a range by ID, optionally scoped to an owner

        Returns:
            SequenceRange if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_overlapping(
        self,
        owner_id: str,
        tax_id: str,
        document_type: str,
        start_number: int,
        end_number: int,
        exclude_id: Optional[int] = None,
    ) -> Optional[SequenceRange]:
        """
        Find an active or alert range of the same owner/tax id/type whose
        [start, end] window intersects the given one
        """
        pass

    @abstractmethod
    async def find_consumable(
        self,
        owner_id: str,
        tax_id: str,
        document_type: str,
        today: date,
    ) -> Optional[SequenceRange]:
        """
        Oldest active/alert range with numbers left and not past its expiry
        """
        pass

    @abstractmethod
    async def consume_one(
        self, range_id: int, today: date, owner_id: Optional[str] = None
    ) -> Optional[SequenceRange]:
        """
        Atomically take the next number of a range

        Increments consumed_count and recomputes status in one conditional
        update that only matches consumable, non-empty, non-expired rows.

        Returns:
            The range after the update, or None when nothing was consumed
        """
        pass

    @abstractmethod
    async def update_status(self, range_id: int, status: SequenceStatus) -> None:
        """Overwrite the stored status of a range"""
        pass

    @abstractmethod
    async def mark_expired(self, today: date) -> int:
        """
        Flip active/alert ranges past their expiration date to expired

        Returns:
            Number of ranges updated
        """
        pass

    @abstractmethod
    async def delete_unused(self, range_id: int) -> bool:
        """
        Delete a range only if no number was consumed from it

        Returns:
            True if deleted, False otherwise
        """
        pass

    @abstractmethod
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
        """
        List ranges with optional filters, newest first

        Returns:
            Tuple of (ranges page, total matching count)
        """
        pass

    @abstractmethod
    async def totals_by_status(self, owner_id: Optional[str] = None) -> Dict[str, Dict[str, int]]:
        """
        Aggregate per status

        Returns:
            {status: {"count", "total_numbers", "used_numbers"}}
        """
        pass

    @abstractmethod
    async def count_expiring(
        self, today: date, until: date, owner_id: Optional[str] = None
    ) -> int:
        """Active/alert ranges whose expiration date falls within [today, until]"""
        pass
