"""Sequence Range Domain Entity

A pre-authorized block of e-NCF numbers for one (owner, tax id, document type).
Numbers are handed out in order through an atomic consume operation.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Column, Index
from sqlalchemy import BigInteger, CheckConstraint, Date, DateTime, Integer, String, UniqueConstraint
from src.domain.base import BaseModel, utc_now
from src.domain.document_type import DocumentType, requires_expiration
from src.domain.ncf import NCF_PREFIX, format_number


class SequenceStatus(str, Enum):
    """Sequence range lifecycle states"""
    ACTIVE = "active"
    ALERT = "alert"            # Few numbers left
    EXHAUSTED = "exhausted"    # No numbers left
    EXPIRED = "expired"        # Expiration date elapsed
    INACTIVE = "inactive"      # Disabled by an administrator


CONSUMABLE_STATUSES = (SequenceStatus.ACTIVE.value, SequenceStatus.ALERT.value)


def derive_status(
    document_type: str,
    quantity: int,
    consumed_count: int,
    alert_threshold: int,
    expiration_date: Optional[date],
    today: date,
    current_status: Optional[str] = None,
) -> SequenceStatus:
    """
    Compute the lifecycle state from counters and expiry

    Precedence: inactive (administrative) > exhausted > expired > alert > active.
    Ranges no larger than their alert threshold never enter alert.
    Pass current_status=None to re-derive an inactive range.
    """
    if current_status == SequenceStatus.INACTIVE.value:
        return SequenceStatus.INACTIVE

    available = quantity - consumed_count
    if available <= 0:
        return SequenceStatus.EXHAUSTED

    doc_type = DocumentType.parse(document_type)
    expires = doc_type is not None and requires_expiration(doc_type)
    if expires and expiration_date is not None and expiration_date < today:
        return SequenceStatus.EXPIRED

    if quantity > alert_threshold and available <= alert_threshold:
        return SequenceStatus.ALERT

    return SequenceStatus.ACTIVE


class SequenceRange(BaseModel, table=True):
    """
    Sequence Range - contiguous block of e-NCF numbers

    Domain Rules:
    - end_number = start_number + quantity - 1
    - 0 <= consumed_count <= quantity
    - Status is always derived through derive_status
    - Types 32 and 34 carry no expiration date and never expire
    - Deletion only allowed while consumed_count == 0
    """

    __tablename__ = "sequence_ranges"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="quantity_positive"),
        CheckConstraint(
            "consumed_count >= 0 AND consumed_count <= quantity",
            name="consumed_within_quantity",
        ),
        UniqueConstraint(
            "owner_id", "tax_id", "document_type", "start_number",
            name="uq_sequence_ranges_owner_tax_type_start",
        ),
        Index("ix_sequence_ranges_lookup", "owner_id", "tax_id", "document_type", "status"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(
            BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True
        ),
        description="Unique range identifier (auto-increment)"
    )

    owner_id: str = Field(
        sa_column=Column(String(64), nullable=False, index=True),
        description="Owner (issuing account) identifier"
    )

    tax_id: str = Field(
        sa_column=Column(String(11), nullable=False),
        description="Issuer RNC/Cédula, 9 to 11 digits"
    )

    document_type: str = Field(
        sa_column=Column(String(2), nullable=False),
        description="Two-digit e-CF document type"
    )

    prefix: str = Field(
        default=NCF_PREFIX,
        sa_column=Column(String(1), nullable=False, default=NCF_PREFIX),
        description="Letter prefix of the e-NCF"
    )

    start_number: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="First sequence number in the range"
    )

    quantity: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Number of sequence numbers authorized"
    )

    end_number: int = Field(
        sa_column=Column(BigInteger, nullable=False),
        description="Last sequence number in the range (inclusive)"
    )

    consumed_count: int = Field(
        default=0,
        sa_column=Column(BigInteger, nullable=False, default=0),
        description="Numbers handed out so far"
    )

    alert_threshold: int = Field(
        default=10,
        sa_column=Column(Integer, nullable=False, default=10),
        description="Low-water mark that switches the range to alert"
    )

    status: str = Field(
        default=SequenceStatus.ACTIVE.value,
        sa_column=Column(String(20), nullable=False, default=SequenceStatus.ACTIVE.value),
        description="Lifecycle state (active, alert, exhausted, expired, inactive)"
    )

    expiration_date: Optional[date] = Field(
        default=None,
        sa_column=Column(Date, nullable=True),
        description="Sequence expiration date (None for types that never expire)"
    )

    created_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Range creation timestamp"
    )

    updated_at: datetime = Field(
        default_factory=utc_now,
        sa_column=Column(DateTime(timezone=True), nullable=False),
        description="Last state change timestamp"
    )

    @property
    def available_count(self) -> int:
        return self.quantity - self.consumed_count

    @property
    def next_number(self) -> Optional[int]:
        if self.available_count <= 0:
            return None
        return self.start_number + self.consumed_count

    def format(self, sequence: int) -> str:
        return format_number(self.document_type, sequence, prefix=self.prefix)

    def is_expired_on(self, today: date) -> bool:
        doc_type = DocumentType.parse(self.document_type)
        if doc_type is None or not requires_expiration(doc_type):
            return False
        return self.expiration_date is not None and self.expiration_date < today

    def derived_status(self, today: date, keep_inactive: bool = True) -> SequenceStatus:
        return derive_status(
            document_type=self.document_type,
            quantity=self.quantity,
            consumed_count=self.consumed_count,
            alert_threshold=self.alert_threshold,
            expiration_date=self.expiration_date,
            today=today,
            current_status=self.status if keep_inactive else None,
        )

    class Config:
        """SQLModel configuration"""
        json_schema_extra = {
            "example": {
                "id": 1,
                "owner_id": "owner_001",
                "tax_id": "130862346",
                "document_type": "31",
                "prefix": "E",
                "start_number": 1,
                "quantity": 500,
                "end_number": 500,
                "consumed_count": 12,
                "alert_threshold": 10,
                "status": "active",
                "expiration_date": "2026-12-31",
                "created_at": "2025-01-01T00:00:00Z",
                "updated_at": "2025-01-01T00:00:00Z"
            }
        }
