"""Data Transfer Objects for Sequence Range Use Cases

Pydantic models for command inputs and response outputs.
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class CreateSequenceRangeCommandDTO(BaseModel):
    """
    Command DTO for registering a DGII-authorized number range

    Used as input to CreateSequenceRange use case. Bounds are checked by the
    use case so every problem is reported at once.
    """

    owner_id: str = Field(..., description="Owner (issuing account) identifier")
    tax_id: str = Field(..., description="Issuer RNC/Cédula (9-11 digits)")
    document_type: str = Field(..., description="e-CF type code (31, 32, 33, 34, 41, 43, 44, 45)")
    start_number: int = Field(..., description="First authorized sequence number")
    quantity: int = Field(..., description="Number of authorized sequence numbers")
    expiration_date: Optional[date] = Field(
        default=None, description="Sequence expiration date (ignored for types 32 and 34)"
    )
    alert_threshold: Optional[int] = Field(
        default=None, description="Low-water mark for the alert state (defaults from config)"
    )
    prefix: str = Field(default="E", description="e-NCF letter prefix")

    class Config:
        json_schema_extra = {
            "example": {
                "owner_id": "owner_001",
                "tax_id": "130862346",
                "document_type": "31",
                "start_number": 1,
                "quantity": 500,
                "expiration_date": "2026-12-31",
                "alert_threshold": 10
            }
        }


class SequenceRangeDTO(BaseModel):
    """Sequence range as returned to callers"""

    id: int
    owner_id: str
    tax_id: str
    document_type: str
    prefix: str
    start_number: int
    end_number: int
    quantity: int
    consumed_count: int
    available_count: int
    alert_threshold: int
    status: str
    expiration_date: Optional[date] = None
    next_number: Optional[int] = Field(default=None, description="Next sequence to be handed out")
    next_formatted_number: Optional[str] = Field(default=None, description="Next e-NCF to be handed out")
    created_at: datetime
    updated_at: datetime


class PreviewNextNumberResponseDTO(BaseModel):
    """Read-only look at the next number of a range"""

    range_id: int
    next_number: int
    formatted_number: str = Field(..., description="e-NCF, e.g. E310000000001")
    available_count: int
    status: str
    expiration_date: Optional[date] = None


class ConsumeNumberCommandDTO(BaseModel):
    range_id: int = Field(..., description="Range to take a number from")
    owner_id: Optional[str] = Field(default=None, description="Restrict to ranges of this owner")


class ConsumeByTaxIdCommandDTO(BaseModel):
    """
    Command DTO for taking the next number of a taxpayer/type pair

    The oldest usable range is chosen.
    """

    owner_id: str = Field(..., description="Owner (issuing account) identifier")
    tax_id: str = Field(..., description="Issuer RNC/Cédula")
    document_type: str = Field(..., description="e-CF type code")
    preview_only: bool = Field(default=False, description="Report the next number without consuming it")

    class Config:
        json_schema_extra = {
            "example": {
                "owner_id": "owner_001",
                "tax_id": "130862346",
                "document_type": "32",
                "preview_only": False
            }
        }


class ConsumeNumberResponseDTO(BaseModel):
    """
    Response DTO for number consumption

    alert_message is set when the range entered alert or exhausted.
    """

    range_id: int
    consumed_number: int
    formatted_number: str
    available_count: int
    status: str
    alert: bool = False
    alert_message: Optional[str] = None
    expiration_date: Optional[date] = None
    preview: bool = Field(default=False, description="True when nothing was consumed")

    class Config:
        json_schema_extra = {
            "example": {
                "range_id": 1,
                "consumed_number": 491,
                "formatted_number": "E310000000491",
                "available_count": 9,
                "status": "alert",
                "alert": True,
                "alert_message": "9 numbers left - request a new range soon",
                "expiration_date": "2026-12-31",
                "preview": False
            }
        }


class UpdateSequenceRangeStatusCommandDTO(BaseModel):
    range_id: int
    status: str = Field(..., description="Target status: inactive, or active to re-derive")
    owner_id: Optional[str] = None


class ListSequenceRangesQueryDTO(BaseModel):
    owner_id: Optional[str] = None
    status: Optional[str] = None
    document_type: Optional[str] = None
    tax_id: Optional[str] = None
    expiring_soon: bool = Field(default=False, description="Only ranges expiring within the warning window")
    limit: int = Field(default=20, ge=1, le=200)
    offset: int = Field(default=0, ge=0)


class ListSequenceRangesResponseDTO(BaseModel):
    items: List[SequenceRangeDTO]
    total: int
    limit: int
    offset: int


class StatusTotalsDTO(BaseModel):
    count: int = 0
    total_numbers: int = 0
    used_numbers: int = 0
    available_numbers: int = 0


class SequenceStatsDTO(BaseModel):
    """Aggregate view of an owner's ranges"""

    by_status: Dict[str, StatusTotalsDTO]
    total_ranges: int
    total_numbers: int
    used_numbers: int
    available_numbers: int
    expiring_soon: int = Field(..., description="Active/alert ranges expiring within the warning window")
    in_alert: int


class ExpireSequenceRangesResultDTO(BaseModel):
    expired_count: int
    run_date: date
