"""Request schemas for Sequence Range API

Pydantic models for validating incoming HTTP requests.
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CreateSequenceRangeRequestSchema(BaseModel):
    """
    Request schema for registering a range

    Used for POST /sequences endpoint.
    """

    owner_id: str = Field(..., min_length=1, description="Owner (issuing account) identifier")
    tax_id: str = Field(..., min_length=1, description="Issuer RNC/Cédula, dashes allowed")
    document_type: str = Field(..., description="e-CF type code (31, 32, 33, 34, 41, 43, 44, 45)")
    start_number: int = Field(..., description="First authorized sequence number")
    quantity: int = Field(..., description="Number of authorized sequence numbers")
    expiration_date: Optional[date] = Field(default=None, description="Sequence expiration date")
    alert_threshold: Optional[int] = Field(default=None, ge=0, description="Low-water mark")
    prefix: str = Field(default="E", min_length=1, max_length=1, description="e-NCF letter prefix")

    class Config:
        json_schema_extra = {
            "example": {
                "owner_id": "owner_001",
                "tax_id": "130-86234-6",
                "document_type": "31",
                "start_number": 1,
                "quantity": 500,
                "expiration_date": "2026-12-31"
            }
        }


class ConsumeNumberRequestSchema(BaseModel):
    """Used for POST /sequences/{range_id}/consume endpoint."""

    owner_id: Optional[str] = Field(default=None, description="Only consume if the range belongs to this owner")


class ConsumeByTaxIdRequestSchema(BaseModel):
    """
    Request schema for taking a number by taxpayer and document type

    Used for POST /sequences/consume-by-tax-id endpoint.
    """

    owner_id: str = Field(..., min_length=1)
    tax_id: str = Field(..., min_length=1)
    document_type: str = Field(...)
    preview_only: bool = Field(default=False, description="Return the next number without consuming it")


class UpdateSequenceRangeStatusRequestSchema(BaseModel):
    """Used for PATCH /sequences/{range_id}/status endpoint."""

    status: str = Field(..., description="'inactive', or 'active' to re-derive from counters and expiry")
    owner_id: Optional[str] = None

    @field_validator('status')
    @classmethod
    def normalize_status(cls, v):
        return v.strip().lower()
