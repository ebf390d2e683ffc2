"""Request schemas for Document API

Field names follow the Spanish vocabulary used by invoicing clients.
"""

from pydantic import BaseModel, ConfigDict, Field


class QueryStatusRequestSchema(BaseModel):
    """
    Request schema for a status query

    Used for POST /documents/status endpoint.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"ncf": "E310000000001", "reintentar": True}},
    )

    document_number: str = Field(..., min_length=1, alias="ncf")
    retry: bool = Field(default=False, alias="reintentar", description="Wait before querying")


class DownloadRequestSchema(BaseModel):
    """Used for POST /documents/download endpoint."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"rnc": "130862346", "documento": "E310000000001", "extension": "pdf"}},
    )

    tax_id: str = Field(..., min_length=1, alias="rnc")
    document_number: str = Field(..., min_length=1, alias="documento")
    extension: str = Field(default="xml", description="xml or pdf")
