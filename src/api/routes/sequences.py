"""Sequence Range API Routes

FastAPI routes for e-NCF range registration and number allocation.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from config import ApplicationConfig
from src.api.schemas.sequence_request import (
    ConsumeByTaxIdRequestSchema,
    ConsumeNumberRequestSchema,
    CreateSequenceRangeRequestSchema,
    UpdateSequenceRangeStatusRequestSchema,
)
from src.app.use_cases.sequences.dtos import (
    ConsumeByTaxIdCommandDTO,
    ConsumeNumberCommandDTO,
    ConsumeNumberResponseDTO,
    CreateSequenceRangeCommandDTO,
    ListSequenceRangesQueryDTO,
    ListSequenceRangesResponseDTO,
    PreviewNextNumberResponseDTO,
    SequenceRangeDTO,
    SequenceStatsDTO,
    UpdateSequenceRangeStatusCommandDTO,
)
from src.app.use_cases.sequences.consume_by_tax_id import ConsumeNumberByTaxId
from src.app.use_cases.sequences.consume_number import ConsumeNumber
from src.app.use_cases.sequences.create_sequence_range import CreateSequenceRange
from src.app.use_cases.sequences.delete_sequence_range import DeleteSequenceRange
from src.app.use_cases.sequences.get_sequence_stats import GetSequenceStats
from src.app.use_cases.sequences.list_sequence_ranges import GetSequenceRange, ListSequenceRanges
from src.app.use_cases.sequences.preview_next_number import PreviewNextNumber
from src.app.use_cases.sequences.update_sequence_range_status import UpdateSequenceRangeStatus
from src.adapter.repositories.sequence_range_repository import SqlAlchemySequenceRangeRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_session
from src.api.error import ClientError

router = APIRouter(prefix="/sequences", tags=["Sequences"])


@router.post(
    "",
    response_model=SequenceRangeDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {
            "description": "Validation error",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "VALIDATION_ERROR",
                            "message": "Invalid sequence range",
                            "details": {"errors": ["tax_id must contain 9 to 11 digits"]}
                        }
                    }
                }
            }
        },
        409: {
            "description": "Overlaps an active range",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "RANGE_OVERLAP",
                            "message": "Range 1-500 overlaps active range 3 (1-1000)"
                        }
                    }
                }
            }
        }
    }
)
async def create_sequence_range(
    request: CreateSequenceRangeRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Register a DGII-authorized e-NCF range.

    **Request body:**
    - `owner_id` (required): Owner identifier
    - `tax_id` (required): RNC/Cédula, 9-11 digits (dashes and spaces are stripped)
    - `document_type` (required): 31, 32, 33, 34, 41, 43, 44 or 45
    - `start_number`, `quantity` (required): authorized block
    - `expiration_date` (optional): ignored for types 32 and 34
    - `alert_threshold` (optional): low-water mark

    **Returns:**
    - 201: Range created
    - 400: Invalid input
    - 409: Overlaps an active/alert range of the same owner, taxpayer and type
    """
    uow = SqlAlchemyUnitOfWork(session)
    range_repo = SqlAlchemySequenceRangeRepository(session)

    command = CreateSequenceRangeCommandDTO(**request.model_dump())

    use_case = CreateSequenceRange(
        uow, range_repo, default_alert_threshold=ApplicationConfig.SEQUENCE_ALERT_THRESHOLD
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "",
    response_model=ListSequenceRangesResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def list_sequence_ranges(
    owner_id: Optional[str] = Query(default=None),
    status_filter: Optional[str] = Query(default=None, alias="status"),
    document_type: Optional[str] = Query(default=None),
    tax_id: Optional[str] = Query(default=None, description="Tax id prefix"),
    expiring_soon: bool = Query(default=False),
    limit: int = Query(default=20, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_session)
):
    """
    List ranges, newest first.

    `expiring_soon` keeps active/alert ranges expiring within the warning window.
    """
    range_repo = SqlAlchemySequenceRangeRepository(session)

    query = ListSequenceRangesQueryDTO(
        owner_id=owner_id,
        status=status_filter,
        document_type=document_type,
        tax_id=tax_id,
        expiring_soon=expiring_soon,
        limit=limit,
        offset=offset,
    )

    use_case = ListSequenceRanges(
        range_repo, expiring_window_days=ApplicationConfig.SEQUENCE_EXPIRING_WINDOW_DAYS
    )
    result = await use_case.execute(query)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/stats",
    response_model=SequenceStatsDTO,
    status_code=status.HTTP_200_OK,
)
async def get_sequence_stats(
    owner_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    """Totals per status, ranges in alert and ranges expiring soon."""
    range_repo = SqlAlchemySequenceRangeRepository(session)

    use_case = GetSequenceStats(
        range_repo, expiring_window_days=ApplicationConfig.SEQUENCE_EXPIRING_WINDOW_DAYS
    )
    result = await use_case.execute(owner_id=owner_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/consume-by-tax-id",
    response_model=ConsumeNumberResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        404: {
            "description": "No usable range",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "SEQUENCE_NOT_FOUND",
                            "message": "No active sequence range for RNC 130862346 and type 32"
                        }
                    }
                }
            }
        }
    }
)
async def consume_by_tax_id(
    request: ConsumeByTaxIdRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Take (or preview) the next number for a taxpayer and document type.

    The oldest active/alert, non-expired range with numbers left is used.
    """
    uow = SqlAlchemyUnitOfWork(session)
    range_repo = SqlAlchemySequenceRangeRepository(session)

    command = ConsumeByTaxIdCommandDTO(**request.model_dump())

    use_case = ConsumeNumberByTaxId(uow, range_repo)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{range_id}",
    response_model=SequenceRangeDTO,
    status_code=status.HTTP_200_OK,
)
async def get_sequence_range(
    range_id: int,
    owner_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    range_repo = SqlAlchemySequenceRangeRepository(session)

    use_case = GetSequenceRange(range_repo)
    result = await use_case.execute(range_id, owner_id=owner_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{range_id}/preview",
    response_model=PreviewNextNumberResponseDTO,
    status_code=status.HTTP_200_OK,
)
async def preview_next_number(
    range_id: int,
    owner_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    """Next number of the range, without consuming it."""
    range_repo = SqlAlchemySequenceRangeRepository(session)

    use_case = PreviewNextNumber(range_repo)
    result = await use_case.execute(range_id, owner_id=owner_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{range_id}/consume",
    response_model=ConsumeNumberResponseDTO,
    status_code=status.HTTP_200_OK,
    responses={
        409: {
            "description": "Range exhausted, expired or inactive",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "RANGE_EXHAUSTED",
                            "message": "Sequence range 1 has no numbers left",
                            "suggestion": "Request a new range from DGII"
                        }
                    }
                }
            }
        }
    }
)
async def consume_number(
    range_id: int,
    request: Optional[ConsumeNumberRequestSchema] = None,
    session: AsyncSession = Depends(get_session)
):
    """
    Consume the next number of a range.

    Concurrent calls never receive the same number. The response carries an
    alert message when the range enters alert or becomes exhausted.
    """
    uow = SqlAlchemyUnitOfWork(session)
    range_repo = SqlAlchemySequenceRangeRepository(session)

    command = ConsumeNumberCommandDTO(
        range_id=range_id,
        owner_id=request.owner_id if request else None,
    )

    use_case = ConsumeNumber(uow, range_repo)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.patch(
    "/{range_id}/status",
    response_model=SequenceRangeDTO,
    status_code=status.HTTP_200_OK,
)
async def update_sequence_range_status(
    range_id: int,
    request: UpdateSequenceRangeStatusRequestSchema,
    session: AsyncSession = Depends(get_session)
):
    """
    Deactivate (`inactive`) or re-activate (`active`) a range.

    Re-activation recomputes the status, so the range may come back as
    alert, exhausted or expired.
    """
    uow = SqlAlchemyUnitOfWork(session)
    range_repo = SqlAlchemySequenceRangeRepository(session)

    command = UpdateSequenceRangeStatusCommandDTO(
        range_id=range_id,
        status=request.status,
        owner_id=request.owner_id,
    )

    use_case = UpdateSequenceRangeStatus(uow, range_repo)
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.delete(
    "/{range_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={
        409: {
            "description": "Range already used",
            "content": {
                "application/json": {
                    "example": {
                        "error": {
                            "code": "RANGE_IN_USE",
                            "message": "Sequence range 1 has consumed numbers and cannot be deleted"
                        }
                    }
                }
            }
        }
    }
)
async def delete_sequence_range(
    range_id: int,
    owner_id: Optional[str] = Query(default=None),
    session: AsyncSession = Depends(get_session)
):
    """Delete a range that has not handed out any number."""
    uow = SqlAlchemyUnitOfWork(session)
    range_repo = SqlAlchemySequenceRangeRepository(session)

    use_case = DeleteSequenceRange(uow, range_repo)
    result = await use_case.execute(range_id, owner_id=owner_id)

    if result.is_err():
        raise ClientError(result.error)
