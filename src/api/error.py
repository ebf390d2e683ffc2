"""API error handling

Use case errors are raised as ClientError and rendered as
``{"error": {code, message, reason, suggestion, details}}``.
"""

from typing import Optional
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from libs.result import Error

ERROR_STATUS_CODES = {
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "BUSINESS_ERROR": status.HTTP_400_BAD_REQUEST,
    "TOKEN_EXPIRED": status.HTTP_401_UNAUTHORIZED,
    "RANGE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "SEQUENCE_NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "AMBIGUOUS_OUTCOME": status.HTTP_408_REQUEST_TIMEOUT,
    "RANGE_OVERLAP": status.HTTP_409_CONFLICT,
    "RANGE_EXHAUSTED": status.HTTP_409_CONFLICT,
    "RANGE_EXPIRED": status.HTTP_409_CONFLICT,
    "RANGE_IN_USE": status.HTTP_409_CONFLICT,
    "INVALID_RANGE_STATE": status.HTTP_409_CONFLICT,
    "UPSTREAM_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "UPSTREAM_HTTP_ERROR": status.HTTP_503_SERVICE_UNAVAILABLE,
    "STATUS_QUERY_FAILED": status.HTTP_503_SERVICE_UNAVAILABLE,
}


class ClientError(Exception):
    """
    Error returned to the API client

    Without an explicit status_code the HTTP status follows the error code
    (400 for codes without a mapping).
    """

    def __init__(self, error: Error, status_code: Optional[int] = None):
        super().__init__(error.message)
        self.error = error
        self.status_code = status_code or ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST)


async def client_error_handler(request: Request, exc: ClientError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error.model_dump(mode="json", exclude_none=True)},
    )


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = []
    for item in exc.errors():
        location = ".".join(str(part) for part in item.get("loc", ()) if part != "body")
        errors.append(f"{location}: {item.get('msg')}" if location else str(item.get("msg")))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": {
                "code": "VALIDATION_ERROR",
                "message": "Invalid request parameters",
                "details": {"errors": errors},
            }
        },
    )
