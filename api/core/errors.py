"""
API-level error types.

Database failures live in `core/cloudant.py`; this module holds the errors the
routing layer raises for bad requests, and the JSON shape they render to.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class ApiError(Exception):
    """
    A request rejected before reaching the database.

    Renders as `{"errors": message}` with `status_code`.
    """

    def __init__(self, message: str, *, status_code: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class MissingFieldError(ApiError):
    def __init__(self, field_label: str) -> None:
        super().__init__(
            f"{field_label} must be provided",
            status_code=422,
        )


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"errors": exc.message})


async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    # Report the first problem only, in the same `errors` shape as ApiError.
    problems = exc.errors()
    first = problems[0] if problems else {}
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "request"
    message = f"{field}: {first.get('msg', 'invalid value')}"
    return JSONResponse(status_code=422, content={"errors": message})
