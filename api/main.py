from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse

from content import repository as content_repository
from content import router as content_router
from core import cloudant, settings
from core.errors import ApiError, api_error_handler, request_validation_handler
from core.log import configure_logging

load_dotenv()


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Serve only after the expected collections are confirmed to exist.
    configure_logging()
    await cloudant.connect(settings.expected_collections())
    try:
        yield
    finally:
        await cloudant.close_client()


app = FastAPI(lifespan=lifespan)


def _error_status(code: int | None) -> int:
    return code if code is not None and code > 0 else 500


async def cloudant_error_handler(_: Request, exc: cloudant.CloudantError) -> JSONResponse:
    return JSONResponse(status_code=_error_status(exc.code), content=exc.to_dict())


async def empty_lookup_handler(_: Request, exc: content_repository.EmptyLookupError) -> JSONResponse:
    # Same status rule as database errors; an empty lookup carries no code.
    return JSONResponse(status_code=_error_status(exc.code), content={"errors": str(exc)})


app.add_exception_handler(ApiError, api_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(cloudant.CloudantError, cloudant_error_handler)
app.add_exception_handler(content_repository.EmptyLookupError, empty_lookup_handler)

app.include_router(content_router.router, tags=["content"])


@app.get("/health")
def health() -> JSONResponse:
    if not cloudant.is_connected():
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "database": "disconnected"},
        )
    return JSONResponse(content={"status": "ok", "database": "connected"})


@app.get("/", response_class=PlainTextResponse)
def root() -> str:
    return "BARKR API"


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host(), port=settings.port())
