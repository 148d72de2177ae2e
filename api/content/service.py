"""
Content request logic that is independent of FastAPI's routing layer:
- resolve the `db_name` query field to a known collection
- validate the page number and compute its time window
- turn a delete outcome into a response or an error
"""

from __future__ import annotations

import re

from core import settings
from core.errors import ApiError, MissingFieldError

from . import repository

DAY_MS = 24 * 60 * 60 * 1000

_POSITIVE_INT_RE = re.compile(r"[0-9]+")


def resolve_collection(db_name: str | None) -> str:
    name = (db_name or "").strip()
    if not name:
        raise MissingFieldError("db_name")
    if name not in settings.expected_collections():
        raise ApiError(f"Unknown collection: {name}")
    return name


def parse_page(raw: str) -> int:
    raw = (raw or "").strip()
    if not _POSITIVE_INT_RE.fullmatch(raw) or int(raw) < 1:
        raise ApiError("Page must be a positive integer")
    return int(raw)


def page_window(page: int, *, now: int | None = None) -> tuple[int, int]:
    """
    Return `(start, end)` in epoch milliseconds for a 1-based page.

    Page 1 is the last 24 hours, page 2 the 24 hours before that, and so on.
    Both bounds are inclusive. Older pages end one millisecond before the
    next page starts, so no timestamp lands on two pages.
    """
    now = repository.now_ms() if now is None else now
    start = now - page * DAY_MS
    end = now if page == 1 else now - (page - 1) * DAY_MS - 1
    return start, end


async def get_page(collection: str, page: int) -> repository.QueryResult:
    start, end = page_window(page)
    return await repository.get_by_time_range(collection, start, end)


async def get_by_time(collection: str, *, start: int | None, end: int | None) -> repository.QueryResult:
    if start is not None and end is not None:
        return await repository.get_by_time_range(collection, start, end)
    if start is not None:
        return await repository.get_by_time_start(collection, start)
    if end is not None:
        return await repository.get_by_time_end(collection, end)
    raise MissingFieldError("start or end")


async def delete_document(collection: str, doc_id: str, *, rev: str | None = None) -> dict:
    outcome = await repository.delete_by_id(collection, doc_id, rev)
    if outcome.status is repository.DeleteStatus.SUCCESS:
        return {"ok": True, "deletedId": doc_id}
    if outcome.status is repository.DeleteStatus.NOT_FOUND:
        raise ApiError("Not Found", status_code=404)
    # FAILURE always carries the Cloudant error that caused it.
    raise outcome.cause
