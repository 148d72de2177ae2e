"""
Content persistence on Cloudant (selector queries).

Every read returns a `QueryResult` carrying the documents and the status code
the router answers with. Creation stamps the document with the current time in
milliseconds and derives its id from that timestamp and the link's host:

    1718000000000:shop.example.com

Two writes for the same host within the same millisecond collide; Cloudant
rejects the second one with a 409 conflict.
"""

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any

from core import cloudant, settings
from core.cloudant import CloudantError

from . import schemas

logger = logging.getLogger(__name__)

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)


class EmptyLookupError(ValueError):
    # Rejected before any query, so there is no database status to report.
    code = 0


@dataclass(frozen=True)
class QueryResult:
    data: Any
    status_code: int


class DeleteStatus(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    FAILURE = "failure"


@dataclass(frozen=True)
class DeleteOutcome:
    status: DeleteStatus
    status_code: int
    cause: CloudantError | None = None


def now_ms() -> int:
    return int(time.time() * 1000)


def clean_url(url: str) -> str:
    """
    Return the host part of `url`: scheme prefix dropped, cut at the first `/`.

    This is only used to build ids; it does not validate the URL.
    """
    without_scheme = _SCHEME_RE.sub("", url or "", count=1)
    return without_scheme.split("/", 1)[0]


def make_id(timestamp: int, link: str) -> str:
    return f"{timestamp}:{clean_url(link)}"


def _trim(value: Any) -> str:
    return "" if value is None else str(value).strip()


async def _insert_record(collection: str, record: schemas.ContentRecord) -> QueryResult:
    try:
        result = await cloudant.insert(collection, record.to_document())
    except CloudantError as exc:
        logger.error(
            "insert_failed collection=%s id=%s code=%s reason=%s",
            collection,
            record.id,
            exc.code,
            exc.reason,
        )
        raise
    return QueryResult(
        data={"createdId": result["id"], "createdRevId": result["rev"]},
        status_code=201,
    )


async def add_shop_item(item_name: str, link: str, description: str = "", cost: str = "") -> QueryResult:
    timestamp = now_ms()
    link = _trim(link)
    record = schemas.ShopItem(
        id=make_id(timestamp, link),
        item_name=_trim(item_name),
        link=link,
        description=_trim(description),
        cost=_trim(cost),
        timestamp=timestamp,
    )
    return await _insert_record(settings.db_shop(), record)


async def add_research_news(title: str, link: str, description: str = "") -> QueryResult:
    timestamp = now_ms()
    link = _trim(link)
    record = schemas.ResearchNewsItem(
        id=make_id(timestamp, link),
        title=_trim(title),
        link=link,
        description=_trim(description),
        timestamp=timestamp,
    )
    return await _insert_record(settings.db_news_research(), record)


async def add_twitter_news(text: str, link: str, author: str) -> QueryResult:
    timestamp = now_ms()
    link = _trim(link)
    record = schemas.TwitterNewsItem(
        id=make_id(timestamp, link),
        text=_trim(text),
        link=link,
        author=_trim(author),
        timestamp=timestamp,
    )
    return await _insert_record(settings.db_news_twitter(), record)


async def _find(collection: str, selector: dict[str, Any]) -> QueryResult:
    docs = await cloudant.find(collection, selector)
    return QueryResult(data=docs, status_code=200)


async def find_by_id(collection: str, doc_id: str) -> QueryResult:
    doc_id = _trim(doc_id)
    if not doc_id:
        raise EmptyLookupError("empty id")
    return await _find(collection, {"_id": doc_id})


async def find_by_link(collection: str, link: str) -> QueryResult:
    link = _trim(link)
    if not link:
        raise EmptyLookupError("empty link")
    return await _find(collection, {"link": link})


async def get_by_time_start(collection: str, start: int) -> QueryResult:
    return await _find(collection, {"timestamp": {"$gte": start}})


async def get_by_time_end(collection: str, end: int) -> QueryResult:
    return await _find(collection, {"timestamp": {"$lte": end}})


async def get_by_time_range(collection: str, start: int, end: int) -> QueryResult:
    return await _find(collection, {"timestamp": {"$gte": start, "$lte": end}})


async def delete_by_id(collection: str, doc_id: str, rev: str | None = None) -> DeleteOutcome:
    """
    Fetch the document, then destroy it against a revision token.

    `rev` is the caller's expected revision; when omitted the revision just
    fetched is used. The two calls are not atomic: a concurrent write in
    between surfaces as a 409 failure.

    Database errors are reported in the outcome, never raised.
    """
    try:
        document = await cloudant.get_document(collection, doc_id)
    except CloudantError as exc:
        if exc.code == 404:
            return DeleteOutcome(status=DeleteStatus.NOT_FOUND, status_code=404, cause=exc)
        logger.warning("delete_fetch_failed collection=%s id=%s code=%s", collection, doc_id, exc.code)
        return DeleteOutcome(status=DeleteStatus.FAILURE, status_code=exc.code, cause=exc)

    target_rev = _trim(rev) or str(document.get("_rev") or "")
    try:
        await cloudant.destroy(collection, doc_id, target_rev)
    except CloudantError as exc:
        logger.warning(
            "delete_failed collection=%s id=%s rev=%s code=%s",
            collection,
            doc_id,
            target_rev,
            exc.code,
        )
        return DeleteOutcome(status=DeleteStatus.FAILURE, status_code=exc.code, cause=exc)

    logger.info("deleted collection=%s id=%s rev=%s", collection, doc_id, target_rev)
    return DeleteOutcome(status=DeleteStatus.SUCCESS, status_code=200)
