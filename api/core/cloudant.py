"""
Async Cloudant (CouchDB HTTP API) client helpers using httpx.

This module owns the shared HTTP client. FastAPI opens it and verifies the
expected databases on startup, and closes it on shutdown (see `api/main.py`).

Used endpoints:
- GET    /_all_dbs                 -> ["db", ...]
- POST   /{db}/_find               -> {"docs": [...], "bookmark": "..."}
- POST   /{db}                     -> {"ok": true, "id": "...", "rev": "..."}
- GET    /{db}/{doc_id}            -> {"_id": "...", "_rev": "...", ...}
- DELETE /{db}/{doc_id}?rev=...    -> {"ok": true, "id": "...", "rev": "..."}

Authentication exchanges the IAM API key for a bearer token, cached until
shortly before it expires.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from . import settings

logger = logging.getLogger(__name__)

IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"
TOKEN_REFRESH_MARGIN_S = 60
DEFAULT_TOKEN_LIFETIME_S = 3600


class CloudantError(RuntimeError):
    """
    A failed call to Cloudant.

    `code` is the HTTP status Cloudant answered with, or 0 when no response
    was received at all.
    """

    def __init__(self, message: str, *, code: int = 0, error: str = "", reason: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.error = error
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error, "reason": self.reason, "code": self.code}


class MissingCollectionsError(CloudantError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Missing DB: {', '.join(missing)}",
            error="missing_db",
            reason=", ".join(missing),
        )
        self.missing = missing


@dataclass(frozen=True)
class _IamToken:
    access_token: str
    expires_at: float

    def is_fresh(self) -> bool:
        return self.expires_at - TOKEN_REFRESH_MARGIN_S > time.time()


_client: httpx.AsyncClient | None = None
_token: _IamToken | None = None
_connected = False


def _path(*segments: str) -> str:
    return "/" + "/".join(quote(segment, safe="") for segment in segments)


def _json_body(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise CloudantError(
            f"Cloudant returned a non-JSON body: {resp.status_code} {resp.text[:300]}",
            error="invalid_response",
            reason=resp.text[:300],
        ) from exc


def _error_from_response(resp: httpx.Response) -> CloudantError:
    try:
        body = resp.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        body = {}

    error = str(body.get("error") or "")
    reason = str(body.get("reason") or body.get("errorMessage") or resp.text[:300])
    return CloudantError(
        f"Cloudant request failed: {resp.status_code} {error} {reason}".strip(),
        code=resp.status_code,
        error=error,
        reason=reason,
    )


async def init_client() -> None:
    global _client
    if _client is not None:
        return None
    _client = httpx.AsyncClient(
        base_url=settings.cloudant_url(),
        timeout=settings.cloudant_timeout_s(),
        headers={"Accept": "application/json"},
    )


async def close_client() -> None:
    global _client, _token, _connected
    _connected = False
    _token = None
    if _client is None:
        return None
    await _client.aclose()
    _client = None


def client() -> httpx.AsyncClient:
    if _client is None:
        raise RuntimeError("Cloudant client is not initialized. Call init_client() on startup.")
    return _client


def is_connected() -> bool:
    return _connected


async def _fetch_iam_token() -> _IamToken:
    # Absolute URL: the IAM service lives outside the Cloudant account host.
    try:
        resp = await client().post(
            settings.cloudant_iam_url(),
            data={"grant_type": IAM_GRANT_TYPE, "apikey": settings.cloudant_apikey()},
        )
    except httpx.HTTPError as exc:
        raise CloudantError(
            f"IAM token request failed: {exc}",
            error="iam_unreachable",
            reason=str(exc),
        ) from exc

    if resp.status_code != 200:
        raise _error_from_response(resp)

    data = _json_body(resp)
    if not isinstance(data, dict):
        data = {}
    access_token = data.get("access_token")
    if not isinstance(access_token, str) or not access_token:
        raise CloudantError("IAM returned no access token.", error="iam_no_token")

    expiration = data.get("expiration")
    if not isinstance(expiration, (int, float)):
        lifetime = data.get("expires_in")
        if not isinstance(lifetime, (int, float)) or lifetime <= 0:
            lifetime = DEFAULT_TOKEN_LIFETIME_S
        expiration = time.time() + lifetime
    return _IamToken(access_token=access_token, expires_at=float(expiration))


async def _auth_headers() -> dict[str, str]:
    global _token
    if _token is None or not _token.is_fresh():
        _token = await _fetch_iam_token()
    return {"Authorization": f"Bearer {_token.access_token}"}


async def _request(
    method: str,
    path: str,
    *,
    json: Any = None,
    params: dict[str, str] | None = None,
) -> Any:
    headers = await _auth_headers()
    try:
        resp = await client().request(method, path, json=json, params=params, headers=headers)
    except httpx.HTTPError as exc:
        raise CloudantError(
            f"Cloudant request failed: {exc}",
            error="transport_error",
            reason=str(exc),
        ) from exc

    if not resp.is_success:
        raise _error_from_response(resp)
    return _json_body(resp)


async def list_databases() -> list[str]:
    return [str(name) for name in await _request("GET", "/_all_dbs")]


async def find(db_name: str, selector: dict[str, Any], *, limit: int | None = None) -> list[dict[str, Any]]:
    """
    Run a selector query and return the matching documents.

    At most `limit` documents come back (`CLOUDANT_FIND_LIMIT` by default);
    without an explicit limit Cloudant would stop at 25. No paging through
    bookmarks is done.
    """
    body = {"selector": selector, "limit": limit if limit is not None else settings.cloudant_find_limit()}
    data = await _request("POST", _path(db_name, "_find"), json=body)
    docs = data.get("docs") if isinstance(data, dict) else None
    return docs if isinstance(docs, list) else []


async def insert(db_name: str, document: dict[str, Any]) -> dict[str, Any]:
    """
    Write a new document. Returns `{"ok", "id", "rev"}`.
    """
    return await _request("POST", _path(db_name), json=document)


async def get_document(db_name: str, doc_id: str) -> dict[str, Any]:
    return await _request("GET", _path(db_name, doc_id))


async def destroy(db_name: str, doc_id: str, rev: str) -> dict[str, Any]:
    return await _request("DELETE", _path(db_name, doc_id), params={"rev": rev})


async def verify_collections(expected: list[str]) -> None:
    """
    Raise MissingCollectionsError unless every expected database exists.
    """
    existing = set(await list_databases())
    missing = [name for name in expected if name not in existing]
    for name in missing:
        logger.error("collection_missing name=%s", name)
    if missing:
        raise MissingCollectionsError(missing)


async def connect(expected: list[str]) -> None:
    """
    Open the client and check the expected databases.

    The client is only marked connected once verification succeeds; on any
    failure it is closed again and the error propagates.
    """
    global _connected
    logger.info("cloudant_connecting url=%s", settings.cloudant_url())
    await init_client()
    try:
        await verify_collections(expected)
    except CloudantError:
        logger.exception("cloudant_connect_failed url=%s", settings.cloudant_url())
        await close_client()
        raise
    _connected = True
    logger.info("cloudant_connected collections=%s", ",".join(expected))
