"""
Content API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Query
from fastapi.responses import JSONResponse

from core.errors import MissingFieldError

from . import repository, schemas, service

router = APIRouter(prefix="/api")


def _require(value: str | None, label: str) -> str:
    if value is None or not value.strip():
        raise MissingFieldError(label)
    return value


def _respond(result: repository.QueryResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.data)


@router.post("/upload/shop/")
async def upload_shop_item(request: schemas.ShopItemUpload | None = Body(default=None)) -> JSONResponse:
    """
    Upload a single shop item. `item_name` and `link` are required.
    """
    if request is None:
        request = schemas.ShopItemUpload()
    item_name = _require(request.item_name, "Item name")
    link = _require(request.link, "Link")
    result = await repository.add_shop_item(
        item_name,
        link,
        request.description or "",
        request.cost or "",
    )
    return _respond(result)


@router.post("/upload/news/research")
async def upload_research_news(
    request: schemas.ResearchNewsUpload | None = Body(default=None),
) -> JSONResponse:
    """
    Upload a single research news item. `title` and `link` are required.
    """
    if request is None:
        request = schemas.ResearchNewsUpload()
    title = _require(request.title, "Title")
    link = _require(request.link, "Link")
    result = await repository.add_research_news(title, link, request.description or "")
    return _respond(result)


@router.post("/upload/news/twitter")
async def upload_twitter_news(
    request: schemas.TwitterNewsUpload | None = Body(default=None),
) -> JSONResponse:
    """
    Upload a single tweet. `text`, `link` and `author` are required.
    """
    if request is None:
        request = schemas.TwitterNewsUpload()
    text = _require(request.text, "Text")
    link = _require(request.link, "Link")
    author = _require(request.author, "Author")
    result = await repository.add_twitter_news(text, link, author)
    return _respond(result)


@router.get("/getPage/{page}")
async def get_page(page: str, db_name: str | None = None) -> JSONResponse:
    """
    Documents from one day-sized page, newest page first (page 1 = last 24h).
    """
    page_number = service.parse_page(page)
    collection = service.resolve_collection(db_name)
    return _respond(await service.get_page(collection, page_number))


@router.get("/getByTime")
async def get_by_time(
    db_name: str | None = None,
    start: int | None = Query(default=None, ge=0),
    end: int | None = Query(default=None, ge=0),
) -> JSONResponse:
    collection = service.resolve_collection(db_name)
    return _respond(await service.get_by_time(collection, start=start, end=end))


@router.get("/getByLink")
async def get_by_link(db_name: str | None = None, link: str | None = None) -> JSONResponse:
    collection = service.resolve_collection(db_name)
    return _respond(await repository.find_by_link(collection, link))


@router.get("/getById/{doc_id}")
async def get_by_id(doc_id: str, db_name: str | None = None) -> JSONResponse:
    collection = service.resolve_collection(db_name)
    return _respond(await repository.find_by_id(collection, doc_id))


@router.delete("/deleteById/{doc_id}")
async def delete_by_id(doc_id: str, db_name: str | None = None, rev: str | None = None) -> dict:
    collection = service.resolve_collection(db_name)
    return await service.delete_document(collection, doc_id, rev=rev)
