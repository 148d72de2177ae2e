"""
Pydantic schemas for content documents and upload requests.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ContentRecord(BaseModel):
    """
    Base for stored documents. `id` maps to Cloudant's `_id`.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., alias="_id")
    link: str
    timestamp: int

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class ShopItem(ContentRecord):
    item_name: str
    description: str = ""
    cost: str = ""


class ResearchNewsItem(ContentRecord):
    title: str
    description: str = ""


class TwitterNewsItem(ContentRecord):
    text: str
    author: str


class UploadRequest(BaseModel):
    # Presence of required fields is checked by the router so that a missing
    # field answers 422 with an `errors` message instead of pydantic's detail.
    model_config = ConfigDict(coerce_numbers_to_str=True)


class ShopItemUpload(UploadRequest):
    item_name: str | None = None
    link: str | None = None
    description: str | None = None
    cost: str | None = None


class ResearchNewsUpload(UploadRequest):
    title: str | None = None
    link: str | None = None
    description: str | None = None


class TwitterNewsUpload(UploadRequest):
    text: str | None = None
    link: str | None = None
    author: str | None = None
    # Accepted for compatibility with existing clients; not stored.
    description: str | None = None
