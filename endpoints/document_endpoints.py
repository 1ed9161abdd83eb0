from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query

from endpoints.common import add_method_fallback, saved
from endpoints.dependencies import get_document_store
from errors import ValidationError
from persistence.codec import to_json_data
from persistence.repositories import AsyncDocumentStore
from persistence.resources import CONTENT, EMAIL_CONFIG, EVENTS, GALLERIES, LINKS, NEWS

router = APIRouter(tags=["documents"])
logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Content
# -------------------------------------------------------------------
@router.get("/content")
async def get_content(store: AsyncDocumentStore = Depends(get_document_store)) -> dict[str, Any]:
    return to_json_data(await store.read(CONTENT))


@router.post("/content")
async def save_content(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    await store.write(CONTENT, payload)
    return saved("Content saved successfully")


# -------------------------------------------------------------------
# Events
# -------------------------------------------------------------------
@router.get("/events")
async def get_events(store: AsyncDocumentStore = Depends(get_document_store)) -> dict[str, Any]:
    return to_json_data(await store.read(EVENTS))


@router.post("/events")
async def save_events(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    if not isinstance(payload.get("recurringEvents"), list) or not isinstance(payload.get("specialEvents"), list):
        raise ValidationError("Invalid data format", fields=["recurringEvents", "specialEvents"])
    await store.write(EVENTS, payload)
    return saved("Events saved successfully")


# -------------------------------------------------------------------
# Galleries
# -------------------------------------------------------------------
def _require_gallery_id(gallery_id: str | None) -> str:
    if not gallery_id or not gallery_id.strip():
        raise ValidationError("Missing gallery ID", fields=["galleryId"])
    return gallery_id


@router.get("/galleries")
async def list_galleries(store: AsyncDocumentStore = Depends(get_document_store)) -> list[dict[str, Any]]:
    return to_json_data(await store.read(GALLERIES))


@router.post("/galleries")
async def create_gallery(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    gallery = await store.insert(GALLERIES, payload)
    logger.info("GALLERIES: created %s", gallery["id"])
    return saved("Gallery created successfully", gallery=gallery)


@router.put("/galleries")
async def update_gallery(
    payload: dict[str, Any] = Body(...),
    gallery_id: str | None = Query(None, alias="galleryId"),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    await store.update(GALLERIES, _require_gallery_id(gallery_id), payload)
    return saved("Gallery updated successfully")


@router.delete("/galleries")
async def delete_gallery(
    gallery_id: str | None = Query(None, alias="galleryId"),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    await store.delete(GALLERIES, _require_gallery_id(gallery_id))
    return saved("Gallery deleted successfully")


# -------------------------------------------------------------------
# Links / news
# -------------------------------------------------------------------
@router.get("/links")
async def get_links(store: AsyncDocumentStore = Depends(get_document_store)) -> dict[str, Any]:
    links = await store.read(LINKS)
    return {"links": to_json_data(links.links)}


@router.post("/links")
async def save_links(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    if not isinstance(payload.get("links"), list):
        raise ValidationError("Missing required field: links array", fields=["links"])
    await store.write(LINKS, payload)
    return saved("Links saved successfully")


@router.get("/news")
async def get_news(store: AsyncDocumentStore = Depends(get_document_store)) -> dict[str, Any]:
    news = await store.read(NEWS)
    return {"newsItems": to_json_data(news.newsItems)}


@router.post("/news")
async def save_news(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    if not isinstance(payload.get("newsItems"), list):
        raise ValidationError("Missing required field: newsItems array", fields=["newsItems"])
    await store.write(NEWS, payload)
    return saved("News saved successfully")


# -------------------------------------------------------------------
# Email config
# -------------------------------------------------------------------
@router.get("/email-config")
async def get_email_config(store: AsyncDocumentStore = Depends(get_document_store)) -> dict[str, Any]:
    return to_json_data(await store.read(EMAIL_CONFIG))


@router.post("/email-config")
async def save_email_config(
    payload: dict[str, Any] = Body(...),
    store: AsyncDocumentStore = Depends(get_document_store),
) -> dict[str, Any]:
    inquiry_email = payload.get("inquiryEmail")
    if not isinstance(inquiry_email, str) or not inquiry_email.strip():
        raise ValidationError("Missing required field: inquiryEmail", fields=["inquiryEmail"])
    await store.write(EMAIL_CONFIG, payload)
    return saved("Email config saved successfully")


add_method_fallback(router, "/content", ["GET", "POST"])
add_method_fallback(router, "/events", ["GET", "POST"])
add_method_fallback(router, "/galleries", ["GET", "POST", "PUT", "DELETE"])
add_method_fallback(router, "/links", ["GET", "POST"])
add_method_fallback(router, "/news", ["GET", "POST"])
add_method_fallback(router, "/email-config", ["GET", "POST"])
