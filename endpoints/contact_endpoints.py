from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, Body, Depends

from delivery.contact import ContactNotifier
from endpoints.common import add_method_fallback
from endpoints.dependencies import get_blob_store, get_contact_notifier
from errors import ValidationError
from persistence.blob_store import DEFAULT_CONTENT_TYPE, decode_image_payload, unique_filename
from persistence.repositories import AsyncBlobStore

router = APIRouter(tags=["contact"])
logger = logging.getLogger(__name__)


@router.post("/contact")
async def submit_contact(
    payload: dict[str, Any] = Body(...),
    notifier: ContactNotifier = Depends(get_contact_notifier),
) -> dict[str, Any]:
    message = await asyncio.to_thread(
        notifier.submit,
        payload.get("name"),
        payload.get("email"),
        payload.get("subject"),
        payload.get("message"),
    )
    return {"success": True, "message": message}


@router.post("/upload-image")
async def upload_image(
    payload: dict[str, Any] = Body(...),
    blobs: AsyncBlobStore = Depends(get_blob_store),
) -> dict[str, Any]:
    image = payload.get("image")
    filename = payload.get("filename")
    if not image or not isinstance(filename, str) or not filename.strip():
        raise ValidationError("Missing image or filename", fields=["image", "filename"])

    decoded = decode_image_payload(image)
    content_type = payload.get("contentType") or decoded.content_type or DEFAULT_CONTENT_TYPE
    pathname = unique_filename(filename)

    blob = await blobs.put(pathname, decoded.content, content_type)
    logger.info("UPLOAD: stored %s (%d bytes) at %s", blob.pathname, blob.size, blob.url)
    return {"success": True, "url": blob.url, "filename": blob.pathname, "size": blob.size}


add_method_fallback(router, "/contact", ["POST"])
add_method_fallback(router, "/upload-image", ["POST"])
