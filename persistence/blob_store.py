from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import quote

import httpx

from errors import NotConfiguredError, TransportError, ValidationError
from json_store import atomic_write_bytes

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "image/jpeg"


@dataclass(frozen=True)
class StoredBlob:
    url: str
    pathname: str
    size: int


@dataclass(frozen=True)
class DecodedImage:
    content: bytes
    content_type: str | None


class BlobStore(Protocol):
    def put(self, pathname: str, content: bytes, content_type: str) -> StoredBlob:
        ...


def decode_image_payload(image: Any) -> DecodedImage:
    """
    Accepts a `data:<type>;base64,<data>` URL or raw bytes.
    """
    if isinstance(image, (bytes, bytearray)):
        return DecodedImage(content=bytes(image), content_type=None)
    if not isinstance(image, str) or not image.startswith("data:") or "," not in image:
        raise ValidationError("Invalid image format", fields=["image"])

    header, data = image.split(",", 1)
    content_type = header[len("data:"):].split(";", 1)[0] or None
    try:
        content = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError("Invalid image format", fields=["image"]) from e
    if not content:
        raise ValidationError("Invalid image format", fields=["image"])
    return DecodedImage(content=content, content_type=content_type)


def unique_filename(filename: str, *, now_ms: int | None = None) -> str:
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    # Keep only the final path component of whatever the client sent.
    name = filename.replace("\\", "/").rsplit("/", 1)[-1].strip() or "image"
    return f"{stamp}-{name}"


class VercelBlobStore(BlobStore):
    """
    Public uploads through the Vercel Blob REST API (`PUT {api}/{pathname}`).
    """

    API_VERSION = "7"

    def __init__(self, token: str, *, api_url: str = "https://blob.vercel-storage.com", client: httpx.Client | None = None):
        if not token:
            raise NotConfiguredError("Blob storage", "BLOB_READ_WRITE_TOKEN not set")
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._client = client or httpx.Client()

    def put(self, pathname: str, content: bytes, content_type: str) -> StoredBlob:
        headers = {
            "Authorization": f"Bearer {self._token}",
            "x-api-version": self.API_VERSION,
            "x-content-type": content_type,
            "x-add-random-suffix": "0",
        }
        url = f"{self._api_url}/{quote(pathname)}"
        try:
            resp = self._client.put(url, headers=headers, content=content)
        except httpx.HTTPError as e:
            raise TransportError(f"Blob PUT {pathname} failed: {e!r}", body=repr(e)) from e
        if not resp.is_success:
            raise TransportError(
                f"Blob PUT {pathname} failed: {resp.status_code}",
                status=resp.status_code,
                body=resp.text,
            )
        try:
            payload = resp.json()
        except ValueError as e:
            raise TransportError(
                f"Blob PUT {pathname} returned a non-JSON body", status=resp.status_code, body=resp.text
            ) from e
        blob_url = payload.get("url") if isinstance(payload, dict) else None
        if not isinstance(blob_url, str) or not blob_url:
            raise TransportError(f"Blob PUT {pathname} response has no url", status=resp.status_code, body=resp.text)
        return StoredBlob(url=blob_url, pathname=payload.get("pathname", pathname), size=len(content))


class DiskBlobStore(BlobStore):
    def __init__(self, directory: Path):
        self._directory = directory

    def put(self, pathname: str, content: bytes, content_type: str) -> StoredBlob:
        path = self._directory / pathname
        try:
            atomic_write_bytes(path, content)
        except OSError as e:
            raise TransportError(f"Disk blob write {pathname} failed: {e!r}", body=repr(e)) from e
        return StoredBlob(url=path.resolve().as_uri(), pathname=pathname, size=len(content))
