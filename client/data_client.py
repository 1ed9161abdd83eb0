from __future__ import annotations

import base64
import logging
import mimetypes
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import httpx
from pydantic import ValidationError as PydanticValidationError

from errors import ClubSiteError, DecodeError, NotFoundError, TransportError, ValidationError
from persistence.codec import to_json_data
from persistence.documents import ClubContent, EmailConfig, EventsData, GalleryMeta, LinksData, NewsData
from persistence.list_ops import Delete, Insert, ListOp, Update, apply_list_op
from persistence.resources import CONTENT, EMAIL_CONFIG, EVENTS, GALLERIES, LINKS, NEWS, Resource
from settings import EnvironmentMode

from .local_cache import LocalCache

logger = logging.getLogger(__name__)


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or resp.text)
    return resp.text


class ClubDataClient:
    """
    Caller-side access to the club site API with a local-cache fallback.

    Production: the API is the only source of truth. Failed reads return the
    resource default; failed writes raise.
    Development: failed reads serve the last cached copy (else the default);
    failed writes land in the local cache and report success.
    """

    def __init__(
        self,
        http: httpx.Client,
        *,
        mode: EnvironmentMode,
        cache: LocalCache | None = None,
    ):
        self._http = http
        self._mode = mode
        self._cache = cache if cache is not None else LocalCache()

    @property
    def is_production(self) -> bool:
        return self._mode is EnvironmentMode.PRODUCTION

    # -------------------------------------------------------------------
    # Remote calls
    # -------------------------------------------------------------------
    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path} failed: {e!r}", body=repr(e)) from e

        if resp.is_success:
            return resp
        if resp.status_code == 400:
            raise ValidationError(_error_message(resp))
        if resp.status_code == 404:
            raise NotFoundError(_error_message(resp))
        raise TransportError(
            f"{method} {path} failed: {resp.status_code}",
            status=resp.status_code,
            body=resp.text,
        )

    def _remote_read(self, resource: Resource) -> Any:
        resp = self._request("GET", f"/{resource.name}")
        try:
            return resource.adapter.validate_python(resp.json())
        except (ValueError, PydanticValidationError) as e:
            raise DecodeError(f"Unexpected {resource.name} response: {e}") from e

    def _cached(self, resource: Resource) -> Any | None:
        stored = self._cache.get(resource.name)
        if stored is None:
            return None
        try:
            return resource.adapter.validate_python(stored)
        except PydanticValidationError:
            logger.warning("CACHE %s: ignoring malformed entry", resource.name)
            return None

    # -------------------------------------------------------------------
    # Generic read / write
    # -------------------------------------------------------------------
    def read(self, resource: Resource) -> Any:
        try:
            return self._remote_read(resource)
        except ClubSiteError as e:
            logger.warning("READ %s: remote failed (%s)", resource.name, e)
        if not self.is_production:
            cached = self._cached(resource)
            if cached is not None:
                logger.info("READ %s: serving local cache", resource.name)
                return cached
        return resource.default()

    def write(self, resource: Resource, document: Any) -> bool:
        payload = to_json_data(document)
        try:
            self._request("POST", f"/{resource.name}", json=payload)
        except TransportError as e:
            if self.is_production:
                logger.error("WRITE %s: remote failed (%s)", resource.name, e)
                raise
            logger.warning("WRITE %s: remote failed (%s); saved to local cache", resource.name, e)
            self._cache.put(resource.name, payload)
            return True

        if not self.is_production:
            self._cache.put(resource.name, payload)
        return True

    # -------------------------------------------------------------------
    # Typed helpers
    # -------------------------------------------------------------------
    def get_content(self) -> ClubContent:
        return self.read(CONTENT)

    def save_content(self, content: ClubContent | Mapping[str, Any]) -> bool:
        return self.write(CONTENT, content)

    def get_events(self) -> EventsData:
        return self.read(EVENTS)

    def save_events(self, events: EventsData | Mapping[str, Any]) -> bool:
        return self.write(EVENTS, events)

    def get_links(self) -> LinksData:
        return self.read(LINKS)

    def save_links(self, links: LinksData | Mapping[str, Any]) -> bool:
        return self.write(LINKS, links)

    def get_news(self) -> NewsData:
        return self.read(NEWS)

    def save_news(self, news: NewsData | Mapping[str, Any]) -> bool:
        return self.write(NEWS, news)

    def get_email_config(self) -> EmailConfig:
        return self.read(EMAIL_CONFIG)

    def save_email_config(self, config: EmailConfig | Mapping[str, Any]) -> bool:
        return self.write(EMAIL_CONFIG, config)

    # -------------------------------------------------------------------
    # Galleries
    # -------------------------------------------------------------------
    def get_galleries(self) -> list[GalleryMeta]:
        return self.read(GALLERIES)

    def _mutate_cached_galleries(self, op: ListOp) -> dict[str, Any] | None:
        current = self._cached(GALLERIES) or []
        mutation = apply_list_op(
            to_json_data(current), op, id_prefix=GALLERIES.id_prefix or "gallery", now=datetime.now(timezone.utc)
        )
        if mutation.changed:
            self._cache.put(GALLERIES.name, mutation.items)
        return mutation.affected

    def _gallery_fallback(self, op: ListOp, error: TransportError) -> dict[str, Any] | None:
        if self.is_production:
            logger.error("GALLERIES: remote failed (%s)", error)
            raise error
        logger.warning("GALLERIES: remote failed (%s); applying to local cache", error)
        return self._mutate_cached_galleries(op)

    def create_gallery(self, gallery: Mapping[str, Any]) -> str:
        try:
            resp = self._request("POST", "/galleries", json=to_json_data(gallery))
        except TransportError as e:
            created = self._gallery_fallback(Insert(gallery), e)
            return str(created["id"]) if created else ""

        created = resp.json()["gallery"]
        if not self.is_production:
            cached = to_json_data(self._cached(GALLERIES) or [])
            self._cache.put(GALLERIES.name, [*cached, created])
        return str(created["id"])

    def update_gallery(self, gallery_id: str, updates: Mapping[str, Any]) -> bool:
        try:
            self._request("PUT", "/galleries", params={"galleryId": gallery_id}, json=to_json_data(updates))
        except TransportError as e:
            self._gallery_fallback(Update(gallery_id, updates), e)
            return True

        if not self.is_production:
            cached = to_json_data(self._cached(GALLERIES) or [])
            if any(g.get("id") == gallery_id for g in cached):
                self._mutate_cached_galleries(Update(gallery_id, updates))
        return True

    def delete_gallery(self, gallery_id: str) -> bool:
        try:
            self._request("DELETE", "/galleries", params={"galleryId": gallery_id})
        except TransportError as e:
            self._gallery_fallback(Delete(gallery_id), e)
            return True

        if not self.is_production:
            self._mutate_cached_galleries(Delete(gallery_id))
        return True

    # -------------------------------------------------------------------
    # Image upload
    # -------------------------------------------------------------------
    def upload_image(
        self,
        image: bytes | Path,
        *,
        filename: str | None = None,
        content_type: str | None = None,
    ) -> dict[str, Any]:
        if isinstance(image, Path):
            filename = filename or image.name
            content = image.read_bytes()
        else:
            content = image
        filename = filename or "image"
        content_type = content_type or mimetypes.guess_type(filename)[0] or "image/jpeg"
        data_url = f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"

        try:
            resp = self._request(
                "POST",
                "/upload-image",
                json={"image": data_url, "filename": filename, "contentType": content_type},
            )
        except TransportError as e:
            if self.is_production:
                logger.error("UPLOAD %s: remote failed (%s)", filename, e)
                raise
            logger.warning("UPLOAD %s: remote failed (%s); using inline data URL", filename, e)
            return {"url": data_url, "filename": filename, "size": len(content)}
        return resp.json()

    # -------------------------------------------------------------------
    # Connectivity
    # -------------------------------------------------------------------
    def test_connection(self) -> dict[str, Any]:
        try:
            resp = self._request("GET", "/test")
        except (TransportError, ValidationError, NotFoundError) as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "data": resp.json()}

    def ping(self) -> bool:
        try:
            resp = self._http.head("/test")
        except httpx.HTTPError as e:
            logger.info("PING failed: %r", e)
            return False
        return resp.is_success
