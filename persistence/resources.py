from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel, TypeAdapter

from .documents import (
    ClubContent,
    EmailConfig,
    EventsData,
    GalleryDraft,
    GalleryMeta,
    GalleryPatch,
    LinksData,
    NewsData,
    default_club_content,
    default_email_config,
    default_events,
    default_galleries,
    default_links,
    default_news,
)


@dataclass(frozen=True)
class Resource:
    """
    One logical document stored under `<key_prefix>:<name>`.

    Collections (`id_prefix` set) support id-addressed list mutations.
    """

    name: str
    adapter: TypeAdapter[Any]
    default: Callable[[], Any]
    stamp_last_updated: bool = True
    from_store: Callable[[Any], Any] | None = None
    id_prefix: str | None = None
    draft_model: type[BaseModel] | None = None
    patch_model: type[BaseModel] | None = None

    def key(self, key_prefix: str) -> str:
        return f"{key_prefix}:{self.name}"

    @property
    def is_collection(self) -> bool:
        return self.id_prefix is not None


CONTENT = Resource(
    name="content",
    adapter=TypeAdapter(ClubContent),
    default=default_club_content,
    from_store=ClubContent.from_store_doc,
)
EVENTS = Resource(name="events", adapter=TypeAdapter(EventsData), default=default_events)
GALLERIES = Resource(
    name="galleries",
    adapter=TypeAdapter(list[GalleryMeta]),
    default=default_galleries,
    stamp_last_updated=False,
    id_prefix="gallery",
    draft_model=GalleryDraft,
    patch_model=GalleryPatch,
)
LINKS = Resource(name="links", adapter=TypeAdapter(LinksData), default=default_links)
NEWS = Resource(name="news", adapter=TypeAdapter(NewsData), default=default_news)
EMAIL_CONFIG = Resource(name="email-config", adapter=TypeAdapter(EmailConfig), default=default_email_config)

RESOURCES: dict[str, Resource] = {
    r.name: r for r in (CONTENT, EVENTS, GALLERIES, LINKS, NEWS, EMAIL_CONFIG)
}
