from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Mapping

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator, model_validator

DEFAULT_CLUB_DESCRIPTION = (
    "In the Hutt Valley we are blessed with some of the best walking areas in New Zealand "
    "with the beautiful river trail, etc."
)
DEFAULT_INQUIRY_EMAIL = "admin@walk4health.co.nz"
DEFAULT_SUBJECT_PREFIX = "[Walk4Health]"


def iso_timestamp(dt: datetime | None = None) -> str:
    """UTC timestamp in the `2025-01-05T09:00:00.000Z` shape browsers produce."""
    dt = dt or datetime.now(timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _require_text(value: str) -> str:
    if not value.strip():
        raise ValueError("must not be empty")
    return value


RequiredText = Annotated[str, AfterValidator(_require_text)]


# -------------------------------------------------------------------
# Club content
# -------------------------------------------------------------------
LEGACY_SCHEDULE_FIELD = "walkingSchedule"


class CommitteeMember(BaseModel):
    position: str
    name: str


class Committee(BaseModel):
    title: str
    members: list[CommitteeMember] = Field(default_factory=list)


class WalkingStats(BaseModel):
    yearsActive: str
    members: str
    walksPerWeek: str


def default_committee() -> Committee:
    return Committee(
        title="Our Committee 2025/26",
        members=[
            CommitteeMember(position="Chairperson", name="Lynn Young"),
            CommitteeMember(position="Secretary", name="Neil Edwards"),
            CommitteeMember(position="Treasurer", name="Nina Wortman"),
            CommitteeMember(position="Membership", name="Andrew Young"),
            CommitteeMember(position="Website & Sunday", name="Dave Morrell"),
            CommitteeMember(position="Tuesday walking", name="Lyne Morrell, Ian Andrews, Patsie Barltrop"),
            CommitteeMember(position="Events", name="Kaye Plunket"),
            CommitteeMember(position="Financial Reviewer", name="Bob Metcalf"),
        ],
    )


def default_walking_stats() -> WalkingStats:
    return WalkingStats(yearsActive="24", members="50+", walksPerWeek="2")


class ClubContent(BaseModel):
    """
    Landing-page content: description, committee and walking stats.

    Documents stored before the committee layout carried a flat
    `walkingSchedule` (sundaySummer / sundayWinter / tuesday). Those are
    migrated by `from_store_doc` on read; new writes must not send it.
    """

    clubDescription: RequiredText
    committee: Committee
    walkingStats: WalkingStats
    clubImageCaption: str | None = None
    lastUpdated: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _reject_legacy_schedule(cls, data: Any) -> Any:
        if isinstance(data, Mapping) and LEGACY_SCHEDULE_FIELD in data:
            raise ValueError(f"{LEGACY_SCHEDULE_FIELD} is no longer accepted; send committee and walkingStats")
        return data

    @classmethod
    def from_store_doc(cls, doc: Any) -> "ClubContent":
        if isinstance(doc, Mapping) and LEGACY_SCHEDULE_FIELD in doc:
            # The schedule has no place in the committee layout and is dropped.
            migrated = {k: v for k, v in doc.items() if k != LEGACY_SCHEDULE_FIELD}
            migrated.setdefault("committee", default_committee().model_dump())
            migrated.setdefault("walkingStats", default_walking_stats().model_dump())
            doc = migrated
        return cls.model_validate(doc)


def default_club_content() -> ClubContent:
    return ClubContent(
        clubDescription=DEFAULT_CLUB_DESCRIPTION,
        committee=default_committee(),
        walkingStats=default_walking_stats(),
        clubImageCaption="Walking together since 2001",
        lastUpdated=iso_timestamp(),
    )


# -------------------------------------------------------------------
# Events
# -------------------------------------------------------------------
class RecurringEvent(BaseModel):
    id: int
    title: str
    day: str
    time: str
    message: str | None = None


class SpecialEvent(BaseModel):
    id: int
    title: str
    date: str
    time: str
    message: str | None = None


def _ids_unique(items: list[Any], label: str) -> None:
    seen: set[Any] = set()
    for item in items:
        if item.id in seen:
            raise ValueError(f"duplicate id {item.id} in {label}")
        seen.add(item.id)


class EventsData(BaseModel):
    recurringEvents: list[RecurringEvent]
    specialEvents: list[SpecialEvent]
    lastUpdated: str | None = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "EventsData":
        _ids_unique(self.recurringEvents, "recurringEvents")
        _ids_unique(self.specialEvents, "specialEvents")
        return self


def default_events() -> EventsData:
    return EventsData(recurringEvents=[], specialEvents=[])


# -------------------------------------------------------------------
# Galleries
# -------------------------------------------------------------------
class GalleryDraft(BaseModel):
    """Client-supplied gallery fields; id and createdAt are assigned server-side."""

    title: RequiredText
    description: RequiredText
    date: RequiredText
    location: RequiredText
    images: list[str] = Field(default_factory=list)

    @field_validator("images", mode="before")
    @classmethod
    def _images_default(cls, value: Any) -> Any:
        return [] if value is None else value


class GalleryMeta(BaseModel):
    """
    Stored gallery record. Lenient on read so one odd legacy item never
    invalidates the whole collection.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    title: str = ""
    description: str = ""
    date: str = ""
    location: str = ""
    images: list[str] = Field(default_factory=list)
    createdAt: str | None = None


class GalleryPatch(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: RequiredText | None = None
    description: RequiredText | None = None
    date: RequiredText | None = None
    location: RequiredText | None = None
    images: list[str] | None = None


def default_galleries() -> list[GalleryMeta]:
    return []


# -------------------------------------------------------------------
# Email config
# -------------------------------------------------------------------
class EmailConfig(BaseModel):
    inquiryEmail: RequiredText
    subjectPrefix: str = DEFAULT_SUBJECT_PREFIX
    lastUpdated: str | None = None

    @field_validator("subjectPrefix", mode="before")
    @classmethod
    def _prefix_default(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return DEFAULT_SUBJECT_PREFIX
        return value


def default_email_config() -> EmailConfig:
    return EmailConfig(
        inquiryEmail=DEFAULT_INQUIRY_EMAIL,
        subjectPrefix=DEFAULT_SUBJECT_PREFIX,
        lastUpdated=iso_timestamp(),
    )


# -------------------------------------------------------------------
# Links / news
# -------------------------------------------------------------------
class Link(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    title: str | None = None
    url: str | None = None
    description: str | None = None


class NewsItem(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int | str | None = None
    title: str | None = None
    date: str | None = None
    content: str | None = None


class LinksData(BaseModel):
    links: list[Link]
    lastUpdated: str | None = None


class NewsData(BaseModel):
    newsItems: list[NewsItem]
    lastUpdated: str | None = None


def default_links() -> LinksData:
    return LinksData(links=[])


def default_news() -> NewsData:
    return NewsData(newsItems=[])
