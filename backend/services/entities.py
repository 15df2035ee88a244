"""Per-entity table configuration shared by the record and bulk services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Type

from models.schemas import (
    CamelModel,
    Competition,
    CompetitionFormat,
    GalleryImage,
    HistoryEntry,
    OrgType,
    Organizer,
    Resource,
    ResourceType,
    TimelineEvent,
    University,
)
from utils.validation import (
    Predicate,
    is_valid_boolean,
    is_valid_date,
    is_valid_number,
    is_valid_url,
    one_of,
)


@dataclass(frozen=True)
class EntityConfig:
    name: str
    label: str
    table: str
    model: Type[CamelModel]
    key: str = "id"
    display_field: str = "name"
    required: Tuple[str, ...] = ()
    validations: Mapping[str, Predicate] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    order: Optional[str] = None
    order_desc: bool = False
    parent_field: Optional[str] = None
    bucket: Optional[str] = None
    image_fields: Tuple[str, ...] = ()
    has_updated_at: bool = True
    numeric_fields: Tuple[str, ...] = ()
    boolean_fields: Tuple[str, ...] = ()
    prepare: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None

    @property
    def columns(self) -> List[str]:
        return self.model.columns()

    def display_name(self, record: Mapping[str, Any]) -> str:
        return str(record.get(self.display_field) or record.get(self.key) or "")


def _organizer_prepare(payload: Dict[str, Any]) -> Dict[str, Any]:
    # Only university organizers carry a university reference
    if "isUniversity" in payload and not payload.get("isUniversity"):
        payload["universityId"] = None
    return payload


UNIVERSITY = EntityConfig(
    name="universities",
    label="University",
    table="university",
    model=University,
    required=("name",),
    validations={
        "logoUrl": is_valid_url,
        "bannerImageUrl": is_valid_url,
        "websiteUrl": is_valid_url,
    },
    order="name",
    bucket="universities",
    image_fields=("logoUrl", "bannerImageUrl"),
)

ORGANIZER = EntityConfig(
    name="organizers",
    label="Organizer",
    table="organizer",
    model=Organizer,
    key="orgId",
    display_field="orgName",
    required=("orgName", "orgType"),
    validations={
        "orgType": one_of(OrgType),
        "isUniversity": is_valid_boolean,
        "orgWebsiteUrl": is_valid_url,
        "orgLogoUrl": is_valid_url,
        "orgBannerUrl": is_valid_url,
    },
    defaults={"isUniversity": False},
    order="orgName",
    bucket="organizers",
    image_fields=("orgLogoUrl", "orgBannerUrl"),
    boolean_fields=("isUniversity",),
    prepare=_organizer_prepare,
)

COMPETITION_BOOLEAN_FIELDS = ("isInternal", "isFeatured", "isHostedByCaseComp", "isConfirmed")
COMPETITION_NUMERIC_FIELDS = ("prizeAmount", "registrationFee", "teamSizeMin", "teamSizeMax")

COMPETITION = EntityConfig(
    name="competitions",
    label="Competition",
    table="competition",
    model=Competition,
    display_field="title",
    required=("title",),
    validations={
        "format": one_of(CompetitionFormat),
        "websiteUrl": is_valid_url,
        "competitionImageUrl": is_valid_url,
        "prizeAmount": is_valid_number,
        "registrationFee": is_valid_number,
        "teamSizeMin": is_valid_number,
        "teamSizeMax": is_valid_number,
        "lastDayToRegister": is_valid_date,
        **{f: is_valid_boolean for f in COMPETITION_BOOLEAN_FIELDS},
    },
    defaults={
        "isInternal": False,
        "isFeatured": False,
        "isHostedByCaseComp": False,
        "isConfirmed": True,
    },
    order="title",
    numeric_fields=COMPETITION_NUMERIC_FIELDS,
    boolean_fields=COMPETITION_BOOLEAN_FIELDS,
)

TIMELINE_EVENT = EntityConfig(
    name="timeline-events",
    label="Event",
    table="timelineevent",
    model=TimelineEvent,
    required=("timelineId", "name", "date"),
    validations={"date": is_valid_date},
    order="date",
    parent_field="timelineId",
)

HISTORY_ENTRY = EntityConfig(
    name="history-entries",
    label="History entry",
    table="historyentry",
    model=HistoryEntry,
    display_field="title",
    required=("historyId", "title", "date"),
    validations={"date": is_valid_date, "sourceUrl": is_valid_url},
    order="date",
    parent_field="historyId",
)

GALLERY_IMAGE = EntityConfig(
    name="gallery-images",
    label="Gallery image",
    table="competitionGalleryImage",
    model=GalleryImage,
    display_field="caption",
    required=("competitionId", "imageUrl"),
    validations={"imageUrl": is_valid_url, "dateTaken": is_valid_date},
    order="dateTaken",
    order_desc=True,
    parent_field="competitionId",
    bucket="gallery",
    image_fields=("imageUrl",),
    has_updated_at=False,
)

RESOURCE = EntityConfig(
    name="resources",
    label="Resource",
    table="resources",
    model=Resource,
    key="resourceId",
    display_field="title",
    required=("title", "type"),
    validations={
        "type": one_of(ResourceType),
        "websiteUrl": is_valid_url,
        "imageUrl": is_valid_url,
        "bannerUrl": is_valid_url,
        "isPaid": is_valid_boolean,
        "price": is_valid_number,
    },
    defaults={"isPaid": False, "price": 0, "createdBy": "admin"},
    order="title",
    bucket="resources",
    image_fields=("imageUrl", "bannerUrl"),
    numeric_fields=("price",),
    boolean_fields=("isPaid",),
)


ENTITIES: Dict[str, EntityConfig] = {
    e.name: e
    for e in (UNIVERSITY, ORGANIZER, COMPETITION, TIMELINE_EVENT, HISTORY_ENTRY, GALLERY_IMAGE, RESOURCE)
}

# Managed through the per-entity record routes (competitions go through bulk import)
MANAGED_ENTITIES = ("universities", "organizers", "resources", "timeline-events", "history-entries", "gallery-images")


def get_entity(name: str) -> EntityConfig:
    try:
        return ENTITIES[name]
    except KeyError:
        raise KeyError(f"Unknown entity: {name}") from None
