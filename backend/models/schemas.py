from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class OrgType(str, Enum):
    UNIVERSITY = "UNIVERSITY"
    STUDENT_CLUB = "STUDENT_CLUB"
    STUDENT_ASSOCIATION = "STUDENT_ASSOCIATION"
    COMPANY = "COMPANY"
    NON_PROFIT = "NON_PROFIT"
    IN_HOUSE = "IN_HOUSE"


class OrgRole(str, Enum):
    FOUNDER = "FOUNDER"
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    MEMBER = "MEMBER"


class CompetitionFormat(str, Enum):
    IN_PERSON = "IN_PERSON"
    VIRTUAL = "VIRTUAL"
    HYBRID = "HYBRID"


class ResourceType(str, Enum):
    VIDEO = "VIDEO"
    ARTICLE = "ARTICLE"
    DECK = "DECK"
    EXTERNAL_LINK = "EXTERNAL_LINK"
    OTHER = "OTHER"


class LogStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class CamelModel(BaseModel):
    """Columns are camelCase in the store; attributes stay snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, use_enum_values=True)

    @classmethod
    def columns(cls) -> List[str]:
        return [f.alias or name for name, f in cls.model_fields.items()]

    @classmethod
    def from_row(cls, row: Mapping[str, Any]):
        return cls.model_validate(dict(row))

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class University(CamelModel):
    id: Optional[str] = None
    name: str
    short_name: Optional[str] = None
    cities: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    description: Optional[str] = None
    email_domain: Optional[str] = None
    logo_url: Optional[str] = None
    banner_image_url: Optional[str] = None
    website_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Organizer(CamelModel):
    org_id: Optional[str] = None
    org_name: str
    org_type: OrgType
    org_short_description: Optional[str] = None
    org_long_description: Optional[str] = None
    license_id: Optional[str] = None
    is_university: Optional[bool] = None
    university_id: Optional[str] = None
    org_website_url: Optional[str] = None
    org_logo_url: Optional[str] = None
    org_banner_url: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Competition(CamelModel):
    id: Optional[str] = None
    title: str
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    format: Optional[CompetitionFormat] = None
    category: Optional[str] = None
    tags: Optional[Union[List[str], str]] = None
    prize_amount: Optional[float] = None
    short_prize_info: Optional[str] = None
    long_prize_info: Optional[str] = None
    registration_fee: Optional[float] = None
    registration_info: Optional[str] = None
    eligibility_info: Optional[str] = None
    is_internal: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_hosted_by_case_comp: Optional[bool] = None
    is_confirmed: Optional[bool] = None
    last_day_to_register: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    website_url: Optional[str] = None
    competition_image_url: Optional[str] = None
    team_size_min: Optional[int] = None
    team_size_max: Optional[int] = None
    university_id: Optional[str] = None
    organizer_id: Optional[str] = None
    timeline_id: Optional[str] = None
    history_id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class Timeline(CamelModel):
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class TimelineEvent(CamelModel):
    id: Optional[str] = None
    timeline_id: str
    name: str
    date: str
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class History(CamelModel):
    id: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class HistoryEntry(CamelModel):
    id: Optional[str] = None
    history_id: str
    date: str
    title: str
    description: Optional[str] = None
    source_url: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class GalleryImage(CamelModel):
    id: Optional[str] = None
    competition_id: str
    image_url: str
    caption: Optional[str] = None
    date_taken: Optional[str] = None
    created_at: Optional[str] = None


class Resource(CamelModel):
    resource_id: Optional[str] = None
    title: str
    short_description: Optional[str] = None
    long_description: Optional[str] = None
    image_url: Optional[str] = None
    banner_url: Optional[str] = None
    website_url: Optional[str] = None
    type: ResourceType
    is_paid: Optional[bool] = None
    price: Optional[float] = None
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class LogEntry(CamelModel):
    row_index: int
    status: LogStatus
    timestamp: str
    message: Optional[str] = None
    payload: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class ValidRow(CamelModel):
    row_index: int
    row: Dict[str, Any] = Field(default_factory=dict)


class ErrorRow(CamelModel):
    row_index: int
    row: Dict[str, Any] = Field(default_factory=dict)
    errors: List[str] = Field(default_factory=list)
    error: str = ""


__all__ = [
    "OrgType",
    "OrgRole",
    "CompetitionFormat",
    "ResourceType",
    "LogStatus",
    "CamelModel",
    "University",
    "Organizer",
    "Competition",
    "Timeline",
    "TimelineEvent",
    "History",
    "HistoryEntry",
    "GalleryImage",
    "Resource",
    "LogEntry",
    "ValidRow",
    "ErrorRow",
]
