"""
Central data model definitions used across the project.

This module defines the canonical structure of every content kind so that:
- all modules share the same field names
- YAML files are validated against one schema before anything else sees them
- every violated field is reported, not just the first one

Content is read-only: models are built once from files and never mutated.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated, Any, List, Literal, Optional
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    field_validator,
    model_validator,
)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

Language = Literal["zh", "en"]
Difficulty = Literal["beginner", "intermediate", "advanced"]
CourseType = Literal["course", "workshop", "reading_group"]
ResourceType = Literal["docs", "tutorial", "paper", "book", "dataset", "tool"]
ReferenceType = Literal["paper", "book", "tutorial", "docs"]
AnnouncementType = Literal["info", "warning", "success"]
LearningStepType = Literal["course", "resource", "practice"]

MIN_YEAR = 2000
YEAR_HORIZON = 5

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _check_url(value: str) -> str:
    """
    Accept only absolute URLs (scheme + host, no whitespace).
    """
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc or any(ch.isspace() for ch in value):
        raise ValueError("must be a valid absolute URL")
    return value


def _date_to_text(value: Any) -> Any:
    # YAML turns unquoted 2024-01-01 into a date object
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return value


def _check_date(value: str) -> str:
    if not _DATE_RE.match(value):
        raise ValueError("Date must be in YYYY-MM-DD format")
    return value


NonEmptyStr = Annotated[str, Field(min_length=1)]
Url = Annotated[str, AfterValidator(_check_url)]
IsoDate = Annotated[str, BeforeValidator(_date_to_text), AfterValidator(_check_date)]


class ContentModel(BaseModel):
    """
    Base for all content models: unknown keys are dropped, values are frozen.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


class Reference(ContentModel):
    title: NonEmptyStr
    url: Url
    type: Optional[ReferenceType] = None


class SessionMaterials(ContentModel):
    slides: Optional[Url] = None
    code_repo: Optional[Url] = None
    recording: Optional[Url] = None
    references: List[Reference] = Field(default_factory=list)


class Session(ContentModel):
    """
    One meeting of a course. Session ids are only unique inside their course.
    """

    id: NonEmptyStr
    title: NonEmptyStr
    objectives: List[NonEmptyStr] = Field(min_length=1)
    materials: SessionMaterials


class ExternalLinks(ContentModel):
    course_page: Optional[Url] = None
    materials_repo: Optional[Url] = None


class Course(ContentModel):
    """
    Represents one course as stored in data/courses/<id>.yaml.
    """

    id: NonEmptyStr
    title: NonEmptyStr
    type: CourseType
    year: int = Field(strict=True, ge=MIN_YEAR)
    difficulty: Difficulty
    tags: List[NonEmptyStr] = Field(min_length=1)
    instructors: List[NonEmptyStr] = Field(min_length=1)
    language: Language
    summary: str = Field(min_length=10)
    sessions: List[Session] = Field(min_length=1)
    external_links: ExternalLinks
    last_updated: IsoDate

    @field_validator("year")
    @classmethod
    def _year_not_too_far(cls, value: int) -> int:
        latest = date.today().year + YEAR_HORIZON
        if value > latest:
            raise ValueError(f"Year cannot be too far in the future (max {latest})")
        return value


# ---------------------------------------------------------------------------
# Learning paths
# ---------------------------------------------------------------------------


class LearningStep(ContentModel):
    order: int = Field(strict=True, gt=0)
    type: LearningStepType
    course_id: Optional[NonEmptyStr] = None
    resource_id: Optional[NonEmptyStr] = None
    note: NonEmptyStr
    optional: bool = False

    @model_validator(mode="after")
    def _target_matches_type(self) -> "LearningStep":
        if self.type == "course" and self.course_id is None:
            raise ValueError('course_id is required when type is "course"')
        if self.type == "resource" and self.resource_id is None:
            raise ValueError('resource_id is required when type is "resource"')
        return self

    @property
    def target_id(self) -> Optional[str]:
        if self.type == "course":
            return self.course_id
        if self.type == "resource":
            return self.resource_id
        return None


class LearningPath(ContentModel):
    id: NonEmptyStr
    title: NonEmptyStr
    description: str = Field(min_length=10)
    recommended_audience: NonEmptyStr
    estimated_duration: NonEmptyStr
    steps: List[LearningStep] = Field(min_length=1)


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class Resource(ContentModel):
    id: NonEmptyStr
    title: NonEmptyStr
    type: ResourceType
    url: Url
    tags: List[NonEmptyStr] = Field(min_length=1)
    description: str = Field(min_length=10)
    language: Language
    difficulty: Optional[Difficulty] = None


# ---------------------------------------------------------------------------
# Site configuration
# ---------------------------------------------------------------------------


class SocialLink(ContentModel):
    name: NonEmptyStr
    url: Url
    icon: NonEmptyStr


class NavigationItem(ContentModel):
    label: NonEmptyStr
    href: NonEmptyStr
    active: Optional[bool] = None
    children: Optional[List["NavigationItem"]] = None


class Announcement(ContentModel):
    title: NonEmptyStr
    content: NonEmptyStr
    date: IsoDate
    type: AnnouncementType


class SiteInfo(ContentModel):
    title: NonEmptyStr
    description: str = Field(min_length=10)
    url: Url
    social_links: List[SocialLink] = Field(default_factory=list)


class SiteConfig(ContentModel):
    site_info: SiteInfo
    navigation: List[NavigationItem] = Field(min_length=1)
    featured_courses: List[NonEmptyStr] = Field(default_factory=list)
    announcements: List[Announcement] = Field(default_factory=list)


NavigationItem.model_rebuild()


# ---------------------------------------------------------------------------
# Collections (one YAML file holding many records)
# ---------------------------------------------------------------------------

CoursesCollection = TypeAdapter(List[Course])
LearningPathsCollection = TypeAdapter(List[LearningPath])
ResourcesCollection = TypeAdapter(List[Resource])
