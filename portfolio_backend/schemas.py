"""
Pydantic schemas for portfolio records and the REST payloads.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
)
from pydantic.alias_generators import to_camel

from portfolio_backend.types import (
    AwardCategory,
    MessageStatus,
    ProjectCategory,
    ProjectStatus,
    ResearchStatus,
    SkillCategory,
    UserRole,
)

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
OptionalText = Optional[Annotated[str, StringConstraints(strip_whitespace=True)]]
TextList = list[Annotated[str, StringConstraints(strip_whitespace=True)]]

MIN_YEAR = 2000


def _check_year(value: int) -> int:
    max_year = datetime.now(timezone.utc).year + 1
    if not MIN_YEAR <= value <= max_year:
        raise ValueError(f"year must be between {MIN_YEAR} and {max_year}")
    return value


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StoredRecord(CamelModel):
    """Identity and timestamps assigned by the store."""

    id: str
    created_at: datetime
    updated_at: datetime


class ProjectInput(CamelModel):
    title: RequiredText
    description: RequiredText
    long_description: OptionalText = None
    technologies: TextList = Field(default_factory=list)
    github_url: OptionalText = None
    live_url: OptionalText = None
    image_url: OptionalText = None
    featured: bool = False
    category: ProjectCategory
    status: ProjectStatus = ProjectStatus.COMPLETED


class Project(ProjectInput, StoredRecord):
    pass


class ResearchInput(CamelModel):
    title: RequiredText
    authors: list[RequiredText] = Field(..., min_length=1)
    venue: RequiredText
    year: int
    description: RequiredText
    abstract: OptionalText = None
    pdf_url: OptionalText = None
    featured: bool = False
    status: ResearchStatus = ResearchStatus.PUBLISHED

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value: int) -> int:
        return _check_year(value)


class Research(ResearchInput, StoredRecord):
    pass


class ExperienceInput(CamelModel):
    company: RequiredText
    position: RequiredText
    description: RequiredText
    start_date: RequiredText
    end_date: OptionalText = None
    current: bool = False
    location: OptionalText = None
    technologies: TextList = Field(default_factory=list)
    achievements: TextList = Field(default_factory=list)


class Experience(ExperienceInput, StoredRecord):
    pass


class EducationInput(CamelModel):
    institution: RequiredText
    degree: RequiredText
    field: RequiredText
    start_date: RequiredText
    end_date: OptionalText = None
    gpa: OptionalText = None
    description: OptionalText = None
    achievements: TextList = Field(default_factory=list)


class Education(EducationInput, StoredRecord):
    pass


class AwardInput(CamelModel):
    title: RequiredText
    organization: RequiredText
    year: int
    description: RequiredText
    category: AwardCategory
    featured: bool = False

    @field_validator("year")
    @classmethod
    def year_in_range(cls, value: int) -> int:
        return _check_year(value)


class Award(AwardInput, StoredRecord):
    pass


class SpeakingInput(CamelModel):
    title: RequiredText
    event: RequiredText
    date: RequiredText
    location: RequiredText
    description: RequiredText
    slides_url: OptionalText = None
    video_url: OptionalText = None
    featured: bool = False


class Speaking(SpeakingInput, StoredRecord):
    pass


class SkillInput(CamelModel):
    name: RequiredText
    category: SkillCategory
    level: int = Field(..., ge=1, le=100)
    description: OptionalText = None
    icon: OptionalText = None
    featured: bool = False


class Skill(SkillInput, StoredRecord):
    pass


class ContactInput(CamelModel):
    name: RequiredText
    email: EmailStr
    subject: RequiredText
    message: RequiredText


class ContactMessageInput(ContactInput):
    status: MessageStatus = MessageStatus.NEW


class ContactMessage(ContactMessageInput, StoredRecord):
    pass


class StatusUpdateRequest(CamelModel):
    status: MessageStatus


class Analytics(StoredRecord):
    page: str
    date: str
    views: int = Field(default=0, ge=0)
    unique_views: int = Field(default=0, ge=0)


class TrackRequest(CamelModel):
    page: RequiredText


class PortfolioStats(CamelModel):
    total_projects: int
    total_research: int
    total_awards: int
    total_speaking: int
    total_views: int
    total_unique_views: Optional[int] = None
    last_updated: datetime


class AnalyticsSummary(CamelModel):
    total_views: int
    total_unique_views: int
    total_pages: int
    pages: list[str]


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)
    name: RequiredText


class LoginRequest(CamelModel):
    email: RequiredText
    password: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    token: str
    token_type: Literal["bearer"] = "bearer"


class UserProfile(CamelModel):
    id: str
    email: str
    name: str
    role: UserRole
    created_at: datetime
    updated_at: datetime


class ContactCreatedResponse(CamelModel):
    message: str
    contact_message: ContactMessage


class PageViewResponse(CamelModel):
    message: str
    analytics: Analytics


class MessageResponse(CamelModel):
    message: str
