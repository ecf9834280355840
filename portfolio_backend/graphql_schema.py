"""
GraphQL schema for the portfolio API (Strawberry).

Resolvers are thin: they check the bearer token where required and call the
same service functions as the REST routes. Failures are reported in the
response ``errors`` list with ``extensions.code`` naming the error kind.
"""

import dataclasses
import functools
import logging
from typing import Awaitable, Callable, Optional, TypeVar

import strawberry
from fastapi import Depends
from pydantic import BaseModel
from starlette.concurrency import run_in_threadpool
from strawberry.fastapi import BaseContext, GraphQLRouter
from strawberry.types import Info

from portfolio_backend import analytics, auth, contact
from portfolio_backend.auth import TokenClaims, authenticate_header
from portfolio_backend.config import Settings, get_settings
from portfolio_backend.content import (
    AWARDS,
    EDUCATION,
    EXPERIENCE,
    PROJECTS,
    RESEARCH,
    SKILLS,
    SPEAKING,
)
from portfolio_backend.db import DbClient
from portfolio_backend.dependencies import get_db_client
from portfolio_backend.errors import PortfolioError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PortfolioContext(BaseContext):
    def __init__(self, db: DbClient, settings: Settings):
        super().__init__()
        self.db = db
        self.settings = settings

    def require_admin(self) -> TokenClaims:
        header = self.request.headers.get("authorization") if self.request else None
        return authenticate_header(header, self.settings)


def _convert(cls: type[T], record: BaseModel) -> T:
    data = record.model_dump(mode="json")
    return cls(**{f.name: data.get(f.name) for f in dataclasses.fields(cls)})


def in_threadpool(resolver: Callable[..., T]) -> Callable[..., Awaitable[T]]:
    """
    Run a blocking resolver in the threadpool, the way FastAPI runs ``def``
    routes. Strawberry reads the argument list through ``__wrapped__``.
    """

    @functools.wraps(resolver)
    async def wrapper(*args, **kwargs):
        return await run_in_threadpool(resolver, *args, **kwargs)

    return wrapper


def _payload(value) -> dict:
    # Unset optional inputs fall back to the model defaults.
    return {k: v for k, v in strawberry.asdict(value).items() if v is not None}


# Output types


@strawberry.type
class User:
    id: strawberry.ID
    email: str
    name: str
    role: str
    created_at: str
    updated_at: str


@strawberry.type
class Project:
    id: strawberry.ID
    title: str
    description: str
    long_description: Optional[str]
    technologies: list[str]
    github_url: Optional[str]
    live_url: Optional[str]
    image_url: Optional[str]
    featured: bool
    category: str
    status: str
    created_at: str
    updated_at: str


@strawberry.type
class Research:
    id: strawberry.ID
    title: str
    authors: list[str]
    venue: str
    year: int
    description: str
    abstract: Optional[str]
    pdf_url: Optional[str]
    featured: bool
    status: str
    created_at: str
    updated_at: str


@strawberry.type
class Experience:
    id: strawberry.ID
    company: str
    position: str
    description: str
    start_date: str
    end_date: Optional[str]
    current: bool
    location: Optional[str]
    technologies: list[str]
    achievements: list[str]
    created_at: str
    updated_at: str


@strawberry.type
class Education:
    id: strawberry.ID
    institution: str
    degree: str
    field: str
    start_date: str
    end_date: Optional[str]
    gpa: Optional[str]
    description: Optional[str]
    achievements: list[str]
    created_at: str
    updated_at: str


@strawberry.type
class Award:
    id: strawberry.ID
    title: str
    organization: str
    year: int
    description: str
    category: str
    featured: bool
    created_at: str
    updated_at: str


@strawberry.type
class Speaking:
    id: strawberry.ID
    title: str
    event: str
    date: str
    location: str
    description: str
    slides_url: Optional[str]
    video_url: Optional[str]
    featured: bool
    created_at: str
    updated_at: str


@strawberry.type
class Skill:
    id: strawberry.ID
    name: str
    category: str
    level: int
    description: Optional[str]
    icon: Optional[str]
    featured: bool
    created_at: str
    updated_at: str


@strawberry.type
class ContactMessage:
    id: strawberry.ID
    name: str
    email: str
    subject: str
    message: str
    status: str
    created_at: str
    updated_at: str


@strawberry.type
class Analytics:
    id: strawberry.ID
    page: str
    views: int
    unique_views: int
    date: str
    created_at: str
    updated_at: str


@strawberry.type
class PortfolioStats:
    total_projects: int
    total_research: int
    total_awards: int
    total_speaking: int
    total_views: int
    total_unique_views: Optional[int]
    last_updated: str


# Inputs


@strawberry.input
class ProjectInput:
    title: str
    description: str
    technologies: list[str]
    category: str
    status: str
    long_description: Optional[str] = None
    github_url: Optional[str] = None
    live_url: Optional[str] = None
    image_url: Optional[str] = None
    featured: Optional[bool] = None


@strawberry.input
class ResearchInput:
    title: str
    authors: list[str]
    venue: str
    year: int
    description: str
    status: str
    abstract: Optional[str] = None
    pdf_url: Optional[str] = None
    featured: Optional[bool] = None


@strawberry.input
class ExperienceInput:
    company: str
    position: str
    description: str
    start_date: str
    current: bool
    technologies: list[str]
    achievements: list[str]
    end_date: Optional[str] = None
    location: Optional[str] = None


@strawberry.input
class EducationInput:
    institution: str
    degree: str
    field: str
    start_date: str
    achievements: list[str]
    end_date: Optional[str] = None
    gpa: Optional[str] = None
    description: Optional[str] = None


@strawberry.input
class AwardInput:
    title: str
    organization: str
    year: int
    description: str
    category: str
    featured: Optional[bool] = None


@strawberry.input
class SpeakingInput:
    title: str
    event: str
    date: str
    location: str
    description: str
    slides_url: Optional[str] = None
    video_url: Optional[str] = None
    featured: Optional[bool] = None


@strawberry.input
class SkillInput:
    name: str
    category: str
    level: int
    description: Optional[str] = None
    icon: Optional[str] = None
    featured: Optional[bool] = None


@strawberry.input
class ContactInput:
    name: str
    email: str
    subject: str
    message: str


@strawberry.type
class Query:
    @strawberry.field
    @in_threadpool
    def get_portfolio_stats(self, info: Info) -> PortfolioStats:
        return _convert(PortfolioStats, analytics.portfolio_stats(info.context.db))

    @strawberry.field
    @in_threadpool
    def get_projects(
        self,
        info: Info,
        featured: Optional[bool] = None,
        category: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Project]:
        records = PROJECTS.list(
            info.context.db, featured=featured, category=category, limit=limit
        )
        return [_convert(Project, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_project(self, info: Info, id: strawberry.ID) -> Optional[Project]:
        return _convert(Project, PROJECTS.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_research(
        self,
        info: Info,
        featured: Optional[bool] = None,
        venue: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[Research]:
        records = RESEARCH.list(
            info.context.db, featured=featured, venue=venue, limit=limit
        )
        return [_convert(Research, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_research_by_id(self, info: Info, id: strawberry.ID) -> Optional[Research]:
        return _convert(Research, RESEARCH.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_experience(self, info: Info) -> list[Experience]:
        return [_convert(Experience, r) for r in EXPERIENCE.list(info.context.db)]

    @strawberry.field
    @in_threadpool
    def get_experience_by_id(
        self, info: Info, id: strawberry.ID
    ) -> Optional[Experience]:
        return _convert(Experience, EXPERIENCE.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_education(self, info: Info) -> list[Education]:
        return [_convert(Education, r) for r in EDUCATION.list(info.context.db)]

    @strawberry.field
    @in_threadpool
    def get_education_by_id(
        self, info: Info, id: strawberry.ID
    ) -> Optional[Education]:
        return _convert(Education, EDUCATION.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_awards(
        self,
        info: Info,
        featured: Optional[bool] = None,
        category: Optional[str] = None,
    ) -> list[Award]:
        records = AWARDS.list(info.context.db, featured=featured, category=category)
        return [_convert(Award, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_award_by_id(self, info: Info, id: strawberry.ID) -> Optional[Award]:
        return _convert(Award, AWARDS.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_speaking(
        self,
        info: Info,
        featured: Optional[bool] = None,
        limit: Optional[int] = None,
    ) -> list[Speaking]:
        records = SPEAKING.list(info.context.db, featured=featured, limit=limit)
        return [_convert(Speaking, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_speaking_by_id(self, info: Info, id: strawberry.ID) -> Optional[Speaking]:
        return _convert(Speaking, SPEAKING.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_skills(
        self,
        info: Info,
        category: Optional[str] = None,
        featured: Optional[bool] = None,
    ) -> list[Skill]:
        records = SKILLS.list(info.context.db, category=category, featured=featured)
        return [_convert(Skill, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_skill_by_id(self, info: Info, id: strawberry.ID) -> Optional[Skill]:
        return _convert(Skill, SKILLS.get(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_contact_messages(
        self,
        info: Info,
        status: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[ContactMessage]:
        info.context.require_admin()
        records = contact.list_messages(info.context.db, status=status, limit=limit)
        return [_convert(ContactMessage, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_contact_message_by_id(
        self, info: Info, id: strawberry.ID
    ) -> Optional[ContactMessage]:
        info.context.require_admin()
        return _convert(ContactMessage, contact.get_message(info.context.db, id))

    @strawberry.field
    @in_threadpool
    def get_analytics(
        self,
        info: Info,
        page: Optional[str] = None,
        date: Optional[str] = None,
    ) -> list[Analytics]:
        info.context.require_admin()
        records = analytics.list_analytics(info.context.db, page=page, date=date)
        return [_convert(Analytics, r) for r in records]

    @strawberry.field
    @in_threadpool
    def get_analytics_stats(self, info: Info) -> PortfolioStats:
        info.context.require_admin()
        return _convert(PortfolioStats, analytics.analytics_stats(info.context.db))

    @strawberry.field
    @in_threadpool
    def me(self, info: Info) -> User:
        claims = info.context.require_admin()
        return _convert(User, auth.current_user(info.context.db, claims))


@strawberry.type
class Mutation:
    @strawberry.mutation
    @in_threadpool
    def login(self, info: Info, email: str, password: str) -> str:
        return auth.login(
            info.context.db,
            {"email": email, "password": password},
            info.context.settings,
        )

    @strawberry.mutation
    @in_threadpool
    def register(self, info: Info, email: str, password: str, name: str) -> str:
        return auth.register(
            info.context.db,
            {"email": email, "password": password, "name": name},
            info.context.settings,
        )

    @strawberry.mutation
    @in_threadpool
    def create_project(self, info: Info, input: ProjectInput) -> Project:
        info.context.require_admin()
        return _convert(Project, PROJECTS.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_project(
        self, info: Info, id: strawberry.ID, input: ProjectInput
    ) -> Project:
        info.context.require_admin()
        return _convert(Project, PROJECTS.update(info.context.db, id, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def delete_project(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return PROJECTS.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_research(self, info: Info, input: ResearchInput) -> Research:
        info.context.require_admin()
        return _convert(Research, RESEARCH.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_research(
        self, info: Info, id: strawberry.ID, input: ResearchInput
    ) -> Research:
        info.context.require_admin()
        return _convert(
            Research, RESEARCH.update(info.context.db, id, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def delete_research(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return RESEARCH.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_experience(self, info: Info, input: ExperienceInput) -> Experience:
        info.context.require_admin()
        return _convert(
            Experience, EXPERIENCE.create(info.context.db, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def update_experience(
        self, info: Info, id: strawberry.ID, input: ExperienceInput
    ) -> Experience:
        info.context.require_admin()
        return _convert(
            Experience, EXPERIENCE.update(info.context.db, id, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def delete_experience(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return EXPERIENCE.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_education(self, info: Info, input: EducationInput) -> Education:
        info.context.require_admin()
        return _convert(Education, EDUCATION.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_education(
        self, info: Info, id: strawberry.ID, input: EducationInput
    ) -> Education:
        info.context.require_admin()
        return _convert(
            Education, EDUCATION.update(info.context.db, id, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def delete_education(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return EDUCATION.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_award(self, info: Info, input: AwardInput) -> Award:
        info.context.require_admin()
        return _convert(Award, AWARDS.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_award(self, info: Info, id: strawberry.ID, input: AwardInput) -> Award:
        info.context.require_admin()
        return _convert(Award, AWARDS.update(info.context.db, id, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def delete_award(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return AWARDS.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_speaking(self, info: Info, input: SpeakingInput) -> Speaking:
        info.context.require_admin()
        return _convert(Speaking, SPEAKING.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_speaking(
        self, info: Info, id: strawberry.ID, input: SpeakingInput
    ) -> Speaking:
        info.context.require_admin()
        return _convert(
            Speaking, SPEAKING.update(info.context.db, id, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def delete_speaking(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return SPEAKING.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def create_skill(self, info: Info, input: SkillInput) -> Skill:
        info.context.require_admin()
        return _convert(Skill, SKILLS.create(info.context.db, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def update_skill(self, info: Info, id: strawberry.ID, input: SkillInput) -> Skill:
        info.context.require_admin()
        return _convert(Skill, SKILLS.update(info.context.db, id, _payload(input)))

    @strawberry.mutation
    @in_threadpool
    def delete_skill(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return SKILLS.delete(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def send_contact_message(self, info: Info, input: ContactInput) -> ContactMessage:
        return _convert(
            ContactMessage, contact.send_message(info.context.db, _payload(input))
        )

    @strawberry.mutation
    @in_threadpool
    def update_contact_message_status(
        self, info: Info, id: strawberry.ID, status: str
    ) -> ContactMessage:
        info.context.require_admin()
        return _convert(
            ContactMessage, contact.update_status(info.context.db, id, status)
        )

    @strawberry.mutation
    @in_threadpool
    def delete_contact_message(self, info: Info, id: strawberry.ID) -> bool:
        info.context.require_admin()
        return contact.delete_message(info.context.db, id)

    @strawberry.mutation
    @in_threadpool
    def track_page_view(self, info: Info, page: str) -> Analytics:
        return _convert(Analytics, analytics.track_page_view(info.context.db, page))


class PortfolioSchema(strawberry.Schema):
    def process_errors(self, errors, execution_context=None) -> None:
        for error in errors:
            original = error.original_error
            if isinstance(original, PortfolioError):
                logger.info("GraphQL %s: %s", original.code, original.message)
            elif original is None:
                logger.warning("GraphQL request error: %s", error.message)
            else:
                logger.error("GraphQL resolver failed: %s", error.message, exc_info=original)


schema = PortfolioSchema(query=Query, mutation=Mutation)


async def get_context(db: DbClient = Depends(get_db_client)) -> PortfolioContext:
    return PortfolioContext(db=db, settings=get_settings())


def create_graphql_router() -> GraphQLRouter:
    return GraphQLRouter(schema, context_getter=get_context)
