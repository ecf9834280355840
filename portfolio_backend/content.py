"""
List/get/create/update/delete for portfolio content collections.

Both the GraphQL schema and the REST routes go through these collections,
so validation, ordering and error kinds are defined once.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Mapping, Optional, TypeVar

from pydantic import BaseModel, ValidationError

from portfolio_backend.db import DbClient, DocumentRecord, SortKey
from portfolio_backend.errors import NotFoundError, ValidationFailedError, operation
from portfolio_backend.schemas import (
    Award,
    AwardInput,
    Education,
    EducationInput,
    Experience,
    ExperienceInput,
    Project,
    ProjectInput,
    Research,
    ResearchInput,
    Skill,
    SkillInput,
    Speaking,
    SpeakingInput,
)

logger = logging.getLogger(__name__)

InputT = TypeVar("InputT", bound=BaseModel)
RecordT = TypeVar("RecordT", bound=BaseModel)


def describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        problems.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(problems)


def parse_payload(model: type[InputT], payload: Any, label: str) -> InputT:
    """Validate ``payload`` against ``model``, raising ValidationFailedError."""
    if isinstance(payload, model):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump()
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ValidationFailedError(
            f"Invalid {label}: {describe_validation_error(exc)}"
        ) from exc


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


@dataclass(frozen=True)
class ContentCollection(Generic[InputT, RecordT]):
    """One content entity stored as documents in ``name``."""

    name: str
    label: str
    plural: str
    input_model: type[InputT]
    record_model: type[RecordT]
    sort: tuple[SortKey, ...] = (SortKey("created_at"),)
    filter_fields: tuple[str, ...] = ()
    default_limit: Optional[int] = None

    @property
    def title(self) -> str:
        return self.label[:1].upper() + self.label[1:]

    def parse(self, payload: Any) -> InputT:
        return parse_payload(self.input_model, payload, self.label)

    def to_record(self, document: DocumentRecord) -> RecordT:
        return self.record_model.model_validate(document.as_dict())

    def list(self, db: DbClient, *, limit: Optional[int] = None, **filters) -> list[RecordT]:
        unknown = set(filters) - set(self.filter_fields)
        if unknown:
            raise ValidationFailedError(
                f"Unsupported {self.label} filter: {', '.join(sorted(unknown))}"
            )
        if limit is not None and limit < 1:
            raise ValidationFailedError("limit must be a positive integer")
        criteria = {k: _plain(v) for k, v in filters.items() if v is not None}
        with operation(f"Failed to fetch {self.plural}"):
            documents = db.find_documents(
                self.name,
                criteria,
                self.sort,
                limit if limit is not None else self.default_limit,
            )
            return [self.to_record(doc) for doc in documents]

    def get(self, db: DbClient, record_id: str) -> RecordT:
        with operation(f"Failed to fetch {self.label}"):
            document = db.get_document(self.name, record_id)
            if document is None:
                raise NotFoundError(f"{self.title} not found")
            return self.to_record(document)

    def create(self, db: DbClient, payload: Any) -> RecordT:
        data = self.parse(payload).model_dump(mode="json")
        with operation(f"Failed to create {self.label}"):
            document = db.insert_document(self.name, data)
            logger.info("Created %s %s", self.label, document.id)
            return self.to_record(document)

    def update(self, db: DbClient, record_id: str, payload: Any) -> RecordT:
        data = self.parse(payload).model_dump(mode="json")
        with operation(f"Failed to update {self.label}"):
            document = db.replace_document(self.name, record_id, data)
            if document is None:
                raise NotFoundError(f"{self.title} not found")
            return self.to_record(document)

    def update_fields(
        self, db: DbClient, record_id: str, fields: Mapping[str, Any]
    ) -> RecordT:
        """Patch a subset of fields; the merged document is revalidated first."""
        with operation(f"Failed to update {self.label}"):
            current = db.get_document(self.name, record_id)
            if current is None:
                raise NotFoundError(f"{self.title} not found")
            merged = self.parse({**current.data, **fields}).model_dump(mode="json")
            document = db.update_document_fields(
                self.name, record_id, {k: merged[k] for k in fields}
            )
            if document is None:
                raise NotFoundError(f"{self.title} not found")
            return self.to_record(document)

    def delete(self, db: DbClient, record_id: str) -> bool:
        with operation(f"Failed to delete {self.label}"):
            if not db.delete_document(self.name, record_id):
                raise NotFoundError(f"{self.title} not found")
            logger.info("Deleted %s %s", self.label, record_id)
            return True

    def count(self, db: DbClient) -> int:
        with operation(f"Failed to count {self.plural}"):
            return db.count_documents(self.name)


PROJECTS: ContentCollection[ProjectInput, Project] = ContentCollection(
    name="projects",
    label="project",
    plural="projects",
    input_model=ProjectInput,
    record_model=Project,
    filter_fields=("featured", "category"),
    default_limit=10,
)

RESEARCH: ContentCollection[ResearchInput, Research] = ContentCollection(
    name="research",
    label="research",
    plural="research",
    input_model=ResearchInput,
    record_model=Research,
    sort=(SortKey("year", numeric=True), SortKey("created_at")),
    filter_fields=("featured", "venue"),
    default_limit=10,
)

EXPERIENCE: ContentCollection[ExperienceInput, Experience] = ContentCollection(
    name="experience",
    label="experience",
    plural="experience",
    input_model=ExperienceInput,
    record_model=Experience,
    sort=(SortKey("start_date"),),
)

EDUCATION: ContentCollection[EducationInput, Education] = ContentCollection(
    name="education",
    label="education",
    plural="education",
    input_model=EducationInput,
    record_model=Education,
    sort=(SortKey("start_date"),),
)

AWARDS: ContentCollection[AwardInput, Award] = ContentCollection(
    name="awards",
    label="award",
    plural="awards",
    input_model=AwardInput,
    record_model=Award,
    sort=(SortKey("year", numeric=True),),
    filter_fields=("featured", "category"),
)

SPEAKING: ContentCollection[SpeakingInput, Speaking] = ContentCollection(
    name="speaking",
    label="speaking engagement",
    plural="speaking engagements",
    input_model=SpeakingInput,
    record_model=Speaking,
    sort=(SortKey("date"),),
    filter_fields=("featured",),
    default_limit=10,
)

SKILLS: ContentCollection[SkillInput, Skill] = ContentCollection(
    name="skills",
    label="skill",
    plural="skills",
    input_model=SkillInput,
    record_model=Skill,
    sort=(SortKey("level", numeric=True),),
    filter_fields=("category", "featured"),
)
