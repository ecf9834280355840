"""Enumerated values accepted by portfolio records."""

from __future__ import annotations

from enum import StrEnum


class ProjectCategory(StrEnum):
    CYBERSECURITY = "cybersecurity"
    AI = "ai"
    WEB = "web"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    RESEARCH = "research"
    TOOL = "tool"


class ProjectStatus(StrEnum):
    COMPLETED = "completed"
    IN_PROGRESS = "in-progress"
    PLANNED = "planned"
    ARCHIVED = "archived"


class ResearchStatus(StrEnum):
    PUBLISHED = "published"
    ACCEPTED = "accepted"
    UNDER_REVIEW = "under-review"
    SUBMITTED = "submitted"
    DRAFT = "draft"


class AwardCategory(StrEnum):
    ACADEMIC = "academic"
    PROFESSIONAL = "professional"
    COMPETITION = "competition"
    RECOGNITION = "recognition"
    SCHOLARSHIP = "scholarship"


class SkillCategory(StrEnum):
    PROGRAMMING = "programming"
    CYBERSECURITY = "cybersecurity"
    AI = "ai"
    CLOUD = "cloud"
    TOOLS = "tools"
    SOFT_SKILLS = "soft-skills"


class MessageStatus(StrEnum):
    NEW = "new"
    READ = "read"
    REPLIED = "replied"
    ARCHIVED = "archived"


class UserRole(StrEnum):
    ADMIN = "admin"
