"""
Record store abstraction with a SQLAlchemy implementation and an in-memory
implementation for development and tests.

Content entities are kept as JSON documents grouped by collection. Page-view
counters and users have dedicated tables so their unique keys are enforced
by the database.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence

from sqlalchemy import (
    JSON,
    Column,
    Float,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    func,
    select,
    update,
)
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from portfolio_backend.errors import ConflictError


@dataclass(frozen=True)
class SortKey:
    """Ordering on a document field; ``created_at`` orders by insert time."""

    field: str
    descending: bool = True
    numeric: bool = False


class DbClient(Protocol):
    """Interface for record store access."""

    def insert_document(self, collection: str, data: dict) -> "DocumentRecord":
        ...

    def get_document(
        self, collection: str, doc_id: str
    ) -> Optional["DocumentRecord"]:
        ...

    def replace_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional["DocumentRecord"]:
        ...

    def update_document_fields(
        self, collection: str, doc_id: str, fields: dict
    ) -> Optional["DocumentRecord"]:
        ...

    def delete_document(self, collection: str, doc_id: str) -> bool:
        ...

    def find_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Sequence[SortKey] = (),
        limit: Optional[int] = None,
    ) -> list["DocumentRecord"]:
        ...

    def count_documents(self, collection: str) -> int:
        ...

    def record_page_view(self, page: str, date: str) -> "AnalyticsRecord":
        ...

    def find_analytics(
        self,
        *,
        page: Optional[str] = None,
        date: Optional[str] = None,
        since: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list["AnalyticsRecord"]:
        ...

    def analytics_totals(self) -> tuple[int, int]:
        ...

    def analytics_pages(self) -> list[str]:
        ...

    def create_user(
        self, email: str, password_hash: str, name: str, role: str
    ) -> "UserRecord":
        ...

    def get_user(self, user_id: str) -> Optional["UserRecord"]:
        ...

    def get_user_by_email(self, email: str) -> Optional["UserRecord"]:
        ...

    def close(self) -> None:
        ...


@dataclass
class DocumentRecord:
    id: str
    collection: str
    data: dict
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            **self.data,
            "id": self.id,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class AnalyticsRecord:
    id: str
    page: str
    date: str
    views: int = 0
    unique_views: int = 0
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "page": self.page,
            "date": self.date,
            "views": self.views,
            "unique_views": self.unique_views,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class UserRecord:
    id: str
    email: str
    password_hash: str
    name: str
    role: str
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        # password_hash stays out of anything serialized.
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


def _sort_value(record: DocumentRecord, key: SortKey) -> Any:
    if key.field == "created_at":
        return record.created_at
    return record.data.get(key.field)


def _ordered(records: list[DocumentRecord], sort: Sequence[SortKey]) -> list:
    # Stable sorts applied from the least to the most significant key.
    ordered = list(records)
    for key in reversed(sort):
        present = [r for r in ordered if _sort_value(r, key) is not None]
        missing = [r for r in ordered if _sort_value(r, key) is None]
        present.sort(key=lambda r: _sort_value(r, key), reverse=key.descending)
        ordered = present + missing
    return ordered


class InMemoryDbClient:
    """Simple in-memory record store for development and tests."""

    def __init__(self):
        self.documents: Dict[str, Dict[str, DocumentRecord]] = {}
        self.analytics: Dict[tuple[str, str], AnalyticsRecord] = {}
        self.users: Dict[str, UserRecord] = {}
        self._lock = threading.Lock()

    def insert_document(self, collection: str, data: dict) -> DocumentRecord:
        record = DocumentRecord(
            id=uuid.uuid4().hex, collection=collection, data=dict(data)
        )
        self.documents.setdefault(collection, {})[record.id] = record
        return record

    def get_document(self, collection: str, doc_id: str) -> Optional[DocumentRecord]:
        return self.documents.get(collection, {}).get(doc_id)

    def replace_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[DocumentRecord]:
        record = self.get_document(collection, doc_id)
        if not record:
            return None
        record.data = dict(data)
        record.updated_at = time.time()
        return record

    def update_document_fields(
        self, collection: str, doc_id: str, fields: dict
    ) -> Optional[DocumentRecord]:
        record = self.get_document(collection, doc_id)
        if not record:
            return None
        record.data.update(fields)
        record.updated_at = time.time()
        return record

    def delete_document(self, collection: str, doc_id: str) -> bool:
        return self.documents.get(collection, {}).pop(doc_id, None) is not None

    def find_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Sequence[SortKey] = (),
        limit: Optional[int] = None,
    ) -> list[DocumentRecord]:
        filters = filters or {}
        matches = [
            record
            for record in self.documents.get(collection, {}).values()
            if all(record.data.get(k) == v for k, v in filters.items())
        ]
        matches = _ordered(matches, sort)
        if limit is not None:
            matches = matches[:limit]
        return matches

    def count_documents(self, collection: str) -> int:
        return len(self.documents.get(collection, {}))

    def record_page_view(self, page: str, date: str) -> AnalyticsRecord:
        with self._lock:
            record = self.analytics.get((page, date))
            if record:
                record.views += 1
                record.unique_views += 1
                record.updated_at = time.time()
            else:
                record = AnalyticsRecord(
                    id=uuid.uuid4().hex, page=page, date=date, views=1, unique_views=1
                )
                self.analytics[(page, date)] = record
            return record

    def find_analytics(
        self,
        *,
        page: Optional[str] = None,
        date: Optional[str] = None,
        since: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[AnalyticsRecord]:
        items = [
            record
            for record in self.analytics.values()
            if (page is None or record.page == page)
            and (date is None or record.date == date)
            and (since is None or record.date >= since)
        ]
        items.sort(key=lambda r: r.date, reverse=True)
        if limit is not None:
            items = items[:limit]
        return items

    def analytics_totals(self) -> tuple[int, int]:
        views = sum(r.views for r in self.analytics.values())
        unique_views = sum(r.unique_views for r in self.analytics.values())
        return views, unique_views

    def analytics_pages(self) -> list[str]:
        return sorted({page for page, _ in self.analytics})

    def create_user(
        self, email: str, password_hash: str, name: str, role: str
    ) -> UserRecord:
        with self._lock:
            if self.get_user_by_email(email):
                raise ConflictError("User already exists")
            record = UserRecord(
                id=uuid.uuid4().hex,
                email=email,
                password_hash=password_hash,
                name=name,
                role=role,
            )
            self.users[record.id] = record
            return record

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        return self.users.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        for user in self.users.values():
            if user.email == email:
                return user
        return None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.documents.clear()
        self.analytics.clear()
        self.users.clear()

    def close(self) -> None:
        pass


class SqlAlchemyDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlAlchemyDbClient")
        engine_kwargs: dict = {"future": True, "pool_pre_ping": True}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, otherwise each pooled connection sees an empty database.
            engine_kwargs.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        else:
            engine_kwargs["pool_recycle"] = 1800
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_document(self, row: "DocumentRow") -> DocumentRecord:
        return DocumentRecord(
            id=row.id,
            collection=row.collection,
            data=dict(row.data or {}),
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _to_analytics(self, row: "AnalyticsRow") -> AnalyticsRecord:
        return AnalyticsRecord(
            id=row.id,
            page=row.page,
            date=row.date,
            views=row.views,
            unique_views=row.unique_views,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _to_user(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id,
            email=row.email,
            password_hash=row.password_hash,
            name=row.name,
            role=row.role,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _get_row(
        self, session: Session, collection: str, doc_id: str
    ) -> Optional["DocumentRow"]:
        row = session.get(DocumentRow, doc_id)
        if not row or row.collection != collection:
            return None
        return row

    def insert_document(self, collection: str, data: dict) -> DocumentRecord:
        now = time.time()
        with self.Session() as session:
            row = DocumentRow(
                id=uuid.uuid4().hex,
                collection=collection,
                data=dict(data),
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            session.commit()
            return self._to_document(row)

    def get_document(self, collection: str, doc_id: str) -> Optional[DocumentRecord]:
        with self.Session() as session:
            row = self._get_row(session, collection, doc_id)
            return self._to_document(row) if row else None

    def replace_document(
        self, collection: str, doc_id: str, data: dict
    ) -> Optional[DocumentRecord]:
        with self.Session() as session:
            row = self._get_row(session, collection, doc_id)
            if not row:
                return None
            row.data = dict(data)
            row.updated_at = time.time()
            session.commit()
            return self._to_document(row)

    def update_document_fields(
        self, collection: str, doc_id: str, fields: dict
    ) -> Optional[DocumentRecord]:
        with self.Session() as session:
            row = self._get_row(session, collection, doc_id)
            if not row:
                return None
            # Reassign so the JSON column is flagged dirty.
            row.data = {**(row.data or {}), **fields}
            row.updated_at = time.time()
            session.commit()
            return self._to_document(row)

    def delete_document(self, collection: str, doc_id: str) -> bool:
        with self.Session() as session:
            row = self._get_row(session, collection, doc_id)
            if not row:
                return False
            session.delete(row)
            session.commit()
            return True

    def _json_field(self, name: str, value: Any = None, numeric: bool = False):
        element = DocumentRow.data[name]
        if isinstance(value, bool):
            return element.as_boolean()
        if numeric or isinstance(value, int):
            return element.as_integer()
        if isinstance(value, float):
            return element.as_float()
        return element.as_string()

    def find_documents(
        self,
        collection: str,
        filters: Optional[dict] = None,
        sort: Sequence[SortKey] = (),
        limit: Optional[int] = None,
    ) -> list[DocumentRecord]:
        stmt = select(DocumentRow).where(DocumentRow.collection == collection)
        for name, value in (filters or {}).items():
            stmt = stmt.where(self._json_field(name, value) == value)
        for key in sort:
            if key.field == "created_at":
                column = DocumentRow.created_at
            else:
                column = self._json_field(key.field, numeric=key.numeric)
            stmt = stmt.order_by(column.desc() if key.descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_document(row) for row in rows]

    def count_documents(self, collection: str) -> int:
        with self.Session() as session:
            stmt = (
                select(func.count())
                .select_from(DocumentRow)
                .where(DocumentRow.collection == collection)
            )
            return session.execute(stmt).scalar_one()

    def _increment_page_view(self, session: Session, page: str, date: str) -> int:
        result = session.execute(
            update(AnalyticsRow)
            .where(AnalyticsRow.page == page, AnalyticsRow.date == date)
            .values(
                views=AnalyticsRow.views + 1,
                unique_views=AnalyticsRow.unique_views + 1,
                updated_at=time.time(),
            )
        )
        return result.rowcount or 0

    def record_page_view(self, page: str, date: str) -> AnalyticsRecord:
        """
        Increment the (page, date) counters, inserting the row on first view.

        The increment is a single UPDATE statement, and an insert that loses a
        race against a concurrent insert falls back to that UPDATE, so no view
        is lost.
        """
        with self.Session() as session:
            if not self._increment_page_view(session, page, date):
                now = time.time()
                session.add(
                    AnalyticsRow(
                        id=uuid.uuid4().hex,
                        page=page,
                        date=date,
                        views=1,
                        unique_views=1,
                        created_at=now,
                        updated_at=now,
                    )
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    self._increment_page_view(session, page, date)
                    session.commit()
            else:
                session.commit()
            row = session.execute(
                select(AnalyticsRow).where(
                    AnalyticsRow.page == page, AnalyticsRow.date == date
                )
            ).scalar_one()
            return self._to_analytics(row)

    def find_analytics(
        self,
        *,
        page: Optional[str] = None,
        date: Optional[str] = None,
        since: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[AnalyticsRecord]:
        stmt = select(AnalyticsRow)
        if page is not None:
            stmt = stmt.where(AnalyticsRow.page == page)
        if date is not None:
            stmt = stmt.where(AnalyticsRow.date == date)
        if since is not None:
            stmt = stmt.where(AnalyticsRow.date >= since)
        stmt = stmt.order_by(AnalyticsRow.date.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        with self.Session() as session:
            rows = session.execute(stmt).scalars().all()
            return [self._to_analytics(row) for row in rows]

    def analytics_totals(self) -> tuple[int, int]:
        with self.Session() as session:
            views, unique_views = session.execute(
                select(
                    func.coalesce(func.sum(AnalyticsRow.views), 0),
                    func.coalesce(func.sum(AnalyticsRow.unique_views), 0),
                )
            ).one()
            return int(views), int(unique_views)

    def analytics_pages(self) -> list[str]:
        with self.Session() as session:
            stmt = select(AnalyticsRow.page).distinct().order_by(AnalyticsRow.page)
            return list(session.execute(stmt).scalars().all())

    def create_user(
        self, email: str, password_hash: str, name: str, role: str
    ) -> UserRecord:
        now = time.time()
        with self.Session() as session:
            row = UserRow(
                id=uuid.uuid4().hex,
                email=email,
                password_hash=password_hash,
                name=name,
                role=role,
                created_at=now,
                updated_at=now,
            )
            session.add(row)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise ConflictError("User already exists") from exc
            return self._to_user(row)

    def get_user(self, user_id: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.get(UserRow, user_id)
            return self._to_user(row) if row else None

    def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
            return self._to_user(row) if row else None

    def close(self) -> None:
        self.engine.dispose()


Base = declarative_base()


class DocumentRow(Base):
    __tablename__ = "documents"

    id = Column(String, primary_key=True)
    collection = Column(String, nullable=False, index=True)
    data = Column(JSON, nullable=False)
    created_at = Column(Float, nullable=False, index=True)
    updated_at = Column(Float, nullable=False)


class AnalyticsRow(Base):
    __tablename__ = "page_views"
    __table_args__ = (UniqueConstraint("page", "date", name="uq_page_views_page_date"),)

    id = Column(String, primary_key=True)
    page = Column(String, nullable=False, index=True)
    date = Column(String, nullable=False, index=True)
    views = Column(Integer, nullable=False, default=0)
    unique_views = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)
