"""
Page-view counters and dashboard statistics.

Counters are kept per (page, UTC day). Every tracked view increments both
``views`` and ``unique_views``: no visitor key is collected, so the two
counters always move together.
"""

from __future__ import annotations

import logging
from datetime import date as Date
from datetime import datetime, timedelta, timezone
from typing import Optional

from portfolio_backend.content import AWARDS, PROJECTS, RESEARCH, SPEAKING, parse_payload
from portfolio_backend.db import AnalyticsRecord, DbClient
from portfolio_backend.errors import ValidationFailedError, operation
from portfolio_backend.schemas import (
    Analytics,
    AnalyticsSummary,
    PortfolioStats,
    TrackRequest,
)

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_DAYS = 30


def utc_today() -> Date:
    return datetime.now(timezone.utc).date()


def _to_analytics(record: AnalyticsRecord) -> Analytics:
    return Analytics.model_validate(record.as_dict())


def track_page_view(db: DbClient, page: str, *, today: Optional[Date] = None) -> Analytics:
    request = parse_payload(TrackRequest, {"page": page}, "page view")
    day = (today or utc_today()).isoformat()
    with operation("Failed to track page view"):
        record = db.record_page_view(request.page, day)
        logger.debug("Page view %s on %s -> %d", record.page, day, record.views)
        return _to_analytics(record)


def list_analytics(
    db: DbClient,
    *,
    page: Optional[str] = None,
    date: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Analytics]:
    if limit is not None and limit < 1:
        raise ValidationFailedError("limit must be a positive integer")
    with operation("Failed to fetch analytics"):
        records = db.find_analytics(page=page, date=date, limit=limit)
        return [_to_analytics(r) for r in records]


def page_history(
    db: DbClient,
    page: str,
    *,
    days: int = DEFAULT_HISTORY_DAYS,
    today: Optional[Date] = None,
) -> list[Analytics]:
    """Records for ``page`` dated within the last ``days`` days, newest first."""
    if days < 1:
        raise ValidationFailedError("days must be a positive integer")
    since = ((today or utc_today()) - timedelta(days=days)).isoformat()
    with operation("Failed to fetch page analytics"):
        records = db.find_analytics(page=page, since=since)
        return [_to_analytics(r) for r in records]


def _content_totals(db: DbClient) -> dict:
    return {
        "total_projects": PROJECTS.count(db),
        "total_research": RESEARCH.count(db),
        "total_awards": AWARDS.count(db),
        "total_speaking": SPEAKING.count(db),
    }


def portfolio_stats(db: DbClient) -> PortfolioStats:
    with operation("Failed to fetch portfolio stats"):
        views, _ = db.analytics_totals()
        return PortfolioStats(
            **_content_totals(db),
            total_views=views,
            last_updated=datetime.now(timezone.utc),
        )


def analytics_stats(db: DbClient) -> PortfolioStats:
    with operation("Failed to fetch analytics stats"):
        views, unique_views = db.analytics_totals()
        return PortfolioStats(
            **_content_totals(db),
            total_views=views,
            total_unique_views=unique_views,
            last_updated=datetime.now(timezone.utc),
        )


def analytics_summary(db: DbClient) -> AnalyticsSummary:
    with operation("Failed to fetch analytics stats"):
        views, unique_views = db.analytics_totals()
        pages = db.analytics_pages()
        return AnalyticsSummary(
            total_views=views,
            total_unique_views=unique_views,
            total_pages=len(pages),
            pages=pages,
        )
