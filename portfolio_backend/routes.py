"""
REST routes: authentication, contact messages and page analytics.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from portfolio_backend import analytics, auth, contact
from portfolio_backend.auth import TokenClaims
from portfolio_backend.config import Settings, get_settings
from portfolio_backend.db import DbClient
from portfolio_backend.dependencies import get_current_user, get_db_client
from portfolio_backend.schemas import (
    Analytics,
    AnalyticsSummary,
    ContactCreatedResponse,
    ContactInput,
    ContactMessage,
    LoginRequest,
    MessageResponse,
    PageViewResponse,
    RegisterRequest,
    StatusUpdateRequest,
    TokenResponse,
    TrackRequest,
    UserProfile,
)
from portfolio_backend.types import MessageStatus

logger = logging.getLogger(__name__)

router = APIRouter()


# Auth

@router.post("/auth/register", response_model=TokenResponse, status_code=201)
def register(
    payload: RegisterRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return TokenResponse(token=auth.register(db, payload, settings))


@router.post("/auth/login", response_model=TokenResponse)
def login(
    payload: LoginRequest,
    db: DbClient = Depends(get_db_client),
    settings: Settings = Depends(get_settings),
):
    return TokenResponse(token=auth.login(db, payload, settings))


@router.get("/auth/me", response_model=UserProfile)
def me(
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return auth.current_user(db, claims)


# Contact

@router.post("/contact", response_model=ContactCreatedResponse, status_code=201)
def send_contact_message(
    payload: ContactInput, db: DbClient = Depends(get_db_client)
):
    message = contact.send_message(db, payload)
    return ContactCreatedResponse(
        message="Message sent successfully", contact_message=message
    )


@router.get("/contact", response_model=list[ContactMessage])
def list_contact_messages(
    status: Optional[MessageStatus] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return contact.list_messages(db, status=status, limit=limit)


@router.get("/contact/{message_id}", response_model=ContactMessage)
def get_contact_message(
    message_id: str,
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return contact.get_message(db, message_id)


@router.patch("/contact/{message_id}/status", response_model=ContactMessage)
def update_contact_message_status(
    message_id: str,
    payload: StatusUpdateRequest,
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return contact.update_status(db, message_id, payload.status)


@router.delete("/contact/{message_id}", response_model=MessageResponse)
def delete_contact_message(
    message_id: str,
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    contact.delete_message(db, message_id)
    return MessageResponse(message="Message deleted successfully")


# Analytics

@router.post("/analytics/track", response_model=PageViewResponse)
def track_page_view(payload: TrackRequest, db: DbClient = Depends(get_db_client)):
    record = analytics.track_page_view(db, payload.page)
    return PageViewResponse(message="Page view tracked", analytics=record)


@router.get("/analytics", response_model=list[Analytics])
def list_analytics(
    page: Optional[str] = Query(None),
    date: Optional[str] = Query(None, pattern=r"^\d{4}-\d{2}-\d{2}$"),
    limit: int = Query(100, ge=1, le=1000),
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return analytics.list_analytics(db, page=page, date=date, limit=limit)


@router.get("/analytics/stats", response_model=AnalyticsSummary)
def analytics_stats(
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return analytics.analytics_summary(db)


@router.get("/analytics/page/{page}", response_model=list[Analytics])
def page_analytics(
    page: str,
    days: int = Query(analytics.DEFAULT_HISTORY_DAYS, ge=1, le=3650),
    claims: TokenClaims = Depends(get_current_user),
    db: DbClient = Depends(get_db_client),
):
    return analytics.page_history(db, page, days=days)
