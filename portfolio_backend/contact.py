"""
Contact-form messages.

Messages are created publicly with status ``new``; listing, reading,
status changes and deletion are admin operations.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from portfolio_backend.content import ContentCollection, parse_payload
from portfolio_backend.db import DbClient
from portfolio_backend.schemas import (
    ContactInput,
    ContactMessage,
    ContactMessageInput,
    StatusUpdateRequest,
)
from portfolio_backend.types import MessageStatus

logger = logging.getLogger(__name__)

MESSAGES: ContentCollection[ContactMessageInput, ContactMessage] = ContentCollection(
    name="contact_messages",
    label="contact message",
    plural="contact messages",
    input_model=ContactMessageInput,
    record_model=ContactMessage,
    filter_fields=("status",),
    default_limit=50,
)


def send_message(db: DbClient, payload: Any) -> ContactMessage:
    contact = parse_payload(ContactInput, payload, "contact message")
    message = MESSAGES.create(
        db, {**contact.model_dump(), "status": MessageStatus.NEW}
    )
    logger.info("Contact message %s received from %s", message.id, message.email)
    return message


def list_messages(
    db: DbClient,
    *,
    status: Optional[str | MessageStatus] = None,
    limit: Optional[int] = None,
) -> list[ContactMessage]:
    if status is not None:
        status = parse_payload(StatusUpdateRequest, {"status": status}, "status").status
    return MESSAGES.list(db, status=status, limit=limit)


def get_message(db: DbClient, message_id: str) -> ContactMessage:
    return MESSAGES.get(db, message_id)


def update_status(
    db: DbClient, message_id: str, status: str | MessageStatus
) -> ContactMessage:
    update = parse_payload(StatusUpdateRequest, {"status": status}, "status")
    return MESSAGES.update_fields(db, message_id, {"status": update.status})


def delete_message(db: DbClient, message_id: str) -> bool:
    return MESSAGES.delete(db, message_id)
