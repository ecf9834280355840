"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from portfolio_backend.auth import TokenClaims, decode_access_token
from portfolio_backend.config import Settings, get_settings
from portfolio_backend.db import DbClient, InMemoryDbClient, SqlAlchemyDbClient
from portfolio_backend.errors import AuthorizationError

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None

bearer_scheme = HTTPBearer(auto_error=False)


def _build_db_client(settings: Settings) -> DbClient:
    if settings.use_in_memory_backends or not settings.database_url:
        logger.info("Using in-memory record store")
        return InMemoryDbClient()
    return SqlAlchemyDbClient(settings.database_url)


def init_db_client(client: Optional[DbClient] = None) -> DbClient:
    """
    Install the process-wide store client; called from the app lifespan.

    An explicit ``client`` replaces the current one. Without one, an existing
    client is kept, otherwise one is built from settings.
    """
    global _db_client
    if client is not None:
        _db_client = client
    elif _db_client is None:
        _db_client = _build_db_client(get_settings())
    return _db_client


def close_db_client() -> None:
    global _db_client
    if _db_client is not None:
        _db_client.close()
        _db_client = None


def get_db_client() -> DbClient:
    """
    Return the singleton store client so state persists across requests.
    """
    if _db_client is None:
        return init_db_client()
    return _db_client


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    """Require a valid bearer token; raises AuthorizationError otherwise."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthorizationError("Not authenticated")
    return decode_access_token(credentials.credentials, settings)
