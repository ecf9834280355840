"""
Registration, login and bearer-token verification.

Tokens are HS256 JWTs carrying the user id (``sub``) and email. Validity is
signature plus expiry only; there is no revocation list.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import jwt
from passlib.context import CryptContext

from portfolio_backend.config import Settings
from portfolio_backend.content import parse_payload
from portfolio_backend.db import DbClient, UserRecord
from portfolio_backend.errors import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    operation,
)
from portfolio_backend.schemas import LoginRequest, RegisterRequest, UserProfile
from portfolio_backend.types import UserRole

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    email: str
    expires_at: datetime


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def create_access_token(
    user: UserRecord, settings: Settings, *, now: Optional[datetime] = None
) -> str:
    """Create a signed token for ``user`` valid for ``token_expire_days``."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": user.id,
        "email": user.email,
        "iat": issued_at,
        "exp": issued_at + timedelta(days=settings.token_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str, settings: Settings) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthorizationError("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthorizationError("Invalid token")
    return TokenClaims(
        user_id=str(payload["sub"]),
        email=str(payload.get("email", "")),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def authenticate_header(authorization: Optional[str], settings: Settings) -> TokenClaims:
    """Verify an ``Authorization: Bearer <token>`` header value."""
    if not authorization:
        raise AuthorizationError("Not authenticated")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthorizationError("Not authenticated")
    return decode_access_token(token.strip(), settings)


def register(db: DbClient, payload: Any, settings: Settings) -> str:
    request = parse_payload(RegisterRequest, payload, "registration")
    password_hash = hash_password(request.password)
    with operation("Registration failed"):
        user = db.create_user(
            email=_normalize_email(request.email),
            password_hash=password_hash,
            name=request.name,
            role=UserRole.ADMIN.value,
        )
        logger.info("Registered user %s", user.id)
        return create_access_token(user, settings)


def login(db: DbClient, payload: Any, settings: Settings) -> str:
    request = parse_payload(LoginRequest, payload, "login")
    with operation("Login failed"):
        user = db.get_user_by_email(_normalize_email(request.email))
        valid = user is not None and verify_password(
            request.password, user.password_hash
        )
        if not valid:
            logger.warning("Failed login attempt for %s", request.email)
            raise AuthenticationError("Invalid credentials")
        return create_access_token(user, settings)


def current_user(db: DbClient, claims: TokenClaims) -> UserProfile:
    with operation("Failed to fetch user"):
        user = db.get_user(claims.user_id)
        if user is None:
            raise NotFoundError("User not found")
        return UserProfile.model_validate(user.as_dict())
