"""
Error kinds raised by portfolio operations.

Each kind carries a stable ``code`` (exposed as a GraphQL error extension)
and the HTTP status the REST handlers answer with.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class PortfolioError(Exception):
    code = "INTERNAL"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def extensions(self) -> dict:
        # graphql-core copies this onto the located error it reports.
        return {"code": self.code}


class NotFoundError(PortfolioError):
    code = "NOT_FOUND"
    status_code = 404


class ValidationFailedError(PortfolioError):
    code = "VALIDATION_FAILED"
    status_code = 400


class ConflictError(PortfolioError):
    code = "CONFLICT"
    status_code = 409


class AuthenticationError(PortfolioError):
    code = "INVALID_CREDENTIALS"
    status_code = 401


class AuthorizationError(PortfolioError):
    code = "UNAUTHORIZED"
    status_code = 401


class StoreError(PortfolioError):
    code = "STORE_FAILURE"
    status_code = 500


@contextmanager
def operation(failure_message: str) -> Iterator[None]:
    """
    Wrap an operation body so unexpected failures surface as a StoreError.

    Known error kinds propagate unchanged; anything else is logged with its
    traceback and replaced by ``failure_message``.
    """
    try:
        yield
    except PortfolioError:
        raise
    except Exception as exc:
        logger.exception("%s", failure_message)
        raise StoreError(failure_message) from exc
