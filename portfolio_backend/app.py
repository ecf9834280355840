"""
FastAPI application entry point for the portfolio backend.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from portfolio_backend.config import get_settings
from portfolio_backend.db import DbClient
from portfolio_backend.dependencies import close_db_client, init_db_client
from portfolio_backend.errors import AuthorizationError, PortfolioError
from portfolio_backend.graphql_schema import create_graphql_router
from portfolio_backend.routes import router

logger = logging.getLogger(__name__)


async def portfolio_error_handler(request: Request, exc: PortfolioError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthorizationError) else None
    return JSONResponse(
        status_code=exc.status_code, content={"message": exc.message}, headers=headers
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    fields = sorted(
        {".".join(str(part) for part in error["loc"][1:]) for error in exc.errors()}
    )
    return JSONResponse(
        status_code=400,
        content={"message": "Invalid request", "fields": [f for f in fields if f]},
    )


def create_app(db_client: Optional[DbClient] = None) -> FastAPI:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db_client(db_client)
        logger.info("Portfolio backend started")
        yield
        close_db_client()

    if db_client is not None:
        init_db_client(db_client)

    app = FastAPI(title="Portfolio Backend", version="0.1.0", lifespan=lifespan)
    app.state.started_at = time.monotonic()

    app.add_exception_handler(PortfolioError, portfolio_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    app.include_router(router, prefix=settings.api_prefix)
    app.include_router(create_graphql_router(), prefix=settings.graphql_path)

    @app.get("/health")
    def health():
        return {
            "status": "OK",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "uptime": round(time.monotonic() - app.state.started_at, 3),
        }

    return app


app = create_app()


def main() -> None:
    import uvicorn

    uvicorn.run("portfolio_backend.app:app", host="0.0.0.0", port=5001)


if __name__ == "__main__":
    main()
