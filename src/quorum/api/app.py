"""FastAPI application factory.

API layer:
- Validates request shapes, resolves the requesting user, reads/writes DB
- Translates workflow errors into HTTP status codes
- Forbidden: summary arithmetic, option diffing (delegated to domain modules)
"""

from __future__ import annotations

import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Generator

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from quorum.core.errors import (
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    QuorumError,
    ValidationError,
)
from quorum.db.repo import DbSession
from quorum.db.session import get_session, init_db

CORS_ORIGINS_ENV = "QUORUM_CORS_ORIGINS"
DEFAULT_CORS_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]


def get_db_session() -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session()
    try:
        yield session
    finally:
        session.close()


def to_http_exception(error: QuorumError) -> HTTPException:
    """Map a workflow error to the HTTP error the client sees."""
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=400,
            detail={
                "message": error.message,
                "errors": [{"field": e.field, "message": e.message} for e in error.errors],
            },
        )
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=403, detail=error.message)
    if isinstance(error, InvalidStateError):
        return HTTPException(status_code=409, detail=error.message)
    return HTTPException(status_code=500, detail=error.message)


def _cors_origins() -> list[str]:
    raw = os.environ.get(CORS_ORIGINS_ENV, "")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or DEFAULT_CORS_ORIGINS


def create_app(db_path: Path | None = None) -> FastAPI:
    """Create FastAPI application.

    Tables are created on startup, in $QUORUM_DB_PATH unless db_path is given.

    Args:
        db_path: Optional path to database file used for every request.

    Returns:
        Configured FastAPI application.
    """

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        init_db(db_path)
        yield

    app = FastAPI(
        title="Quorum API",
        description="Survey authoring, answering and weighted summaries",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if db_path is not None:

        def get_path_session() -> Generator[DbSession, None, None]:
            session = get_session(db_path)
            try:
                yield session
            finally:
                session.close()

        app.dependency_overrides[get_db_session] = get_path_session

    from quorum.api.routes import surveys, users

    app.include_router(users.router, prefix="/api")
    app.include_router(surveys.router, prefix="/api")

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    return app


# Default app instance
app = create_app()
