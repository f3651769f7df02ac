# src/outreach/api/app.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from outreach.config import load_settings
from outreach.domain.errors import PoolTimeoutError
from outreach.domain.models import ErrorResponse
from outreach.logging import configure_logging, get_logger
from outreach.storage import create_db_engine, init_schema, ping

from .routes import error_response, router

_LOG = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Responsible for:
    - loading settings
    - configuring logging
    - creating the pooled engine (fails fast if the DB is unusable)
    - bootstrapping the schema
    - disposing of the pool on shutdown
    """
    settings = load_settings()
    configure_logging(settings.log_level, sql_echo=settings.sql_echo)

    engine = create_db_engine(
        settings.db_path,
        pool_size=settings.pool_size,
        pool_timeout_s=settings.pool_timeout_s,
    )
    ping(engine)
    init_schema(engine)

    # Store on app.state for DI
    app.state.settings = settings
    app.state.engine = engine

    _LOG.info("Startup complete (db=%s pool_size=%d).", settings.db_path, settings.pool_size)

    try:
        yield
    finally:
        engine.dispose()
        _LOG.info("Shutdown complete.")


app = FastAPI(
    title="Outreach Sequences",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(router)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies and path ids are rejected before any store call.
    errors = [{"loc": list(e.get("loc", ())), "msg": e.get("msg", "")} for e in exc.errors()]
    payload = ErrorResponse(
        error="invalid request",
        code="VALIDATION_ERROR",
        details={"errors": errors},
    ).model_dump()
    return JSONResponse(status_code=400, content=payload)


@app.exception_handler(PoolTimeoutError)
async def _pool_timeout(request: Request, exc: PoolTimeoutError) -> JSONResponse:
    _LOG.error("Request %s %s: %s", request.method, request.url.path, exc)
    return error_response(exc, 500)
