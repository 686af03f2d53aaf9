import logging

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from taskhub.config import settings
from taskhub.database import init_db
from taskhub.logging_setup import configure_logging, new_request_id, request_id_var
from taskhub.routers import auth, health, users
from taskhub.services.auth import (
    get_access_validator,
    get_auth_service,
    get_refresh_validator,
)
from taskhub.services.users import user_store

configure_logging(settings.log_level, settings.log_json)

LOGGER = logging.getLogger(__name__)
EVENTS = structlog.get_logger(__name__)

app = FastAPI(title="taskhub")

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)


@app.middleware("http")
async def request_context(request: Request, call_next):
    request_id = new_request_id(request.headers.get("X-Request-ID"))
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    EVENTS.error(
        "database_error",
        method=request.method,
        path=request.url.path,
        exc_info=exc,
    )
    return JSONResponse(status_code=500, content={"detail": "Database error"})


@app.on_event("startup")
def startup() -> None:
    settings.require_auth()
    settings.require_seed_admin()
    init_db()
    get_auth_service()
    get_access_validator()
    get_refresh_validator()
    if settings.seed_admin_email and settings.seed_admin_password:
        if user_store.ensure_admin(settings.seed_admin_email, settings.seed_admin_password):
            LOGGER.info("Seeded admin account")
    LOGGER.info("taskhub started")
