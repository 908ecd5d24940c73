from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from account_service.core.config import Settings, get_settings
from account_service.core.exceptions import AccountServiceError, BadRequestError, DatabaseException
from account_service.core.logging import setup_logging
from account_service.db.store import UserStore
from account_service.routers import auth, users
from account_service.services.sessions import SessionManager

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, store: UserStore | None = None) -> FastAPI:
    if settings is None:
        settings = get_settings()
    setup_logging(settings.LOG_LEVEL)
    settings.validate_runtime_security()

    if store is None:
        store = UserStore(settings.DATABASE_URL)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            store.init()
        except SQLAlchemyError:
            # Without a credential store the service cannot do anything useful.
            logger.critical("Credential store connection failed; exiting", exc_info=True)
            raise SystemExit(1)
        try:
            yield
        finally:
            store.dispose()

    app = FastAPI(title=settings.APP_NAME, lifespan=lifespan)
    app.state.settings = settings
    app.state.store = store
    app.state.sessions = SessionManager(store, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(users.router, prefix="/api/users", tags=["users"])

    @app.exception_handler(AccountServiceError)
    async def handle_account_exception(_: Request, exc: AccountServiceError) -> JSONResponse:
        headers = exc.headers if getattr(exc, "headers", None) else None
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
        fields = [".".join(str(part) for part in err.get("loc", ()) if part != "body") for err in exc.errors()]
        error = BadRequestError("invalid_request", details={"fields": [f for f in fields if f]})
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(SQLAlchemyError)
    async def handle_store_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error("Unhandled credential store error on %s %s", request.method, request.url.path, exc_info=exc)
        error = DatabaseException()
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    return app
