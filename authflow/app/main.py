# authflow/app/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.middleware.cors import CORSMiddleware

from authflow.app.api.v1.router import api_router
from authflow.app.core.config import Settings, get_settings
from authflow.app.core.exceptions import AppException, ValidationError
from authflow.app.core.logging import setup_logging
from authflow.app.core.rate_limit import limiter, rate_limit_exceeded_handler
from authflow.app.db.base import create_tables
from authflow.app.db.session import create_engine_from_settings, create_session_factory
from authflow.app.mail.client import EmailDispatcher, MailtrapMailer
from authflow.app.security.crypto import SecretCodec
from authflow.app.security.tokens import SessionTokens

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings

    engine = create_engine_from_settings(settings)
    app.state.session_factory = create_session_factory(engine)
    await create_tables(engine)

    mail_client = None
    if app.state.mailer is None:
        mail_client = httpx.AsyncClient(timeout=settings.MAIL_TIMEOUT_SECONDS)
        app.state.mailer = MailtrapMailer(settings, mail_client)

    logger.info("%s started (environment=%s)", settings.PROJECT_NAME, settings.ENVIRONMENT)
    try:
        yield
    finally:
        if mail_client is not None:
            await mail_client.aclose()
            app.state.mailer = None
        await engine.dispose()
        logger.info("%s stopped", settings.PROJECT_NAME)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected request body on %s: %s", request.url.path, exc.errors())
    error = ValidationError("Invalid request body")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


def create_app(
    settings: Optional[Settings] = None,
    mailer: Optional[EmailDispatcher] = None,
) -> FastAPI:
    """
    Build the application.

    The codec and token service are constructed here, so a bad
    ENCRYPTION_KEY stops the process before it starts listening.
    Database engine and mail client are opened by the lifespan.
    """
    settings = settings or get_settings()
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.PROJECT_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.codec = SecretCodec(settings.ENCRYPTION_KEY)
    app.state.session_tokens = SessionTokens(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_days=settings.SESSION_TOKEN_EXPIRE_DAYS,
        secure_cookie=settings.is_production,
    )
    app.state.mailer = mailer
    app.state.limiter = limiter

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.BACKEND_CORS_ORIGINS,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/")
    def root():
        return {"message": f"Welcome to {settings.PROJECT_NAME} API"}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.PORT)
