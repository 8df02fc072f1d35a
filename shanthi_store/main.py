import logging
import time
import uuid

import sentry_sdk
import structlog
from fastapi import FastAPI, Request, status, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from shanthi_store.core.logging_config import configure_logging
from shanthi_store.core.config import settings
from shanthi_store.core.exceptions import APIError
from shanthi_store.core.rate_limiter import limiter
from shanthi_store.api.v1 import auth, cart, orders, payments, phonepe, users, wishlist
from shanthi_store.utils.response import error

API_VERSION = "1.0.0"

logger = structlog.get_logger()

ROUTERS = (
    (auth.router, "auth", "Authentication"),
    (users.router, "users", "Users"),
    (cart.router, "cart", "Cart"),
    (wishlist.router, "wishlist", "Wishlist"),
    (orders.router, "orders", "Orders"),
    (payments.router, "payments", "Payments"),
    (phonepe.router, "phonepe", "PhonePe"),
)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


def _init_sentry() -> None:
    if settings.ENVIRONMENT != "production" or not settings.SENTRY_DSN:
        return
    try:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.ENVIRONMENT,
            release=f"shanthi-store@{API_VERSION}",
            traces_sample_rate=0.1,
            integrations=[FastApiIntegration(), SqlalchemyIntegration()],
        )
    except Exception as exc:
        # Monitoring is optional, the API still starts
        logging.warning("Sentry init failed: %s", exc)


def _http_detail(detail):
    if isinstance(detail, str):
        return detail, []
    if isinstance(detail, list):
        return "Request failed", detail
    if isinstance(detail, dict):
        return detail.get("message", "Request failed"), detail.get("errors", [])
    return "Request failed", []


def _register_middleware(app: FastAPI) -> None:
    app.add_middleware(SlowAPIMiddleware)

    origins = list(settings.BACKEND_CORS_ORIGINS)
    if settings.FRONTEND_URL and settings.FRONTEND_URL not in origins:
        origins.append(settings.FRONTEND_URL)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Correlation-ID"],
        expose_headers=["X-Correlation-ID", "X-Process-Time"],
        max_age=3600,
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID") or uuid.uuid4().hex
        request.state.correlation_id = correlation_id
        structlog.contextvars.bind_contextvars(
            correlation_id=correlation_id,
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
            logger.info("request_completed", status_code=response.status_code, duration_ms=elapsed_ms)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["X-Correlation-ID"] = correlation_id
        response.headers["X-Process-Time"] = str(elapsed_ms)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return error("Too many requests. Please try again later.", status.HTTP_429_TOO_MANY_REQUESTS)

    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        return error(exc.message, exc.status_code, errors=exc.errors, data=exc.data)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        message, errors = _http_detail(exc.detail)
        return error(message, exc.status_code, errors=errors, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error("Validation failed", status.HTTP_422_UNPROCESSABLE_ENTITY, errors=exc.errors())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", error_type=type(exc).__name__)
        message = "Internal server error"
        if settings.DEBUG and settings.ENVIRONMENT != "production":
            message = f"{message}: {exc}"
        return error(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


def create_app() -> FastAPI:
    configure_logging()
    _init_sentry()

    application = FastAPI(
        title=settings.PROJECT_NAME,
        version=API_VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=None,
    )
    application.state.limiter = limiter

    _register_middleware(application)
    _register_exception_handlers(application)

    for router, prefix, tag in ROUTERS:
        application.include_router(router, prefix=f"{settings.API_V1_STR}/{prefix}", tags=[tag])

    @application.get("/health")
    def health_check():
        return {"status": "healthy", "environment": settings.ENVIRONMENT, "version": API_VERSION}

    return application


app = create_app()
