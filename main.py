"""
main.py
FastAPI application entry point.
Registers all routers, middleware, startup/shutdown events.
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from logging import LogRecord

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator

from config.database import DocumentStore, close_db, get_store, init_db
from config.redis_client import close_redis, get_redis, init_redis
from config.settings import settings
from shared.utils.errors import PlatformError

# Service routers
from services.auth.router import router as auth_router
from services.user.router import router as user_router
from services.decorator.router import router as decorator_router
from services.booking.router import router as booking_router
from services.payment.router import router as payment_router
from services.work_order.router import router as work_order_router
from services.tracking.router import router as tracking_router
from services.admin.router import router as admin_router


# ── Logging ──────────────────────────────────────────────────

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": os.getenv("INSTANCE_NAME", "unknown"),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)


configure_logging()
logger = logging.getLogger(__name__)


# ── Lifespan (startup/shutdown) ───────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle handler."""
    logger.info("Starting %s v%s", settings.APP_NAME, settings.APP_VERSION)

    # Store failure here aborts startup
    app.state.store = await init_db()
    await init_redis()
    logger.info("Redis connected")

    yield

    await close_redis()
    await close_db(app.state.store)
    app.state.store = None
    logger.info("Server shutdown complete")


# ── App Factory ───────────────────────────────────────────────

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## Decor Booking Platform API

- **Decorators**: apply, admin approval promotes the applicant
- **Bookings**: customers book decoration services for events
- **Payments**: Stripe intents + one recorded payment per booking
- **Services**: admin assigns a decorator; Assigned → Confirmed → Completed; cash-out
- **Tracking**: append-only timeline per booking

### Authentication
All protected endpoints require `Authorization: Bearer <access_token>` issued
by the identity provider.

### Roles
- `user`: book and pay
- `decorator`: work assigned services, cash out
- `admin`: approve decorators, assign services, moderate users
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware (order matters, outermost first) ───────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add unique X-Request-ID to every request for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def process_time_middleware(request: Request, call_next):
        """Track and expose request processing time."""
        start = time.perf_counter()
        response = await call_next(request)
        process_time = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time"] = f"{process_time}ms"
        return response

    # ── Exception Handlers ─────────────────────────────────────────

    @app.exception_handler(PlatformError)
    async def platform_error_handler(request: Request, exc: PlatformError):
        request_id = getattr(request.state, "request_id", None)
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s %s", request_id, exc.code, exc.message, exc.context)
        body = exc.to_dict()
        body["request_id"] = request_id
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return JSONResponse(status_code=exc.status_code, content=body, headers=headers)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler. Never expose stack traces in production."""
        request_id = getattr(request.state, "request_id", None)
        logger.error(f"[{request_id}] Exception: {str(exc)}", exc_info=exc)

        detail = str(exc) if settings.DEBUG else "An internal server error occurred"
        return JSONResponse(
            status_code=500,
            content={
                "detail": detail,
                "code": "INTERNAL_ERROR",
                "request_id": request_id,
            },
        )

    # ── Routes ────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check(
        store: DocumentStore = Depends(get_store),
        redis=Depends(get_redis),
    ):
        checks = {"status": "ok", "version": settings.APP_VERSION}

        try:
            await store.ping()
            checks["database"] = "ok"
        except Exception:
            logger.warning("Health check: document store unreachable", exc_info=True)
            checks["database"] = "error"
            checks["status"] = "degraded"

        try:
            await redis.ping()
            checks["redis"] = "ok"
        except Exception:
            logger.warning("Health check: redis unreachable", exc_info=True)
            checks["redis"] = "error"
            checks["status"] = "degraded"

        checks["payments"] = "enabled" if settings.payments_enabled else "disabled"
        status_code = 200 if checks["status"] == "ok" else 503
        return JSONResponse(content=checks, status_code=status_code)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    # Register all service routers
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(decorator_router)
    app.include_router(booking_router)
    app.include_router(payment_router)
    app.include_router(work_order_router)
    app.include_router(tracking_router)
    app.include_router(admin_router)

    # ── Prometheus Metrics ─────────────────────────────────────────
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", tags=["Monitoring"])

    return app


# ── Entry Point ───────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
    )
