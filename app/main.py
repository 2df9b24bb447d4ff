import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.logging import configure_logging
from app.routers import deadlines as deadlines_router
from app.routers import jobs as jobs_router
from app.routers import slack as slack_router
from app.services.container import BotServices, build_services, get_services
from app.core.errors import (
    AccountabilityBotError,
    bot_exception_handler,
    validation_exception_handler,
    unhandled_exception_handler,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)

    # Tests install their own container before startup.
    if getattr(app.state, "services", None) is None:
        app.state.services = build_services(settings)
    services: BotServices = app.state.services

    scheduler_task = None
    if services.scheduler_enabled:
        scheduler_task = asyncio.create_task(
            services.scheduler.run_forever(services.scheduler_poll_seconds)
        )
    else:
        logger.info("Scheduler disabled — jobs run only via /jobs/*")

    logger.info(
        "Accountability bot ready (%s): %d roster users, %d users tracked",
        settings.APP_ENV, len(services.roster), services.engine.tracked_users,
    )
    try:
        yield
    finally:
        if scheduler_task is not None:
            scheduler_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await scheduler_task
        logger.info("Accountability bot stopped")


app = FastAPI(
    title="Accountability Bot API",
    description=(
        "**Slack accountability bot**\n\n"
        "Sends a daily end-of-day check-in to the team roster, answers replies "
        "with motivational messages and role-specific deadlines, and chases "
        "overdue deadlines every morning.\n\n"
        "All error responses follow the `{code, message, details}` envelope."
    ),
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Exception handlers (most specific first) ---
app.add_exception_handler(AccountabilityBotError, bot_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

# --- Routers ---
app.include_router(slack_router.router)
app.include_router(deadlines_router.router)
app.include_router(jobs_router.router)


@app.get("/health", tags=["health"], summary="Health check")
def health(services: BotServices = Depends(get_services)):
    """
    Returns `{"status": "ok", ...}` with the number of users that have a
    deadline record and whether the in-process scheduler is running.
    Used by Railway / Render for liveness probes.
    """
    return {
        "status": "ok",
        "env": settings.APP_ENV,
        "users_tracked": services.engine.tracked_users,
        "scheduler": "enabled" if services.scheduler_enabled else "disabled",
    }
