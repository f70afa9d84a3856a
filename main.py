import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from urbansprout.application.use_cases.discounts import DiscountApplicator
from urbansprout.config import get_settings
from urbansprout.infrastructure.database import SessionLocal, engine, initialize_database
from urbansprout.infrastructure.notifications import (
    ConnectionRegistry,
    NotificationDispatcher,
)
from urbansprout.infrastructure.repositories import NotificationStore
from urbansprout.infrastructure.scheduler import DiscountLifecycleScheduler
from urbansprout.interfaces.api.errors import register_exception_handlers
from urbansprout.interfaces.api.realtime import RealtimeGateway
from urbansprout.interfaces.api.routes import register_routes

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables, run the discount scheduler and release resources on exit."""

    initialize_database()
    if app.state.settings.discount_scheduler_enabled:
        app.state.scheduler.start()
    yield
    await app.state.scheduler.stop()
    engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the UrbanSprout FastAPI application."""

    settings = get_settings()
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(title="UrbanSprout realtime API", lifespan=lifespan)

    registry = ConnectionRegistry()
    store = NotificationStore(SessionLocal)
    dispatcher = NotificationDispatcher(store, registry, SessionLocal)
    applicator = DiscountApplicator(
        SessionLocal, max_retries=settings.product_update_max_retries
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.notification_store = store
    app.state.dispatcher = dispatcher
    app.state.applicator = applicator
    app.state.scheduler = DiscountLifecycleScheduler(
        applicator,
        dispatcher,
        SessionLocal,
        interval=settings.discount_scan_interval_seconds,
        item_timeout=settings.discount_item_timeout_seconds,
    )
    app.state.gateway = RealtimeGateway(registry, dispatcher, SessionLocal)

    # Browser clients of the storefront and the admin dashboard.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    register_routes(app)
    logger.debug("Application created")
    return app


app = create_app()
