from fastapi import FastAPI

from .admin import router as admin_router
from .discounts import router as discounts_router
from .notifications import router as notifications_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    app.include_router(notifications_router)
    app.include_router(discounts_router)
    app.include_router(admin_router)
