"""
FastAPI Dependency Providers

Build request-scoped services from the per-request session, the shared
broadcaster and settings. Tests swap ``get_db``, ``get_broadcaster`` and
``get_settings`` through ``app.dependency_overrides``.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from qr_ordering.core.config import Settings, get_settings
from qr_ordering.database import get_db
from qr_ordering.services.accounts import AccountService
from qr_ordering.services.analytics import AnalyticsService
from qr_ordering.services.catalog import CatalogService
from qr_ordering.services.notifications import BaseBroadcaster, get_broadcaster
from qr_ordering.services.orders import OrderService, StatusTracker


def get_order_service(
    db: AsyncSession = Depends(get_db),
    broadcaster: BaseBroadcaster = Depends(get_broadcaster),
) -> OrderService:
    return OrderService(db, broadcaster)


def get_status_tracker(
    db: AsyncSession = Depends(get_db),
    broadcaster: BaseBroadcaster = Depends(get_broadcaster),
    settings: Settings = Depends(get_settings),
) -> StatusTracker:
    return StatusTracker(
        db,
        broadcaster,
        enforce_transitions=settings.enforce_status_transitions,
    )


def get_catalog_service(db: AsyncSession = Depends(get_db)) -> CatalogService:
    return CatalogService(db)


def get_account_service(db: AsyncSession = Depends(get_db)) -> AccountService:
    return AccountService(db)


def get_analytics_service(db: AsyncSession = Depends(get_db)) -> AnalyticsService:
    return AnalyticsService(db)
