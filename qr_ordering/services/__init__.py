"""
                        Services Module

Business logic behind the HTTP routes. Services receive their session
(and broadcaster) from FastAPI dependencies and keep no state of their own.

Services:
    - orders: order placement and status tracking
    - catalog: tables, menu items and categories
    - accounts: registration and login
    - analytics: pandas-based sales reports
    - notifications: kitchen event relay (local / Redis)
    - excel_manager: thread-safe Excel order ledger
"""

from qr_ordering.services.accounts import AccountService
from qr_ordering.services.analytics import AnalyticsService
from qr_ordering.services.catalog import CatalogService
from qr_ordering.services.excel_manager import ExcelManager
from qr_ordering.services.orders import OrderService, StatusTracker

__all__ = [
    "AccountService",
    "AnalyticsService",
    "CatalogService",
    "ExcelManager",
    "OrderService",
    "StatusTracker",
]
