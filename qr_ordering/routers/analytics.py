"""
Analytics Endpoints

Thin wrappers over AnalyticsService. Rolling reports take ``period``
(daily / weekly / monthly / yearly); date-range reports take
``start_date`` / ``end_date`` as YYYY-MM-DD.
"""

import logging
from datetime import date
from typing import Any, Awaitable, Optional, TypeVar

from fastapi import APIRouter, Depends, Query

from qr_ordering.core.exceptions import AppError, InternalError
from qr_ordering.dependencies import get_analytics_service
from qr_ordering.schemas import ApiResponse
from qr_ordering.services.analytics import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])

PERIOD_PATTERN = "^(daily|weekly|monthly|yearly)$"

T = TypeVar("T")


async def fetch_report(name: str, report: Awaitable[T]) -> ApiResponse[T]:
    try:
        data = await report
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error fetching {name} analytics: {e}")
        raise InternalError(f"Failed to fetch {name} analytics", str(e))

    return ApiResponse(data=data)


# =============================================================================
# CALENDAR REPORTS
# =============================================================================

@router.get("/daily", response_model=ApiResponse[dict[str, Any]])
async def daily_report(
    target_date: Optional[date] = Query(None, alias="date"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("daily", service.daily(target_date))


@router.get("/monthly", response_model=ApiResponse[dict[str, Any]])
async def monthly_report(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("monthly", service.monthly(month, year))


@router.get("/quarterly", response_model=ApiResponse[dict[str, Any]])
async def quarterly_report(
    quarter: Optional[int] = Query(None, ge=1, le=4),
    year: Optional[int] = Query(None, ge=2000),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("quarterly", service.quarterly(quarter, year))


@router.get("/yearly", response_model=ApiResponse[dict[str, Any]])
async def yearly_report(
    year: Optional[int] = Query(None, ge=2000),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("yearly", service.yearly(year))


# =============================================================================
# ROLLING REPORTS
# =============================================================================

@router.get("/summary", response_model=ApiResponse[dict[str, Any]])
async def summary(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    currency: str = Query("INR"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("summary", service.summary(period, currency))


@router.get("/payment-methods", response_model=ApiResponse[dict[str, int]])
async def payment_methods(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("payment method", service.payment_methods(period))


@router.get("/hourly-orders", response_model=ApiResponse[list[dict[str, Any]]])
async def hourly_orders(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("hourly", service.hourly(period))


@router.get("/table-performance", response_model=ApiResponse[list[dict[str, Any]]])
async def table_performance(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    currency: str = Query("INR"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("table performance", service.table_performance(period, currency))


@router.get("/category-performance", response_model=ApiResponse[list[dict[str, Any]]])
async def category_performance(
    period: str = Query("daily", pattern=PERIOD_PATTERN),
    currency: str = Query("INR"),
    service: AnalyticsService = Depends(get_analytics_service),
):
    return await fetch_report("category performance", service.category_performance(period, currency))


# =============================================================================
# DATE-RANGE REPORTS
# =============================================================================

@router.get("/revenue-orders", response_model=ApiResponse[list[dict[str, Any]]])
async def revenue_orders(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Revenue (INR) and order count per day."""
    return await fetch_report("revenue", service.revenue_orders(start_date, end_date))


@router.get("/top-items", response_model=ApiResponse[list[dict[str, Any]]])
async def top_items(
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    service: AnalyticsService = Depends(get_analytics_service),
):
    """Ten best-selling menu items by quantity."""
    return await fetch_report("top items", service.top_items(start_date, end_date))
