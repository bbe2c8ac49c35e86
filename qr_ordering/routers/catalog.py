"""
Catalog Admin Endpoints

Tables (with their QR payload), menu items and categories.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends

from qr_ordering.core.exceptions import AppError, InternalError
from qr_ordering.dependencies import get_catalog_service
from qr_ordering.schemas import (
    ApiResponse,
    CategoryCreate,
    CategoryResponse,
    ErrorResponse,
    MenuItemCreate,
    MenuItemResponse,
    MessageResponse,
    TableCreate,
    TableResponse,
)
from qr_ordering.services.catalog import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Catalog"])

ERRORS = {400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}}


# =============================================================================
# TABLES
# =============================================================================

@router.get("/tables", response_model=ApiResponse[List[TableResponse]])
async def list_tables(
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[List[TableResponse]]:
    """Active tables ordered by number."""
    tables = await service.list_tables()
    return ApiResponse(data=[TableResponse.model_validate(t) for t in tables])


@router.get("/tables/{table_number}", response_model=ApiResponse[TableResponse], responses=ERRORS)
async def get_table(
    table_number: int,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[TableResponse]:
    """Look a table up by the number printed on it."""
    table = await service.get_table_by_number(table_number)
    return ApiResponse(data=TableResponse.model_validate(table))


@router.post("/tables", response_model=ApiResponse[TableResponse], responses=ERRORS)
async def create_table(
    body: TableCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[TableResponse]:
    try:
        table = await service.create_table(body)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error creating table: {e}")
        raise InternalError("Failed to create table", str(e))

    return ApiResponse(
        message="Table created successfully",
        data=TableResponse.model_validate(table),
    )


@router.put("/tables/{table_id}", response_model=ApiResponse[TableResponse], responses=ERRORS)
async def update_table(
    table_id: int,
    body: TableCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[TableResponse]:
    try:
        table = await service.update_table(table_id, body)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error updating table {table_id}: {e}")
        raise InternalError("Failed to update table", str(e))

    return ApiResponse(
        message="Table updated successfully",
        data=TableResponse.model_validate(table),
    )


@router.delete("/tables/{table_id}", response_model=MessageResponse, responses=ERRORS)
async def delete_table(
    table_id: int,
    service: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await service.delete_table(table_id)
    return MessageResponse(message="Table deleted successfully")


# =============================================================================
# MENU
# =============================================================================

@router.get("/menu", response_model=ApiResponse[List[MenuItemResponse]])
async def list_menu(
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[List[MenuItemResponse]]:
    """Whole menu ordered by category, then name."""
    items = await service.list_menu()
    return ApiResponse(data=[MenuItemResponse.model_validate(i) for i in items])


@router.get("/menu/{item_id}", response_model=ApiResponse[MenuItemResponse], responses=ERRORS)
async def get_menu_item(
    item_id: int,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[MenuItemResponse]:
    item = await service.get_menu_item(item_id)
    return ApiResponse(data=MenuItemResponse.model_validate(item))


@router.post("/menu", response_model=ApiResponse[MenuItemResponse], responses=ERRORS)
async def create_menu_item(
    body: MenuItemCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[MenuItemResponse]:
    try:
        item = await service.create_menu_item(body)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error creating menu item: {e}")
        raise InternalError("Failed to create menu item", str(e))

    return ApiResponse(
        message="Menu item created successfully",
        data=MenuItemResponse.model_validate(item),
    )


@router.put("/menu/{item_id}", response_model=ApiResponse[MenuItemResponse], responses=ERRORS)
async def update_menu_item(
    item_id: int,
    body: MenuItemCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[MenuItemResponse]:
    try:
        item = await service.update_menu_item(item_id, body)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error updating menu item {item_id}: {e}")
        raise InternalError("Failed to update menu item", str(e))

    return ApiResponse(
        message="Menu item updated successfully",
        data=MenuItemResponse.model_validate(item),
    )


@router.delete("/menu/{item_id}", response_model=MessageResponse, responses=ERRORS)
async def delete_menu_item(
    item_id: int,
    service: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    """Refused while any order line still points at the item."""
    await service.delete_menu_item(item_id)
    return MessageResponse(message="Menu item deleted successfully")


# =============================================================================
# CATEGORIES
# =============================================================================

@router.get("/categories", response_model=ApiResponse[List[CategoryResponse]])
async def list_categories(
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[List[CategoryResponse]]:
    names = await service.list_categories()
    return ApiResponse(data=[CategoryResponse(name=n) for n in names])


@router.post("/categories", response_model=ApiResponse[CategoryResponse], responses=ERRORS)
async def create_category(
    body: CategoryCreate,
    service: CatalogService = Depends(get_catalog_service),
) -> ApiResponse[CategoryResponse]:
    name = await service.create_category(body.name)
    return ApiResponse(
        message="Category created successfully",
        data=CategoryResponse(name=name),
    )


@router.delete("/categories/{name}", response_model=MessageResponse, responses=ERRORS)
async def delete_category(
    name: str,
    service: CatalogService = Depends(get_catalog_service),
) -> MessageResponse:
    await service.delete_category(name)
    return MessageResponse(message="Category deleted successfully")
