"""
OEE Floor Dashboard - Maintenance API Routes

This module provides the write endpoints for maintenance orders and spare
parts.
"""

from fastapi import APIRouter, Depends, status
import structlog

from oee_dashboard.api.dependencies import get_dashboard_service
from oee_dashboard.models.production import (
    MaintenanceOrder, MaintenanceOrderCreate, MaintenanceOrderStatusUpdate,
    SparePart, SparePartCreate, SparePartUpdate
)
from oee_dashboard.services.dashboard_service import DashboardService

logger = structlog.get_logger()

router = APIRouter()


@router.post("/maintenance-orders", response_model=MaintenanceOrder, status_code=status.HTTP_201_CREATED)
async def create_maintenance_order(
    order_data: MaintenanceOrderCreate,
    service: DashboardService = Depends(get_dashboard_service)
) -> MaintenanceOrder:
    """Open a maintenance order."""
    return service.add_maintenance_order(order_data)


@router.patch(
    "/maintenance-orders/{order_id}",
    response_model=MaintenanceOrder,
    status_code=status.HTTP_200_OK
)
async def update_maintenance_order(
    order_id: int,
    status_update: MaintenanceOrderStatusUpdate,
    service: DashboardService = Depends(get_dashboard_service)
) -> MaintenanceOrder:
    """Move a maintenance order to a new status."""
    return service.update_maintenance_order_status(order_id, status_update)


@router.post("/spare-parts", response_model=SparePart, status_code=status.HTTP_201_CREATED)
async def create_spare_part(
    part_data: SparePartCreate,
    service: DashboardService = Depends(get_dashboard_service)
) -> SparePart:
    """Register a spare part."""
    return service.add_spare_part(part_data)


@router.put("/spare-parts/{part_id}", response_model=SparePart, status_code=status.HTTP_200_OK)
async def update_spare_part(
    part_id: int,
    part_update: SparePartUpdate,
    service: DashboardService = Depends(get_dashboard_service)
) -> SparePart:
    """Edit a spare part."""
    return service.update_spare_part(part_id, part_update)


@router.post("/spare-parts/{part_id}/flag", response_model=SparePart, status_code=status.HTTP_200_OK)
async def toggle_spare_part_flag(
    part_id: int,
    service: DashboardService = Depends(get_dashboard_service)
) -> SparePart:
    """Flip a spare part's flagged-for-order marker."""
    part = service.toggle_spare_part_flag(part_id)
    if part.flagged_for_order:
        logger.info("Spare part flagged for order", part_id=part_id, part_code=part.part_code)
    return part
