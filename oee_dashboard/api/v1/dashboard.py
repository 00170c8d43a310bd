"""
OEE Floor Dashboard - Dashboard API Routes

This module provides the read endpoints of the dashboard: the composed
dashboard result for a filter, the filter options, the sortable PM schedule
and spare part tables, and a machine's defect adjustment history.
"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query, status
from starlette.concurrency import run_in_threadpool
import structlog

from oee_dashboard.api.dependencies import get_dashboard_service
from oee_dashboard.models.production import (
    DashboardResult, DefectAdjustmentLog, EnrichedMaintenanceSchedule,
    FilterOptions, FilterSpec, MachineStatusFilter, ShiftFilter, SparePartStatus
)
from oee_dashboard.services.dashboard_service import DashboardService
from oee_dashboard.services.sorting import PmScheduleSortField, SortDirection, SparePartSortField

logger = structlog.get_logger()

router = APIRouter()


def get_filter_spec(
    date_from: date = Query(..., alias="dateFrom", description="First day of the window (inclusive)"),
    date_to: date = Query(..., alias="dateTo", description="Last day of the window (inclusive)"),
    area: str = Query("all", description="Area name or 'all'"),
    shift: ShiftFilter = Query(ShiftFilter.ALL, description="Shift code or 'all'"),
    machine_status: MachineStatusFilter = Query(
        MachineStatusFilter.ALL, alias="machineStatus", description="Machine status selector"
    )
) -> FilterSpec:
    """Dashboard filter from query parameters."""
    return FilterSpec(
        date_from=date_from,
        date_to=date_to,
        area=area,
        shift=shift,
        machine_status=machine_status,
    )


@router.get("/dashboard", response_model=DashboardResult, status_code=status.HTTP_200_OK)
async def get_dashboard(
    filter_spec: FilterSpec = Depends(get_filter_spec),
    service: DashboardService = Depends(get_dashboard_service)
) -> DashboardResult:
    """Get the complete dashboard for a filter."""
    result = await run_in_threadpool(service.get_dashboard_data, filter_spec)

    logger.debug(
        "Dashboard served",
        date_from=str(filter_spec.date_from),
        date_to=str(filter_spec.date_to),
        area=filter_spec.area,
        records=len(result.production_log)
    )

    return result


@router.get("/dashboard/filters", response_model=FilterOptions, status_code=status.HTTP_200_OK)
async def get_filter_options(
    service: DashboardService = Depends(get_dashboard_service)
) -> FilterOptions:
    """Get the areas, lines and machines a filter can select."""
    return service.get_filter_options()


@router.get(
    "/maintenance/pm-schedule",
    response_model=List[EnrichedMaintenanceSchedule],
    status_code=status.HTTP_200_OK
)
async def get_pm_schedule(
    filter_spec: FilterSpec = Depends(get_filter_spec),
    sort_by: PmScheduleSortField = Query(PmScheduleSortField.NEXT_PM_DATE, alias="sortBy"),
    direction: SortDirection = Query(SortDirection.ASCENDING),
    service: DashboardService = Depends(get_dashboard_service)
) -> List[EnrichedMaintenanceSchedule]:
    """Get the PM schedule of the machines in scope."""
    return service.list_pm_schedule(filter_spec, sort_by, direction)


@router.get("/spare-parts", response_model=List[SparePartStatus], status_code=status.HTTP_200_OK)
async def list_spare_parts(
    sort_by: SparePartSortField = Query(SparePartSortField.PART_CODE, alias="sortBy"),
    direction: SortDirection = Query(SortDirection.ASCENDING),
    service: DashboardService = Depends(get_dashboard_service)
) -> List[SparePartStatus]:
    """Get spare parts with their stock status."""
    return service.list_spare_parts(sort_by, direction)


@router.get(
    "/machines/{machine_id}/defect-adjustments",
    response_model=List[DefectAdjustmentLog],
    status_code=status.HTTP_200_OK
)
async def get_defect_adjustment_history(
    machine_id: str,
    service: DashboardService = Depends(get_dashboard_service)
) -> List[DefectAdjustmentLog]:
    """Get a machine's defect quantity corrections, newest first."""
    return service.get_defect_adjustment_history(machine_id)
