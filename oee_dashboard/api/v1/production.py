"""
OEE Floor Dashboard - Production API Routes

This module provides the write endpoints for machines, production records,
defect quantity corrections and operator defect entries.
"""

from fastapi import APIRouter, Depends, status

from oee_dashboard.api.dependencies import get_dashboard_service
from oee_dashboard.models.production import (
    DefectAdjustmentLog, DefectCorrectionRequest, DefectRecord, DefectUpdate,
    MachineCreate, MachineInfo, MachineUpdate, NewDefectData,
    ProductionRecord, ProductionRecordCreate
)
from oee_dashboard.services.dashboard_service import DashboardService

router = APIRouter()


# Machines

@router.post("/machines", response_model=MachineInfo, status_code=status.HTTP_201_CREATED)
async def create_machine(
    machine_data: MachineCreate,
    service: DashboardService = Depends(get_dashboard_service)
) -> MachineInfo:
    """Register a new machine."""
    return service.add_machine(machine_data)


@router.put("/machines/{machine_id}", response_model=MachineInfo, status_code=status.HTTP_200_OK)
async def update_machine(
    machine_id: str,
    machine_update: MachineUpdate,
    service: DashboardService = Depends(get_dashboard_service)
) -> MachineInfo:
    """Edit a machine's master data."""
    return service.update_machine(machine_id, machine_update)


# Production records

@router.post("/production", response_model=ProductionRecord, status_code=status.HTTP_201_CREATED)
async def create_production_record(
    record_data: ProductionRecordCreate,
    service: DashboardService = Depends(get_dashboard_service)
) -> ProductionRecord:
    """Append a production record."""
    return service.add_production_record(record_data)


@router.post(
    "/production/{prod_id}/defect-correction",
    response_model=DefectAdjustmentLog,
    status_code=status.HTTP_201_CREATED
)
async def correct_defect_quantity(
    prod_id: int,
    correction: DefectCorrectionRequest,
    service: DashboardService = Depends(get_dashboard_service)
) -> DefectAdjustmentLog:
    """Correct a production record's defect quantity; returns the journal entry."""
    return service.record_defect_correction(prod_id, correction.new_defect_quantity, correction.acting_user)


# Defect records

@router.post("/defects", response_model=DefectRecord, status_code=status.HTTP_201_CREATED)
async def create_defect_record(
    defect_data: NewDefectData,
    service: DashboardService = Depends(get_dashboard_service)
) -> DefectRecord:
    """Record an operator defect entry."""
    return service.append_defect_record(defect_data)


@router.patch("/defects/{defect_id}", response_model=DefectRecord, status_code=status.HTTP_200_OK)
async def update_defect_record(
    defect_id: int,
    defect_update: DefectUpdate,
    service: DashboardService = Depends(get_dashboard_service)
) -> DefectRecord:
    """Update a defect record's status, severity, cause or note."""
    return service.update_defect_record(defect_id, defect_update)
