"""
OEE Floor Dashboard - Table Sorting

Each sortable table has an explicit enumeration of its sortable columns,
mapped to a key function. Missing values always sort last, in either
direction.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Sequence, Tuple, TypeVar

from oee_dashboard.models.production import (
    DefectRecord, EnrichedMaintenanceSchedule, ProductionLogEntry, SparePart, StockStatus
)
from oee_dashboard.services.maintenance_service import MaintenanceAnalytics

T = TypeVar("T")


class SortDirection(str, Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"


class ProductionLogSortField(str, Enum):
    DATE = "date"
    MACHINE_ID = "machineId"
    LINE_ID = "lineId"
    SHIFT = "shift"
    ACTUAL_QUANTITY = "actualQuantity"
    DEFECT_QUANTITY = "defectQuantity"
    DOWNTIME_MINUTES = "downtimeMinutes"
    AVAILABILITY = "availability"
    PERFORMANCE = "performance"
    QUALITY = "quality"
    OEE = "oee"


class DefectSortField(str, Enum):
    DATE = "date"
    MACHINE_ID = "machineId"
    DEFECT_TYPE = "defectType"
    QUANTITY = "quantity"
    SEVERITY = "severity"
    STATUS = "status"


class SparePartSortField(str, Enum):
    PART_CODE = "partCode"
    NAME = "name"
    LOCATION = "location"
    AVAILABLE = "available"
    IN_TRANSIT = "inTransit"
    REORDER_POINT = "reorderPoint"
    SAFETY_STOCK = "safetyStock"
    STATUS = "status"


class PmScheduleSortField(str, Enum):
    MACHINE_ID = "machineId"
    PM_TYPE = "pmType"
    LAST_PM_DATE = "lastPmDate"
    NEXT_PM_DATE = "nextPmDate"
    STATUS = "status"


_SEVERITY_ORDER = {"Low": 1, "Medium": 2, "High": 3}
_DEFECT_STATUS_ORDER = {"Open": 1, "In Progress": 2, "Closed": 3}
_STOCK_STATUS_ORDER = {
    StockStatus.NEED_TO_ORDER.value: 1,
    StockStatus.ALMOST_OUT.value: 2,
    StockStatus.SUFFICIENT.value: 3,
}
_PM_STATUS_ORDER = {"Overdue": 1, "Due soon": 2, "On schedule": 3}

PRODUCTION_LOG_KEYS: Dict[ProductionLogSortField, Callable[[ProductionLogEntry], Any]] = {
    ProductionLogSortField.DATE: lambda r: r.date,
    ProductionLogSortField.MACHINE_ID: lambda r: r.machine_id,
    ProductionLogSortField.LINE_ID: lambda r: r.line_id,
    ProductionLogSortField.SHIFT: lambda r: r.shift,
    ProductionLogSortField.ACTUAL_QUANTITY: lambda r: r.actual_quantity,
    ProductionLogSortField.DEFECT_QUANTITY: lambda r: r.defect_quantity,
    ProductionLogSortField.DOWNTIME_MINUTES: lambda r: r.downtime_minutes,
    ProductionLogSortField.AVAILABILITY: lambda r: r.availability,
    ProductionLogSortField.PERFORMANCE: lambda r: r.performance,
    ProductionLogSortField.QUALITY: lambda r: r.quality,
    ProductionLogSortField.OEE: lambda r: r.oee,
}

DEFECT_KEYS: Dict[DefectSortField, Callable[[DefectRecord], Any]] = {
    DefectSortField.DATE: lambda r: r.date,
    DefectSortField.MACHINE_ID: lambda r: r.machine_id,
    DefectSortField.DEFECT_TYPE: lambda r: r.defect_type.lower(),
    DefectSortField.QUANTITY: lambda r: r.quantity,
    DefectSortField.SEVERITY: lambda r: _SEVERITY_ORDER.get(r.severity),
    DefectSortField.STATUS: lambda r: _DEFECT_STATUS_ORDER.get(r.status),
}

SPARE_PART_KEYS: Dict[SparePartSortField, Callable[[SparePart], Any]] = {
    SparePartSortField.PART_CODE: lambda p: p.part_code.lower(),
    SparePartSortField.NAME: lambda p: p.name.lower(),
    SparePartSortField.LOCATION: lambda p: p.location.lower(),
    SparePartSortField.AVAILABLE: lambda p: p.available,
    SparePartSortField.IN_TRANSIT: lambda p: p.in_transit,
    SparePartSortField.REORDER_POINT: lambda p: p.reorder_point,
    SparePartSortField.SAFETY_STOCK: lambda p: p.safety_stock,
    SparePartSortField.STATUS: lambda p: _STOCK_STATUS_ORDER[MaintenanceAnalytics.stock_status(p).value],
}

PM_SCHEDULE_KEYS: Dict[PmScheduleSortField, Callable[[EnrichedMaintenanceSchedule], Any]] = {
    PmScheduleSortField.MACHINE_ID: lambda s: s.machine_id,
    PmScheduleSortField.PM_TYPE: lambda s: s.pm_type,
    PmScheduleSortField.LAST_PM_DATE: lambda s: s.last_pm_date,
    PmScheduleSortField.NEXT_PM_DATE: lambda s: s.next_pm_date,
    PmScheduleSortField.STATUS: lambda s: _PM_STATUS_ORDER.get(s.status),
}


def sort_rows(
    rows: Sequence[T],
    key: Callable[[T], Any],
    direction: SortDirection = SortDirection.ASCENDING
) -> List[T]:
    """Stable sort with missing values last regardless of direction."""
    present: List[Tuple[Any, T]] = []
    missing: List[T] = []
    for row in rows:
        value = key(row)
        if value is None:
            missing.append(row)
        else:
            present.append((value, row))

    descending = SortDirection(direction) == SortDirection.DESCENDING
    present.sort(key=lambda pair: pair[0], reverse=descending)
    return [row for _, row in present] + missing


def sort_production_log(
    rows: Sequence[ProductionLogEntry],
    field: ProductionLogSortField,
    direction: SortDirection = SortDirection.DESCENDING
) -> List[ProductionLogEntry]:
    return sort_rows(rows, PRODUCTION_LOG_KEYS[ProductionLogSortField(field)], direction)


def sort_defects(
    rows: Sequence[DefectRecord],
    field: DefectSortField,
    direction: SortDirection = SortDirection.DESCENDING
) -> List[DefectRecord]:
    return sort_rows(rows, DEFECT_KEYS[DefectSortField(field)], direction)


def sort_spare_parts(
    rows: Sequence[SparePart],
    field: SparePartSortField,
    direction: SortDirection = SortDirection.ASCENDING
) -> List[SparePart]:
    return sort_rows(rows, SPARE_PART_KEYS[SparePartSortField(field)], direction)


def sort_pm_schedule(
    rows: Sequence[EnrichedMaintenanceSchedule],
    field: PmScheduleSortField,
    direction: SortDirection = SortDirection.ASCENDING
) -> List[EnrichedMaintenanceSchedule]:
    return sort_rows(rows, PM_SCHEDULE_KEYS[PmScheduleSortField(field)], direction)
