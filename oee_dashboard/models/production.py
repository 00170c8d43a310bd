"""
OEE Floor Dashboard - Production Data Models

This module defines Pydantic models for the dashboard engine: raw production,
downtime and defect records, master data, mutation payloads, and the
aggregation views returned to the dashboard UI.

All models serialize with camelCase aliases so the JSON field names match
what the dashboard front end consumes.
"""

from datetime import datetime, date
from typing import Any, Dict, List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# Enums for status and types
class ShiftCode(str, Enum):
    """Production shift enumeration."""
    A = "A"
    B = "B"
    C = "C"


SHIFTS: List[str] = [shift.value for shift in ShiftCode]


class ShiftFilter(str, Enum):
    """Shift selector accepted by the dashboard filter."""
    ALL = "all"
    A = "A"
    B = "B"
    C = "C"


class MachineStatus(str, Enum):
    """Machine master-data status enumeration."""
    ACTIVE = "active"
    INACTIVE = "inactive"


class MachineStatusFilter(str, Enum):
    """Machine status selector accepted by the dashboard filter."""
    ALL = "all"
    ACTIVE = "active"
    INACTIVE = "inactive"


class Severity(str, Enum):
    """Defect severity enumeration."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class DefectStatus(str, Enum):
    """Defect record lifecycle status enumeration."""
    OPEN = "Open"
    IN_PROGRESS = "In Progress"
    CLOSED = "Closed"


class CauseCategory(str, Enum):
    """Root cause (4M+E) category enumeration."""
    MAN = "Man"
    MACHINE = "Machine"
    MATERIAL = "Material"
    METHOD = "Method"
    ENVIRONMENT = "Environment"


class MaintenanceType(str, Enum):
    """Maintenance order type enumeration."""
    PM = "PM"
    CM = "CM"
    BREAKDOWN = "Breakdown"


class MaintenancePriority(str, Enum):
    """Maintenance order priority enumeration."""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class MaintenanceOrderStatus(str, Enum):
    """Maintenance order status enumeration."""
    OPEN = "Open"
    IN_PROGRESS = "InProgress"
    DONE = "Done"
    CANCELED = "Canceled"


class PmStatus(str, Enum):
    """Preventive maintenance schedule status."""
    ON_SCHEDULE = "On schedule"
    DUE_SOON = "Due soon"
    OVERDUE = "Overdue"


class StockStatus(str, Enum):
    """Spare part stock status."""
    NEED_TO_ORDER = "Need to order"
    ALMOST_OUT = "Almost out"
    SUFFICIENT = "Sufficient"


class MachineRunState(str, Enum):
    """Machine state shown on the shop floor layout."""
    RUNNING = "Running"
    STOPPED = "Stopped"
    ERROR = "Error"
    INACTIVE = "Inactive"


class MaintenanceHealth(str, Enum):
    """Per-machine maintenance health band."""
    ALERT = "Alert"
    WARNING = "Warning"
    NORMAL = "Normal"


# Base models
class BaseDashboardModel(BaseModel):
    """Base model for dashboard entities."""

    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# Master data
class MachineInfo(BaseDashboardModel):
    """Static machine descriptor."""
    machine_id: str
    machine_name: str
    line_id: str
    ideal_cycle_time: float = Field(..., description="Minutes per unit")
    design_speed: float = Field(..., description="Units per minute")
    status: MachineStatus = MachineStatus.ACTIVE
    x: Optional[float] = None
    y: Optional[float] = None


class MachineCreate(BaseDashboardModel):
    """Model for registering a machine."""
    machine_id: str = Field(..., min_length=1, max_length=50)
    machine_name: str = Field(..., min_length=1, max_length=100)
    line_id: str = Field(..., min_length=1, max_length=20)
    ideal_cycle_time: float = Field(..., gt=0)
    design_speed: float = Field(..., gt=0)
    status: MachineStatus = MachineStatus.ACTIVE
    x: Optional[float] = Field(None, ge=0, le=100)
    y: Optional[float] = Field(None, ge=0, le=100)


class MachineUpdate(BaseDashboardModel):
    """Model for editing a machine."""
    machine_name: Optional[str] = Field(None, min_length=1, max_length=100)
    line_id: Optional[str] = Field(None, min_length=1, max_length=20)
    ideal_cycle_time: Optional[float] = Field(None, gt=0)
    design_speed: Optional[float] = Field(None, gt=0)
    status: Optional[MachineStatus] = None
    x: Optional[float] = Field(None, ge=0, le=100)
    y: Optional[float] = Field(None, ge=0, le=100)


# Production records
class ProductionRecord(BaseDashboardModel):
    """One machine/shift/day production observation.

    Numeric preconditions are enforced by the OEE calculator rather than
    here, so that malformed rows from an ingestion source surface as
    InvalidRecordError at the point of use.
    """
    prod_id: int
    date: date
    line_id: str
    machine_id: str
    item_code: str
    actual_quantity: int
    defect_quantity: int
    run_time_minutes: float
    downtime_minutes: float
    ideal_cycle_time: float = Field(..., description="Minutes per unit")
    shift: ShiftCode


class ProductionRecordCreate(BaseDashboardModel):
    """Model for entering a production record."""
    date: date
    machine_id: str = Field(..., min_length=1)
    item_code: str = Field(..., min_length=1, max_length=50)
    actual_quantity: int = Field(..., ge=0)
    defect_quantity: int = Field(0, ge=0)
    run_time_minutes: float = Field(..., ge=0)
    downtime_minutes: float = Field(0, ge=0)
    ideal_cycle_time: Optional[float] = Field(None, gt=0, description="Defaults to the machine's ideal cycle time")
    shift: ShiftCode


class ProductionLogEntry(ProductionRecord):
    """Production record annotated with its derived metrics."""
    availability: float
    performance: float
    quality: float
    oee: float


class DowntimeRecord(BaseDashboardModel):
    """One downtime episode."""
    downtime_id: int
    date: date
    machine_id: str
    reason: str
    duration_minutes: float = Field(..., gt=0)
    start_time: str = Field(..., description="HH:MM")
    end_time: str = Field(..., description="HH:MM")

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_clock_time(cls, v):
        """Validate HH:MM clock times."""
        hours, sep, minutes = v.partition(":")
        if not sep or not (hours.isdigit() and minutes.isdigit()):
            raise ValueError("time must be formatted as HH:MM")
        if int(hours) > 23 or int(minutes) > 59:
            raise ValueError("time must be a valid clock time")
        return v


class DefectRecord(BaseDashboardModel):
    """One quality defect observation."""
    defect_id: int
    date: date
    machine_id: str
    shift: ShiftCode
    defect_type: str
    cause_category: Optional[CauseCategory] = None
    quantity: int = Field(..., gt=0)
    note: Optional[str] = None
    severity: Severity = Severity.LOW
    status: DefectStatus = DefectStatus.OPEN
    is_abnormal: bool = False
    reporter_id: int
    linked_maintenance_order_id: Optional[int] = None
    image_urls: List[str] = Field(default_factory=list)


class NewDefectData(BaseDashboardModel):
    """Model for operator defect entry."""
    date: date
    machine_id: str = Field(..., min_length=1)
    shift: ShiftCode
    defect_type: str = Field(..., min_length=1, max_length=100)
    cause_category: Optional[CauseCategory] = None
    quantity: int = Field(..., gt=0)
    note: Optional[str] = Field(None, max_length=1000)
    severity: Severity = Severity.LOW
    status: DefectStatus = DefectStatus.OPEN
    is_abnormal: bool = False
    reporter_id: int
    linked_maintenance_order_id: Optional[int] = None
    image_urls: List[str] = Field(default_factory=list)


class DefectUpdate(BaseDashboardModel):
    """Model for moving a defect record through its lifecycle."""
    status: Optional[DefectStatus] = None
    severity: Optional[Severity] = None
    cause_category: Optional[CauseCategory] = None
    note: Optional[str] = Field(None, max_length=1000)
    linked_maintenance_order_id: Optional[int] = None


class DefectAdjustmentLog(BaseDashboardModel):
    """Append-only audit entry for a defect quantity correction."""
    log_id: int
    prod_id: int
    machine_id: str
    timestamp: datetime
    previous_value: int
    new_value: int
    user: str


class DefectCorrectionRequest(BaseDashboardModel):
    """Model for a defect quantity correction request."""
    new_defect_quantity: int
    acting_user: str = Field(..., min_length=1, max_length=100)


# Maintenance & spare parts
class MaintenanceOrder(BaseDashboardModel):
    """Maintenance work order."""
    order_id: int
    machine_id: str
    type: MaintenanceType
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    status: MaintenanceOrderStatus = MaintenanceOrderStatus.OPEN
    reported_by_id: int
    assigned_to_id: Optional[int] = None
    symptom: str
    downtime_min: Optional[float] = None
    created_at: datetime
    due_date: Optional[date] = None
    completed_at: Optional[datetime] = None
    linked_defect_id: Optional[int] = None


class MaintenanceOrderCreate(BaseDashboardModel):
    """Model for opening a maintenance order."""
    machine_id: str = Field(..., min_length=1)
    type: MaintenanceType
    priority: MaintenancePriority = MaintenancePriority.MEDIUM
    reported_by_id: int
    assigned_to_id: Optional[int] = None
    symptom: str = Field(..., min_length=1, max_length=1000)
    downtime_min: Optional[float] = Field(None, ge=0)
    created_at: datetime
    due_date: Optional[date] = None
    linked_defect_id: Optional[int] = None


class MaintenanceOrderStatusUpdate(BaseDashboardModel):
    """Model for changing a maintenance order's status."""
    status: MaintenanceOrderStatus
    completed_at: Optional[datetime] = None
    downtime_min: Optional[float] = Field(None, ge=0)


class MaintenanceSchedule(BaseDashboardModel):
    """Preventive maintenance cycle for one machine."""
    schedule_id: int
    machine_id: str
    pm_type: str
    last_pm_date: date
    cycle_days: int = Field(..., gt=0)


class EnrichedMaintenanceSchedule(MaintenanceSchedule):
    """PM schedule with its computed next date and status."""
    machine_name: str
    next_pm_date: date
    status: PmStatus


class SparePart(BaseDashboardModel):
    """Spare part inventory position."""
    part_id: int
    part_code: str
    name: str
    location: str
    available: int = Field(..., ge=0)
    in_transit: int = Field(0, ge=0)
    reserved: int = Field(0, ge=0)
    used_in_period: int = Field(0, ge=0)
    safety_stock: int = Field(0, ge=0)
    reorder_point: int = Field(0, ge=0)
    maintenance_interval_days: Optional[int] = None
    flagged_for_order: bool = False


class SparePartCreate(BaseDashboardModel):
    """Model for registering a spare part."""
    part_code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    location: str = Field(..., min_length=1, max_length=100)
    available: int = Field(..., ge=0)
    in_transit: int = Field(0, ge=0)
    reserved: int = Field(0, ge=0)
    used_in_period: int = Field(0, ge=0)
    safety_stock: int = Field(0, ge=0)
    reorder_point: int = Field(0, ge=0)
    maintenance_interval_days: Optional[int] = Field(None, gt=0)


class SparePartUpdate(BaseDashboardModel):
    """Model for editing a spare part."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, min_length=1, max_length=100)
    available: Optional[int] = Field(None, ge=0)
    in_transit: Optional[int] = Field(None, ge=0)
    reserved: Optional[int] = Field(None, ge=0)
    used_in_period: Optional[int] = Field(None, ge=0)
    safety_stock: Optional[int] = Field(None, ge=0)
    reorder_point: Optional[int] = Field(None, ge=0)
    maintenance_interval_days: Optional[int] = Field(None, gt=0)


class SparePartStatus(SparePart):
    """Spare part with its computed stock status."""
    stock_status: StockStatus


class OeeTarget(BaseDashboardModel):
    """OEE benchmark target."""
    target_id: int
    level: str = Field(..., description="Plant, Area, Line or Machine")
    line_id: Optional[str] = None
    target_oee: float = Field(..., ge=0, le=1)
    target_output: float = Field(..., ge=0)
    target_defect_rate: float = Field(..., ge=0, le=1)
    effective_from: date
    effective_to: Optional[date] = None


# Filter
class FilterSpec(BaseDashboardModel):
    """Dashboard filter selection."""
    date_from: date
    date_to: date
    area: str = "all"
    shift: ShiftFilter = ShiftFilter.ALL
    machine_status: MachineStatusFilter = MachineStatusFilter.ALL


class FilterOptions(BaseDashboardModel):
    """Values the filter bar can offer."""
    available_areas: List[str]
    available_lines: List[str]
    available_machines: List[str]
    default_date: Optional[date] = None


# Aggregation views
class DataPoint(BaseDashboardModel):
    """Named numeric value for bar and pie charts."""
    name: str
    value: float


class ParetoEntry(BaseDashboardModel):
    """Pareto row with its cumulative percentage."""
    name: str
    value: float
    cumulative_percent: float


class BoxplotStats(BaseDashboardModel):
    """Five-number summary for one series."""
    name: str
    min: float
    q1: float
    median: float
    q3: float
    max: float


class HeatmapCell(BaseDashboardModel):
    """Mean OEE for one line and shift."""
    line: str
    shift: str
    value: float


class TrendPoint(BaseDashboardModel):
    """One day of trend metrics."""
    date: date
    oee: float = 0.0
    availability: float = 0.0
    performance: float = 0.0
    quality: float = 0.0
    defect_rate: float = 0.0
    downtime: float = 0.0
    total_production: int = 0
    total_defects: int = 0


class TopDefectLine(BaseDashboardModel):
    """Line ranked by defect rate."""
    line_id: str
    defect_rate: float
    total_defects: int
    total_production: int


class TopDowntimeMachine(BaseDashboardModel):
    """Machine ranked by downtime minutes."""
    machine_id: str
    total_downtime: float


class MachineStatusData(BaseDashboardModel):
    """Current state of a machine for the shop floor layout."""
    machine_id: str
    line_id: str
    status: MachineRunState
    oee: Optional[float] = None


class MachineMaintenanceStats(BaseDashboardModel):
    """Reliability figures for one machine."""
    machine_id: str
    mtbf: float
    mttr: float
    breakdown_count: int
    total_downtime: float
    status: MaintenanceHealth


class MaintenanceKpis(BaseDashboardModel):
    """Reliability figures for the scope as a whole."""
    mtbf: float
    mttr: float
    breakdown_count: int
    top_mttr_machines: List[DataPoint]


class MaintenanceOrderSchedule(BaseDashboardModel):
    """Open maintenance orders grouped by urgency."""
    overdue: List[MaintenanceOrder]
    due_soon: List[MaintenanceOrder]


class Summary(BaseDashboardModel):
    """Headline KPIs for the filtered scope."""
    total_production: int
    total_defects: int
    total_downtime: float
    machine_utilization: float
    avg_oee: float
    avg_availability: float
    avg_performance: float
    avg_quality: float
    defect_rate: float
    production_by_line: List[DataPoint]
    oee_by_line: List[DataPoint]


class PerformanceSection(BaseDashboardModel):
    seven_day_trend: List[TrendPoint]
    production_boxplot: List[BoxplotStats]
    oee_heatmap: List[HeatmapCell]


class QualitySection(BaseDashboardModel):
    defect_pareto: List[ParetoEntry]
    defect_rate_trend: List[TrendPoint]
    defect_trend: List[TrendPoint]
    top5_defect_lines: List[TopDefectLine]
    defects_by_root_cause: List[ParetoEntry]


class DowntimeSection(BaseDashboardModel):
    downtime_pareto: List[ParetoEntry]
    downtime_trend: List[TrendPoint]
    downtime_by_category: List[ParetoEntry]
    top5_downtime_machines: List[TopDowntimeMachine]
    downtime_by_line: List[Dict[str, Any]]
    unique_downtime_reasons: List[str]


class MaintenanceSection(BaseDashboardModel):
    kpis: MaintenanceKpis
    schedule: MaintenanceOrderSchedule
    pm_schedule: List[EnrichedMaintenanceSchedule]
    spare_parts: List[SparePartStatus]
    low_stock_parts: List[SparePartStatus]
    machine_stats: List[MachineMaintenanceStats]


class LineBenchmark(BaseDashboardModel):
    """Line target compared with actual performance."""
    line_id: str
    target_oee: float
    actual_oee: float
    target_output: float
    actual_output: float
    target_defect_rate: float
    actual_defect_rate: float
    meets_oee_target: bool
    below_alert_threshold: bool


class BenchmarkingSection(BaseDashboardModel):
    oee_by_line: List[DataPoint]
    targets: List[LineBenchmark]


class DashboardResult(BaseDashboardModel):
    """Full aggregation bundle for one filter selection."""
    filter: FilterSpec
    production_log: List[ProductionLogEntry]
    downtime_records: List[DowntimeRecord]
    defect_records: List[DefectRecord]
    available_lines: List[str]
    available_machines: List[str]
    machine_status: List[MachineStatusData]
    summary: Summary
    performance: PerformanceSection
    quality: QualitySection
    downtime: DowntimeSection
    maintenance: MaintenanceSection
    benchmarking: BenchmarkingSection
