"""
OEE Floor Dashboard - Dashboard Service

This module is the single entry point the UI talks to. It composes the scope
resolver, the OEE calculator and the aggregation engine into one dashboard
result per filter, exposes the record store's mutation operations, and
provides the session object that discards superseded refreshes.
"""

import asyncio
import dataclasses
import threading
from datetime import timedelta
from typing import List, Mapping, Optional

import structlog

from oee_dashboard.config import Settings, settings as default_settings
from oee_dashboard.models.production import (
    BenchmarkingSection, DashboardResult, DefectAdjustmentLog, DefectRecord,
    DefectUpdate, DowntimeRecord, DowntimeSection, EnrichedMaintenanceSchedule,
    FilterOptions, FilterSpec, MachineCreate, MachineInfo, MachineUpdate,
    MaintenanceOrder, MaintenanceOrderCreate, MaintenanceOrderStatusUpdate,
    MaintenanceSection, MaintenanceType, NewDefectData, PerformanceSection,
    ProductionLogEntry, ProductionRecord, ProductionRecordCreate, QualitySection,
    SparePart, SparePartCreate, SparePartStatus, SparePartUpdate, StockStatus,
    TrendPoint
)
from oee_dashboard.monitoring.application_metrics import (
    dashboard_queries_total, dashboard_query_duration, superseded_requests_total
)
from oee_dashboard.services import aggregation_engine as engine
from oee_dashboard.services.benchmark_service import build_benchmarking
from oee_dashboard.services.maintenance_service import OPEN_STATUSES, MaintenanceAnalytics
from oee_dashboard.services.oee_calculator import OEECalculator
from oee_dashboard.services.record_store import RecordStore, StoreSnapshot
from oee_dashboard.services.scope_resolver import (
    ResolvedScope, available_areas, latest_date, resolve_scope,
    select_defects, select_downtime, select_production
)
from oee_dashboard.services.sorting import (
    DefectSortField, PmScheduleSortField, ProductionLogSortField, SortDirection,
    SparePartSortField, sort_defects, sort_pm_schedule, sort_production_log,
    sort_rows, sort_spare_parts
)
from oee_dashboard.utils.exceptions import DashboardError

logger = structlog.get_logger()


class DashboardService:
    """Builds dashboard results from an injected record store."""

    def __init__(self, store: RecordStore, settings: Optional[Settings] = None):
        self.store = store
        self.settings = settings or default_settings
        self.maintenance = MaintenanceAnalytics(
            reminder_days=self.settings.MAINTENANCE_REMINDER_DAYS,
            mttr_alert_minutes=self.settings.MTTR_ALERT_MINUTES,
            mttr_warning_minutes=self.settings.MTTR_WARNING_MINUTES,
        )

    # Queries

    def get_dashboard_data(self, filter_spec: FilterSpec) -> DashboardResult:
        """
        Build the complete dashboard for a filter.

        The result is computed from one store snapshot, so it is deterministic
        for an unchanged store and never mixes records from before and after
        a concurrent write.

        Raises:
            InvalidRangeError: if the filter's start date is after its end date.
            InvalidRecordError: if a production record in scope is malformed.
            InconsistentScopeError: if a record in scope references a machine
                missing from master data.
        """
        with dashboard_query_duration.time():
            try:
                result = self._build(filter_spec, self.store.snapshot())
            except DashboardError as e:
                dashboard_queries_total.labels(outcome="error").inc()
                logger.error(
                    "Dashboard query failed",
                    error_code=e.error_code,
                    error=e.message,
                    date_from=str(filter_spec.date_from),
                    date_to=str(filter_spec.date_to),
                    area=filter_spec.area
                )
                raise

        dashboard_queries_total.labels(outcome="success").inc()
        return result

    def get_filter_options(self) -> FilterOptions:
        """Areas, lines and machines a filter can select, plus the latest data date."""
        snapshot = self.store.snapshot()
        line_area_map = self.settings.LINE_AREA_MAP
        return FilterOptions(
            available_areas=available_areas(line_area_map),
            available_lines=list(line_area_map.keys()),
            available_machines=[machine.machine_id for machine in snapshot.machines],
            default_date=latest_date([record.date for record in snapshot.production]),
        )

    def get_defect_adjustment_history(self, machine_id: str) -> List[DefectAdjustmentLog]:
        """Adjustment journal entries for a machine, newest first."""
        self.store.get_machine(machine_id)
        return list(reversed(self.store.get_adjustment_logs(machine_id=machine_id)))

    def list_spare_parts(
        self,
        sort_by: SparePartSortField = SparePartSortField.PART_CODE,
        direction: SortDirection = SortDirection.ASCENDING
    ) -> List[SparePartStatus]:
        parts = sort_spare_parts(self.store.snapshot().spare_parts, sort_by, direction)
        return self.maintenance.spare_parts(parts)

    def list_pm_schedule(
        self,
        filter_spec: FilterSpec,
        sort_by: PmScheduleSortField = PmScheduleSortField.NEXT_PM_DATE,
        direction: SortDirection = SortDirection.ASCENDING
    ) -> List[EnrichedMaintenanceSchedule]:
        snapshot = self.store.snapshot()
        scope = resolve_scope(filter_spec, snapshot.machines, self.settings.LINE_AREA_MAP)
        schedule = self.maintenance.pm_schedule(
            snapshot.maintenance_schedules, snapshot.machine_map(), scope.machine_ids, scope.date_to
        )
        return sort_pm_schedule(schedule, sort_by, direction)

    # Mutations

    def record_defect_correction(self, prod_id: int, new_defect_quantity: int, acting_user: str) -> DefectAdjustmentLog:
        return self.store.record_defect_correction(prod_id, new_defect_quantity, acting_user)

    def append_defect_record(self, data: NewDefectData) -> DefectRecord:
        return self.store.append_defect_record(data)

    def update_defect_record(self, defect_id: int, data: DefectUpdate) -> DefectRecord:
        return self.store.update_defect_record(defect_id, data)

    def add_machine(self, data: MachineCreate) -> MachineInfo:
        return self.store.add_machine(data)

    def update_machine(self, machine_id: str, data: MachineUpdate) -> MachineInfo:
        return self.store.update_machine(machine_id, data)

    def add_production_record(self, data: ProductionRecordCreate) -> ProductionRecord:
        return self.store.add_production_record(data)

    def add_maintenance_order(self, data: MaintenanceOrderCreate) -> MaintenanceOrder:
        return self.store.add_maintenance_order(data)

    def update_maintenance_order_status(self, order_id: int, data: MaintenanceOrderStatusUpdate) -> MaintenanceOrder:
        return self.store.update_maintenance_order_status(order_id, data)

    def add_spare_part(self, data: SparePartCreate) -> SparePart:
        return self.store.add_spare_part(data)

    def update_spare_part(self, part_id: int, data: SparePartUpdate) -> SparePart:
        return self.store.update_spare_part(part_id, data)

    def toggle_spare_part_flag(self, part_id: int) -> SparePart:
        return self.store.toggle_spare_part_flag(part_id)

    # Composition

    def _build(self, filter_spec: FilterSpec, snapshot: StoreSnapshot) -> DashboardResult:
        scope = resolve_scope(filter_spec, snapshot.machines, self.settings.LINE_AREA_MAP)
        machines = snapshot.machine_map()
        machines_in_scope = [m for m in snapshot.machines if m.machine_id in scope.machine_ids]

        entries = engine.attribute_to_current_lines(
            OEECalculator.annotate_all(select_production(snapshot.production, scope)), machines
        )
        downtime = select_downtime(snapshot.downtime, scope)
        defects = select_defects(snapshot.defects, scope)
        trend = self._trend(snapshot, scope)
        top = self.settings.TOP_N
        summary = engine.summarize(entries)

        logger.debug(
            "Dashboard scope resolved",
            lines=list(scope.line_ids),
            machines=len(scope.machine_ids),
            production_records=len(entries),
            downtime_records=len(downtime),
            defect_records=len(defects)
        )

        broken_down = {
            order.machine_id for order in snapshot.maintenance_orders
            if order.type == MaintenanceType.BREAKDOWN and order.status in OPEN_STATUSES
        }

        return DashboardResult(
            filter=filter_spec,
            production_log=sort_production_log(entries, ProductionLogSortField.OEE, SortDirection.DESCENDING),
            downtime_records=sort_rows(downtime, lambda d: d.date, SortDirection.DESCENDING),
            defect_records=sort_defects(defects, DefectSortField.DATE, SortDirection.DESCENDING),
            available_lines=list(scope.line_ids),
            available_machines=[m.machine_id for m in machines_in_scope],
            machine_status=engine.machine_status(entries, machines_in_scope, broken_down),
            summary=summary,
            performance=PerformanceSection(
                seven_day_trend=trend,
                production_boxplot=engine.boxplot_by_line(entries, scope.line_ids),
                oee_heatmap=engine.oee_heatmap(entries, scope.line_ids, scope.shifts),
            ),
            quality=QualitySection(
                defect_pareto=engine.defect_pareto(defects),
                defect_rate_trend=trend,
                defect_trend=trend,
                top5_defect_lines=engine.top_defect_lines(entries, top),
                defects_by_root_cause=engine.root_cause_pareto(defects),
            ),
            downtime=self._downtime_section(entries, downtime, scope, machines, trend),
            maintenance=self._maintenance_section(snapshot, entries, scope, machines_in_scope),
            benchmarking=self._benchmarking_section(snapshot, entries, scope),
        )

    def _trend(self, snapshot: StoreSnapshot, scope: ResolvedScope) -> List[TrendPoint]:
        window_start = scope.date_to - timedelta(days=self.settings.TREND_DAYS - 1)
        window = dataclasses.replace(scope, date_from=window_start)
        candidates = OEECalculator.annotate_all(select_production(snapshot.production, window))
        candidates = engine.attribute_to_current_lines(candidates, snapshot.machine_map())
        return engine.daily_trend(candidates, scope, self.settings.TREND_DAYS)

    def _downtime_section(
        self,
        entries: List[ProductionLogEntry],
        downtime: List[DowntimeRecord],
        scope: ResolvedScope,
        machines: Mapping[str, MachineInfo],
        trend: List[TrendPoint]
    ) -> DowntimeSection:
        downtime_pareto = engine.downtime_pareto(downtime)
        reasons: List[str] = []
        for record in downtime:
            if record.reason not in reasons:
                reasons.append(record.reason)

        return DowntimeSection(
            downtime_pareto=downtime_pareto,
            downtime_trend=trend,
            downtime_by_category=downtime_pareto[:self.settings.TOP_N],
            top5_downtime_machines=engine.top_downtime_machines(entries, self.settings.TOP_N),
            downtime_by_line=engine.stacked_breakdown(downtime, scope.line_ids, machines),
            unique_downtime_reasons=reasons,
        )

    def _maintenance_section(
        self,
        snapshot: StoreSnapshot,
        entries: List[ProductionLogEntry],
        scope: ResolvedScope,
        machines_in_scope: List[MachineInfo]
    ) -> MaintenanceSection:
        machine_ids = [m.machine_id for m in machines_in_scope]
        breakdowns = self.maintenance.breakdowns_in_scope(snapshot.maintenance_orders, scope)
        stats = self.maintenance.machine_stats(entries, breakdowns, machine_ids)
        parts = self.maintenance.spare_parts(snapshot.spare_parts)

        return MaintenanceSection(
            kpis=self.maintenance.kpis(entries, breakdowns, stats, self.settings.TOP_N),
            schedule=self.maintenance.order_schedule(
                snapshot.maintenance_orders, scope.machine_ids, scope.date_to
            ),
            pm_schedule=self.maintenance.pm_schedule(
                snapshot.maintenance_schedules, snapshot.machine_map(), scope.machine_ids, scope.date_to
            ),
            spare_parts=parts,
            low_stock_parts=[p for p in parts if p.stock_status != StockStatus.SUFFICIENT],
            machine_stats=stats,
        )

    def _benchmarking_section(
        self,
        snapshot: StoreSnapshot,
        entries: List[ProductionLogEntry],
        scope: ResolvedScope
    ) -> BenchmarkingSection:
        return build_benchmarking(
            entries,
            snapshot.oee_targets,
            scope.line_ids,
            scope.date_to,
            alert_threshold=self.settings.OEE_ALERT_THRESHOLD,
        )


class RequestGeneration:
    """Monotonic request tokens; only the newest token is current."""

    def __init__(self):
        self._lock = threading.Lock()
        self._current = 0

    def next(self) -> int:
        with self._lock:
            self._current += 1
            return self._current

    def is_current(self, token: int) -> bool:
        with self._lock:
            return token == self._current


class DashboardSession:
    """
    One UI's view of the dashboard.

    Each refresh supersedes the previous one: the older in-flight computation
    is cancelled and, should it still finish, its result is discarded. The
    computation runs in a worker thread so the event loop stays responsive.
    """

    def __init__(self, service: DashboardService):
        self.service = service
        self.generation = RequestGeneration()
        self.latest: Optional[DashboardResult] = None
        self._task: Optional[asyncio.Task] = None

    async def refresh(self, filter_spec: FilterSpec) -> Optional[DashboardResult]:
        """Recompute for a filter; None when a newer refresh superseded this one."""
        token = self.generation.next()
        if self._task is not None and not self._task.done():
            self._task.cancel()

        task = asyncio.ensure_future(asyncio.to_thread(self.service.get_dashboard_data, filter_spec))
        self._task = task
        try:
            result = await task
        except asyncio.CancelledError:
            if self.generation.is_current(token):
                raise
            return self._discard(token)

        if not self.generation.is_current(token):
            return self._discard(token)

        self.latest = result
        return result

    @staticmethod
    def _discard(token: int) -> None:
        superseded_requests_total.inc()
        logger.debug("Superseded dashboard refresh discarded", token=token)
        return None
