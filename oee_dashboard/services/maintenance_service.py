"""
OEE Floor Dashboard - Maintenance Analytics Service

This module provides maintenance reliability figures (MTBF / MTTR),
preventive maintenance schedule status, open order urgency and spare part
stock status for the dashboard's maintenance section.

MTBF is reported in hours of run time per breakdown and MTTR in minutes of
repair per breakdown. Scopes without breakdowns report 0 for both.
"""

from collections import defaultdict
from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Sequence, Set

import structlog

from oee_dashboard.models.production import (
    DataPoint, EnrichedMaintenanceSchedule, MachineInfo, MachineMaintenanceStats,
    MaintenanceHealth, MaintenanceKpis, MaintenanceOrder, MaintenanceOrderSchedule,
    MaintenanceOrderStatus, MaintenanceSchedule, MaintenanceType, PmStatus,
    ProductionLogEntry, SparePart, SparePartStatus, StockStatus
)
from oee_dashboard.services.aggregation_engine import top_n
from oee_dashboard.services.scope_resolver import ResolvedScope

logger = structlog.get_logger()

OPEN_STATUSES = (MaintenanceOrderStatus.OPEN.value, MaintenanceOrderStatus.IN_PROGRESS.value)


class MaintenanceAnalytics:
    """Maintenance reliability and scheduling analytics."""

    def __init__(
        self,
        reminder_days: int = 7,
        mttr_alert_minutes: float = 120.0,
        mttr_warning_minutes: float = 60.0
    ):
        self.reminder_days = reminder_days
        self.mttr_alert_minutes = mttr_alert_minutes
        self.mttr_warning_minutes = mttr_warning_minutes

    def breakdowns_in_scope(
        self,
        orders: Iterable[MaintenanceOrder],
        scope: ResolvedScope
    ) -> List[MaintenanceOrder]:
        """Non-canceled breakdown orders raised inside the scope."""
        return [
            order for order in orders
            if order.type == MaintenanceType.BREAKDOWN
            and order.status != MaintenanceOrderStatus.CANCELED
            and order.machine_id in scope.machine_ids
            and scope.contains_date(order.created_at.date())
        ]

    @staticmethod
    def repair_minutes(order: MaintenanceOrder) -> float:
        """Repair time of an order: recorded downtime, else open-to-close time."""
        if order.downtime_min is not None:
            return order.downtime_min
        if order.completed_at is not None:
            return max(0.0, (order.completed_at - order.created_at).total_seconds() / 60)
        return 0.0

    def machine_stats(
        self,
        entries: Sequence[ProductionLogEntry],
        breakdowns: Sequence[MaintenanceOrder],
        machine_ids: Iterable[str]
    ) -> List[MachineMaintenanceStats]:
        """Reliability figures for each machine, in the given order."""
        run_minutes: Dict[str, float] = defaultdict(float)
        downtime_minutes: Dict[str, float] = defaultdict(float)
        for entry in entries:
            run_minutes[entry.machine_id] += entry.run_time_minutes
            downtime_minutes[entry.machine_id] += entry.downtime_minutes

        repairs: Dict[str, List[float]] = defaultdict(list)
        for order in breakdowns:
            repairs[order.machine_id].append(self.repair_minutes(order))

        stats = []
        for machine_id in machine_ids:
            count = len(repairs[machine_id])
            mttr = sum(repairs[machine_id]) / count if count else 0.0
            mtbf = run_minutes[machine_id] / 60 / count if count else 0.0
            stats.append(MachineMaintenanceStats(
                machine_id=machine_id,
                mtbf=mtbf,
                mttr=mttr,
                breakdown_count=count,
                total_downtime=downtime_minutes[machine_id],
                status=self.health(mttr),
            ))
        return stats

    def health(self, mttr: float) -> MaintenanceHealth:
        if mttr >= self.mttr_alert_minutes:
            return MaintenanceHealth.ALERT
        if mttr >= self.mttr_warning_minutes:
            return MaintenanceHealth.WARNING
        return MaintenanceHealth.NORMAL

    def kpis(
        self,
        entries: Sequence[ProductionLogEntry],
        breakdowns: Sequence[MaintenanceOrder],
        stats: Sequence[MachineMaintenanceStats],
        n: int
    ) -> MaintenanceKpis:
        """Scope-wide MTBF / MTTR and the machines slowest to repair."""
        count = len(breakdowns)
        total_run_hours = sum(e.run_time_minutes for e in entries) / 60
        total_repair = sum(self.repair_minutes(order) for order in breakdowns)

        repaired = [s for s in stats if s.breakdown_count > 0]
        return MaintenanceKpis(
            mtbf=total_run_hours / count if count else 0.0,
            mttr=total_repair / count if count else 0.0,
            breakdown_count=count,
            top_mttr_machines=[
                DataPoint(name=s.machine_id, value=s.mttr)
                for s in top_n(repaired, lambda s: s.mttr, n)
            ],
        )

    def order_schedule(
        self,
        orders: Iterable[MaintenanceOrder],
        machine_ids: Set[str],
        as_of: date
    ) -> MaintenanceOrderSchedule:
        """Open orders past their due date, and those due within the reminder window."""
        horizon = as_of + timedelta(days=self.reminder_days)
        overdue: List[MaintenanceOrder] = []
        due_soon: List[MaintenanceOrder] = []
        for order in orders:
            if order.status not in OPEN_STATUSES or order.due_date is None:
                continue
            if order.machine_id not in machine_ids:
                continue
            if order.due_date < as_of:
                overdue.append(order)
            elif order.due_date <= horizon:
                due_soon.append(order)

        overdue.sort(key=lambda o: o.due_date)
        due_soon.sort(key=lambda o: o.due_date)
        return MaintenanceOrderSchedule(overdue=overdue, due_soon=due_soon)

    def pm_status(self, next_pm_date: date, as_of: date) -> PmStatus:
        if next_pm_date < as_of:
            return PmStatus.OVERDUE
        if next_pm_date <= as_of + timedelta(days=self.reminder_days):
            return PmStatus.DUE_SOON
        return PmStatus.ON_SCHEDULE

    def pm_schedule(
        self,
        schedules: Iterable[MaintenanceSchedule],
        machines: Mapping[str, MachineInfo],
        machine_ids: Set[str],
        as_of: date
    ) -> List[EnrichedMaintenanceSchedule]:
        """PM cycles for machines in scope, soonest first."""
        enriched = []
        for schedule in schedules:
            if schedule.machine_id not in machine_ids:
                continue
            machine = machines.get(schedule.machine_id)
            next_pm_date = schedule.last_pm_date + timedelta(days=schedule.cycle_days)
            enriched.append(EnrichedMaintenanceSchedule(
                **schedule.model_dump(),
                machine_name=machine.machine_name if machine else schedule.machine_id,
                next_pm_date=next_pm_date,
                status=self.pm_status(next_pm_date, as_of),
            ))
        enriched.sort(key=lambda s: s.next_pm_date)
        return enriched

    @staticmethod
    def stock_status(part: SparePart) -> StockStatus:
        """Order when stock plus inbound is below the reorder point; warn below safety stock."""
        if part.available + part.in_transit < part.reorder_point:
            return StockStatus.NEED_TO_ORDER
        if part.available < part.safety_stock:
            return StockStatus.ALMOST_OUT
        return StockStatus.SUFFICIENT

    def spare_parts(self, parts: Iterable[SparePart]) -> List[SparePartStatus]:
        return [
            SparePartStatus(**part.model_dump(), stock_status=self.stock_status(part))
            for part in parts
        ]
