"""
OEE Floor Dashboard - Aggregation Engine

This module folds metric-annotated, scoped records into the roll-ups the
dashboard renders: summary KPIs, per-line breakdowns, Pareto tables,
boxplot statistics, the line × shift heatmap, daily trends, top-N rankings
and stacked category breakdowns.

Every function is pure. Sparse input (no records, zero denominators) yields
zero or empty values rather than raising; only a record whose machine is
missing from master data raises InconsistentScopeError. Output values never
depend on input order; display order follows first-encountered order where
values tie.
"""

from datetime import date, timedelta
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Set, Tuple, TypeVar

import numpy as np
import structlog

from oee_dashboard.models.production import (
    BoxplotStats, DataPoint, DefectRecord, DowntimeRecord, HeatmapCell,
    MachineInfo, MachineRunState, MachineStatus, MachineStatusData,
    ParetoEntry, ProductionLogEntry, Summary, TopDefectLine,
    TopDowntimeMachine, TrendPoint
)
from oee_dashboard.services.scope_resolver import ResolvedScope, select_production
from oee_dashboard.utils.exceptions import InconsistentScopeError

logger = structlog.get_logger()

T = TypeVar("T")

UNASSIGNED_CAUSE = "Unassigned"


def _mean(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0:
        return 0.0
    return numerator / denominator


def group_by(items: Iterable[T], key: Callable[[T], str]) -> Dict[str, List[T]]:
    """Group items by key, keeping keys in first-encountered order."""
    groups: Dict[str, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups


def top_n(items: Iterable[T], key: Callable[[T], float], n: int) -> List[T]:
    """The n items with the largest key; ties keep first-encountered order."""
    if n <= 0:
        return []
    return sorted(items, key=key, reverse=True)[:n]


# Summary

def summarize(entries: Sequence[ProductionLogEntry]) -> Summary:
    """
    Headline KPIs for a set of annotated production records.

    Average OEE, availability, performance and quality are unweighted means
    of the per-record values: every shift record counts once regardless of
    its volume.
    """
    total_production = sum(e.actual_quantity for e in entries)
    total_defects = sum(e.defect_quantity for e in entries)
    total_downtime = sum(e.downtime_minutes for e in entries)
    total_runtime = sum(e.run_time_minutes for e in entries)

    return Summary(
        total_production=total_production,
        total_defects=total_defects,
        total_downtime=total_downtime,
        machine_utilization=_ratio(total_runtime, total_runtime + total_downtime),
        avg_oee=_mean([e.oee for e in entries]),
        avg_availability=_mean([e.availability for e in entries]),
        avg_performance=_mean([e.performance for e in entries]),
        avg_quality=_mean([e.quality for e in entries]),
        defect_rate=_ratio(total_defects, total_production + total_defects),
        production_by_line=production_by_line(entries),
        oee_by_line=oee_by_line(entries),
    )


def production_by_line(entries: Sequence[ProductionLogEntry]) -> List[DataPoint]:
    """Good units produced per line."""
    return [
        DataPoint(name=line_id, value=sum(e.actual_quantity for e in group))
        for line_id, group in group_by(entries, lambda e: e.line_id).items()
    ]


def oee_by_line(entries: Sequence[ProductionLogEntry]) -> List[DataPoint]:
    """Mean per-record OEE per line."""
    return [
        DataPoint(name=line_id, value=_mean([e.oee for e in group]))
        for line_id, group in group_by(entries, lambda e: e.line_id).items()
    ]


# Pareto tables

def pareto(items: Iterable[Tuple[str, float]]) -> List[ParetoEntry]:
    """
    Rank categories by summed value with a running cumulative percentage.

    Categories are summed, sorted descending (ties keep first-encountered
    order) and each entry carries runningSum / total × 100. The last entry of
    a table with a positive total is exactly 100.
    """
    totals: Dict[str, float] = {}
    for name, value in items:
        totals[name] = totals.get(name, 0) + value

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    grand_total = sum(value for _, value in ranked)

    table: List[ParetoEntry] = []
    running = 0.0
    for name, value in ranked:
        running += value
        table.append(ParetoEntry(
            name=name,
            value=value,
            cumulative_percent=_ratio(running, grand_total) * 100,
        ))
    return table


def defect_pareto(defects: Iterable[DefectRecord]) -> List[ParetoEntry]:
    return pareto((d.defect_type, d.quantity) for d in defects)


def root_cause_pareto(defects: Iterable[DefectRecord]) -> List[ParetoEntry]:
    return pareto((d.cause_category or UNASSIGNED_CAUSE, d.quantity) for d in defects)


def downtime_pareto(downtime: Iterable[DowntimeRecord]) -> List[ParetoEntry]:
    return pareto((d.reason, d.duration_minutes) for d in downtime)


# Distribution views

def boxplot_stats(name: str, values: Sequence[float]) -> BoxplotStats:
    """
    Five-number summary using linear-interpolation (R-7) quartiles.

    An empty series yields all-zero stats.
    """
    if not values:
        return BoxplotStats(name=name, min=0.0, q1=0.0, median=0.0, q3=0.0, max=0.0)

    series = np.asarray(values, dtype=float)
    q1, median, q3 = np.percentile(series, [25, 50, 75], method="linear")
    return BoxplotStats(
        name=name,
        min=float(series.min()),
        q1=float(q1),
        median=float(median),
        q3=float(q3),
        max=float(series.max()),
    )


def boxplot_by_line(
    entries: Sequence[ProductionLogEntry],
    line_ids: Sequence[str],
    value: Callable[[ProductionLogEntry], float] = lambda e: e.actual_quantity
) -> List[BoxplotStats]:
    """Boxplot stats of a per-record value for every line in scope."""
    groups = group_by(entries, lambda e: e.line_id)
    return [
        boxplot_stats(line_id, [value(e) for e in groups.get(line_id, [])])
        for line_id in line_ids
    ]


def oee_heatmap(
    entries: Sequence[ProductionLogEntry],
    line_ids: Sequence[str],
    shifts: Sequence[str]
) -> List[HeatmapCell]:
    """Mean OEE for every (line, shift) pair, 0 where no records match."""
    groups = group_by(entries, lambda e: f"{e.line_id}|{e.shift}")
    return [
        HeatmapCell(
            line=line_id,
            shift=shift,
            value=_mean([e.oee for e in groups.get(f"{line_id}|{shift}", [])]),
        )
        for line_id in line_ids
        for shift in shifts
    ]


# Trends

def trend_point(day: date, entries: Sequence[ProductionLogEntry]) -> TrendPoint:
    """Mean metrics and totals for one day's records."""
    total_production = sum(e.actual_quantity for e in entries)
    total_defects = sum(e.defect_quantity for e in entries)
    return TrendPoint(
        date=day,
        oee=_mean([e.oee for e in entries]),
        availability=_mean([e.availability for e in entries]),
        performance=_mean([e.performance for e in entries]),
        quality=_mean([e.quality for e in entries]),
        defect_rate=_ratio(total_defects, total_production + total_defects),
        downtime=sum(e.downtime_minutes for e in entries),
        total_production=total_production,
        total_defects=total_defects,
    )


def trend_window(end_date: date, days: int) -> List[date]:
    """The trailing days ending at end_date, oldest first."""
    return [end_date - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def daily_trend(
    entries: Iterable[ProductionLogEntry],
    scope: ResolvedScope,
    days: int
) -> List[TrendPoint]:
    """
    Trailing N-day trend ending at the scope's end date.

    Each day is filtered independently from the given records to that day
    plus the scope's machines and shift, so the series does not depend on
    the scope's start date. Days without records report zeros.
    """
    entries = list(entries)
    return [
        trend_point(day, select_production(entries, scope.for_day(day)))
        for day in trend_window(scope.date_to, days)
    ]


# Rankings

def top_defect_lines(entries: Sequence[ProductionLogEntry], n: int) -> List[TopDefectLine]:
    """Lines with the highest defect rate."""
    lines = []
    for line_id, group in group_by(entries, lambda e: e.line_id).items():
        total_defects = sum(e.defect_quantity for e in group)
        total_production = sum(e.actual_quantity for e in group)
        lines.append(TopDefectLine(
            line_id=line_id,
            defect_rate=_ratio(total_defects, total_production + total_defects),
            total_defects=total_defects,
            total_production=total_production,
        ))
    return top_n(lines, lambda line: line.defect_rate, n)


def top_downtime_machines(entries: Sequence[ProductionLogEntry], n: int) -> List[TopDowntimeMachine]:
    """Machines with the most downtime minutes."""
    machines = [
        TopDowntimeMachine(machine_id=machine_id, total_downtime=sum(e.downtime_minutes for e in group))
        for machine_id, group in group_by(entries, lambda e: e.machine_id).items()
    ]
    return top_n(machines, lambda machine: machine.total_downtime, n)


# Stacked breakdowns

def machine_line(machine_id: str, machines: Mapping[str, MachineInfo]) -> str:
    """Line of a machine; raises if the machine is not in master data."""
    machine = machines.get(machine_id)
    if machine is None:
        logger.error("Record references machine missing from master data", machine_id=machine_id)
        raise InconsistentScopeError(machine_id)
    return machine.line_id


def attribute_to_current_lines(
    entries: Iterable[ProductionLogEntry],
    machines: Mapping[str, MachineInfo]
) -> List[ProductionLogEntry]:
    """Report each entry under its machine's current line."""
    attributed = []
    for entry in entries:
        line_id = machine_line(entry.machine_id, machines)
        if entry.line_id != line_id:
            entry = entry.model_copy(update={"line_id": line_id})
        attributed.append(entry)
    return attributed


def stacked_breakdown(
    downtime: Sequence[DowntimeRecord],
    line_ids: Sequence[str],
    machines: Mapping[str, MachineInfo]
) -> List[Dict[str, Any]]:
    """
    Downtime minutes per line and reason for a stacked bar chart.

    Every row carries a key for every reason seen anywhere in the set, so
    all rows share one key set; absent combinations report 0.
    """
    reasons: List[str] = []
    minutes: Dict[Tuple[str, str], float] = {}
    for record in downtime:
        line_id = machine_line(record.machine_id, machines)
        if record.reason not in reasons:
            reasons.append(record.reason)
        key = (line_id, record.reason)
        minutes[key] = minutes.get(key, 0) + record.duration_minutes

    rows: List[Dict[str, Any]] = []
    for line_id in line_ids:
        row: Dict[str, Any] = {"name": line_id}
        for reason in reasons:
            row[reason] = minutes.get((line_id, reason), 0)
        rows.append(row)
    return rows


# Machine state

def machine_status(
    entries: Sequence[ProductionLogEntry],
    machines: Sequence[MachineInfo],
    broken_down: Set[str]
) -> List[MachineStatusData]:
    """
    Current state of each machine from its latest production record.

    Inactive machines report Inactive; machines with an open breakdown order
    report Error; otherwise Running when the latest record shows any OEE and
    Stopped when it shows none or there is no record.
    """
    latest: Dict[str, ProductionLogEntry] = {}
    for entry in entries:
        current = latest.get(entry.machine_id)
        if current is None or entry.date >= current.date:
            latest[entry.machine_id] = entry

    statuses = []
    for machine in machines:
        entry = latest.get(machine.machine_id)
        oee = entry.oee if entry is not None else None
        if machine.status == MachineStatus.INACTIVE:
            state = MachineRunState.INACTIVE
        elif machine.machine_id in broken_down:
            state = MachineRunState.ERROR
        elif oee:
            state = MachineRunState.RUNNING
        else:
            state = MachineRunState.STOPPED
        statuses.append(MachineStatusData(
            machine_id=machine.machine_id,
            line_id=machine.line_id,
            status=state,
            oee=oee,
        ))
    return statuses
