"""
OEE Floor Dashboard - Scope Resolver

This module turns a dashboard filter into the concrete set of lines and
machines the aggregation engine works on, and selects the records that fall
inside that scope.

Resolution rules:
- area "all" expands to every mapped line; a named area expands to the lines
  mapped to it; an unknown area yields no lines
- a machine is in scope when its line is in scope and it satisfies the
  status selector
- the date window is inclusive on both ends
- the shift selector is carried on the scope and applied per record by the
  selectors below
"""

from dataclasses import dataclass
from datetime import date
from typing import FrozenSet, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

import structlog

from oee_dashboard.models.production import (
    SHIFTS, DefectRecord, DowntimeRecord, FilterSpec, MachineInfo,
    MachineStatusFilter, ShiftFilter
)
from oee_dashboard.utils.exceptions import InvalidRangeError

logger = structlog.get_logger()

ALL = "all"

RecordT = TypeVar("RecordT")


@dataclass(frozen=True)
class ResolvedScope:
    """Lines, machines, shift and date window selected by a filter."""
    machine_ids: FrozenSet[str]
    line_ids: Tuple[str, ...]
    shift: str
    date_from: date
    date_to: date

    @property
    def shifts(self) -> List[str]:
        """Shift codes the scope covers."""
        if self.shift == ALL:
            return list(SHIFTS)
        return [self.shift]

    def matches_shift(self, shift: str) -> bool:
        return self.shift == ALL or shift == self.shift

    def contains_date(self, day: date) -> bool:
        return self.date_from <= day <= self.date_to

    def for_day(self, day: date) -> "ResolvedScope":
        """The same scope narrowed to a single calendar day."""
        return ResolvedScope(
            machine_ids=self.machine_ids,
            line_ids=self.line_ids,
            shift=self.shift,
            date_from=day,
            date_to=day,
        )


def available_areas(line_area_map: Mapping[str, str]) -> List[str]:
    """Areas the filter can offer, in first-mapped order, led by "all"."""
    areas: List[str] = []
    for area in line_area_map.values():
        if area not in areas:
            areas.append(area)
    return [ALL] + areas


def lines_for_area(area: str, line_area_map: Mapping[str, str]) -> Tuple[str, ...]:
    """Expand an area selector into its lines."""
    if area == ALL:
        return tuple(line_area_map.keys())
    return tuple(line for line, mapped_area in line_area_map.items() if mapped_area == area)


def resolve_scope(
    filter_spec: FilterSpec,
    machines: Iterable[MachineInfo],
    line_area_map: Mapping[str, str]
) -> ResolvedScope:
    """
    Resolve a filter into the lines and machines in scope.

    Raises:
        InvalidRangeError: if the filter's start date is after its end date.
    """
    if filter_spec.date_from > filter_spec.date_to:
        raise InvalidRangeError(filter_spec.date_from, filter_spec.date_to)

    line_ids = lines_for_area(filter_spec.area, line_area_map)
    if not line_ids:
        logger.debug("Filter area has no mapped lines", area=filter_spec.area)

    status = MachineStatusFilter(filter_spec.machine_status)
    line_set = set(line_ids)
    machine_ids = frozenset(
        machine.machine_id
        for machine in machines
        if machine.line_id in line_set
        and (status == MachineStatusFilter.ALL or machine.status == status.value)
    )

    return ResolvedScope(
        machine_ids=machine_ids,
        line_ids=line_ids,
        shift=ShiftFilter(filter_spec.shift).value,
        date_from=filter_spec.date_from,
        date_to=filter_spec.date_to,
    )


def select_production(records: Iterable[RecordT], scope: ResolvedScope) -> List[RecordT]:
    """Production records inside the scope, date window and shift."""
    return [
        record for record in records
        if record.machine_id in scope.machine_ids
        and scope.contains_date(record.date)
        and scope.matches_shift(record.shift)
    ]


def select_downtime(records: Iterable[DowntimeRecord], scope: ResolvedScope) -> List[DowntimeRecord]:
    """Downtime records inside the scope and date window.

    Downtime episodes carry no shift, so the shift selector does not apply.
    """
    return [
        record for record in records
        if record.machine_id in scope.machine_ids and scope.contains_date(record.date)
    ]


def select_defects(records: Iterable[DefectRecord], scope: ResolvedScope) -> List[DefectRecord]:
    """Defect records inside the scope, date window and shift."""
    return [
        record for record in records
        if record.machine_id in scope.machine_ids
        and scope.contains_date(record.date)
        and scope.matches_shift(record.shift)
    ]


def latest_date(dates: Sequence[date]) -> Optional[date]:
    return max(dates, default=None)
