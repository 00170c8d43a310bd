"""
OEE Floor Dashboard - Demo Seed Data

Builds a deterministic demo dataset (six machines across five lines) so the
dashboard has something to show without an ingestion source. Values drift
linearly with the day offset so trends, Pareto tables and boxplots are
non-trivial; nothing is random.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Tuple

from oee_dashboard.models.production import (
    SHIFTS, DefectRecord, DowntimeRecord, MachineInfo, MaintenanceOrder,
    MaintenanceSchedule, OeeTarget, ProductionRecord, SparePart
)
from oee_dashboard.services.record_store import RecordStore


@dataclass(frozen=True)
class MachineProfile:
    """Baseline daily figures and their per-day drift for one machine."""
    machine: MachineInfo
    item_code: str
    base_output: int
    output_drift: int
    base_defects: int
    defect_drift: int
    base_run: int
    run_drift: int


MACHINE_PROFILES: Tuple[MachineProfile, ...] = (
    MachineProfile(MachineInfo(machine_id="M01", machine_name="Assembler Alpha", line_id="32",
                               ideal_cycle_time=0.045, design_speed=22, status="active", x=20, y=30),
                   "05CITape", 28000, 200, 120, -3, 1320, -10),
    MachineProfile(MachineInfo(machine_id="M02", machine_name="Assembler Beta", line_id="32",
                               ideal_cycle_time=0.045, design_speed=22, status="active", x=35, y=30),
                   "05CITape", 27000, -150, 200, 8, 1280, 5),
    MachineProfile(MachineInfo(machine_id="M03", machine_name="Stamping Press 1", line_id="31",
                               ideal_cycle_time=0.06, design_speed=17, status="active", x=15, y=70),
                   "03CI Assy", 20500, 50, 50, 3, 1400, -5),
    MachineProfile(MachineInfo(machine_id="M04", machine_name="Paint Booth A", line_id="41",
                               ideal_cycle_time=0.25, design_speed=4, status="inactive", x=55, y=25),
                   "Panel_A", 5000, -100, 80, 2, 1300, 0),
    MachineProfile(MachineInfo(machine_id="M05", machine_name="Paint Booth B", line_id="42",
                               ideal_cycle_time=0.24, design_speed=4, status="active", x=70, y=25),
                   "Panel_B", 5200, 50, 60, -1, 1350, 0),
    MachineProfile(MachineInfo(machine_id="M06", machine_name="Finishing Line 1", line_id="51",
                               ideal_cycle_time=0.08, design_speed=12, status="active", x=80, y=65),
                   "Final Assy", 15000, 100, 150, -4, 1380, -10),
)

SHIFT_MINUTES = 1440

# (machine, reason, base minutes, drift, start)
DOWNTIME_PATTERN: Tuple[Tuple[str, str, int, int, str], ...] = (
    ("M01", "Setup", 80, -2, "00:30"),
    ("M01", "Jam", 40, 3, "06:15"),
    ("M02", "Maintenance", 120, 1, "10:00"),
    ("M02", "Operator Absent", 30, 1, "17:00"),
    ("M03", "Tooling Issues", 40, 1, "08:00"),
    ("M04", "Material Shortage", 90, -2, "14:00"),
    ("M05", "Machine Failure", 50, 2, "16:00"),
    ("M06", "Quality Hold", 60, -1, "22:30"),
)

# (machine, defect type, cause, base qty, drift, shift)
DEFECT_PATTERN: Tuple[Tuple[str, str, str, int, int, str], ...] = (
    ("M01", "Skip stitch", "Machine", 85, -2, "B"),
    ("M01", "Tape jam", "Material", 40, 2, "C"),
    ("M02", "Cosmetic", "Man", 150, 10, "A"),
    ("M03", "Misaligned", "Method", 50, -1, "A"),
    ("M04", "Paint Drip", "Environment", 60, 0, "B"),
    ("M05", "Scratch", "Man", 40, 0, "C"),
    ("M06", "Packaging", "Method", 100, -3, "B"),
)

SEVERITIES = ("High", "Low", "Medium")
DEFECT_STATUSES = ("Closed", "Open", "Open", "In Progress")


def _clock_add(start: str, minutes: int) -> str:
    started = datetime.combine(date.min, time.fromisoformat(start))
    return (started + timedelta(minutes=minutes)).strftime("%H:%M")


def build_production(end_date: date, days: int) -> List[ProductionRecord]:
    records = []
    for offset in range(days - 1, -1, -1):
        day = end_date - timedelta(days=offset)
        for index, profile in enumerate(MACHINE_PROFILES):
            run = profile.base_run + profile.run_drift * offset
            records.append(ProductionRecord(
                prod_id=len(records) + 1,
                date=day,
                line_id=profile.machine.line_id,
                machine_id=profile.machine.machine_id,
                item_code=profile.item_code,
                actual_quantity=max(0, profile.base_output + profile.output_drift * offset),
                defect_quantity=max(0, profile.base_defects + profile.defect_drift * offset),
                run_time_minutes=run,
                downtime_minutes=SHIFT_MINUTES - run,
                ideal_cycle_time=profile.machine.ideal_cycle_time,
                shift=SHIFTS[(offset + index) % len(SHIFTS)],
            ))
    return records


def build_downtime(end_date: date, days: int) -> List[DowntimeRecord]:
    records = []
    for offset in range(days - 1, -1, -1):
        day = end_date - timedelta(days=offset)
        for machine_id, reason, base, drift, start in DOWNTIME_PATTERN:
            minutes = max(5, base + drift * offset)
            records.append(DowntimeRecord(
                downtime_id=len(records) + 1,
                date=day,
                machine_id=machine_id,
                reason=reason,
                duration_minutes=minutes,
                start_time=start,
                end_time=_clock_add(start, minutes),
            ))
    return records


def build_defects(end_date: date, days: int) -> List[DefectRecord]:
    records = []
    for offset in range(days - 1, -1, -1):
        day = end_date - timedelta(days=offset)
        for index, (machine_id, defect_type, cause, base, drift, shift) in enumerate(DEFECT_PATTERN):
            records.append(DefectRecord(
                defect_id=len(records) + 1,
                date=day,
                machine_id=machine_id,
                shift=shift,
                defect_type=defect_type,
                cause_category=cause,
                quantity=max(1, base + drift * offset),
                note=f"{defect_type} observed on {machine_id}",
                severity=SEVERITIES[index % len(SEVERITIES)],
                status=DEFECT_STATUSES[index % len(DEFECT_STATUSES)],
                is_abnormal=index % 3 == 0,
                reporter_id=100 + index,
            ))
    return records


def build_maintenance_orders(end_date: date) -> List[MaintenanceOrder]:
    def at(days_back: int, hour: int) -> datetime:
        return datetime.combine(end_date - timedelta(days=days_back), time(hour))

    return [
        MaintenanceOrder(order_id=1, machine_id="M05", type="Breakdown", priority="High", status="Done",
                         reported_by_id=101, assigned_to_id=201, symptom="Spray gun clogged",
                         downtime_min=95, created_at=at(12, 9), completed_at=at(12, 11)),
        MaintenanceOrder(order_id=2, machine_id="M01", type="Breakdown", priority="Medium", status="Done",
                         reported_by_id=102, assigned_to_id=202, symptom="Feeder jam sensor fault",
                         downtime_min=45, created_at=at(8, 14), completed_at=at(8, 15)),
        MaintenanceOrder(order_id=3, machine_id="M05", type="Breakdown", priority="High", status="Done",
                         reported_by_id=101, assigned_to_id=201, symptom="Conveyor motor overload",
                         downtime_min=150, created_at=at(3, 16), completed_at=at(3, 19)),
        MaintenanceOrder(order_id=4, machine_id="M03", type="CM", priority="Medium", status="Open",
                         reported_by_id=103, symptom="Die wear above limit",
                         created_at=at(5, 8), due_date=end_date - timedelta(days=1)),
        MaintenanceOrder(order_id=5, machine_id="M06", type="PM", priority="Low", status="InProgress",
                         reported_by_id=104, assigned_to_id=203, symptom="Quarterly lubrication",
                         created_at=at(2, 7), due_date=end_date + timedelta(days=3)),
        MaintenanceOrder(order_id=6, machine_id="M02", type="Breakdown", priority="High", status="Open",
                         reported_by_id=105, symptom="Spindle vibration alarm",
                         created_at=at(0, 6), due_date=end_date + timedelta(days=1)),
    ]


def build_maintenance_schedules(end_date: date) -> List[MaintenanceSchedule]:
    return [
        MaintenanceSchedule(schedule_id=1, machine_id="M01", pm_type="PM-1M",
                            last_pm_date=end_date - timedelta(days=35), cycle_days=30),
        MaintenanceSchedule(schedule_id=2, machine_id="M02", pm_type="PM-1M",
                            last_pm_date=end_date - timedelta(days=26), cycle_days=30),
        MaintenanceSchedule(schedule_id=3, machine_id="M03", pm_type="PM-12M",
                            last_pm_date=end_date - timedelta(days=200), cycle_days=365),
        MaintenanceSchedule(schedule_id=4, machine_id="M05", pm_type="PM-1M",
                            last_pm_date=end_date - timedelta(days=10), cycle_days=30),
        MaintenanceSchedule(schedule_id=5, machine_id="M06", pm_type="PM-24M",
                            last_pm_date=end_date - timedelta(days=725), cycle_days=730),
    ]


def build_spare_parts() -> List[SparePart]:
    return [
        SparePart(part_id=1, part_code="BRG-6204", name="Ball bearing 6204", location="WH-A1",
                  available=12, in_transit=0, reserved=2, used_in_period=6, safety_stock=10, reorder_point=15),
        SparePart(part_id=2, part_code="BLT-A42", name="V-belt A42", location="WH-A2",
                  available=8, in_transit=10, reserved=0, used_in_period=3, safety_stock=10, reorder_point=12),
        SparePart(part_id=3, part_code="NZL-SP2", name="Spray nozzle SP2", location="WH-B1",
                  available=40, in_transit=0, reserved=4, used_in_period=9, safety_stock=10, reorder_point=20,
                  maintenance_interval_days=30),
        SparePart(part_id=4, part_code="SNS-PX1", name="Proximity sensor PX1", location="WH-B3",
                  available=3, in_transit=2, reserved=1, used_in_period=2, safety_stock=4, reorder_point=4),
    ]


def build_oee_targets(end_date: date) -> List[OeeTarget]:
    effective_from = end_date.replace(month=1, day=1)
    return [
        OeeTarget(target_id=index + 1, level="Line", line_id=line_id, target_oee=target_oee,
                  target_output=target_output, target_defect_rate=0.01, effective_from=effective_from)
        for index, (line_id, target_oee, target_output) in enumerate((
            ("31", 0.85, 600000), ("32", 0.85, 1500000), ("41", 0.80, 140000),
            ("42", 0.80, 160000), ("51", 0.85, 450000),
        ))
    ]


def build_demo_store(end_date: date, days: int = 30) -> RecordStore:
    """A record store filled with the demo dataset ending at end_date."""
    return RecordStore(
        machines=[profile.machine for profile in MACHINE_PROFILES],
        production=build_production(end_date, days),
        downtime=build_downtime(end_date, days),
        defects=build_defects(end_date, days),
        maintenance_orders=build_maintenance_orders(end_date),
        maintenance_schedules=build_maintenance_schedules(end_date),
        spare_parts=build_spare_parts(),
        oee_targets=build_oee_targets(end_date),
    )
