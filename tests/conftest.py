"""Shared fixtures for the OEE Floor Dashboard test suite."""

from datetime import date, datetime

import pytest

from oee_dashboard.config import Settings
from oee_dashboard.models.production import (
    DefectRecord, DowntimeRecord, MachineInfo, MaintenanceOrder,
    MaintenanceSchedule, OeeTarget, ProductionRecord, SparePart
)
from oee_dashboard.services.dashboard_service import DashboardService
from oee_dashboard.services.oee_calculator import OEECalculator
from oee_dashboard.services.record_store import RecordStore

LINE_AREA_MAP = {
    "31": "Area Stamping",
    "32": "Area Assembly",
    "41": "Area Painting",
}

FIXED_NOW = datetime(2025, 10, 31, 8, 0)


def make_production(prod_id=1, day=date(2025, 10, 10), machine_id="M1", line_id="31",
                    shift="A", actual=900, defect=100, run=400, down=80, ideal_cycle_time=0.4,
                    item_code="ITEM-1"):
    return ProductionRecord(
        prod_id=prod_id,
        date=day,
        line_id=line_id,
        machine_id=machine_id,
        item_code=item_code,
        actual_quantity=actual,
        defect_quantity=defect,
        run_time_minutes=run,
        downtime_minutes=down,
        ideal_cycle_time=ideal_cycle_time,
        shift=shift,
    )


def make_entry(**kwargs):
    return OEECalculator.annotate(make_production(**kwargs))


def make_downtime(downtime_id=1, day=date(2025, 10, 10), machine_id="M1", reason="Setup", minutes=30):
    return DowntimeRecord(
        downtime_id=downtime_id,
        date=day,
        machine_id=machine_id,
        reason=reason,
        duration_minutes=minutes,
        start_time="08:00",
        end_time="08:30",
    )


def make_defect(defect_id=1, day=date(2025, 10, 10), machine_id="M1", shift="A",
                defect_type="Scratch", quantity=10, cause_category=None):
    return DefectRecord(
        defect_id=defect_id,
        date=day,
        machine_id=machine_id,
        shift=shift,
        defect_type=defect_type,
        cause_category=cause_category,
        quantity=quantity,
        reporter_id=7,
    )


@pytest.fixture
def machines():
    return [
        MachineInfo(machine_id="M1", machine_name="Press 1", line_id="31",
                    ideal_cycle_time=0.4, design_speed=2.5, status="active"),
        MachineInfo(machine_id="M2", machine_name="Assembler 1", line_id="32",
                    ideal_cycle_time=0.5, design_speed=2.0, status="active"),
        MachineInfo(machine_id="M3", machine_name="Paint Booth", line_id="41",
                    ideal_cycle_time=1.0, design_speed=1.0, status="inactive"),
    ]


@pytest.fixture
def production_records():
    return [
        make_production(1, date(2025, 10, 8), "M1", "31", "A", 900, 100, 400, 80),
        make_production(2, date(2025, 10, 9), "M1", "31", "B", 950, 50, 420, 60),
        make_production(3, date(2025, 10, 10), "M1", "31", "C", 800, 40, 380, 100),
        make_production(4, date(2025, 10, 9), "M2", "32", "A", 700, 20, 400, 80, 0.5),
        make_production(5, date(2025, 10, 10), "M2", "32", "B", 650, 70, 360, 120, 0.5),
        make_production(6, date(2025, 10, 10), "M3", "41", "A", 300, 0, 350, 130, 1.0),
    ]


@pytest.fixture
def downtime_records():
    return [
        make_downtime(1, date(2025, 10, 9), "M1", "Setup", 40),
        make_downtime(2, date(2025, 10, 10), "M1", "Jam", 25),
        make_downtime(3, date(2025, 10, 10), "M2", "Setup", 60),
        make_downtime(4, date(2025, 10, 10), "M3", "Material Shortage", 90),
    ]


@pytest.fixture
def defect_records():
    return [
        make_defect(1, date(2025, 10, 9), "M1", "B", "Scratch", 30, "Man"),
        make_defect(2, date(2025, 10, 10), "M1", "C", "Dent", 40, "Machine"),
        make_defect(3, date(2025, 10, 10), "M2", "B", "Scratch", 20),
    ]


@pytest.fixture
def store(machines, production_records, downtime_records, defect_records):
    return RecordStore(
        machines=machines,
        production=production_records,
        downtime=downtime_records,
        defects=defect_records,
        maintenance_orders=[
            MaintenanceOrder(order_id=1, machine_id="M1", type="Breakdown", status="Done",
                             reported_by_id=7, symptom="Hydraulic leak", downtime_min=45,
                             created_at=datetime(2025, 10, 9, 10), completed_at=datetime(2025, 10, 9, 11)),
            MaintenanceOrder(order_id=2, machine_id="M2", type="Breakdown", status="Open",
                             reported_by_id=7, symptom="Servo fault",
                             created_at=datetime(2025, 10, 10, 9), due_date=date(2025, 10, 12)),
        ],
        maintenance_schedules=[
            MaintenanceSchedule(schedule_id=1, machine_id="M1", pm_type="PM-1M",
                                last_pm_date=date(2025, 9, 5), cycle_days=30),
            MaintenanceSchedule(schedule_id=2, machine_id="M2", pm_type="PM-1M",
                                last_pm_date=date(2025, 9, 20), cycle_days=30),
        ],
        spare_parts=[
            SparePart(part_id=1, part_code="BRG-1", name="Bearing", location="A1",
                      available=2, in_transit=0, safety_stock=3, reorder_point=5),
            SparePart(part_id=2, part_code="BLT-1", name="Belt", location="A2",
                      available=20, in_transit=0, safety_stock=5, reorder_point=8),
        ],
        oee_targets=[
            OeeTarget(target_id=1, level="Line", line_id="31", target_oee=0.5,
                      target_output=3000, target_defect_rate=0.05, effective_from=date(2025, 1, 1)),
        ],
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def test_settings():
    return Settings(
        ENVIRONMENT="testing",
        TREND_DAYS=3,
        TOP_N=2,
        LINE_AREA_MAP=dict(LINE_AREA_MAP),
        SEED_DEMO_DATA=False,
    )


@pytest.fixture
def service(store, test_settings):
    return DashboardService(store, test_settings)
