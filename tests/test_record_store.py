"""Tests for record store mutations, the adjustment journal and snapshots."""

from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

import pytest

from conftest import FIXED_NOW
from oee_dashboard.models.production import (
    DefectUpdate, MachineCreate, MachineUpdate, MaintenanceOrderCreate,
    MaintenanceOrderStatusUpdate, NewDefectData, ProductionRecordCreate,
    SparePartCreate, SparePartUpdate
)
from oee_dashboard.utils.exceptions import NotFoundError, ValidationError


def new_defect(**overrides):
    values = {
        "date": date(2025, 10, 10),
        "machine_id": "M1",
        "shift": "C",
        "defect_type": "Burr",
        "quantity": 15,
        "reporter_id": 7,
    }
    values.update(overrides)
    return NewDefectData(**values)


def new_production(**overrides):
    values = {
        "date": date(2025, 10, 11),
        "machine_id": "M2",
        "item_code": "ITEM-9",
        "actual_quantity": 500,
        "run_time_minutes": 400,
        "shift": "A",
    }
    values.update(overrides)
    return ProductionRecordCreate(**values)


def replayed_value(initial, logs):
    value = initial
    for log in logs:
        assert log.previous_value == value
        value = log.new_value
    return value


class TestProduction:

    def test_append_assigns_next_id_and_machine_defaults(self, store):
        record = store.add_production_record(new_production())

        assert record.prod_id == 7
        assert record.line_id == "32"
        assert record.ideal_cycle_time == 0.5
        assert store.get_production_record(7) == record

    def test_append_for_unknown_machine_writes_nothing(self, store):
        before = store.snapshot()

        with pytest.raises(NotFoundError):
            store.add_production_record(new_production(machine_id="M404"))

        assert store.snapshot() == before

    def test_concurrent_appends_get_unique_ids(self, store):
        with ThreadPoolExecutor(max_workers=8) as pool:
            records = list(pool.map(lambda _: store.add_production_record(new_production()), range(200)))

        ids = [r.prod_id for r in records]
        assert len(set(ids)) == 200
        assert len(store.snapshot().production) == 206


class TestDefectCorrection:

    def test_correction_is_journaled(self, store):
        log = store.record_defect_correction(1, 60, "qa.lead")

        assert (log.prod_id, log.machine_id, log.previous_value, log.new_value) == (1, "M1", 100, 60)
        assert log.user == "qa.lead"
        assert log.timestamp == FIXED_NOW
        assert store.get_production_record(1).defect_quantity == 60

    def test_replay_reproduces_current_quantity(self, store):
        for quantity in (80, 80, 0, 35):
            store.record_defect_correction(2, quantity, "qa")

        logs = store.get_adjustment_logs(prod_id=2)

        assert len(logs) == 4
        assert replayed_value(50, logs) == store.get_production_record(2).defect_quantity == 35

    @pytest.mark.parametrize("quantity,user", [(-1, "qa"), (10, "")])
    def test_invalid_correction_writes_nothing(self, store, quantity, user):
        with pytest.raises(ValidationError):
            store.record_defect_correction(1, quantity, user)

        assert store.get_adjustment_logs() == []
        assert store.get_production_record(1).defect_quantity == 100

    def test_unknown_record(self, store):
        with pytest.raises(NotFoundError):
            store.record_defect_correction(999, 1, "qa")


class TestDefectRecords:

    def test_append_raises_matching_production_defects(self, store):
        defect = store.append_defect_record(new_defect())

        assert defect.defect_id == 4
        assert store.get_production_record(3).defect_quantity == 55
        log, = store.get_adjustment_logs(prod_id=3)
        assert (log.previous_value, log.new_value, log.user) == (40, 55, "operator:7")

    def test_append_without_matching_production(self, store):
        store.append_defect_record(new_defect(shift="A"))

        assert store.get_adjustment_logs() == []
        assert len(store.snapshot().defects) == 4

    def test_append_and_corrections_replay_together(self, store):
        store.record_defect_correction(3, 10, "qa")
        store.append_defect_record(new_defect(quantity=5))
        store.record_defect_correction(3, 12, "qa")

        logs = store.get_adjustment_logs(prod_id=3)

        assert replayed_value(40, logs) == store.get_production_record(3).defect_quantity == 12

    @pytest.mark.parametrize("overrides", [{"machine_id": "M404"}, {"linked_maintenance_order_id": 99}])
    def test_invalid_append_writes_nothing(self, store, overrides):
        with pytest.raises(NotFoundError):
            store.append_defect_record(new_defect(**overrides))

        assert len(store.snapshot().defects) == 3
        assert store.get_adjustment_logs() == []

    def test_update_status(self, store):
        defect = store.update_defect_record(1, DefectUpdate(status="Closed", severity="High"))

        assert (defect.status, defect.severity) == ("Closed", "High")
        assert defect.quantity == 30

    def test_update_clears_nullable_fields(self, store):
        defect = store.update_defect_record(1, DefectUpdate.model_validate({"causeCategory": None, "note": None}))

        assert defect.cause_category is None
        assert defect.note is None

    def test_null_status_is_rejected(self, store):
        before = store.snapshot().defects

        with pytest.raises(ValidationError):
            store.update_defect_record(1, DefectUpdate.model_validate({"status": None, "note": "checked"}))

        assert store.snapshot().defects == before

    def test_update_unknown_defect(self, store):
        with pytest.raises(NotFoundError):
            store.update_defect_record(99, DefectUpdate(status="Closed"))


class TestMasterData:

    def test_add_machine(self, store):
        machine = store.add_machine(MachineCreate(
            machine_id="M9", machine_name="Press 9", line_id="31", ideal_cycle_time=0.2, design_speed=5
        ))

        assert store.get_machine("M9") == machine

    def test_duplicate_machine(self, store):
        with pytest.raises(ValidationError):
            store.add_machine(MachineCreate(
                machine_id="M1", machine_name="Dup", line_id="31", ideal_cycle_time=0.2, design_speed=5
            ))

    def test_update_machine_keeps_unset_fields(self, store):
        machine = store.update_machine("M1", MachineUpdate(status="inactive"))

        assert machine.status == "inactive"
        assert machine.machine_name == "Press 1"

    def test_null_machine_fields_are_rejected(self, store):
        before = store.get_machine("M1")

        with pytest.raises(ValidationError) as exc_info:
            store.update_machine("M1", MachineUpdate.model_validate({"lineId": None, "status": None}))

        assert store.get_machine("M1") == before
        assert len(exc_info.value.details["errors"]) == 2

    def test_machine_position_can_be_cleared(self, store):
        store.update_machine("M1", MachineUpdate(x=10, y=20))

        machine = store.update_machine("M1", MachineUpdate.model_validate({"x": None}))

        assert (machine.x, machine.y) == (None, 20)

    def test_snapshot_is_not_affected_by_later_writes(self, store):
        snapshot = store.snapshot()

        store.update_machine("M1", MachineUpdate(line_id="32"))
        store.record_defect_correction(1, 0, "qa")

        assert snapshot.machine_map()["M1"].line_id == "31"
        assert snapshot.production[0].defect_quantity == 100
        assert snapshot.adjustment_logs == ()


class TestMaintenanceAndParts:

    def test_open_and_complete_order(self, store):
        order = store.add_maintenance_order(MaintenanceOrderCreate(
            machine_id="M1", type="CM", reported_by_id=3, symptom="Noise",
            created_at=datetime(2025, 10, 10, 7)
        ))

        assert order.order_id == 3
        assert order.status == "Open"

        done = store.update_maintenance_order_status(3, MaintenanceOrderStatusUpdate(status="Done"))

        assert done.status == "Done"
        assert done.completed_at == FIXED_NOW

    def test_order_linked_to_unknown_defect(self, store):
        with pytest.raises(NotFoundError):
            store.add_maintenance_order(MaintenanceOrderCreate(
                machine_id="M1", type="CM", reported_by_id=3, symptom="Noise",
                created_at=datetime(2025, 10, 10, 7), linked_defect_id=99
            ))

    def test_spare_part_lifecycle(self, store):
        part = store.add_spare_part(SparePartCreate(part_code="FLT-1", name="Filter", location="B1", available=4))
        assert part.part_id == 3

        part = store.update_spare_part(3, SparePartUpdate(available=9))
        assert part.available == 9

        assert store.toggle_spare_part_flag(3).flagged_for_order is True
        assert store.toggle_spare_part_flag(3).flagged_for_order is False

    def test_null_stock_level_is_rejected(self, store):
        before = store.snapshot().spare_parts

        with pytest.raises(ValidationError):
            store.update_spare_part(1, SparePartUpdate.model_validate({"available": None}))

        assert store.snapshot().spare_parts == before

    def test_done_with_null_completion_uses_clock(self, store):
        done = store.update_maintenance_order_status(
            2, MaintenanceOrderStatusUpdate.model_validate({"status": "Done", "completedAt": None})
        )

        assert done.completed_at == FIXED_NOW

    def test_duplicate_part_code(self, store):
        with pytest.raises(ValidationError):
            store.add_spare_part(SparePartCreate(part_code="BRG-1", name="Bearing", location="A1", available=1))

    def test_unknown_part(self, store):
        with pytest.raises(NotFoundError):
            store.toggle_spare_part_flag(42)
