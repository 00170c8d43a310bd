"""
OEE Floor Dashboard - Record Store

This module holds the raw entity collections the dashboard engine reads:
production, downtime and defect records, machine master data, maintenance
orders and schedules, spare parts, OEE targets and the defect adjustment
journal.

Concurrency model:
- Every mutation runs under a single re-entrant lock, so concurrent appends
  never lose an entry and identifiers come from monotonic counters.
- Stored models are never changed in place; a mutation replaces the stored
  object with an updated copy. A snapshot is therefore a consistent set of
  tuples that later writes cannot tear.
- Every mutation validates its input before writing anything.
"""

import itertools
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as ModelValidationError

from oee_dashboard.models.production import (
    DefectAdjustmentLog, DefectRecord, DefectUpdate, DowntimeRecord,
    MachineCreate, MachineInfo, MachineUpdate, MaintenanceOrder,
    MaintenanceOrderCreate, MaintenanceOrderStatus, MaintenanceOrderStatusUpdate,
    MaintenanceSchedule, NewDefectData, OeeTarget, ProductionRecord,
    ProductionRecordCreate, SparePart, SparePartCreate, SparePartUpdate
)
from oee_dashboard.monitoring.application_metrics import record_mutation
from oee_dashboard.utils.exceptions import NotFoundError, ValidationError

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class StoreSnapshot:
    """Point-in-time view of every collection in the store."""
    machines: Tuple[MachineInfo, ...]
    production: Tuple[ProductionRecord, ...]
    downtime: Tuple[DowntimeRecord, ...]
    defects: Tuple[DefectRecord, ...]
    adjustment_logs: Tuple[DefectAdjustmentLog, ...]
    maintenance_orders: Tuple[MaintenanceOrder, ...]
    maintenance_schedules: Tuple[MaintenanceSchedule, ...]
    spare_parts: Tuple[SparePart, ...]
    oee_targets: Tuple[OeeTarget, ...]

    def machine_map(self) -> Dict[str, MachineInfo]:
        """Index machines by machine ID."""
        return {machine.machine_id: machine for machine in self.machines}


def _counter_after(values: Iterable[int]) -> "itertools.count":
    """Start a monotonic ID counter after the largest existing ID."""
    return itertools.count(max(values, default=0) + 1)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _apply_update(current: ModelT, changes: Dict[str, Any]) -> ModelT:
    """Rebuild an entity with changes applied, validating the merged result."""
    try:
        return type(current).model_validate({**current.model_dump(), **changes})
    except ModelValidationError as exc:
        raise ValidationError(
            f"Invalid update for {type(current).__name__}",
            {"errors": [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in exc.errors()
            ]}
        ) from exc


class RecordStore:
    """In-memory store for dashboard records."""

    def __init__(
        self,
        machines: Optional[Iterable[MachineInfo]] = None,
        production: Optional[Iterable[ProductionRecord]] = None,
        downtime: Optional[Iterable[DowntimeRecord]] = None,
        defects: Optional[Iterable[DefectRecord]] = None,
        maintenance_orders: Optional[Iterable[MaintenanceOrder]] = None,
        maintenance_schedules: Optional[Iterable[MaintenanceSchedule]] = None,
        spare_parts: Optional[Iterable[SparePart]] = None,
        oee_targets: Optional[Iterable[OeeTarget]] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        self._lock = threading.RLock()
        self._clock = clock

        self._machines: Dict[str, MachineInfo] = {m.machine_id: m for m in machines or []}
        self._production: List[ProductionRecord] = list(production or [])
        self._downtime: List[DowntimeRecord] = list(downtime or [])
        self._defects: List[DefectRecord] = list(defects or [])
        self._adjustment_logs: List[DefectAdjustmentLog] = []
        self._maintenance_orders: List[MaintenanceOrder] = list(maintenance_orders or [])
        self._maintenance_schedules: List[MaintenanceSchedule] = list(maintenance_schedules or [])
        self._spare_parts: List[SparePart] = list(spare_parts or [])
        self._oee_targets: List[OeeTarget] = list(oee_targets or [])

        self._prod_ids = _counter_after(r.prod_id for r in self._production)
        self._defect_ids = _counter_after(d.defect_id for d in self._defects)
        self._log_ids = _counter_after([])
        self._order_ids = _counter_after(o.order_id for o in self._maintenance_orders)
        self._part_ids = _counter_after(p.part_id for p in self._spare_parts)

    # Reads

    def snapshot(self) -> StoreSnapshot:
        """Take a consistent view of every collection."""
        with self._lock:
            return StoreSnapshot(
                machines=tuple(self._machines.values()),
                production=tuple(self._production),
                downtime=tuple(self._downtime),
                defects=tuple(self._defects),
                adjustment_logs=tuple(self._adjustment_logs),
                maintenance_orders=tuple(self._maintenance_orders),
                maintenance_schedules=tuple(self._maintenance_schedules),
                spare_parts=tuple(self._spare_parts),
                oee_targets=tuple(self._oee_targets),
            )

    def get_machine(self, machine_id: str) -> MachineInfo:
        """Get a machine by ID."""
        with self._lock:
            machine = self._machines.get(machine_id)
        if machine is None:
            raise NotFoundError("Machine", machine_id)
        return machine

    def get_production_record(self, prod_id: int) -> ProductionRecord:
        """Get a production record by ID."""
        with self._lock:
            index = self._production_index(prod_id)
            return self._production[index]

    def get_adjustment_logs(
        self,
        prod_id: Optional[int] = None,
        machine_id: Optional[str] = None
    ) -> List[DefectAdjustmentLog]:
        """Get adjustment journal entries in the order they were written."""
        with self._lock:
            logs = list(self._adjustment_logs)
        if prod_id is not None:
            logs = [log for log in logs if log.prod_id == prod_id]
        if machine_id is not None:
            logs = [log for log in logs if log.machine_id == machine_id]
        return logs

    # Machines

    def add_machine(self, data: MachineCreate) -> MachineInfo:
        """Register a new machine."""
        with self._lock:
            if data.machine_id in self._machines:
                raise ValidationError(
                    f"Machine {data.machine_id} already exists",
                    {"machine_id": data.machine_id}
                )
            machine = MachineInfo(**data.model_dump())
            self._machines[machine.machine_id] = machine

        record_mutation("machine", "create")
        logger.info("Machine added", machine_id=machine.machine_id, line_id=machine.line_id)
        return machine

    def update_machine(self, machine_id: str, data: MachineUpdate) -> MachineInfo:
        """Apply an administrative edit to a machine."""
        changes = data.model_dump(exclude_unset=True)
        with self._lock:
            current = self._machines.get(machine_id)
            if current is None:
                raise NotFoundError("Machine", machine_id)
            machine = _apply_update(current, changes)
            self._machines[machine_id] = machine

        record_mutation("machine", "update")
        logger.info("Machine updated", machine_id=machine_id, fields=sorted(changes))
        return machine

    # Production

    def add_production_record(self, data: ProductionRecordCreate) -> ProductionRecord:
        """Append a production record for a known machine."""
        with self._lock:
            machine = self._machines.get(data.machine_id)
            if machine is None:
                raise NotFoundError("Machine", data.machine_id)

            record = ProductionRecord(
                prod_id=next(self._prod_ids),
                date=data.date,
                line_id=machine.line_id,
                machine_id=machine.machine_id,
                item_code=data.item_code,
                actual_quantity=data.actual_quantity,
                defect_quantity=data.defect_quantity,
                run_time_minutes=data.run_time_minutes,
                downtime_minutes=data.downtime_minutes,
                ideal_cycle_time=data.ideal_cycle_time or machine.ideal_cycle_time,
                shift=data.shift,
            )
            self._production.append(record)

        record_mutation("production", "create")
        logger.info("Production record added", prod_id=record.prod_id, machine_id=record.machine_id)
        return record

    def record_defect_correction(
        self,
        prod_id: int,
        new_defect_quantity: int,
        acting_user: str
    ) -> DefectAdjustmentLog:
        """Correct a production record's defect quantity and journal the change."""
        if new_defect_quantity < 0:
            raise ValidationError(
                "Defect quantity must not be negative",
                {"prod_id": prod_id, "new_defect_quantity": new_defect_quantity}
            )
        if not acting_user:
            raise ValidationError("Acting user is required", {"prod_id": prod_id})

        with self._lock:
            index = self._production_index(prod_id)
            log = self._apply_defect_quantity(index, new_defect_quantity, acting_user)

        record_mutation("defect_adjustment", "create")
        logger.info(
            "Defect quantity corrected",
            prod_id=prod_id,
            machine_id=log.machine_id,
            previous_value=log.previous_value,
            new_value=log.new_value,
            user=acting_user
        )
        return log

    # Defects

    def append_defect_record(self, data: NewDefectData) -> DefectRecord:
        """
        Append an operator defect entry.

        When a production record exists for the same day, machine and shift,
        its defect quantity is raised by the entry's quantity through the
        adjustment journal.
        """
        with self._lock:
            if data.machine_id not in self._machines:
                raise NotFoundError("Machine", data.machine_id)
            if data.linked_maintenance_order_id is not None:
                self._order_index(data.linked_maintenance_order_id)

            defect = DefectRecord(defect_id=next(self._defect_ids), **data.model_dump())
            self._defects.append(defect)

            production_index = next(
                (
                    i for i, p in enumerate(self._production)
                    if p.date == data.date and p.machine_id == data.machine_id and p.shift == data.shift
                ),
                None
            )
            if production_index is not None:
                current = self._production[production_index].defect_quantity
                self._apply_defect_quantity(
                    production_index,
                    current + data.quantity,
                    f"operator:{data.reporter_id}"
                )

        record_mutation("defect", "create")
        if production_index is None:
            logger.warning(
                "No production record for defect entry; daily summary unchanged",
                defect_id=defect.defect_id,
                machine_id=defect.machine_id,
                date=str(defect.date),
                shift=defect.shift
            )
        logger.info("Defect record added", defect_id=defect.defect_id, machine_id=defect.machine_id)
        return defect

    def update_defect_record(self, defect_id: int, data: DefectUpdate) -> DefectRecord:
        """Move a defect record through its lifecycle."""
        changes = data.model_dump(exclude_unset=True)
        with self._lock:
            index = next((i for i, d in enumerate(self._defects) if d.defect_id == defect_id), None)
            if index is None:
                raise NotFoundError("Defect record", defect_id)
            if changes.get("linked_maintenance_order_id") is not None:
                self._order_index(changes["linked_maintenance_order_id"])

            defect = _apply_update(self._defects[index], changes)
            self._defects[index] = defect

        record_mutation("defect", "update")
        logger.info("Defect record updated", defect_id=defect_id, fields=sorted(changes))
        return defect

    # Maintenance

    def add_maintenance_order(self, data: MaintenanceOrderCreate) -> MaintenanceOrder:
        """Open a maintenance order."""
        with self._lock:
            if data.machine_id not in self._machines:
                raise NotFoundError("Machine", data.machine_id)
            if data.linked_defect_id is not None and not any(
                d.defect_id == data.linked_defect_id for d in self._defects
            ):
                raise NotFoundError("Defect record", data.linked_defect_id)

            order = MaintenanceOrder(order_id=next(self._order_ids), **data.model_dump())
            self._maintenance_orders.append(order)

        record_mutation("maintenance_order", "create")
        logger.info("Maintenance order opened", order_id=order.order_id, machine_id=order.machine_id, type=order.type)
        return order

    def update_maintenance_order_status(
        self,
        order_id: int,
        data: MaintenanceOrderStatusUpdate
    ) -> MaintenanceOrder:
        """Change a maintenance order's status."""
        changes = data.model_dump(exclude_unset=True)
        with self._lock:
            index = self._order_index(order_id)
            current = self._maintenance_orders[index]
            if data.status == MaintenanceOrderStatus.DONE and changes.get("completed_at") is None:
                changes["completed_at"] = self._clock()
            order = _apply_update(current, changes)
            self._maintenance_orders[index] = order

        record_mutation("maintenance_order", "update")
        logger.info("Maintenance order updated", order_id=order_id, status=order.status)
        return order

    # Spare parts

    def add_spare_part(self, data: SparePartCreate) -> SparePart:
        """Register a spare part."""
        with self._lock:
            if any(p.part_code == data.part_code for p in self._spare_parts):
                raise ValidationError(
                    f"Spare part {data.part_code} already exists",
                    {"part_code": data.part_code}
                )
            part = SparePart(part_id=next(self._part_ids), **data.model_dump())
            self._spare_parts.append(part)

        record_mutation("spare_part", "create")
        logger.info("Spare part added", part_id=part.part_id, part_code=part.part_code)
        return part

    def update_spare_part(self, part_id: int, data: SparePartUpdate) -> SparePart:
        """Edit a spare part."""
        changes = data.model_dump(exclude_unset=True)
        with self._lock:
            index = self._part_index(part_id)
            part = _apply_update(self._spare_parts[index], changes)
            self._spare_parts[index] = part

        record_mutation("spare_part", "update")
        logger.info("Spare part updated", part_id=part_id, fields=sorted(changes))
        return part

    def toggle_spare_part_flag(self, part_id: int) -> SparePart:
        """Flip a spare part's flagged-for-order marker."""
        with self._lock:
            index = self._part_index(part_id)
            current = self._spare_parts[index]
            part = current.model_copy(update={"flagged_for_order": not current.flagged_for_order})
            self._spare_parts[index] = part

        record_mutation("spare_part", "flag")
        logger.info("Spare part flag toggled", part_id=part_id, flagged_for_order=part.flagged_for_order)
        return part

    # Internal helpers (callers hold the lock)

    def _apply_defect_quantity(self, index: int, new_value: int, user: str) -> DefectAdjustmentLog:
        record = self._production[index]
        log = DefectAdjustmentLog(
            log_id=next(self._log_ids),
            prod_id=record.prod_id,
            machine_id=record.machine_id,
            timestamp=self._clock(),
            previous_value=record.defect_quantity,
            new_value=new_value,
            user=user,
        )
        self._production[index] = record.model_copy(update={"defect_quantity": new_value})
        self._adjustment_logs.append(log)
        return log

    def _production_index(self, prod_id: int) -> int:
        for index, record in enumerate(self._production):
            if record.prod_id == prod_id:
                return index
        raise NotFoundError("Production record", prod_id)

    def _order_index(self, order_id: int) -> int:
        for index, order in enumerate(self._maintenance_orders):
            if order.order_id == order_id:
                return index
        raise NotFoundError("Maintenance order", order_id)

    def _part_index(self, part_id: int) -> int:
        for index, part in enumerate(self._spare_parts):
            if part.part_id == part_id:
                return index
        raise NotFoundError("Spare part", part_id)
