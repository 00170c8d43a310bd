"""
OEE Floor Dashboard - OEE Calculator Service

This module derives per-record OEE (Overall Equipment Effectiveness) metrics
from raw production observations. OEE is calculated as
Availability × Performance × Quality.

All zero-denominator handling lives here so every caller sees the same
edge-case behaviour:

- Availability = run time / (run time + downtime), 0 when both are 0
- Performance = (good + defective units) × ideal cycle time / run time,
  0 when run time is 0. Not clamped: values above 1 mean the configured
  ideal cycle time is slower than the machine actually ran.
- Quality = good units / (good + defective units), 0 when no units
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

import structlog

from oee_dashboard.models.production import ProductionLogEntry, ProductionRecord
from oee_dashboard.utils.exceptions import InvalidRecordError

logger = structlog.get_logger()


@dataclass(frozen=True)
class OEEMetrics:
    """Derived metrics for one production record."""
    availability: float
    performance: float
    quality: float
    oee: float


class OEECalculator:
    """Stateless OEE calculation service."""

    @staticmethod
    def compute_metrics(record: ProductionRecord) -> OEEMetrics:
        """
        Calculate availability, performance, quality and OEE for one record.

        Raises:
            InvalidRecordError: if a time or quantity field is negative or the
                ideal cycle time is not positive.
        """
        OEECalculator._validate_record(record)

        availability = OEECalculator.calculate_availability(
            record.run_time_minutes, record.downtime_minutes
        )
        performance = OEECalculator.calculate_performance(
            record.actual_quantity + record.defect_quantity,
            record.ideal_cycle_time,
            record.run_time_minutes,
        )
        quality = OEECalculator.calculate_quality(
            record.actual_quantity, record.defect_quantity
        )

        return OEEMetrics(
            availability=availability,
            performance=performance,
            quality=quality,
            oee=availability * performance * quality,
        )

    @staticmethod
    def calculate_availability(run_time: float, downtime: float) -> float:
        """Calculate availability component of OEE."""
        planned_time = run_time + downtime
        if planned_time == 0:
            return 0.0
        return run_time / planned_time

    @staticmethod
    def calculate_performance(total_units: float, ideal_cycle_time: float, run_time: float) -> float:
        """Calculate performance component of OEE."""
        if run_time == 0:
            return 0.0
        return (total_units * ideal_cycle_time) / run_time

    @staticmethod
    def calculate_quality(good_units: float, defect_units: float) -> float:
        """Calculate quality component of OEE."""
        total_units = good_units + defect_units
        if total_units == 0:
            return 0.0
        return good_units / total_units

    @staticmethod
    def annotate(record: ProductionRecord) -> ProductionLogEntry:
        """Return a copy of the record carrying its derived metrics."""
        metrics = OEECalculator.compute_metrics(record)
        return ProductionLogEntry(
            **record.model_dump(),
            availability=metrics.availability,
            performance=metrics.performance,
            quality=metrics.quality,
            oee=metrics.oee,
        )

    @staticmethod
    def annotate_all(records: Iterable[ProductionRecord]) -> List[ProductionLogEntry]:
        """Annotate every record, preserving input order."""
        return [OEECalculator.annotate(record) for record in records]

    @staticmethod
    def _validate_record(record: ProductionRecord) -> None:
        """Check the numeric preconditions of a production record."""
        negative_fields: List[Tuple[str, float]] = [
            (name, value)
            for name, value in (
                ("run_time_minutes", record.run_time_minutes),
                ("downtime_minutes", record.downtime_minutes),
                ("actual_quantity", record.actual_quantity),
                ("defect_quantity", record.defect_quantity),
            )
            if value < 0
        ]
        if negative_fields:
            logger.warning(
                "Rejected production record with negative values",
                prod_id=record.prod_id,
                fields=[name for name, _ in negative_fields],
            )
            raise InvalidRecordError(
                f"Production record {record.prod_id} has negative values",
                {"prod_id": record.prod_id, "fields": dict(negative_fields)},
            )

        if record.ideal_cycle_time <= 0:
            logger.warning(
                "Rejected production record with non-positive ideal cycle time",
                prod_id=record.prod_id,
                ideal_cycle_time=record.ideal_cycle_time,
            )
            raise InvalidRecordError(
                f"Production record {record.prod_id} has a non-positive ideal cycle time",
                {"prod_id": record.prod_id, "ideal_cycle_time": record.ideal_cycle_time},
            )
