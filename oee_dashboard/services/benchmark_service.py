"""
OEE Floor Dashboard - Benchmark Service

Compares line-level OEE targets with the actual OEE, output and defect rate
of the filtered scope.
"""

from datetime import date
from typing import Iterable, List, Sequence

from oee_dashboard.models.production import (
    BenchmarkingSection, LineBenchmark, OeeTarget, ProductionLogEntry
)
from oee_dashboard.services.aggregation_engine import group_by, oee_by_line


def effective_on(target: OeeTarget, as_of: date) -> bool:
    if target.effective_from > as_of:
        return False
    return target.effective_to is None or as_of <= target.effective_to


def build_benchmarking(
    entries: Sequence[ProductionLogEntry],
    targets: Iterable[OeeTarget],
    line_ids: Sequence[str],
    as_of: date,
    alert_threshold: float = 0.85
) -> BenchmarkingSection:
    """
    OEE by line, best first, and each effective line target against actuals.

    Lines whose actual OEE falls under alert_threshold are flagged regardless
    of their own target.
    """
    line_oee = oee_by_line(entries)
    ranked = sorted(line_oee, key=lambda point: point.value, reverse=True)
    actual_oee = {point.name: point.value for point in line_oee}
    groups = group_by(entries, lambda e: e.line_id)

    benchmarks: List[LineBenchmark] = []
    for target in targets:
        if target.level != "Line" or target.line_id not in line_ids:
            continue
        if not effective_on(target, as_of):
            continue

        group = groups.get(target.line_id, [])
        output = sum(e.actual_quantity for e in group)
        defects = sum(e.defect_quantity for e in group)
        oee = actual_oee.get(target.line_id, 0.0)
        benchmarks.append(LineBenchmark(
            line_id=target.line_id,
            target_oee=target.target_oee,
            actual_oee=oee,
            target_output=target.target_output,
            actual_output=output,
            target_defect_rate=target.target_defect_rate,
            actual_defect_rate=defects / (output + defects) if output + defects else 0.0,
            meets_oee_target=oee >= target.target_oee,
            below_alert_threshold=oee < alert_threshold,
        ))

    return BenchmarkingSection(oee_by_line=ranked, targets=benchmarks)
