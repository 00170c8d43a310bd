"""Tests for per-record OEE metrics."""

import random

import pytest

from conftest import make_production
from oee_dashboard.services.oee_calculator import OEECalculator
from oee_dashboard.utils.exceptions import InvalidRecordError


def generated_records(seed, count=50):
    rng = random.Random(seed)
    return [
        make_production(
            prod_id=i + 1,
            actual=rng.randint(0, 20000),
            defect=rng.randint(0, 500),
            run=rng.choice([0, rng.uniform(1, 1440)]),
            down=rng.uniform(0, 300),
            ideal_cycle_time=rng.uniform(0.01, 0.5),
        )
        for i in range(count)
    ]


def test_worked_example():
    record = make_production(actual=9500, defect=50, run=450, down=30, ideal_cycle_time=0.045)

    metrics = OEECalculator.compute_metrics(record)

    assert metrics.availability == pytest.approx(0.9375)
    assert metrics.performance == pytest.approx(0.955)
    assert metrics.quality == pytest.approx(0.99476, abs=1e-5)
    assert metrics.oee == pytest.approx(0.8905, abs=1e-3)


def test_zero_denominators_yield_zero():
    metrics = OEECalculator.compute_metrics(make_production(actual=0, defect=0, run=0, down=0))

    assert metrics.availability == 0.0
    assert metrics.performance == 0.0
    assert metrics.quality == 0.0
    assert metrics.oee == 0.0


def test_performance_is_not_clamped():
    metrics = OEECalculator.compute_metrics(
        make_production(actual=90, defect=10, run=80, down=20, ideal_cycle_time=1.0)
    )

    assert metrics.performance == pytest.approx(1.25)
    assert metrics.oee == pytest.approx(0.8 * 1.25 * 0.9)


@pytest.mark.parametrize("seed", [1, 2, 3])
def test_metric_bounds(seed):
    for record in generated_records(seed):
        metrics = OEECalculator.compute_metrics(record)
        assert 0.0 <= metrics.availability <= 1.0
        assert 0.0 <= metrics.quality <= 1.0
        assert metrics.performance >= 0.0
        assert metrics.oee >= 0.0


@pytest.mark.parametrize("seed", [4, 5])
def test_performance_formula(seed):
    for record in generated_records(seed):
        metrics = OEECalculator.compute_metrics(record)
        if record.run_time_minutes > 0:
            expected = (
                (record.actual_quantity + record.defect_quantity)
                * record.ideal_cycle_time / record.run_time_minutes
            )
            assert metrics.performance == pytest.approx(expected)
        else:
            assert metrics.performance == 0.0


@pytest.mark.parametrize("field", ["actual", "defect", "run", "down"])
def test_negative_values_are_rejected(field):
    record = make_production(**{field: -1})

    with pytest.raises(InvalidRecordError) as exc_info:
        OEECalculator.compute_metrics(record)

    assert exc_info.value.error_code == "INVALID_RECORD"


@pytest.mark.parametrize("ideal_cycle_time", [0, -0.5])
def test_non_positive_ideal_cycle_time_is_rejected(ideal_cycle_time):
    with pytest.raises(InvalidRecordError):
        OEECalculator.compute_metrics(make_production(ideal_cycle_time=ideal_cycle_time))


def test_annotate_keeps_record_fields():
    record = make_production(prod_id=42, actual=9500, defect=50, run=450, down=30, ideal_cycle_time=0.045)

    entry = OEECalculator.annotate(record)

    assert entry.prod_id == 42
    assert entry.actual_quantity == 9500
    assert entry.availability == pytest.approx(0.9375)
    assert entry.oee == pytest.approx(0.890625)
