from uuid import uuid4

import pytest

from src.covenants.evaluator import (
    check_covenant_compliance,
    classify_severity,
    is_compliant,
    variance_percent,
)
from src.covenants.models import CovenantSeverity
from src.covenants.schemas import Covenant, CovenantMetrics

PROJECT_ID = uuid4()


def check(covenant_type, threshold, **metrics):
    results = check_covenant_compliance(
        PROJECT_ID, [Covenant(type=covenant_type, threshold=threshold)], CovenantMetrics(**metrics)
    )
    assert len(results) == 1
    return results[0]


def test_tier1_shortfall_of_exactly_25_percent_is_a_warning():
    result = check("min_tier1_coverage", 80, tier1_coverage=60)
    assert result.compliant is False
    assert result.actual_value == 60
    assert result.threshold_value == 80
    assert result.variance_percent == 25
    assert result.severity == CovenantSeverity.WARNING


def test_exact_match_is_compliant_but_near_threshold():
    result = check("min_tier1_coverage", 100, tier1_coverage=100)
    assert result.compliant is True
    assert result.variance_percent == 0
    assert result.severity == CovenantSeverity.WARNING


def test_max_covenant_just_under_threshold():
    result = check("max_hhi", 50, hhi=49)
    assert result.compliant is True
    assert result.variance_percent == 2
    assert result.severity == CovenantSeverity.WARNING


def test_comfortably_compliant_is_info():
    result = check("max_hhi", 2500, hhi=1500)
    assert result.compliant is True
    assert result.variance_percent == 40
    assert result.severity == CovenantSeverity.INFO


def test_large_exceedance_is_critical():
    result = check("max_hhi", 100, hhi=151)
    assert result.compliant is False
    assert result.variance_percent == 51
    assert result.severity == CovenantSeverity.CRITICAL


@pytest.mark.parametrize(
    "compliant, variance, expected",
    [
        (True, 9, CovenantSeverity.WARNING),
        (True, 10, CovenantSeverity.INFO),
        (False, 25, CovenantSeverity.WARNING),
        (False, 26, CovenantSeverity.BREACH),
        (False, 50, CovenantSeverity.BREACH),
        (False, 51, CovenantSeverity.CRITICAL),
    ],
)
def test_severity_band_edges(compliant, variance, expected):
    assert classify_severity(compliant, variance) == expected


def test_variance_rounds_half_up():
    # 12.5% -> 13
    assert variance_percent(70, 80) == 13
    # 0.4% -> 0
    assert variance_percent(1004, 1000) == 0


def test_zero_threshold_has_no_scale():
    assert variance_percent(0, 0) == 0
    assert variance_percent(3, 0) == 100

    result = check("max_supply_shortfall", 0, supply_shortfall=0)
    assert result.compliant is True
    assert result.severity == CovenantSeverity.WARNING


def test_direction_comes_from_the_type_prefix():
    assert is_compliant("min_tier2_coverage", 10, 10) is True
    assert is_compliant("min_tier2_coverage", 9.9, 10) is False
    assert is_compliant("max_hhi", 10, 10) is True
    assert is_compliant("max_hhi", 10.1, 10) is False


def test_supplier_count_reads_actual_supplier_count():
    result = check("min_supplier_count", 5, min_supplier_count=99, actual_supplier_count=3)
    assert result.actual_value == 3
    assert result.compliant is False
    assert result.variance_percent == 40
    assert result.severity == CovenantSeverity.BREACH


def test_unknown_covenants_are_skipped_and_order_is_kept():
    covenants = [
        Covenant(type="max_hhi", threshold=2500),
        Covenant(type="min_debt_service_cover", threshold=1.2),
        Covenant(type="min_tier1_coverage", threshold=80),
    ]
    results = check_covenant_compliance(
        PROJECT_ID, covenants, CovenantMetrics(hhi=2000, tier1_coverage=90)
    )
    assert [r.covenant_type for r in results] == ["max_hhi", "min_tier1_coverage"]


def test_evaluation_is_deterministic():
    covenants = [Covenant(type="min_tier1_coverage", threshold=80)]
    metrics = CovenantMetrics(tier1_coverage=72.5)
    assert check_covenant_compliance(PROJECT_ID, covenants, metrics) == check_covenant_compliance(
        PROJECT_ID, covenants, metrics
    )
