"""
Covenant compliance evaluation.

Pure: the same covenants and metrics always classify the same way, and
nothing is persisted here. Recording a result is a separate call on
``CovenantService``.

Severity bands (strict inequalities, so 10/25/50 fall to the milder band):

    compliant      variance < 10%  -> warning   (close to the threshold)
                   otherwise       -> info
    non-compliant  variance > 50%  -> critical
                   variance > 25%  -> breach
                   otherwise       -> warning
"""
import math
from typing import Iterable, List, Optional
from uuid import UUID

from src.covenants.models import CovenantSeverity
from src.covenants.schemas import Covenant, CovenantCheckResult, CovenantMetrics

# covenant type -> metrics field
COVENANT_METRICS = {
    "min_tier1_coverage": "tier1_coverage",
    "min_tier2_coverage": "tier2_coverage",
    "max_hhi": "hhi",
    "max_supply_shortfall": "supply_shortfall",
    "min_supplier_count": "actual_supplier_count",
}

NEAR_THRESHOLD_PERCENT = 10
BREACH_PERCENT = 25
CRITICAL_PERCENT = 50


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def variance_percent(actual: float, threshold: float) -> int:
    """
    Distance from the threshold as a whole percentage of it.

    A zero threshold has no scale: an exact match is 0%, any other value
    counts as a full 100% deviation.
    """
    if threshold == 0:
        return 0 if actual == 0 else 100
    return _round_half_up(abs(actual - threshold) / abs(threshold) * 100)


def is_compliant(covenant_type: str, actual: float, threshold: float) -> bool:
    if covenant_type.startswith("min_"):
        return actual >= threshold
    return actual <= threshold


def classify_severity(compliant: bool, variance: int) -> CovenantSeverity:
    if compliant:
        return CovenantSeverity.WARNING if variance < NEAR_THRESHOLD_PERCENT else CovenantSeverity.INFO
    if variance > CRITICAL_PERCENT:
        return CovenantSeverity.CRITICAL
    if variance > BREACH_PERCENT:
        return CovenantSeverity.BREACH
    return CovenantSeverity.WARNING


def evaluate_covenant(covenant: Covenant, metrics: CovenantMetrics) -> Optional[CovenantCheckResult]:
    """Classify one covenant, or None for a covenant type with no metric."""
    field = COVENANT_METRICS.get(covenant.type)
    if field is None:
        return None

    actual = getattr(metrics, field)
    compliant = is_compliant(covenant.type, actual, covenant.threshold)
    variance = variance_percent(actual, covenant.threshold)
    return CovenantCheckResult(
        covenant_type=covenant.type,
        compliant=compliant,
        actual_value=actual,
        threshold_value=covenant.threshold,
        variance_percent=variance,
        severity=classify_severity(compliant, variance),
    )


def check_covenant_compliance(
    project_id: UUID,
    covenants: Iterable[Covenant],
    current_metrics: CovenantMetrics,
) -> List[CovenantCheckResult]:
    """One result per known covenant, in input order. Unknown types are skipped."""
    results = []
    for covenant in covenants:
        result = evaluate_covenant(covenant, current_metrics)
        if result is not None:
            results.append(result)
    return results
