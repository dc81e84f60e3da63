"""Risk scoring: weighted success blend, penalties and tier classification."""

from typing import List

from academic_risk.config import DEFAULT_CONFIG, ScoringConfig
from academic_risk.metrics import clamp, extract_metrics
from academic_risk.models import RiskAssessment, RiskTier, StudentMetrics, StudentRecords


def success_score(metrics: StudentMetrics, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """Weighted blend of grade, attendance and behavior percentages."""
    weights = config.risk_weights
    return (
        metrics.grade_pct * weights.grade
        + metrics.attendance_pct * weights.attendance
        + metrics.behavior_pct * weights.behavior
    )


def raw_failure_probability(metrics: StudentMetrics, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """
    Failure probability before clamping.

    Starts from the inverted success score and adds a fixed penalty for a
    failing average and another for attendance below the minimum.
    """
    probability = 100.0 - success_score(metrics, config)
    if metrics.average_grade < config.pass_threshold:
        probability += config.grade_penalty
    if metrics.attendance_pct < config.attendance_threshold:
        probability += config.attendance_penalty
    return probability


def compute_failure_probability(metrics: StudentMetrics, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    return clamp(raw_failure_probability(metrics, config))


def classify_tier(failure_probability: float, config: ScoringConfig = DEFAULT_CONFIG) -> RiskTier:
    """
    Categorize a failure probability into Low/Medium/High.

    Cuts are exclusive on the left: a value equal to the high cut is
    medium and a value equal to the medium cut is low.

    Args:
        failure_probability: Failure probability (0-100)
        config: Scoring policy holding the 'medium' and 'high' cuts

    Returns:
        RiskTier
    """
    if failure_probability > config.tier_thresholds.high:
        return RiskTier.HIGH
    elif failure_probability > config.tier_thresholds.medium:
        return RiskTier.MEDIUM
    else:
        return RiskTier.LOW


def compute_risk_assessment(metrics: StudentMetrics, config: ScoringConfig = DEFAULT_CONFIG) -> RiskAssessment:
    """Score one student's metrics. Pure and total: never raises."""
    probability = compute_failure_probability(metrics, config)
    return RiskAssessment(
        average_grade=metrics.average_grade,
        attendance_pct=metrics.attendance_pct,
        positive_count=metrics.positive_count,
        negative_count=metrics.negative_count,
        failure_probability=probability,
        tier=classify_tier(probability, config),
    )


def assess_student(records: StudentRecords, config: ScoringConfig = DEFAULT_CONFIG) -> RiskAssessment:
    return compute_risk_assessment(extract_metrics(records, config), config)


def identify_risk_factors(assessment: RiskAssessment, config: ScoringConfig = DEFAULT_CONFIG) -> List[str]:
    """Human-readable reasons a student may be at risk."""
    factors = []
    if assessment.average_grade < config.low_average_warning:
        factors.append(f"Low overall average ({assessment.average_grade:.1f})")
    if assessment.attendance_pct < config.attendance_threshold:
        factors.append(f"Low attendance ({assessment.attendance_pct:.0f}%)")
    if assessment.negative_count > assessment.positive_count:
        factors.append("Negative behavior")
    return factors


def generate_recommendations(assessment: RiskAssessment) -> List[str]:
    if assessment.tier == RiskTier.HIGH:
        return ["Action: schedule a meeting with the student's guardians."]
    if assessment.tier == RiskTier.MEDIUM:
        return ["Recommendation: monitor closely."]
    return []
