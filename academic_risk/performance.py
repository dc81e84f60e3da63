"""Global performance index shown on the student dashboard.

Independent of the risk scorer: its own weights, no penalty thresholds.
"""

import math

from academic_risk.config import DEFAULT_CONFIG, ScoringConfig
from academic_risk.metrics import clamp
from academic_risk.models import PerformanceIndex, StudentMetrics


def compute_performance_index(metrics: StudentMetrics, config: ScoringConfig = DEFAULT_CONFIG) -> PerformanceIndex:
    """
    Blend grade, attendance and behavior into a 0-100 score.

    The grade score is deliberately left unclamped before blending; only
    the final score is clamped. Halves round up.
    """
    weights = config.performance_weights

    grade_score = (metrics.average_grade / config.grade_scale_max) * 100.0
    behavior_score = max(0.0, 100.0 - metrics.negative_count * config.negative_observation_cost)
    blended = (
        grade_score * weights.grade
        + metrics.attendance_pct * weights.attendance
        + behavior_score * weights.behavior
    )

    return PerformanceIndex(
        grade_score=grade_score,
        attendance_score=metrics.attendance_pct,
        behavior_score=behavior_score,
        global_score=int(clamp(math.floor(blended + 0.5))),
    )
