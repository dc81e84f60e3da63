"""Metric extractors: raw student records to normalized percentages."""

from typing import Iterable, Tuple

import numpy as np

from academic_risk.config import DEFAULT_CONFIG, ScoringConfig
from academic_risk.models import (
    AttendanceRecord,
    AttendanceStatus,
    GradeRecord,
    ObservationRecord,
    ObservationStatus,
    StudentMetrics,
    StudentRecords,
)


def clamp(value: float, lower: float = 0.0, upper: float = 100.0) -> float:
    return float(np.clip(value, lower, upper))


def average_grade(grades: Iterable[GradeRecord]) -> float:
    """
    Mean grade value over all records.

    Returns:
        Average grade, or 0.0 when there are no records
    """
    values = [g.value for g in grades]
    if not values:
        return 0.0
    return sum(values) / len(values)


def grade_percentage(average: float, config: ScoringConfig = DEFAULT_CONFIG) -> float:
    """Average grade as a percentage of the scale maximum, clamped to 0-100."""
    return clamp((average / config.grade_scale_max) * 100.0)


def latest_attendance(attendance: Iterable[AttendanceRecord]) -> Tuple[AttendanceRecord, ...]:
    """
    Keep one record per school day.

    A later record for the same date replaces an earlier one (re-saved
    attendance), it is never counted twice.
    """
    by_date = {}
    for record in attendance:
        by_date[record.date] = record
    return tuple(by_date.values())


def attendance_percentage(attendance: Iterable[AttendanceRecord]) -> float:
    """
    Percentage of school days marked present.

    No records means no negative evidence, so the result is 100.
    """
    days = latest_attendance(attendance)
    if not days:
        return 100.0
    present = sum(1 for a in days if a.status == AttendanceStatus.PRESENT)
    return (present / len(days)) * 100.0


def count_observations(observations: Iterable[ObservationRecord]) -> Tuple[int, int]:
    """Return (positive, negative) observation counts."""
    positive = negative = 0
    for obs in observations:
        if obs.status == ObservationStatus.POSITIVE:
            positive += 1
        else:
            negative += 1
    return positive, negative


def behavior_percentage(positive: int, negative: int) -> float:
    """Share of positive observations; 100 when there are none at all."""
    total = positive + negative
    if total == 0:
        return 100.0
    return (positive / total) * 100.0


def extract_metrics(records: StudentRecords, config: ScoringConfig = DEFAULT_CONFIG) -> StudentMetrics:
    """Compute all sub-metrics for one student at full precision."""
    average = average_grade(records.grades)
    positive, negative = count_observations(records.observations)
    return StudentMetrics(
        average_grade=average,
        grade_pct=grade_percentage(average, config),
        attendance_pct=attendance_percentage(records.attendance),
        behavior_pct=behavior_percentage(positive, negative),
        positive_count=positive,
        negative_count=negative,
    )
