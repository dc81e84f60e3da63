"""Per-subject, per-student and per-class rollups."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

import pandas as pd

from academic_risk.config import DEFAULT_CONFIG, ScoringConfig
from academic_risk.metrics import average_grade, extract_metrics, latest_attendance
from academic_risk.models import (
    AttendanceStatus,
    ClassSummary,
    GradeRecord,
    MonthlyAverage,
    PassFailSummary,
    RiskAssessment,
    RiskHistogram,
    StudentAssessment,
    StudentRecords,
    StudentReport,
    SubjectAverage,
)
from academic_risk.performance import compute_performance_index
from academic_risk.risk import (
    assess_student,
    compute_risk_assessment,
    generate_recommendations,
    identify_risk_factors,
)

logger = logging.getLogger(__name__)


def _grades_frame(grades: Iterable[GradeRecord]) -> pd.DataFrame:
    rows = [g.model_dump() for g in grades]
    return pd.DataFrame(rows, columns=['student_id', 'subject_id', 'subject_name', 'value', 'date'])


def _subject_group(subject_id: Optional[str], subject_name: Optional[str]) -> Tuple[str, str]:
    """
    Group key for a grade: its subject id, else its subject name, else the
    unassigned group. The kind tag keeps ids, names and unassigned apart.
    """
    if pd.notna(subject_id):
        return 'id', subject_id
    if pd.notna(subject_name):
        return 'name', subject_name
    return 'none', ''


def subject_averages(grades: Iterable[GradeRecord]) -> List[SubjectAverage]:
    """
    Average grade per subject, in order of first appearance.

    Grades are grouped by subject id, or by subject name when only the
    name is known. Grades with neither are grouped together under
    ``subject_id=None`` and ``subject_name=None``.
    """
    df = _grades_frame(grades)
    if df.empty:
        return []

    keys = [_subject_group(sid, name) for sid, name in zip(df['subject_id'], df['subject_name'])]
    df['subject_kind'] = [kind for kind, _ in keys]
    df['subject_key'] = [key for _, key in keys]
    grouped = df.groupby(['subject_kind', 'subject_key'], sort=False).agg(
        subject_name=('subject_name', 'first'),
        average=('value', 'mean'),
        count=('value', 'size'),
    )

    results = []
    for (kind, key), row in grouped.iterrows():
        name = row['subject_name']
        results.append(SubjectAverage(
            subject_id=key if kind == 'id' else None,
            subject_name=None if kind == 'none' or pd.isna(name) else name,
            average=float(row['average']),
            count=int(row['count']),
        ))
    return results


def subject_approval(
    subjects: Sequence[SubjectAverage],
    config: ScoringConfig = DEFAULT_CONFIG
) -> Tuple[int, int, float]:
    """
    Count passed and failed subjects.

    Returns:
        Tuple of (approved, failed, approval_rate); the rate is 100 when
        the student has no subjects yet
    """
    approved = sum(1 for s in subjects if s.average >= config.pass_threshold)
    failed = len(subjects) - approved
    if not subjects:
        return approved, failed, 100.0
    return approved, failed, (approved / len(subjects)) * 100.0


def monthly_history(grades: Iterable[GradeRecord]) -> List[MonthlyAverage]:
    """Average grade per calendar month, oldest first. Undated grades are skipped."""
    df = _grades_frame(grades)
    df = df.dropna(subset=["date"]).copy()
    if df.empty:
        return []

    dates = pd.to_datetime(df['date'])
    df['year'] = dates.dt.year
    df['month'] = dates.dt.month
    grouped = df.groupby(['year', 'month']).agg(
        average=('value', 'mean'),
        count=('value', 'size'),
    )

    return [
        MonthlyAverage(year=int(year), month=int(month), average=float(row['average']), count=int(row['count']))
        for (year, month), row in grouped.iterrows()
    ]


def class_pass_fail(roster: Sequence[StudentRecords], config: ScoringConfig = DEFAULT_CONFIG) -> PassFailSummary:
    """
    Pass/fail counts for a class.

    A student with no grades averages 0 and therefore counts as failing.
    """
    passing = sum(1 for s in roster if average_grade(s.grades) >= config.pass_threshold)
    total = len(roster)
    approval = (passing / total) * 100.0 if total > 0 else 0.0
    return PassFailSummary(
        passing_count=passing,
        failing_count=total - passing,
        total_students=total,
        approval_pct=approval,
    )


def _histogram(assessments: Iterable[RiskAssessment]) -> RiskHistogram:
    counts = {'low': 0, 'medium': 0, 'high': 0}
    for assessment in assessments:
        counts[assessment.tier.value] += 1
    return RiskHistogram(**counts)


def class_risk_histogram(roster: Sequence[StudentRecords], config: ScoringConfig = DEFAULT_CONFIG) -> RiskHistogram:
    """Bucket every student by independently computed risk tier."""
    return _histogram(assess_student(s, config) for s in roster)


def _pooled_attendance_rate(roster: Sequence[StudentRecords]) -> float:
    days = [a for s in roster for a in latest_attendance(s.attendance)]
    if not days:
        return 100.0
    present = sum(1 for a in days if a.status == AttendanceStatus.PRESENT)
    return (present / len(days)) * 100.0


def summarize_class(roster: Sequence[StudentRecords], config: ScoringConfig = DEFAULT_CONFIG) -> ClassSummary:
    """
    Full class rollup: pass/fail counts, risk histogram, critical count,
    class grade average and pooled attendance rate.
    """
    scored = tuple(
        StudentAssessment(student_id=s.student_id, assessment=assess_student(s, config))
        for s in roster
    )
    histogram = _histogram(entry.assessment for entry in scored)

    all_grades = [g for s in roster for g in s.grades]
    summary = ClassSummary(
        pass_fail=class_pass_fail(roster, config),
        histogram=histogram,
        critical_count=histogram.critical,
        class_average=average_grade(all_grades),
        attendance_rate=_pooled_attendance_rate(roster),
        assessments=scored,
    )

    logger.debug(
        "Class summary: %d students (%d high, %d medium, %d low), approval %.1f%%",
        len(roster), histogram.high, histogram.medium, histogram.low, summary.pass_fail.approval_pct
    )
    return summary


def build_student_report(records: StudentRecords, config: ScoringConfig = DEFAULT_CONFIG) -> StudentReport:
    """Assemble the per-student analysis consumed by report and dashboard views."""
    metrics = extract_metrics(records, config)
    assessment = compute_risk_assessment(metrics, config)
    subjects = subject_averages(records.grades)
    approved, failed, rate = subject_approval(subjects, config)

    return StudentReport(
        student_id=records.student_id,
        metrics=metrics,
        assessment=assessment,
        performance=compute_performance_index(metrics, config),
        subjects=tuple(subjects),
        approved_subjects=approved,
        failed_subjects=failed,
        subject_approval_rate=rate,
        monthly_history=tuple(monthly_history(records.grades)),
        risk_factors=tuple(identify_risk_factors(assessment, config)),
        recommendations=tuple(generate_recommendations(assessment)),
    )
