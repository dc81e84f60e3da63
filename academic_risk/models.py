"""Data models for the Academic Risk scoring engine."""

from datetime import date as Date
from enum import Enum
from typing import Optional, Tuple
from pydantic import BaseModel, ConfigDict


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"


class ObservationStatus(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"


class RiskTier(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class GradeRecord(_Frozen):
    """A single grade on the 1.0-7.0 scale.

    ``subject_id`` is None when the record has no resolvable subject.
    """
    student_id: str
    subject_id: Optional[str] = None
    subject_name: Optional[str] = None
    value: float
    date: Optional[Date] = None


class AttendanceRecord(_Frozen):
    """One attendance mark for one school day."""
    student_id: str
    date: Date
    status: AttendanceStatus


class ObservationRecord(_Frozen):
    """Append-only behavioral note."""
    student_id: str
    date: Date
    status: ObservationStatus
    text: str = ""
    author_id: Optional[str] = None


class StudentRecords(_Frozen):
    """Grade, attendance and observation records for one student."""
    student_id: str
    grades: Tuple[GradeRecord, ...] = ()
    attendance: Tuple[AttendanceRecord, ...] = ()
    observations: Tuple[ObservationRecord, ...] = ()


class StudentMetrics(_Frozen):
    """Normalized sub-metrics extracted from a student's records."""
    average_grade: float
    grade_pct: float
    attendance_pct: float
    behavior_pct: float
    positive_count: int
    negative_count: int


class RiskAssessment(_Frozen):
    """Failure probability and risk tier for one student."""
    average_grade: float
    attendance_pct: float
    positive_count: int
    negative_count: int
    failure_probability: float
    tier: RiskTier


class PerformanceIndex(_Frozen):
    """Dashboard performance score out of 100."""
    grade_score: float
    attendance_score: float
    behavior_score: float
    global_score: int


class SubjectAverage(_Frozen):
    subject_id: Optional[str]
    subject_name: Optional[str] = None
    average: float
    count: int


class MonthlyAverage(_Frozen):
    year: int
    month: int
    average: float
    count: int


class PassFailSummary(_Frozen):
    passing_count: int
    failing_count: int
    total_students: int
    approval_pct: float


class RiskHistogram(_Frozen):
    low: int = 0
    medium: int = 0
    high: int = 0

    @property
    def critical(self) -> int:
        """Students flagged as critical on dashboards (the high bucket)."""
        return self.high


class StudentAssessment(_Frozen):
    student_id: str
    assessment: RiskAssessment


class ClassSummary(_Frozen):
    """Class-level rollup for instructor dashboards."""
    pass_fail: PassFailSummary
    histogram: RiskHistogram
    critical_count: int
    class_average: float
    attendance_rate: float
    assessments: Tuple[StudentAssessment, ...]

    def assessment_for(self, student_id: str) -> Optional[RiskAssessment]:
        """Latest assessment for a roster student, or None if absent."""
        found = None
        for entry in self.assessments:
            if entry.student_id == student_id:
                found = entry.assessment
        return found


class StudentReport(_Frozen):
    """Everything the student report/dashboard views need for one student."""
    student_id: str
    metrics: StudentMetrics
    assessment: RiskAssessment
    performance: PerformanceIndex
    subjects: Tuple[SubjectAverage, ...]
    approved_subjects: int
    failed_subjects: int
    subject_approval_rate: float
    monthly_history: Tuple[MonthlyAverage, ...]
    risk_factors: Tuple[str, ...]
    recommendations: Tuple[str, ...]
