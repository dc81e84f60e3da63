"""Convert raw record rows from the persistence layer into typed records."""

import logging
import re
from typing import Dict, Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from academic_risk.models import (
    AttendanceRecord,
    AttendanceStatus,
    GradeRecord,
    ObservationRecord,
    ObservationStatus,
    StudentRecords,
)

logger = logging.getLogger(__name__)

Rows = Union[pd.DataFrame, Iterable[dict]]

COLUMN_VARIATIONS: Dict[str, List[str]] = {
    "student_id": ["student_id", "studentid", "student", "estudiante_uuid", "estudiante_id", "estudianteid"],
    "subject_id": ["subject_id", "subjectid", "asignaturaid", "asignatura_id"],
    "subject_name": ["subject_name", "subject", "asignatura", "asignatura_nombre", "asignaturanombre", "nombre_asignatura"],
    "value": ["value", "grade", "valor", "nota"],
    "date": ["date", "fecha"],
    "status": ["status", "estado"],
    "text": ["text", "texto", "description", "descripcion"],
    "author_id": ["author_id", "authorid", "autor_uuid", "autor_id", "profesor_uuid"],
}

ATTENDANCE_STATUSES = {
    "present": AttendanceStatus.PRESENT,
    "presente": AttendanceStatus.PRESENT,
    "absent": AttendanceStatus.ABSENT,
    "ausente": AttendanceStatus.ABSENT,
}

OBSERVATION_STATUSES = {
    "positive": ObservationStatus.POSITIVE,
    "positiva": ObservationStatus.POSITIVE,
    "negative": ObservationStatus.NEGATIVE,
    "negativa": ObservationStatus.NEGATIVE,
}


def normalize_col_name(col_name) -> str:
    """Lowercase, trim and collapse separators so column variants compare equal."""
    if col_name is None:
        return ""
    normalized = str(col_name).strip().lower()
    normalized = re.sub(r'[.\s-]+', '_', normalized)
    return normalized.strip('_')


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """
    Rename known column variants to their standard names.

    Nested relation columns flattened by ``pd.json_normalize``
    (e.g. ``Asignatura.nombre``) are matched too.
    """
    rename = {}
    for col in df.columns:
        normalized = normalize_col_name(col)
        for target, variations in COLUMN_VARIATIONS.items():
            if normalized in variations and target not in rename.values():
                rename[col] = target
                break
    return df.rename(columns=rename)


def to_frame(rows: Rows) -> pd.DataFrame:
    if isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        df = pd.json_normalize(list(rows))
    return normalize_columns(df)


def _require(df: pd.DataFrame, columns: Sequence[str], kind: str):
    missing = [c for c in columns if c not in df.columns]
    if missing and not df.empty:
        raise ValueError(f"{kind} rows are missing required columns: {', '.join(missing)}. Columns: {list(df.columns)}")


def _optional_str(value) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    # ids come back as floats when pandas fills gaps with NaN
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip()
    return text or None


def _parse_date(value):
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    return pd.to_datetime(value).date()


def _parse_value(value, index) -> float:
    """Grade value as a finite float; missing or non-numeric values are rejected."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        number = np.nan
    if np.isnan(number) or np.isinf(number):
        raise ValueError(f"Grade row {index} has a missing or non-numeric value: {value!r}")
    return number


def _require_date(value, index, kind: str):
    day = _parse_date(value)
    if day is None:
        raise ValueError(f"{kind} row {index} has no date")
    return day


def parse_status(value, mapping: Dict[str, object], kind: str):
    key = str(value).strip().lower()
    if key not in mapping:
        raise ValueError(f"Unknown {kind} status '{value}'. Expected one of: {', '.join(sorted(mapping))}")
    return mapping[key]


def parse_grades(rows: Rows) -> List[GradeRecord]:
    """
    Build GradeRecords from raw rows.

    A row with no subject id and no subject name yields a record whose
    subject is explicitly None. A row without a numeric value raises
    ValueError naming the row.
    """
    df = to_frame(rows)
    _require(df, ['student_id', 'value'], 'Grade')

    records = []
    for index, row in df.iterrows():
        records.append(GradeRecord(
            student_id=_optional_str(row['student_id']),
            subject_id=_optional_str(row.get('subject_id')),
            subject_name=_optional_str(row.get('subject_name')),
            value=_parse_value(row['value'], index),
            date=_parse_date(row.get('date')),
        ))
    logger.debug("Parsed %d grade records", len(records))
    return records


def parse_attendance(rows: Rows) -> List[AttendanceRecord]:
    df = to_frame(rows)
    _require(df, ['student_id', 'date', 'status'], 'Attendance')

    records = []
    for index, row in df.iterrows():
        records.append(AttendanceRecord(
            student_id=_optional_str(row['student_id']),
            date=_require_date(row['date'], index, 'Attendance'),
            status=parse_status(row['status'], ATTENDANCE_STATUSES, 'attendance'),
        ))
    logger.debug("Parsed %d attendance records", len(records))
    return records


def parse_observations(rows: Rows) -> List[ObservationRecord]:
    df = to_frame(rows)
    _require(df, ['student_id', 'date', 'status'], 'Observation')

    records = []
    for index, row in df.iterrows():
        records.append(ObservationRecord(
            student_id=_optional_str(row['student_id']),
            date=_require_date(row['date'], index, 'Observation'),
            status=parse_status(row['status'], OBSERVATION_STATUSES, 'observation'),
            text=_optional_str(row.get('text')) or "",
            author_id=_optional_str(row.get('author_id')),
        ))
    logger.debug("Parsed %d observation records", len(records))
    return records


def group_by_student(
    student_ids: Iterable[str],
    grades: Iterable[GradeRecord] = (),
    attendance: Iterable[AttendanceRecord] = (),
    observations: Iterable[ObservationRecord] = (),
) -> List[StudentRecords]:
    """
    Split class-wide record sets into one StudentRecords per roster entry.

    Every roster student is returned, including those with no records.
    Records for students outside the roster are dropped.
    """
    buckets = {str(sid): {'grades': [], 'attendance': [], 'observations': []} for sid in student_ids}

    dropped = 0
    for key, records in (('grades', grades), ('attendance', attendance), ('observations', observations)):
        for record in records:
            bucket = buckets.get(record.student_id)
            if bucket is None:
                dropped += 1
                continue
            bucket[key].append(record)

    if dropped:
        logger.warning("Dropped %d records for students outside the roster", dropped)

    return [
        StudentRecords(
            student_id=sid,
            grades=tuple(b['grades']),
            attendance=tuple(b['attendance']),
            observations=tuple(b['observations']),
        )
        for sid, b in buckets.items()
    ]
