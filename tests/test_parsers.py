"""Unit tests for parsers module."""

import pytest
import pandas as pd
from datetime import date

from academic_risk.models import AttendanceStatus, ObservationStatus
from academic_risk.parsers import (
    group_by_student,
    normalize_col_name,
    normalize_columns,
    parse_attendance,
    parse_grades,
    parse_observations,
)


def test_normalize_col_name():
    assert normalize_col_name("Asignatura.nombre") == "asignatura_nombre"
    assert normalize_col_name("  Student ID ") == "student_id"
    assert normalize_col_name("estudiante_uuid") == "estudiante_uuid"
    assert normalize_col_name(None) == ""


def test_normalize_columns():
    df = pd.DataFrame({
        'estudiante_uuid': ['u1'],
        'Valor': [5.5],
        'Fecha': ['2024-03-04'],
        'asignaturaId': [3],
    })
    normalized = normalize_columns(df)

    assert list(normalized.columns) == ['student_id', 'value', 'date', 'subject_id']


def test_parse_grades_from_backend_rows():
    rows = [
        {'estudiante_uuid': 'u1', 'valor': 5.5, 'fecha': '2024-03-04',
         'asignaturaId': 3, 'Asignatura': {'nombre': 'Matemáticas'}},
        {'estudiante_uuid': 'u1', 'valor': 3.0, 'fecha': '2024-04-10',
         'asignaturaId': None, 'Asignatura': {'nombre': None}},
    ]
    grades = parse_grades(rows)

    assert len(grades) == 2
    assert grades[0].student_id == 'u1'
    assert grades[0].subject_id == '3'
    assert grades[0].subject_name == 'Matemáticas'
    assert grades[0].value == 5.5
    assert grades[0].date == date(2024, 3, 4)

    # Missing subject stays explicit instead of a placeholder name
    assert grades[1].subject_id is None
    assert grades[1].subject_name is None


def test_parse_grades_from_dataframe():
    df = pd.DataFrame({
        'student_id': ['001', '001', '002'],
        'subject_id': ['math', 'hist', 'math'],
        'grade': [6.0, 4.5, 3.2],
    })
    grades = parse_grades(df)

    assert [g.student_id for g in grades] == ['001', '001', '002']
    assert grades[2].value == 3.2
    assert grades[0].date is None


def test_parse_grades_missing_value_column():
    with pytest.raises(ValueError, match='value'):
        parse_grades([{'estudiante_uuid': 'u1', 'fecha': '2024-03-04'}])


@pytest.mark.parametrize('value', [None, 'siete', float('nan')])
def test_parse_grades_rejects_missing_or_non_numeric_value(value):
    rows = [
        {'estudiante_uuid': 'u1', 'valor': 2.0},
        {'estudiante_uuid': 'u1', 'valor': value},
    ]
    with pytest.raises(ValueError, match='Grade row 1'):
        parse_grades(rows)


def test_parse_grades_accepts_numeric_strings():
    grades = parse_grades([{'estudiante_uuid': 'u1', 'valor': '4.5'}])
    assert grades[0].value == 4.5


def test_parse_empty_rows():
    assert parse_grades([]) == []
    assert parse_attendance([]) == []
    assert parse_observations([]) == []


def test_parse_attendance():
    rows = [
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-04', 'estado': 'presente'},
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-05', 'estado': 'Ausente'},
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-06', 'estado': 'present'},
    ]
    records = parse_attendance(rows)

    assert [r.status for r in records] == [
        AttendanceStatus.PRESENT,
        AttendanceStatus.ABSENT,
        AttendanceStatus.PRESENT,
    ]
    assert records[1].date == date(2024, 3, 5)


def test_parse_attendance_without_date():
    rows = [
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-04', 'estado': 'presente'},
        {'estudiante_uuid': 'u1', 'fecha': None, 'estado': 'presente'},
    ]
    with pytest.raises(ValueError, match='Attendance row 1 has no date'):
        parse_attendance(rows)


def test_parse_attendance_unknown_status():
    with pytest.raises(ValueError, match='attendance status'):
        parse_attendance([{'estudiante_uuid': 'u1', 'fecha': '2024-03-04', 'estado': 'tarde'}])


def test_parse_observations():
    rows = [
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-04', 'estado': 'positiva',
         'texto': 'Participa en clase', 'autor_uuid': 'p7'},
        {'estudiante_uuid': 'u1', 'fecha': '2024-03-08', 'estado': 'negativa'},
    ]
    records = parse_observations(rows)

    assert records[0].status == ObservationStatus.POSITIVE
    assert records[0].text == 'Participa en clase'
    assert records[0].author_id == 'p7'
    assert records[1].status == ObservationStatus.NEGATIVE
    assert records[1].text == ''
    assert records[1].author_id is None


def test_parse_observations_without_date():
    rows = [{'estudiante_uuid': 'u1', 'fecha': None, 'estado': 'negativa'}]
    with pytest.raises(ValueError, match='Observation row 0 has no date'):
        parse_observations(rows)


def test_parse_observations_unknown_status():
    with pytest.raises(ValueError):
        parse_observations([{'estudiante_uuid': 'u1', 'fecha': '2024-03-04', 'estado': 'neutral'}])


def test_group_by_student():
    grades = parse_grades([
        {'estudiante_uuid': 'a', 'valor': 5.0},
        {'estudiante_uuid': 'b', 'valor': 3.0},
        {'estudiante_uuid': 'zz', 'valor': 7.0},
    ])
    attendance = parse_attendance([
        {'estudiante_uuid': 'a', 'fecha': '2024-03-04', 'estado': 'presente'},
    ])
    roster = group_by_student(['a', 'b', 'c'], grades=grades, attendance=attendance)

    assert [s.student_id for s in roster] == ['a', 'b', 'c']
    assert len(roster[0].grades) == 1
    assert len(roster[0].attendance) == 1
    assert len(roster[1].grades) == 1
    # Roster students without records are still present
    assert roster[2].grades == ()
    assert roster[2].attendance == ()
    assert roster[2].observations == ()
