import pytest

from services.models import StudentRecord


def make_record(id, student_id, full_name, status="active", grade=None, attendance=None, notes=None):
    return StudentRecord(
        id=id,
        student_id=student_id,
        full_name=full_name,
        status=status,
        grade=grade,
        attendance_percentage=attendance,
        notes=notes,
    )


@pytest.fixture
def two_students():
    """Ann (active, A, 90) and Bob (inactive, C, 40)."""
    return [
        make_record(1, "S001", "Ann", status="active", grade="A", attendance=90),
        make_record(2, "S002", "Bob", status="inactive", grade="C", attendance=40),
    ]


@pytest.fixture
def mixed_roster():
    return [
        make_record(1, "S001", "ann lee", grade="B", attendance=75),
        make_record(2, "S002", "Bob Stone", status="inactive", grade=None, attendance=None),
        make_record(3, "S003", "Cara Diaz", grade="A", attendance=98, notes="Top of class"),
        make_record(4, "S004", "dan Fox", status="graduated", grade="E", attendance=60),
        make_record(5, "S005", "Eve Bo", grade="Z", attendance=75),
        make_record(6, "S006", "Finn Ray", grade="A", attendance=40),
    ]


def rows_for(records):
    """Remote-table rows for a list of records."""
    return [
        {
            "id": r.id,
            "student_id": r.student_id,
            "full_name": r.full_name,
            "status": r.status,
            "grade": r.grade,
            "attendance_percentage": r.attendance_percentage,
            "notes": r.notes,
            "last_updated_by": None,
            "updated_at": None,
        }
        for r in records
    ]
