from portal.models.student import Student

STUDENT_UID = "student-uid-1"
STUDENT_EMAIL = "student@example.com"


def make_student(db, **overrides) -> Student:
    values = dict(
        user_id=STUDENT_UID,
        full_name="Ayesha Khan",
        father_name="Imran Khan",
        student_id="QT-2025-001",
        roll_no="R-17",
        city="Mirpurkhas",
        gender="Female",
        email=STUDENT_EMAIL,
        currently="Onsite",
        course="Web Development",
        batch="B-12",
    )
    values.update(overrides)
    row = Student(**values)
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
