"""
Seed a development database with staff accounts, sample students and a few
academic records. Safe to re-run: existing users and students are skipped.

    python -m student_records.seed
"""
from datetime import date

from sqlalchemy.orm import Session

from student_records.core.database import SessionLocal, engine
from student_records.core.security import hash_password
from student_records.models import AcademicRecord, Student, StudentStatus, User, UserRole
from student_records.models.base import Base
from student_records.services.students import live_students

USERS = [
    ("admin@university.edu", "admin123", UserRole.admin, "System", "Admin"),
    ("faculty@university.edu", "faculty123", UserRole.faculty, "Jane", "Smith"),
    ("staff@university.edu", "staff123", UserRole.staff, "Bob", "Wilson"),
]

# student_id, first, last, major, gpa, status, enrolled
STUDENTS = [
    ("STU-2024-001", "Alice", "Johnson", "Computer Science", 3.85, StudentStatus.active, date(2022, 9, 1)),
    ("STU-2024-002", "Bob", "Williams", "Mathematics", 3.42, StudentStatus.active, date(2021, 9, 1)),
    ("STU-2024-003", "Carol", "Davis", "Physics", 3.91, StudentStatus.active, date(2023, 1, 15)),
    ("STU-2024-004", "Daniel", "Brown", "Computer Science", 2.78, StudentStatus.active, date(2022, 9, 1)),
    ("STU-2024-005", "Eva", "Martinez", "Biology", 3.65, StudentStatus.active, date(2022, 9, 1)),
    ("STU-2024-008", "Henry", "Wilson", "Mathematics", 1.85, StudentStatus.active, date(2022, 1, 15)),
    ("STU-2024-015", "Rachel", "Walker", "Chemistry", 1.45, StudentStatus.active, date(2023, 1, 15)),
    ("STU-2023-001", "Maria", "White", "Computer Science", 3.88, StudentStatus.graduated, date(2020, 9, 1)),
    ("STU-2023-002", "Nathan", "Harris", "Physics", 2.15, StudentStatus.suspended, date(2021, 1, 15)),
    ("STU-2023-003", "Olivia", "Clark", "Biology", 3.30, StudentStatus.withdrawn, date(2022, 9, 1)),
]

# semester, year, code, name, grade, credits, points
RECORDS = {
    "STU-2024-001": [
        ("Fall", 2022, "CS101", "Introduction to Programming", "A", 4, 4.0),
        ("Spring", 2023, "CS201", "Data Structures", "A", 4, 4.0),
        ("Fall", 2023, "CS301", "Algorithms", "A", 4, 4.0),
        ("Spring", 2024, "CS410", "Software Engineering", "A-", 3, 3.7),
    ],
    "STU-2024-008": [
        ("Spring", 2022, "MATH101", "Pre-Calculus", "C", 4, 2.0),
        ("Fall", 2022, "MATH201", "Calculus I", "D", 4, 1.0),
        ("Spring", 2023, "MATH201R", "Calculus I (Retake)", "C+", 4, 2.3),
        ("Fall", 2023, "MATH202", "Calculus II", "C-", 4, 1.7),
    ],
}


def seed(db: Session) -> dict[str, int]:
    users_added = students_added = records_added = 0

    for email, password, role, first, last in USERS:
        if db.query(User).filter(User.email == email).first():
            continue
        db.add(User(email=email, hashed_password=hash_password(password), role=role, first_name=first, last_name=last))
        users_added += 1
    db.flush()
    admin = db.query(User).filter(User.email == USERS[0][0]).one()

    for student_id, first, last, major, gpa, status, enrolled in STUDENTS:
        exists = db.query(Student.id).filter(live_students(), Student.student_id == student_id).first()
        if exists:
            continue
        student = Student(
            student_id=student_id,
            first_name=first,
            last_name=last,
            email=f"{first}.{last}@student.edu".lower(),
            major=major,
            current_gpa=gpa,
            status=status,
            enrollment_date=enrolled,
            created_by_id=admin.id,
        )
        db.add(student)
        db.flush()
        students_added += 1
        for semester, year, code, name, grade, credits, points in RECORDS.get(student_id, []):
            db.add(
                AcademicRecord(
                    student_id=student.id,
                    semester=semester,
                    year=year,
                    course_code=code,
                    course_name=name,
                    grade=grade,
                    credits=credits,
                    gpa_contribution=points,
                )
            )
            records_added += 1

    db.commit()
    return {"users": users_added, "students": students_added, "academic_records": records_added}


def main():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        counts = seed(db)
    finally:
        db.close()
    print(f"Seeded {counts['users']} users, {counts['students']} students, {counts['academic_records']} records")
    for email, password, role, _, _ in USERS:
        print(f"  {role.value:<8} {email} / {password}")


if __name__ == "__main__":
    main()
