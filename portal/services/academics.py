import logging
from typing import Optional

from sqlalchemy.orm import Session

from portal.core.cache import cache, tags_for
from portal.core.exceptions import EnrollmentError, ResultUpdateError
from portal.db.store import StoreError, fetch_one, fetch_rows, insert_row, update_rows
from portal.models.enrollment import Enrollment
from portal.models.lecture import Lecture
from portal.models.result import Result
from portal.models.semester import Semester
from portal.schemas.auth import SessionContext
from portal.schemas.lecture import LectureRow
from portal.schemas.result import ResultRow, ResultUpdate
from portal.schemas.semester import EnrollmentRow, SemesterRow
from portal.services.student import get_cached_student

logger = logging.getLogger(__name__)

RESULTS_CACHE_TTL = 3600
SEMESTERS_CACHE_TTL = 3600
LECTURES_CACHE_TTL = 1800


def get_cached_student_results(db: Session, user_id: str) -> list[ResultRow]:
    """ 현재 사용자의 성적 목록 (학기 오름차순) """
    student = get_cached_student(db, user_id)
    if student is None:
        return []
    return cache.get_or_load(
        [f"results-{student.id}", f"student-{user_id}"],
        lambda: fetch_rows(db, Result, ResultRow, filters={"student_id": student.id}, order_by="semester"),
        tags=[f"results-{student.id}", f"student-id-{student.id}", f"results-{user_id}", "results"],
        ttl=RESULTS_CACHE_TTL,
    )


def get_cached_semesters(db: Session) -> list[SemesterRow]:
    return cache.get_or_load(
        ["semesters"],
        lambda: fetch_rows(db, Semester, SemesterRow, order_by="created_at"),
        tags=["semesters", "courses"],
        ttl=SEMESTERS_CACHE_TTL,
    )


def get_cached_lectures(db: Session) -> list[LectureRow]:
    return cache.get_or_load(
        ["lectures"],
        lambda: fetch_rows(db, Lecture, LectureRow, order_by="created_at", descending=True),
        tags=["lectures"],
        ttl=LECTURES_CACHE_TTL,
    )


def can_open_portal(semester: SemesterRow, session: Optional[SessionContext]) -> bool:
    # 종료된 학기는 세션 유무와 관계없이 열 수 없음
    if semester.status == "Completed":
        return False
    return session is not None


def create_enrollment(db: Session, student_id: int, semester_id: int) -> EnrollmentRow:
    try:
        enrollment = insert_row(db, Enrollment, {"student_id": student_id, "semester_id": semester_id})
    except StoreError as e:
        raise EnrollmentError(f"Failed to create enrollment: {e.message}")

    cache.invalidate_tags(tags_for("enrollment", {"student_id": student_id, "semester_id": semester_id}))
    return EnrollmentRow.model_validate(enrollment)


def open_semester_portal(db: Session, session: SessionContext, semester_id: int) -> SemesterRow:
    """
    학기 포털 열기. 프로필이 있는 학생이면 아직 없는 수강 등록을 만들어 둡니다.
    """
    semester = next((s for s in get_cached_semesters(db) if s.id == semester_id), None)
    if semester is None:
        raise EnrollmentError("Semester not found.")
    if not can_open_portal(semester, session):
        raise EnrollmentError("This semester is completed and its portal is closed.")

    student = get_cached_student(db, session.user_id)
    if student is None:
        return semester

    existing = fetch_one(db, Enrollment, EnrollmentRow, filters={"student_id": student.id, "semester_id": semester_id})
    if existing is None:
        create_enrollment(db, student.id, semester_id)
        logger.info(f"수강 등록 - student_id={student.id}, semester_id={semester_id}")
    return semester


def update_result(db: Session, result_id: int, result_in: ResultUpdate) -> None:
    try:
        current = fetch_one(db, Result, ResultRow, filters={"id": result_id})
    except StoreError as e:
        raise ResultUpdateError(f"Failed to fetch result: {e.message}")
    if current is None:
        raise ResultUpdateError("Result not found.")

    values = result_in.model_dump(exclude_none=True)
    if not values:
        return
    try:
        count = update_rows(db, Result, {"id": result_id}, values)
    except StoreError as e:
        raise ResultUpdateError(f"Failed to update result: {e.message}")
    if count == 0:
        raise ResultUpdateError("Result not found.")

    cache.invalidate_tags(
        tags_for("result", {"id": result_id, "student_id": current.student_id, "semester_id": current.semester_id})
    )
