import re
from datetime import datetime

import pytest

from portal.core.config import settings
from portal.db.store import StoreError
from portal.models.course import Course
from portal.models.enrollment import Enrollment
from portal.models.lecture import Lecture
from portal.models.result import Result
from portal.models.semester import Semester
from portal.schemas.auth import SessionContext
from portal.schemas.semester import SemesterRow
from portal.services.academics import can_open_portal
from tests.factories import STUDENT_UID, make_student


@pytest.fixture
def semesters(db):
    course = Course(name="Web Development")
    db.add(course)
    db.commit()
    completed = Semester(name="Semester 1", status="Completed", mode="Onsite", batch="B-12",
                         course_id=course.id, created_at=datetime(2024, 1, 1))
    running = Semester(name="Semester 2", status="In Progress", mode="Online", batch="B-12",
                       course_id=course.id, created_at=datetime(2025, 1, 1))
    db.add_all([completed, running])
    db.commit()
    return completed, running


@pytest.mark.parametrize("path", ["/dashboard", "/profile", "/exam", "/lectures", "/courses", "/student-card"])
def test_protected_pages_redirect_to_login(client, path):
    response = client.get(path, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == f"/login?redirectedFrom={path.replace('/', '%2F')}"


def test_no_protected_read_without_session(client, monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("read attempted without session")

    monkeypatch.setattr("portal.api.routes.dashboard.get_cached_student_results", fail)

    assert client.get("/dashboard", follow_redirects=False).status_code == 303


def test_invalid_token_is_treated_as_no_session(client):
    client.cookies.set("access_token", "not-a-jwt")

    assert client.get("/exam", follow_redirects=False).status_code == 303


def test_root_redirects_to_dashboard_with_session(auth_client):
    response = auth_client.get("/", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_root_shows_landing_without_session(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Student Portal" in response.text
    assert "X-Process-Time" in response.headers


def test_completed_semester_cannot_open_portal():
    """
    종료된 학기는 세션이 있어도 포털을 열 수 없음
    """
    completed = SemesterRow(id=1, name="S1", status="Completed", mode="Onsite")
    running = SemesterRow(id=2, name="S2", status="Upcoming", mode="Online")
    session = SessionContext(user_id=STUDENT_UID)

    assert can_open_portal(completed, session) is False
    assert can_open_portal(completed, None) is False
    assert can_open_portal(running, session) is True


def test_courses_page_disables_completed_semester(auth_client, semesters):
    completed, running = semesters

    response = auth_client.get("/courses")

    assert response.status_code == 200
    assert re.search(rf'/courses/{completed.id}/open">\s*<button type="submit" disabled>', response.text)
    assert re.search(rf'/courses/{running.id}/open">\s*<button type="submit"\s*>', response.text)
    assert response.text.index("Semester 1") < response.text.index("Semester 2")
    assert "Web Development" in response.text


def test_open_portal_enrolls_and_goes_to_dashboard(auth_client, db, semesters):
    student = make_student(db)
    _, running = semesters

    response = auth_client.post(f"/courses/{running.id}/open", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard?semester=Semester+2"
    assert db.query(Enrollment).filter_by(student_id=student.id, semester_id=running.id).count() == 1

    auth_client.post(f"/courses/{running.id}/open", follow_redirects=False)
    assert db.query(Enrollment).filter_by(student_id=student.id, semester_id=running.id).count() == 1


def test_open_portal_rejects_completed_semester(auth_client, db, semesters):
    make_student(db)
    completed, _ = semesters

    response = auth_client.post(f"/courses/{completed.id}/open", follow_redirects=False)

    assert response.status_code == 400
    assert "portal is closed" in response.text
    assert db.query(Enrollment).count() == 0


def test_dashboard_shows_results_and_status(auth_client, db):
    student = make_student(db)
    db.add_all([
        Result(student_id=student.id, semester="Semester 2", title="Final", grade="A", percentile=91.5, status="Passed"),
        Result(student_id=student.id, semester="Semester 1", title="Midterm", grade="B", percentile=80, status="Passed"),
    ])
    db.commit()

    response = auth_client.get("/dashboard?semester=Semester+2")

    assert response.status_code == 200
    text = response.text
    assert "Welcome, Ayesha Khan" in text
    assert "Semester: Semester 2" in text
    assert text.index("Midterm") < text.index("Final")
    assert "QT-2025-001" in text


def test_dashboard_without_results_shows_empty_state(auth_client, db):
    make_student(db)

    assert "No results found." in auth_client.get("/dashboard").text


def test_exam_lists_newest_first(auth_client, db):
    student = make_student(db)
    db.add_all([
        Result(student_id=student.id, semester="Semester 1", title="First Exam"),
        Result(student_id=student.id, semester="Semester 2", title="Second Exam"),
    ])
    db.commit()

    text = auth_client.get("/exam").text

    assert text.index("Second Exam") < text.index("First Exam")
    assert "Exam Guidelines" in text


def test_shell_uses_default_avatar_when_path_missing(auth_client, db):
    make_student(db, avatar=None)

    response = auth_client.get("/announcements")

    assert f'src="{settings.DEFAULT_AVATAR_URL}"' in response.text


def test_lectures_show_video_link_or_disabled_button(auth_client, db):
    db.add_all([
        Lecture(title="HTML Basics", video_url="https://videos.example.com/html", created_at=datetime(2025, 1, 1)),
        Lecture(title="CSS Layout", video_url=None, created_at=datetime(2025, 2, 1)),
    ])
    db.commit()

    text = auth_client.get("/lectures").text

    assert text.index("CSS Layout") < text.index("HTML Basics")
    assert "VIEW LECTURE" in text
    assert "No Video Available" in text


def test_lectures_refresh_bypasses_cache(auth_client, db):
    db.add(Lecture(title="Old Lecture", created_at=datetime(2025, 1, 1)))
    db.commit()
    assert "Old Lecture" in auth_client.get("/lectures").text

    db.add(Lecture(title="New Lecture", created_at=datetime(2025, 3, 1)))
    db.commit()

    assert "New Lecture" not in auth_client.get("/lectures").text
    assert "New Lecture" in auth_client.get("/lectures?refresh=1").text


def test_read_failure_shows_error_state(auth_client, monkeypatch):
    def broken(db):
        raise StoreError("Could not fetch lectures")

    monkeypatch.setattr("portal.api.routes.academics.get_cached_lectures", broken)

    response = auth_client.get("/lectures")

    assert response.status_code == 200
    assert "Could not fetch lectures." in response.text


@pytest.mark.parametrize("path,text", [
    ("/announcements", "Announcements"),
    ("/info", "Student Information"),
    ("/textbooks", "Coming Soon"),
    ("/my-courses", "My Courses"),
])
def test_static_pages_render_in_shell(auth_client, path, text):
    response = auth_client.get(path)

    assert response.status_code == 200
    assert text in response.text
    assert "Get Student Card" in response.text


def test_my_courses_opens_dashboard(auth_client):
    response = auth_client.get("/my-courses")

    assert response.status_code == 200
    assert "Batch 1" in response.text
    assert '<a class="button" href="/dashboard">Open Portal</a>' in response.text


def test_my_courses_requires_session(client):
    response = client.get("/my-courses", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login?redirectedFrom=%2Fmy-courses"
