from unittest.mock import MagicMock

import pytest

from portal.core.config import settings
from portal.core.exceptions import ProfileSaveError
from portal.db.store import StoreError
from portal.models.student import Student
from portal.schemas.student import StudentProfileUpdate
from portal.services import student as student_service
from tests.factories import STUDENT_EMAIL, STUDENT_UID


def test_save_profile_inserts_when_no_row(db):
    """
    프로필 행이 없으면 갱신이 아니라 추가
    """
    student_service.save_student_profile(db, "new-user", StudentProfileUpdate(full_name="New Student", city="Karachi"))

    rows = db.query(Student).filter_by(user_id="new-user").all()
    assert len(rows) == 1
    assert rows[0].full_name == "New Student"
    assert rows[0].city == "Karachi"


def test_save_profile_updates_existing_row(db, student):
    student_service.save_student_profile(db, STUDENT_UID, StudentProfileUpdate(city="Hyderabad"))

    db.expire_all()
    rows = db.query(Student).filter_by(user_id=STUDENT_UID).all()
    assert len(rows) == 1
    assert rows[0].city == "Hyderabad"
    assert rows[0].full_name == "Ayesha Khan"


def test_save_profile_invalidates_cached_student(db, student):
    """
    저장 직후 캐시된 조회도 새 값을 반환
    """
    before = student_service.get_cached_student(db, STUDENT_UID)
    assert before.batch == "B-12"

    student_service.save_student_profile(db, STUDENT_UID, StudentProfileUpdate(batch="B-13"))

    after = student_service.get_cached_student(db, STUDENT_UID)
    assert after.batch == "B-13"


def test_save_profile_falls_back_to_insert_when_update_fails(db, monkeypatch):
    def failing_update(*args, **kwargs):
        raise StoreError("column does not exist")

    monkeypatch.setattr(student_service, "update_rows", failing_update)
    student_service.save_student_profile(db, "probe-user", StudentProfileUpdate(full_name="Probe"))

    assert db.query(Student).filter_by(user_id="probe-user").count() == 1


def test_save_profile_insert_failure_raises(db, monkeypatch):
    monkeypatch.setattr(student_service, "update_rows", lambda *args, **kwargs: 0)

    def failing_insert(*args, **kwargs):
        raise StoreError("duplicate key")

    monkeypatch.setattr(student_service, "insert_row", failing_insert)
    with pytest.raises(ProfileSaveError) as exc:
        student_service.save_student_profile(db, "broken", StudentProfileUpdate(full_name="X"))
    assert "Failed to create profile" in exc.value.message


@pytest.mark.parametrize("path", [None, "", "   "])
def test_resolve_avatar_url_uses_default_for_missing_path(path):
    assert student_service.resolve_avatar_url(path) == settings.DEFAULT_AVATAR_URL


def test_resolve_avatar_url_builds_bucket_url(monkeypatch):
    monkeypatch.setattr(settings, "AWS_S3_PUBLIC_BASE_URL", None)
    monkeypatch.setattr(settings, "AWS_S3_BUCKET_NAME", "avatars")
    monkeypatch.setattr(settings, "AWS_REGION", "ap-northeast-2")

    url = student_service.resolve_avatar_url("user-1/1700000000000.png")
    assert url == "https://avatars.s3.ap-northeast-2.amazonaws.com/user-1/1700000000000.png"


def test_resolve_avatar_url_falls_back_when_bucket_missing(monkeypatch):
    monkeypatch.setattr(settings, "AWS_S3_PUBLIC_BASE_URL", None)
    monkeypatch.setattr(settings, "AWS_S3_BUCKET_NAME", "")

    assert student_service.resolve_avatar_url("user-1/a.png") == settings.DEFAULT_AVATAR_URL


def test_resolve_avatar_url_keeps_absolute_url():
    assert student_service.resolve_avatar_url("https://cdn.example.com/a.png") == "https://cdn.example.com/a.png"


def test_build_avatar_path():
    assert student_service.build_avatar_path("user-1", "Me.JPG", now=1700000000.123) == "user-1/1700000000123.jpg"


def test_profile_page_without_row_shows_defaults(auth_client):
    response = auth_client.get("/profile")

    assert response.status_code == 200
    assert 'name="full_name"' in response.text
    assert f'value="{STUDENT_EMAIL}"' in response.text
    assert '<option value="Male" selected>' in response.text
    assert '<option value="Onsite" selected>' in response.text


def test_profile_save_redirects_and_persists(auth_client, db):
    response = auth_client.post(
        "/profile",
        data={"full_name": "Ali Raza", "roll_no": "R-99", "gender": "Male", "currently": "Online"},
        follow_redirects=False,
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/profile?saved=1"
    row = db.query(Student).filter_by(user_id=STUDENT_UID).one()
    assert row.full_name == "Ali Raza"
    assert row.email == STUDENT_EMAIL

    page = auth_client.get("/profile?saved=1")
    assert "Profile saved successfully." in page.text
    assert "Ali Raza" in page.text


def test_profile_save_failure_rerenders_form(auth_client, monkeypatch):
    def failing_save(*args, **kwargs):
        raise ProfileSaveError("Failed to create profile: store offline")

    monkeypatch.setattr("portal.api.routes.profile.save_student_profile", failing_save)
    response = auth_client.post("/profile", data={"full_name": "Ali"}, follow_redirects=False)

    assert response.status_code == 400
    assert "Failed to create profile: store offline" in response.text
    assert 'value="Ali"' in response.text
    assert 'href="/profile">Cancel' not in response.text


def test_profile_save_failure_keeps_existing_profile_actions(auth_client, student, monkeypatch):
    """
    이미 프로필이 있으면 저장 실패 화면에도 취소 링크 표시
    """
    def failing_save(*args, **kwargs):
        raise ProfileSaveError("Failed to update profile: store offline")

    monkeypatch.setattr("portal.api.routes.profile.save_student_profile", failing_save)
    response = auth_client.post("/profile", data={"full_name": "Ali"}, follow_redirects=False)

    assert response.status_code == 400
    assert 'href="/profile">Cancel' in response.text


def test_avatar_upload_stores_bucket_path(auth_client, db, student, monkeypatch):
    fake_s3 = MagicMock()
    monkeypatch.setattr(student_service, "s3_client", fake_s3)

    response = auth_client.post(
        "/profile/avatar",
        files={"file": ("me.png", b"\x89PNG\r\n", "image/png")},
        follow_redirects=False,
    )

    assert response.status_code == 303
    fake_s3.upload_fileobj.assert_called_once()
    bucket, key = fake_s3.upload_fileobj.call_args.args[1:3]
    assert bucket == settings.AWS_S3_BUCKET_NAME
    assert key.startswith(f"{STUDENT_UID}/") and key.endswith(".png")
    db.expire_all()
    assert db.query(Student).filter_by(user_id=STUDENT_UID).one().avatar == key
