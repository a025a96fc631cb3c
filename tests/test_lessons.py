from sqlalchemy import select

from conftest import ENGLISH_GRAMMAR
from edumynt.infrastructure.models import Lesson, LessonProgress


def lesson_id(db, course_id, order_index):
    return db.execute(
        select(Lesson.id).where(Lesson.course_id == course_id, Lesson.order_index == order_index)
    ).scalar_one()


def test_preview_lesson_is_ready_without_enrollment(client, seeded, auth_headers):
    r = client.get(f"/lesson/{lesson_id(seeded, ENGLISH_GRAMMAR, 1)}", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "ready"
    assert data["lesson"]["content"].startswith("# Parts of Speech")


def test_locked_lesson_hides_content(client, seeded, auth_headers):
    r = client.get(f"/lesson/{lesson_id(seeded, ENGLISH_GRAMMAR, 3)}", headers=auth_headers)
    assert r.status_code == 200
    data = r.json()
    assert data["status"] == "locked"
    assert data["lesson"] is None
    assert data["summary"]["title"] == "Pronouns and Their Types"
    assert data["course_url"] == f"/course/{ENGLISH_GRAMMAR}"
    assert data["message"] == "You need to enroll in this course to access this lesson."


def test_enrollment_unlocks_lesson(client, seeded, auth_headers):
    locked = lesson_id(seeded, ENGLISH_GRAMMAR, 3)
    client.post(f"/course/{ENGLISH_GRAMMAR}/enroll", headers=auth_headers)
    r = client.get(f"/lesson/{locked}", headers=auth_headers)
    assert r.json()["status"] == "ready"


def test_lesson_not_found(client, seeded, auth_headers):
    r = client.get("/lesson/missing", headers=auth_headers)
    assert r.status_code == 404
    assert r.json()["detail"] == "lesson not found"


def test_lesson_preview_route_is_public(client, seeded):
    r = client.get(f"/lesson/{lesson_id(seeded, ENGLISH_GRAMMAR, 2)}/preview")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"

    r = client.get(f"/lesson/{lesson_id(seeded, ENGLISH_GRAMMAR, 4)}/preview")
    assert r.json()["status"] == "locked"
    assert r.json()["lesson"] is None


def test_progress_requires_access(client, seeded, auth_headers):
    r = client.post(f"/lesson/{lesson_id(seeded, ENGLISH_GRAMMAR, 3)}/progress",
                    json={"progress": 40}, headers=auth_headers)
    assert r.status_code == 403


def test_progress_is_clamped_and_completion_stamped(client, seeded, auth_headers, student):
    target = lesson_id(seeded, ENGLISH_GRAMMAR, 1)

    r = client.post(f"/lesson/{target}/progress", json={"progress": 150}, headers=auth_headers)
    assert r.json() == {"ok": True, "lesson_id": target, "progress": 100}

    row = seeded.execute(select(LessonProgress).where(LessonProgress.lesson_id == target)).scalar_one()
    assert row.user_id == student.user.id
    assert row.completed_at is not None

    r = client.post(f"/lesson/{target}/progress", json={"progress": -10}, headers=auth_headers)
    assert r.json()["progress"] == 0
    seeded.expire_all()
    row = seeded.execute(select(LessonProgress).where(LessonProgress.lesson_id == target)).scalar_one()
    assert row.progress == 0
    assert row.completed_at is None


def test_complete_lesson(client, seeded, auth_headers):
    target = lesson_id(seeded, ENGLISH_GRAMMAR, 2)
    r = client.post(f"/lesson/{target}/complete", headers=auth_headers)
    assert r.status_code == 200
    assert r.json() == {"ok": True, "lesson_id": target, "progress": 100}
