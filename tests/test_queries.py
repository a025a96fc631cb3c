from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from conftest import ENGLISH_GRAMMAR
from edumynt.application.access import check_lesson_access
from edumynt.domain.entities import Lesson as LessonEntity, can_access_lesson, clamp_progress
from edumynt.infrastructure import queries
from edumynt.infrastructure.models import Lesson
from edumynt.seed import seed


@pytest.mark.parametrize("value,expected", [(-10, 0), (0, 0), (42.5, 42.5), (100, 100), (150, 100)])
def test_clamp_progress(value, expected):
    assert clamp_progress(value) == expected


def test_access_rule():
    preview = LessonEntity(id="l1", course_id="c1", title="t", order_index=1, is_preview=True)
    locked = LessonEntity(id="l2", course_id="c1", title="t", order_index=2, is_preview=False)
    assert can_access_lesson(preview, is_enrolled=False)
    assert can_access_lesson(locked, is_enrolled=True)
    assert not can_access_lesson(locked, is_enrolled=False)


def test_published_courses_newest_first(seeded):
    courses = queries.get_published_courses(seeded)
    assert len(courses) == 4
    assert [c.created_at for c in courses] == sorted((c.created_at for c in courses), reverse=True)


def test_course_with_lessons_in_order(seeded):
    found = queries.get_course_with_lessons(seeded, ENGLISH_GRAMMAR)
    assert found.course.title == "English Grammar Mastery"
    assert [lesson.order_index for lesson in found.lessons] == [1, 2, 3, 4, 5]
    assert queries.get_course_with_lessons(seeded, "missing") is None


def test_preview_and_first_lesson(seeded):
    previews = queries.get_preview_lessons(seeded, ENGLISH_GRAMMAR)
    assert [lesson.title for lesson in previews] == [
        "Introduction to Parts of Speech", "Nouns: Types and Usage",
    ]
    assert queries.get_first_lesson_id(seeded, ENGLISH_GRAMMAR) == previews[0].id
    assert queries.get_first_lesson_id(seeded, "missing") is None


def test_enrollment_is_unique_per_user_and_course(seeded):
    assert queries.is_user_enrolled_in_course(seeded, "user-1", ENGLISH_GRAMMAR) is False
    assert queries.enroll_user_in_course(seeded, "user-1", ENGLISH_GRAMMAR) is True
    assert queries.enroll_user_in_course(seeded, "user-1", ENGLISH_GRAMMAR) is False
    assert queries.is_user_enrolled_in_course(seeded, "user-1", ENGLISH_GRAMMAR) is True

    enrollments = queries.get_user_enrolled_courses(seeded, "user-1")
    assert len(enrollments) == 1
    assert enrollments[0].progress == 0
    assert enrollments[0].course.title == "English Grammar Mastery"


def test_lesson_progress_upsert(seeded):
    lesson_id = queries.get_first_lesson_id(seeded, ENGLISH_GRAMMAR)

    assert queries.update_lesson_progress(seeded, "user-1", lesson_id, 40)
    assert queries.update_lesson_progress(seeded, "user-1", lesson_id, 60)
    rows = queries.get_user_lesson_progress(seeded, "user-1", ENGLISH_GRAMMAR)
    assert len(rows) == 1
    assert rows[0].progress == 60
    assert rows[0].completed_at is None
    assert rows[0].lesson.id == lesson_id

    assert queries.mark_lesson_completed(seeded, "user-1", lesson_id)
    seeded.expire_all()
    rows = queries.get_user_lesson_progress(seeded, "user-1", ENGLISH_GRAMMAR)
    assert rows[0].progress == 100
    assert rows[0].completed_at is not None


def test_lesson_access_check(seeded):
    lessons = queries.get_course_with_lessons(seeded, ENGLISH_GRAMMAR).lessons
    preview, locked = lessons[0], lessons[2]

    assert check_lesson_access(seeded, preview, None) is True
    assert check_lesson_access(seeded, locked, None) is False
    assert check_lesson_access(seeded, locked, "user-1") is False

    queries.enroll_user_in_course(seeded, "user-1", ENGLISH_GRAMMAR)
    assert check_lesson_access(seeded, locked, "user-1") is True


def test_store_failures_degrade_to_no_data():
    db = MagicMock()
    db.execute.side_effect = OperationalError("SELECT", {}, Exception("server closed the connection"))
    db.get.side_effect = OperationalError("SELECT", {}, Exception("server closed the connection"))

    assert queries.get_published_courses(db) == []
    assert queries.get_user_enrolled_courses(db, "u") == []
    assert queries.get_course(db, "c") is None
    assert queries.get_lesson(db, "l") is None
    assert queries.is_user_enrolled_in_course(db, "u", "c") is False


def test_failed_enrollment_rolls_back():
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("read-only"))
    assert queries.enroll_user_in_course(db, "u", "c") is False
    db.rollback.assert_called_once()


def test_seed_is_idempotent(seeded):
    assert seed(seeded) == 0
    assert len(seeded.execute(select(Lesson)).scalars().all()) == 12
