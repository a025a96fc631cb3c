"""Query layer: one function per table operation.

Every read or write is a single filtered statement against the store. Failures
are logged and degrade to "no data" (empty list, None or False) so pages render
an empty or not-found state instead of an error.
"""
from datetime import datetime, timezone

import structlog
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .metrics import db_queries_total
from .models import Course, Lesson, Enrollment, LessonProgress
from ..domain import entities
from ..domain.entities import clamp_progress, PROGRESS_MAX

logger = structlog.get_logger(__name__)


def course_to_domain(row: Course) -> entities.Course:
    return entities.Course(
        id=row.id,
        title=row.title,
        subject=row.subject,
        description=row.description,
        thumbnail_url=row.thumbnail_url,
        is_published=row.is_published,
        is_free=row.is_free,
        price=float(row.price or 0),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def lesson_to_domain(row: Lesson) -> entities.Lesson:
    return entities.Lesson(
        id=row.id,
        course_id=row.course_id,
        title=row.title,
        order_index=row.order_index,
        content=row.content,
        video_url=row.video_url,
        is_preview=row.is_preview,
        estimated_duration=row.estimated_duration,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def enrollment_to_domain(row: Enrollment, with_course: bool = False) -> entities.Enrollment:
    return entities.Enrollment(
        id=row.id,
        user_id=row.user_id,
        course_id=row.course_id,
        progress=row.progress,
        enrolled_at=row.enrolled_at,
        course=course_to_domain(row.course) if with_course and row.course else None,
    )


def progress_to_domain(row: LessonProgress, with_lesson: bool = False) -> entities.LessonProgress:
    return entities.LessonProgress(
        id=row.id,
        user_id=row.user_id,
        lesson_id=row.lesson_id,
        progress=row.progress,
        completed_at=row.completed_at,
        lesson=lesson_to_domain(row.lesson) if with_lesson and row.lesson else None,
    )


def get_published_courses(db: Session) -> list[entities.Course]:
    db_queries_total.labels(operation="courses.published").inc()
    try:
        rows = db.execute(
            select(Course)
            .where(Course.is_published.is_(True))
            .order_by(Course.created_at.desc())
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.error("fetch_courses_failed", error=str(e))
        return []
    return [course_to_domain(r) for r in rows]


def get_user_enrolled_courses(db: Session, user_id: str) -> list[entities.Enrollment]:
    db_queries_total.labels(operation="enrollments.by_user").inc()
    try:
        rows = db.execute(
            select(Enrollment)
            .options(joinedload(Enrollment.course))
            .where(Enrollment.user_id == user_id)
            .order_by(Enrollment.enrolled_at.desc())
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.error("fetch_enrollments_failed", user_id=user_id, error=str(e))
        return []
    return [enrollment_to_domain(r, with_course=True) for r in rows]


def get_course(db: Session, course_id: str) -> entities.Course | None:
    db_queries_total.labels(operation="courses.by_id").inc()
    try:
        row = db.get(Course, course_id)
    except SQLAlchemyError as e:
        logger.error("fetch_course_failed", course_id=course_id, error=str(e))
        return None
    return course_to_domain(row) if row else None


def get_course_with_lessons(db: Session, course_id: str) -> entities.CourseWithLessons | None:
    course = get_course(db, course_id)
    if course is None:
        return None
    db_queries_total.labels(operation="lessons.by_course").inc()
    try:
        rows = db.execute(
            select(Lesson)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.order_index.asc())
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.error("fetch_lessons_failed", course_id=course_id, error=str(e))
        return None
    return entities.CourseWithLessons(course=course, lessons=[lesson_to_domain(r) for r in rows])


def get_preview_lessons(db: Session, course_id: str) -> list[entities.Lesson]:
    db_queries_total.labels(operation="lessons.preview").inc()
    try:
        rows = db.execute(
            select(Lesson)
            .where(Lesson.course_id == course_id, Lesson.is_preview.is_(True))
            .order_by(Lesson.order_index.asc())
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.error("fetch_preview_lessons_failed", course_id=course_id, error=str(e))
        return []
    return [lesson_to_domain(r) for r in rows]


def get_lesson(db: Session, lesson_id: str) -> entities.Lesson | None:
    db_queries_total.labels(operation="lessons.by_id").inc()
    try:
        row = db.get(Lesson, lesson_id)
    except SQLAlchemyError as e:
        logger.error("fetch_lesson_failed", lesson_id=lesson_id, error=str(e))
        return None
    return lesson_to_domain(row) if row else None


def get_first_lesson_id(db: Session, course_id: str) -> str | None:
    db_queries_total.labels(operation="lessons.first").inc()
    try:
        return db.execute(
            select(Lesson.id)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.order_index.asc())
            .limit(1)
        ).scalar_one_or_none()
    except SQLAlchemyError as e:
        logger.error("fetch_first_lesson_failed", course_id=course_id, error=str(e))
        return None


def is_user_enrolled_in_course(db: Session, user_id: str, course_id: str) -> bool:
    db_queries_total.labels(operation="enrollments.exists").inc()
    try:
        found = db.execute(
            select(Enrollment.id)
            .where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .limit(1)
        ).first()
    except SQLAlchemyError as e:
        logger.error("check_enrollment_failed", user_id=user_id, course_id=course_id, error=str(e))
        return False
    return found is not None


def enroll_user_in_course(db: Session, user_id: str, course_id: str) -> bool:
    """Inserts a fresh enrollment (progress 0).

    Duplicate (user, course) pairs are rejected by the store's unique
    constraint and reported as a failed enrollment.
    """
    db_queries_total.labels(operation="enrollments.insert").inc()
    try:
        db.add(Enrollment(user_id=user_id, course_id=course_id, progress=0))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("enroll_failed", user_id=user_id, course_id=course_id, error=str(e))
        return False
    return True


def get_user_lesson_progress(db: Session, user_id: str, course_id: str) -> list[entities.LessonProgress]:
    db_queries_total.labels(operation="progress.by_course").inc()
    try:
        rows = db.execute(
            select(LessonProgress)
            .join(LessonProgress.lesson)
            .options(joinedload(LessonProgress.lesson))
            .where(LessonProgress.user_id == user_id, Lesson.course_id == course_id)
            .order_by(Lesson.order_index.asc())
        ).scalars().all()
    except SQLAlchemyError as e:
        logger.error("fetch_lesson_progress_failed", user_id=user_id, course_id=course_id, error=str(e))
        return []
    return [progress_to_domain(r, with_lesson=True) for r in rows]


def _upsert_progress(db: Session, user_id: str, lesson_id: str, progress: float,
                     completed_at: datetime | None) -> bool:
    dialect = db.get_bind().dialect.name
    insert = pg_insert if dialect == "postgresql" else sqlite_insert
    stmt = insert(LessonProgress).values(
        user_id=user_id,
        lesson_id=lesson_id,
        progress=progress,
        completed_at=completed_at,
    )
    # upsert by the (user_id, lesson_id) composite key
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "lesson_id"],
        set_={"progress": progress, "completed_at": completed_at},
    )
    try:
        db.execute(stmt)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("upsert_lesson_progress_failed", user_id=user_id, lesson_id=lesson_id, error=str(e))
        return False
    return True


def update_lesson_progress(db: Session, user_id: str, lesson_id: str, progress: float) -> bool:
    db_queries_total.labels(operation="progress.upsert").inc()
    value = clamp_progress(progress)
    completed_at = datetime.now(timezone.utc) if value == PROGRESS_MAX else None
    return _upsert_progress(db, user_id, lesson_id, value, completed_at)


def mark_lesson_completed(db: Session, user_id: str, lesson_id: str) -> bool:
    db_queries_total.labels(operation="progress.complete").inc()
    return _upsert_progress(db, user_id, lesson_id, PROGRESS_MAX, datetime.now(timezone.utc))
