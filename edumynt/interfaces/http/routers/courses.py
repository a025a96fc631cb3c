import structlog
from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from ....application.catalog import course_totals, group_by_subject
from ....domain.entities import User
from ....infrastructure.db import get_db
from ....infrastructure.metrics import enrollments_total
from ....infrastructure.queries import (
    enroll_user_in_course, get_course, get_course_with_lessons, get_first_lesson_id,
    get_preview_lessons, get_published_courses, get_user_lesson_progress, is_user_enrolled_in_course,
)
from ..authz import get_current_user, require_user
from ..schemas import (
    CatalogPage, CourseDetailPage, CourseOut, CoursePreviewPage, EnrollResp,
    LessonOut, LessonProgressOut, LessonSummary, SubjectSection,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["courses"])


def focus_url(course_id: str) -> str:
    return f"/dashboard?tab=courses&course={course_id}"


@router.get("/courses", response_model=CatalogPage)
def catalog(subject: str | None = Query(None), db: Session = Depends(get_db)):
    courses = get_published_courses(db)
    grouped = group_by_subject(courses)
    if subject:
        grouped = {subject: grouped.get(subject, [])}
    return CatalogPage(
        sections=[
            SubjectSection(subject=name, courses=[CourseOut.model_validate(c) for c in items])
            for name, items in grouped.items()
        ],
        active_subject=subject,
        total=sum(len(items) for items in grouped.values()),
    )


@router.get("/course/{course_id}", response_model=CourseDetailPage)
def course_detail(
    course_id: str,
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    found = get_course_with_lessons(db, course_id)
    if not found:
        raise HTTPException(404, "course not found")

    enrolled = bool(user) and is_user_enrolled_in_course(db, user.id, course_id)
    total, previews, minutes = course_totals(found.lessons)
    first = found.lessons[0].id if found.lessons else None
    enroll_url = f"/course/{course_id}/enroll"
    progress = get_user_lesson_progress(db, user.id, course_id) if enrolled else []
    return CourseDetailPage(
        course=CourseOut.model_validate(found.course),
        lessons=[LessonSummary.model_validate(lesson) for lesson in found.lessons],
        is_enrolled=enrolled,
        is_authenticated=user is not None,
        total_lessons=total,
        preview_lessons=previews,
        estimated_duration=minutes,
        start_learning_url=focus_url(course_id) if enrolled else enroll_url,
        enroll_url=enroll_url,
        first_lesson_url=f"/lesson/{first}" if first else None,
        progress=[LessonProgressOut.model_validate(p) for p in progress],
    )


@router.get("/course/{course_id}/preview", response_model=CoursePreviewPage)
def course_preview(course_id: str, db: Session = Depends(get_db)):
    course = get_course(db, course_id)
    if not course:
        raise HTTPException(404, "course not found")
    return CoursePreviewPage(
        course=CourseOut.model_validate(course),
        lessons=[LessonOut.model_validate(lesson) for lesson in get_preview_lessons(db, course_id)],
    )


@router.post("/course/{course_id}/enroll", response_model=EnrollResp)
def enroll(
    course_id: str,
    response: Response,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    if not get_course(db, course_id):
        raise HTTPException(404, "course not found")

    if not enroll_user_in_course(db, user.id, course_id):
        enrollments_total.labels(outcome="failed").inc()
        response.status_code = status.HTTP_409_CONFLICT
        return EnrollResp(success=False, error="Failed to enroll in course")

    enrollments_total.labels(outcome="ok").inc()
    logger.info("enrolled", user_id=user.id, course_id=course_id)
    first = get_first_lesson_id(db, course_id)
    return EnrollResp(
        success=True,
        redirect_to=focus_url(course_id),
        first_lesson_url=f"/lesson/{first}" if first else None,
    )
