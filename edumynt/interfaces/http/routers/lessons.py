import structlog
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ....application.access import check_lesson_access
from ....domain.entities import Lesson, User, clamp_progress
from ....infrastructure.db import get_db
from ....infrastructure.queries import get_lesson, mark_lesson_completed, update_lesson_progress
from ..authz import get_current_user, require_user
from ..schemas import LessonOut, LessonPage, LessonSummary, ProgressReq, ProgressResp

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/lesson", tags=["lessons"])

LOCKED_MESSAGE = "You need to enroll in this course to access this lesson."
PREVIEW_ONLY_MESSAGE = "This lesson is not part of the free preview."


def lesson_or_404(db: Session, lesson_id: str) -> Lesson:
    lesson = get_lesson(db, lesson_id)
    if not lesson:
        raise HTTPException(404, "lesson not found")
    return lesson


def render(lesson: Lesson, allowed: bool, message: str = LOCKED_MESSAGE) -> LessonPage:
    # locked pages carry the summary only, never the content
    return LessonPage(
        status="ready" if allowed else "locked",
        lesson=LessonOut.model_validate(lesson) if allowed else None,
        summary=LessonSummary.model_validate(lesson),
        course_url=f"/course/{lesson.course_id}",
        message=None if allowed else message,
    )


@router.get("/{lesson_id}", response_model=LessonPage)
def view_lesson(
    lesson_id: str,
    db: Session = Depends(get_db),
    user: User | None = Depends(get_current_user),
):
    lesson = lesson_or_404(db, lesson_id)
    return render(lesson, check_lesson_access(db, lesson, user.id if user else None))


@router.get("/{lesson_id}/preview", response_model=LessonPage)
def preview_lesson(lesson_id: str, db: Session = Depends(get_db)):
    lesson = lesson_or_404(db, lesson_id)
    return render(lesson, lesson.is_preview, PREVIEW_ONLY_MESSAGE)


def _require_access(db: Session, lesson: Lesson, user: User) -> None:
    if not check_lesson_access(db, lesson, user.id):
        raise HTTPException(status.HTTP_403_FORBIDDEN, LOCKED_MESSAGE)


@router.post("/{lesson_id}/progress", response_model=ProgressResp)
def record_progress(
    lesson_id: str,
    payload: ProgressReq,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    lesson = lesson_or_404(db, lesson_id)
    _require_access(db, lesson, user)
    value = clamp_progress(payload.progress)
    ok = update_lesson_progress(db, user.id, lesson_id, value)
    logger.info("lesson_progress", user_id=user.id, lesson_id=lesson_id, progress=value, ok=ok)
    return ProgressResp(ok=ok, lesson_id=lesson_id, progress=value if ok else None)


@router.post("/{lesson_id}/complete", response_model=ProgressResp)
def complete_lesson(
    lesson_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_user),
):
    lesson = lesson_or_404(db, lesson_id)
    _require_access(db, lesson, user)
    ok = mark_lesson_completed(db, user.id, lesson_id)
    logger.info("lesson_completed", user_id=user.id, lesson_id=lesson_id, ok=ok)
    return ProgressResp(ok=ok, lesson_id=lesson_id, progress=100 if ok else None)
