from sqlalchemy.orm import Session

from ..domain.entities import Lesson, can_access_lesson
from ..infrastructure.queries import is_user_enrolled_in_course


def check_lesson_access(db: Session, lesson: Lesson, user_id: str | None) -> bool:
    """Preview lessons are open; everything else needs an enrollment in the course.

    Re-derived from the store on every call.
    """
    if lesson.is_preview:
        return True
    if not user_id:
        return False
    return can_access_lesson(lesson, is_user_enrolled_in_course(db, user_id, lesson.course_id))
