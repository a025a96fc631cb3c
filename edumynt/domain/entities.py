from dataclasses import dataclass, field
from datetime import datetime

PROGRESS_MIN = 0
PROGRESS_MAX = 100


@dataclass(frozen=True)
class User:
    id: str
    email: str
    full_name: str | None = None
    created_at: datetime | None = None
    email_confirmed_at: datetime | None = None


@dataclass(frozen=True)
class Course:
    id: str
    title: str
    subject: str
    description: str | None = None
    thumbnail_url: str | None = None
    is_published: bool = False
    is_free: bool = True
    price: float = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class Lesson:
    id: str
    course_id: str
    title: str
    order_index: int
    content: str | None = None
    video_url: str | None = None
    is_preview: bool = False
    estimated_duration: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class CourseWithLessons:
    course: Course
    lessons: list[Lesson] = field(default_factory=list)


@dataclass(frozen=True)
class Enrollment:
    id: str
    user_id: str
    course_id: str
    progress: float = 0.0
    enrolled_at: datetime | None = None
    course: Course | None = None


@dataclass(frozen=True)
class LessonProgress:
    id: str
    user_id: str
    lesson_id: str
    progress: float = 0.0
    completed_at: datetime | None = None
    lesson: Lesson | None = None


def clamp_progress(value: float) -> float:
    """Clamp a progress percentage into [0, 100]."""
    return min(PROGRESS_MAX, max(PROGRESS_MIN, value))


def can_access_lesson(lesson: Lesson, is_enrolled: bool) -> bool:
    # preview lessons are open to everyone, anonymous users included
    return lesson.is_preview or is_enrolled
