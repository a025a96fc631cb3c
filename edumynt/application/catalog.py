"""Shaping helpers shared by the catalog, course and dashboard pages."""
from ..domain.entities import Course, Enrollment, Lesson

DASHBOARD_TABS = ["home", "courses", "tests", "discuss", "profile"]
TAB_LABELS = {"home": "Home", "courses": "Courses", "tests": "Tests", "discuss": "Discuss", "profile": "Profile"}

# (id, label, title, description)
SUBJECT_SECTIONS = [
    ("English", "English", "English Courses", "Master English grammar and literature"),
    ("Psychology", "Psychology", "Psychology Courses", "Understand human behavior and learning"),
    ("Mathematics", "Math", "Mathematics Courses", "Build strong quantitative skills"),
]

PRACTICE_TESTS = [
    ("English Mock Test #1", "50 questions • 60 min", "Completed"),
    ("English Mock Test #2", "50 questions • 60 min", "Completed"),
    ("English Mock Test #3", "50 questions • 60 min", None),
    ("Psychology Quick Quiz", "20 questions • 15 min", None),
]

DISCUSSIONS = [
    ("Question about verb tenses", "English Grammar", None),
    ("Psychology study tips", "Educational Psychology", None),
]

QUICK_ACTIONS = ["Study Notes", "Study Planner", "AI Tutor", "Community"]

THEME_OPTIONS = ["light", "dark", "system"]


def group_by_subject(courses: list[Course]) -> dict[str, list[Course]]:
    """Groups courses by subject, keeping subjects in first-seen order."""
    grouped: dict[str, list[Course]] = {}
    for course in courses:
        grouped.setdefault(course.subject, []).append(course)
    return grouped


def course_totals(lessons: list[Lesson]) -> tuple[int, int, int]:
    """(lesson count, preview count, total estimated minutes)"""
    return (
        len(lessons),
        sum(1 for lesson in lessons if lesson.is_preview),
        sum(lesson.estimated_duration for lesson in lessons),
    )


def enrollment_progress(enrollments: list[Enrollment], course_id: str) -> float:
    for enrollment in enrollments:
        if enrollment.course_id == course_id:
            return enrollment.progress or 0
    return 0


def progress_stats(enrollments: list[Enrollment]) -> dict:
    progress = [e.progress or 0 for e in enrollments]
    return {
        "enrolled": len(progress),
        "in_progress": sum(1 for p in progress if 0 < p < 100),
        "completed": sum(1 for p in progress if p >= 100),
        "average_progress": round(sum(progress) / len(progress), 1) if progress else 0.0,
    }


def normalize_tab(tab: str | None) -> str:
    return tab if tab in DASHBOARD_TABS else "home"
