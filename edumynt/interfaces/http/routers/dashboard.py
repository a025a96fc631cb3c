"""Student dashboard: one page model per tab.

Courses and enrollments are both fetched before the page is assembled; an
unknown `tab` value falls back to the home tab.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....application.catalog import (
    DISCUSSIONS, PRACTICE_TESTS, QUICK_ACTIONS, SUBJECT_SECTIONS, TAB_LABELS, DASHBOARD_TABS,
    enrollment_progress, group_by_subject, normalize_tab, progress_stats,
)
from ....domain.entities import Course, Enrollment, User
from ....infrastructure.db import get_db
from ....infrastructure.queries import get_published_courses, get_user_enrolled_courses
from ....infrastructure.repositories import UserRepository
from ..authz import require_user
from ..schemas import (
    CourseCard, CourseOut, CoursesSection, CoursesTab, DashboardPage, EnrollmentOut, HomeTab,
    NavItem, PlaceholderItem, PlaceholderTab, ProfileTab, ProgressStats, SidebarSection, UserOut,
)

router = APIRouter(tags=["dashboard"])


def tab_url(tab: str) -> str:
    return f"/dashboard?tab={tab}"


def sidebar(active: str) -> list[SidebarSection]:
    def item(id_, label, href, tab=None):
        return NavItem(id=id_, label=label, href=href, active=tab == active)

    return [
        SidebarSection(title="Main", items=[
            item("dashboard", "Dashboard", tab_url("home"), "home"),
            item("my-courses", "My Courses", tab_url("courses"), "courses"),
            item("practice-tests", "Practice Tests", tab_url("tests"), "tests"),
        ]),
        SidebarSection(title="Community", items=[
            item("discussion", "Discussion", tab_url("discuss"), "discuss"),
            item("leaderboard", "Leaderboard", "#"),
        ]),
        SidebarSection(title="Account", items=[
            item("profile", "Profile", tab_url("profile"), "profile"),
            item("settings", "Settings", "/settings"),
        ]),
    ]


def home_tab(user: User, enrollments: list[Enrollment]) -> HomeTab:
    name = user.full_name or user.email
    return HomeTab(
        greeting=f"Welcome back, {name}!",
        continue_learning=[EnrollmentOut.model_validate(e) for e in enrollments],
        stats=ProgressStats(**progress_stats(enrollments)),
        practice_tests=[PlaceholderItem(title=t, subtitle=s, status=st) for t, s, st in PRACTICE_TESTS],
        quick_actions=QUICK_ACTIONS,
    )


def courses_tab(courses: list[Course], enrollments: list[Enrollment], focus: str | None) -> CoursesTab:
    enrolled_ids = {e.course_id for e in enrollments}

    def card(course: Course) -> CourseCard:
        return CourseCard(
            course=CourseOut.model_validate(course),
            is_enrolled=course.id in enrolled_ids,
            progress=enrollment_progress(enrollments, course.id),
        )

    grouped = group_by_subject(courses)
    sections = [
        CoursesSection(id="all", label="All", title="All Courses",
                       description="Browse every available course",
                       courses=[card(c) for c in courses]),
        CoursesSection(id="enrolled", label="Enrolled", title="My Enrolled Courses",
                       description="Continue where you left off",
                       courses=[card(c) for c in courses if c.id in enrolled_ids]),
    ]
    for subject, label, title, description in SUBJECT_SECTIONS:
        sections.append(CoursesSection(
            id=subject, label=label, title=title, description=description,
            courses=[card(c) for c in grouped.get(subject, [])],
        ))
    return CoursesTab(sections=sections, focus_course_id=focus)


@router.get("/dashboard", response_model=DashboardPage)
def dashboard(
    tab: str | None = Query(None),
    course: str | None = Query(None),
    db: Session = Depends(get_db),
    current: User = Depends(require_user),
):
    active = normalize_tab(tab)
    user = UserRepository(db).get_by_id(current.id) or current
    courses = get_published_courses(db)
    enrollments = get_user_enrolled_courses(db, user.id)

    page = DashboardPage(
        tab=active,
        tabs=[NavItem(id=t, label=TAB_LABELS[t], href=tab_url(t), active=t == active) for t in DASHBOARD_TABS],
        sidebar=sidebar(active),
        user=UserOut.model_validate(user),
    )
    if active == "home":
        page.home = home_tab(user, enrollments)
    elif active == "courses":
        page.courses = courses_tab(courses, enrollments, course)
    elif active == "tests":
        page.tests = PlaceholderTab(
            title="Practice Tests",
            items=[PlaceholderItem(title=t, subtitle=s, status=st) for t, s, st in PRACTICE_TESTS],
        )
    elif active == "discuss":
        page.discuss = PlaceholderTab(
            title="Discussions",
            items=[PlaceholderItem(title=t, subtitle=s, status=st) for t, s, st in DISCUSSIONS],
        )
    else:
        page.profile = ProfileTab(
            user=UserOut.model_validate(user),
            courses_enrolled=len(enrollments),
            sign_out_url="/api/auth/signout",
        )
    return page
