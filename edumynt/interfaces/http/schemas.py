from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


# --- records

class UserOut(ORMModel):
    id: str
    email: str
    full_name: str | None = None
    created_at: datetime | None = None
    email_confirmed_at: datetime | None = None


class SessionOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserOut


class CourseOut(ORMModel):
    id: str
    title: str
    description: str | None = None
    subject: str
    thumbnail_url: str | None = None
    is_published: bool
    is_free: bool
    price: float
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LessonOut(ORMModel):
    id: str
    course_id: str
    title: str
    content: str | None = None
    video_url: str | None = None
    order_index: int
    is_preview: bool
    estimated_duration: int


class LessonSummary(ORMModel):
    id: str
    course_id: str
    title: str
    order_index: int
    is_preview: bool
    estimated_duration: int


class EnrollmentOut(ORMModel):
    id: str
    user_id: str
    course_id: str
    enrolled_at: datetime | None = None
    progress: float
    course: CourseOut | None = None


class LessonProgressOut(ORMModel):
    id: str
    user_id: str
    lesson_id: str
    progress: float
    completed_at: datetime | None = None


# --- auth forms

class SignUpReq(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str
    full_name: str = Field(min_length=2, max_length=255)

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class SignInReq(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    redirect_to: str | None = None


class ResetPasswordReq(BaseModel):
    email: EmailStr
    redirect_to: str | None = None


class RefreshReq(BaseModel):
    refresh_token: str | None = None


class UpdatePasswordReq(BaseModel):
    token: str
    password: str = Field(min_length=6)
    confirm_password: str

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class AuthResp(BaseModel):
    success: bool
    error: str | None = None
    message: str | None = None
    session: SessionOut | None = None
    user: UserOut | None = None
    redirect_to: str | None = None


class SessionInfo(BaseModel):
    user: UserOut | None = None


# --- pages

class FormField(BaseModel):
    name: str
    label: str
    type: str = "text"


class AuthFormPage(BaseModel):
    page: str
    title: str
    description: str
    action: str
    fields: list[FormField]
    links: dict[str, str] = {}
    redirect_to: str | None = None
    token: str | None = None


class HomePage(BaseModel):
    title: str
    tagline: str
    featured_courses: list[CourseOut]
    links: dict[str, str]


class SubjectSection(BaseModel):
    subject: str
    courses: list[CourseOut]


class CatalogPage(BaseModel):
    sections: list[SubjectSection]
    active_subject: str | None = None
    total: int


class CourseDetailPage(BaseModel):
    course: CourseOut
    lessons: list[LessonSummary]
    is_enrolled: bool
    is_authenticated: bool
    total_lessons: int
    preview_lessons: int
    estimated_duration: int
    start_learning_url: str
    enroll_url: str
    first_lesson_url: str | None = None
    progress: list[LessonProgressOut] = []


class CoursePreviewPage(BaseModel):
    course: CourseOut
    lessons: list[LessonOut]


class LessonPage(BaseModel):
    status: Literal["ready", "locked"]
    lesson: LessonOut | None = None
    summary: LessonSummary
    course_url: str
    message: str | None = None


class EnrollResp(BaseModel):
    success: bool
    error: str | None = None
    redirect_to: str | None = None
    first_lesson_url: str | None = None


class ProgressReq(BaseModel):
    progress: float


class ProgressResp(BaseModel):
    ok: bool
    lesson_id: str
    progress: float | None = None


class NavItem(BaseModel):
    id: str
    label: str
    href: str
    active: bool = False


class SidebarSection(BaseModel):
    title: str
    items: list[NavItem]


class ProgressStats(BaseModel):
    enrolled: int
    in_progress: int
    completed: int
    average_progress: float


class PlaceholderItem(BaseModel):
    title: str
    subtitle: str
    status: str | None = None


class HomeTab(BaseModel):
    greeting: str
    continue_learning: list[EnrollmentOut]
    stats: ProgressStats
    practice_tests: list[PlaceholderItem]
    quick_actions: list[str]


class CourseCard(BaseModel):
    course: CourseOut
    is_enrolled: bool
    progress: float


class CoursesSection(BaseModel):
    id: str
    label: str
    title: str
    description: str
    courses: list[CourseCard]


class CoursesTab(BaseModel):
    sections: list[CoursesSection]
    focus_course_id: str | None = None


class PlaceholderTab(BaseModel):
    title: str
    items: list[PlaceholderItem]


class ProfileTab(BaseModel):
    user: UserOut
    courses_enrolled: int
    sign_out_url: str


class DashboardPage(BaseModel):
    tab: str
    tabs: list[NavItem]
    sidebar: list[SidebarSection]
    user: UserOut
    home: HomeTab | None = None
    courses: CoursesTab | None = None
    tests: PlaceholderTab | None = None
    discuss: PlaceholderTab | None = None
    profile: ProfileTab | None = None


class Toggle(BaseModel):
    id: str
    label: str
    description: str
    enabled: bool = False


class SettingsPage(BaseModel):
    theme_options: list[str]
    theme: str
    notifications: list[Toggle]
    account_links: list[NavItem]
    signed_in: bool
    sign_out_url: str | None = None
