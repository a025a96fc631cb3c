"""Async client for the Edumynt pages.

Holds the session in a SessionStore, sends it as a bearer token and keeps it
fresh with a SessionMonitor while used as an async context manager:

    async with EdumyntClient("http://localhost:8000") as client:
        await client.sign_in("student@example.com", "secret1")
        page = await client.dashboard(tab="courses")
"""
from typing import TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from .application.errors import DecodeError
from .config import settings
from .interfaces.http.schemas import (
    AuthResp, CatalogPage, CourseDetailPage, CoursePreviewPage, DashboardPage, EnrollResp,
    HomePage, LessonPage, ProgressResp, SettingsPage,
)
from .session.monitor import SessionMonitor
from .session.store import AuthChangeEvent, SessionStore

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class RedirectRequired(Exception):
    """The route guard sent the client elsewhere (e.g. to sign in)."""

    def __init__(self, location: str):
        super().__init__(location)
        self.location = location


def decode(model: type[M], response: httpx.Response) -> M:
    try:
        return model.model_validate(response.json())
    except (ValidationError, ValueError) as e:
        raise DecodeError(f"Unexpected {model.__name__} payload from {response.request.url.path}") from e


class EdumyntClient:
    def __init__(
        self,
        base_url: str | None = None,
        store: SessionStore | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float = 15.0,
    ):
        self.store = store or SessionStore()
        self.http = httpx.AsyncClient(
            base_url=base_url or settings.SITE_URL,
            transport=transport,
            timeout=timeout,
            headers={"Accept": "application/json"},
            follow_redirects=False,
        )
        self.monitor = SessionMonitor(self.store, self.refresh_session)

    async def __aenter__(self):
        self.monitor.start()
        return self

    async def __aexit__(self, *exc):
        await self.aclose()

    async def aclose(self) -> None:
        self.monitor.stop()
        await self.http.aclose()

    def auth_header(self) -> dict:
        session = self.store.get_session()
        return {"Authorization": f"Bearer {session.access_token}"} if session else {}

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        response = await self.http.request(method, url, headers=self.auth_header(), **kwargs)
        if response.is_redirect:
            raise RedirectRequired(response.headers["location"])
        return response

    async def _page(self, model: type[M], url: str, **params) -> M | None:
        response = await self._request("GET", url, params={k: v for k, v in params.items() if v is not None})
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return decode(model, response)

    # --- auth

    async def _auth(self, url: str, payload: dict | None = None) -> AuthResp:
        response = await self._request("POST", url, json=payload)
        if response.status_code >= 500:
            response.raise_for_status()
        if response.status_code == 422:
            return AuthResp(success=False, error="Please check the form fields and try again.")
        if response.status_code == 429:
            return AuthResp(success=False, error="Too many requests. Please wait a moment and try again.")
        return decode(AuthResp, response)

    async def sign_up(self, email: str, password: str, full_name: str,
                      confirm_password: str | None = None) -> AuthResp:
        result = await self._auth("/api/auth/signup", {
            "email": email,
            "password": password,
            "confirm_password": password if confirm_password is None else confirm_password,
            "full_name": full_name,
        })
        if result.success and result.session:
            self.store.set_session(result.session, AuthChangeEvent.SIGNED_IN)
        return result

    async def sign_in(self, email: str, password: str, redirect_to: str | None = None) -> AuthResp:
        result = await self._auth("/api/auth/signin", {
            "email": email, "password": password, "redirect_to": redirect_to,
        })
        if result.success and result.session:
            self.store.set_session(result.session, AuthChangeEvent.SIGNED_IN)
        return result

    async def sign_out(self) -> AuthResp:
        result = await self._auth("/api/auth/signout")
        self.store.clear()
        return result

    async def reset_password(self, email: str, redirect_to: str | None = None) -> AuthResp:
        return await self._auth("/api/auth/reset-password", {"email": email, "redirect_to": redirect_to})

    async def refresh_session(self) -> bool:
        session = self.store.get_session()
        if session is None:
            return False
        result = await self._auth("/api/auth/refresh", {"refresh_token": session.refresh_token})
        if not result.success or not result.session:
            logger.warning("refresh_rejected", error=result.error)
            return False
        self.store.set_session(result.session, AuthChangeEvent.TOKEN_REFRESHED)
        return True

    # --- pages

    async def home(self) -> HomePage:
        return await self._page(HomePage, "/")

    async def courses(self, subject: str | None = None) -> CatalogPage:
        return await self._page(CatalogPage, "/courses", subject=subject)

    async def course(self, course_id: str) -> CourseDetailPage | None:
        return await self._page(CourseDetailPage, f"/course/{course_id}")

    async def course_preview(self, course_id: str) -> CoursePreviewPage | None:
        return await self._page(CoursePreviewPage, f"/course/{course_id}/preview")

    async def lesson(self, lesson_id: str) -> LessonPage | None:
        return await self._page(LessonPage, f"/lesson/{lesson_id}")

    async def lesson_preview(self, lesson_id: str) -> LessonPage | None:
        return await self._page(LessonPage, f"/lesson/{lesson_id}/preview")

    async def dashboard(self, tab: str | None = None, course: str | None = None) -> DashboardPage:
        return await self._page(DashboardPage, "/dashboard", tab=tab, course=course)

    async def settings_panel(self, theme: str | None = None) -> SettingsPage:
        return await self._page(SettingsPage, "/settings", theme=theme)

    async def enroll(self, course_id: str) -> EnrollResp:
        response = await self._request("POST", f"/course/{course_id}/enroll")
        if response.status_code != 409:
            response.raise_for_status()
        return decode(EnrollResp, response)

    async def update_progress(self, lesson_id: str, progress: float) -> ProgressResp:
        response = await self._request("POST", f"/lesson/{lesson_id}/progress", json={"progress": progress})
        response.raise_for_status()
        return decode(ProgressResp, response)

    async def complete_lesson(self, lesson_id: str) -> ProgressResp:
        response = await self._request("POST", f"/lesson/{lesson_id}/complete")
        response.raise_for_status()
        return decode(ProgressResp, response)
