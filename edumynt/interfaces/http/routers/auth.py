import structlog
from fastapi import APIRouter, BackgroundTasks, Depends, Query, Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from ....application import auth
from ....application.auth_backend import AuthBackend
from ....application.dto import AuthSession
from ....application.errors import AuthApiError
from ....config import settings
from ....infrastructure.db import get_db
from ....infrastructure.mailer import Mailer, get_mailer
from ....infrastructure.metrics import auth_events_total
from ....infrastructure.security import SIGNUP
from ..authz import read_access_token
from ..ratelimit import limiter
from ..schemas import (
    AuthFormPage, AuthResp, FormField, RefreshReq, ResetPasswordReq, SessionInfo,
    SessionOut, SignInReq, SignUpReq, UpdatePasswordReq, UserOut,
)

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["auth"])

DEFAULT_REDIRECT = "/dashboard"


def session_out(session: AuthSession) -> SessionOut:
    return SessionOut(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        token_type=session.token_type,
        expires_at=session.expires_at,
        user=UserOut.model_validate(session.user),
    )


def set_session_cookies(response: Response, session: AuthSession) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME, session.access_token,
        max_age=settings.ACCESS_TOKEN_MINUTES * 60,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="lax",
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME, session.refresh_token,
        max_age=settings.REFRESH_TOKEN_DAYS * 24 * 3600,
        httponly=True, secure=settings.COOKIE_SECURE, samesite="lax", path="/api/auth",
    )


def clear_session_cookies(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME)
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path="/api/auth")


def safe_redirect(target: str | None) -> str:
    # only same-site relative paths
    if target and target.startswith("/") and not target.startswith("//"):
        return target
    return DEFAULT_REDIRECT


# --- pages

@router.get("/auth/signin", response_model=AuthFormPage)
def signin_page(redirect_to: str | None = Query(None, alias="redirectTo")):
    return AuthFormPage(
        page="signin",
        title="Welcome back",
        description="Sign in to continue your learning journey",
        action="/api/auth/signin",
        fields=[
            FormField(name="email", label="Email", type="email"),
            FormField(name="password", label="Password", type="password"),
        ],
        links={"forgot_password": "/auth/forgot-password", "signup": "/auth/signup"},
        redirect_to=redirect_to,
    )


@router.get("/auth/signup", response_model=AuthFormPage)
def signup_page():
    return AuthFormPage(
        page="signup",
        title="Create your account",
        description="Start your learning journey with Edumynt",
        action="/api/auth/signup",
        fields=[
            FormField(name="full_name", label="Full Name"),
            FormField(name="email", label="Email", type="email"),
            FormField(name="password", label="Password", type="password"),
            FormField(name="confirm_password", label="Confirm Password", type="password"),
        ],
        links={"signin": "/auth/signin"},
    )


@router.get("/auth/forgot-password", response_model=AuthFormPage)
def forgot_password_page():
    return AuthFormPage(
        page="forgot-password",
        title="Reset your password",
        description="Enter your email address and we'll send you a link to reset your password",
        action="/api/auth/reset-password",
        fields=[FormField(name="email", label="Email", type="email")],
        links={"signin": "/auth/signin"},
    )


@router.get("/auth/reset-password", response_model=AuthFormPage)
def reset_password_page(token: str | None = None):
    return AuthFormPage(
        page="reset-password",
        title="Choose a new password",
        description="Enter a new password for your account",
        action="/api/auth/update-password",
        fields=[
            FormField(name="password", label="New Password", type="password"),
            FormField(name="confirm_password", label="Confirm Password", type="password"),
        ],
        links={"signin": "/auth/signin"},
        token=token,
    )


# --- api

@router.post("/api/auth/signup", response_model=AuthResp, status_code=status.HTTP_201_CREATED)
@limiter.limit(f"{settings.RATE_LIMIT_PER_MINUTE}/minute")
def signup(
    request: Request,
    response: Response,
    payload: SignUpReq,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = auth.sign_up(AuthBackend(db), payload.email, payload.password, payload.full_name)
    if not result.success:
        response.status_code = status.HTTP_400_BAD_REQUEST
        return AuthResp(success=False, error=result.error)

    created = result.data
    if created.confirmation:
        background_tasks.add_task(mailer.send_signup_confirmation, created.confirmation.email,
                                  created.confirmation.link)
        return AuthResp(
            success=True,
            user=UserOut.model_validate(created.user),
            message="Please check your email to confirm your account.",
        )
    set_session_cookies(response, created.session)
    logger.info("signed_in", user_id=created.user.id, via="signup")
    return AuthResp(
        success=True,
        session=session_out(created.session),
        user=UserOut.model_validate(created.user),
        redirect_to=DEFAULT_REDIRECT,
    )


@router.post("/api/auth/signin", response_model=AuthResp)
@limiter.limit(settings.SIGNIN_RATE_LIMIT)
def signin(
    request: Request,
    response: Response,
    payload: SignInReq,
    db: Session = Depends(get_db),
):
    result = auth.sign_in(AuthBackend(db), payload.email, payload.password)
    if not result.success:
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return AuthResp(success=False, error=result.error)

    session: AuthSession = result.data
    set_session_cookies(response, session)
    logger.info("signed_in", user_id=session.user.id)
    return AuthResp(
        success=True,
        session=session_out(session),
        user=UserOut.model_validate(session.user),
        redirect_to=safe_redirect(payload.redirect_to),
    )


@router.post("/api/auth/signout", response_model=AuthResp)
def signout(request: Request, response: Response, db: Session = Depends(get_db)):
    result = auth.sign_out(AuthBackend(db), read_access_token(request))
    clear_session_cookies(response)
    if not result.success:
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return AuthResp(success=False, error=result.error)
    logger.info("signed_out")
    return AuthResp(success=True, redirect_to="/")


@router.post("/api/auth/reset-password", response_model=AuthResp)
def reset_password(
    payload: ResetPasswordReq,
    response: Response,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
):
    result = auth.reset_password(AuthBackend(db), payload.email, payload.redirect_to)
    if not result.success:
        response.status_code = status.HTTP_400_BAD_REQUEST
        return AuthResp(success=False, error=result.error)
    if result.data is not None:
        background_tasks.add_task(mailer.send_password_reset, result.data.email, result.data.link)
    return AuthResp(
        success=True,
        message="We've sent a password reset link to your email address. "
                "Please check your inbox and follow the instructions to reset your password.",
    )


@router.post("/api/auth/refresh", response_model=AuthResp)
def refresh(
    request: Request,
    response: Response,
    payload: RefreshReq | None = None,
    db: Session = Depends(get_db),
):
    token = (payload.refresh_token if payload else None) or request.cookies.get(settings.REFRESH_COOKIE_NAME)
    try:
        session = AuthBackend(db).refresh_session(token)
    except AuthApiError as e:
        auth_events_total.labels(event="refresh", outcome="error").inc()
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return AuthResp(success=False, error=auth.get_error_message(e.message))
    auth_events_total.labels(event="refresh", outcome="ok").inc()
    set_session_cookies(response, session)
    logger.info("token_refreshed", user_id=session.user.id)
    return AuthResp(success=True, session=session_out(session), user=UserOut.model_validate(session.user))


@router.post("/api/auth/update-password", response_model=AuthResp)
def update_password(payload: UpdatePasswordReq, response: Response, db: Session = Depends(get_db)):
    try:
        user = AuthBackend(db).update_password(payload.token, payload.password)
    except AuthApiError as e:
        response.status_code = e.status
        return AuthResp(success=False, error=auth.get_error_message(e.message))
    return AuthResp(success=True, user=UserOut.model_validate(user), redirect_to="/auth/signin")


@router.get("/api/auth/verify")
def verify(token: str, kind: str = Query(SIGNUP, alias="type"), db: Session = Depends(get_db)):
    try:
        session = AuthBackend(db).verify_email(token)
    except AuthApiError as e:
        return JSONResponse(
            status_code=e.status,
            content=AuthResp(success=False, error=auth.get_error_message(e.message)).model_dump(),
        )
    redirect = RedirectResponse(DEFAULT_REDIRECT, status_code=status.HTTP_303_SEE_OTHER)
    set_session_cookies(redirect, session)
    logger.info("signed_in", user_id=session.user.id, via=kind)
    return redirect


@router.get("/api/auth/session", response_model=SessionInfo)
def get_session(request: Request, db: Session = Depends(get_db)):
    token = read_access_token(request)
    if not token:
        return SessionInfo()
    try:
        user = AuthBackend(db).get_user(token)
    except AuthApiError as e:
        logger.info("session_unavailable", error=e.message)
        return SessionInfo()
    return SessionInfo(user=UserOut.model_validate(user))


@router.get("/api/auth/user", response_model=UserOut)
def get_user(request: Request, db: Session = Depends(get_db)):
    try:
        user = AuthBackend(db).get_user(read_access_token(request))
    except AuthApiError as e:
        return JSONResponse(status_code=e.status, content={"detail": e.message})
    return UserOut.model_validate(user)
