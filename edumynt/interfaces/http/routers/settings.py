from fastapi import APIRouter, Depends, Query

from ....application.catalog import THEME_OPTIONS
from ....domain.entities import User
from ..authz import get_current_user
from ..schemas import NavItem, SettingsPage, Toggle

router = APIRouter(tags=["settings"])

DEFAULT_THEME = "system"


@router.get("/settings", response_model=SettingsPage)
def settings_panel(
    theme: str | None = Query(None),
    user: User | None = Depends(get_current_user),
):
    # preferences live in the client; nothing here is persisted
    return SettingsPage(
        theme_options=THEME_OPTIONS,
        theme=theme if theme in THEME_OPTIONS else DEFAULT_THEME,
        notifications=[
            Toggle(id="push", label="Push Notifications", description="Get notified about new lessons"),
            Toggle(id="email", label="Email Notifications", description="Weekly progress updates"),
        ],
        account_links=[
            NavItem(id="profile", label="Profile Settings", href="/dashboard?tab=profile"),
            NavItem(id="privacy", label="Privacy & Security", href="/settings#privacy"),
            NavItem(id="help", label="Help & Support", href="/settings#help"),
        ],
        signed_in=user is not None,
        sign_out_url="/api/auth/signout" if user else None,
    )
