"""
UI preferences

The theme lives only on the client, in a `theme` cookie; nothing is
stored server-side.
"""
from typing import Optional

from fastapi import APIRouter, Cookie, Response

from support_hub.models.schemas import ThemePreference

router = APIRouter(prefix="/api/preferences", tags=["preferences"])

THEME_COOKIE = "theme"
DEFAULT_THEME = "dark"
ONE_YEAR = 60 * 60 * 24 * 365


@router.get("/theme", response_model=ThemePreference)
async def get_theme(theme: Optional[str] = Cookie(None)):
    """Theme from the cookie; dark when unset or unknown"""
    if theme not in ("dark", "light"):
        theme = DEFAULT_THEME
    return ThemePreference(theme=theme)


@router.put("/theme", response_model=ThemePreference)
async def set_theme(preference: ThemePreference, response: Response):
    response.set_cookie(THEME_COOKIE, preference.theme, max_age=ONE_YEAR, samesite="lax")
    return preference
