"""Deterministic placeholder avatars for profiles without photos."""

from typing import Optional
from urllib.parse import quote

AVATAR_URL = "https://ui-avatars.com/api/"
BACKGROUND = "1A263A"
FOREGROUND = "FFC700"
ANONYMOUS_NAME = "익명"


def placeholder_avatar(name: Optional[str], size: Optional[int] = 400) -> str:
    """Return a ui-avatars URL for *name*; the same name always yields the same URL."""
    label = (name or "").strip() or "?"
    url = f"{AVATAR_URL}?name={quote(label)}&background={BACKGROUND}&color={FOREGROUND}"
    if size:
        url += f"&size={size}"
    return url
