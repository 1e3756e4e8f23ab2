# tender_system/core/deps.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Query

from tender_system.core.config import get_settings
from tender_system.core.errors import UserNotFound


@dataclass(frozen=True)
class Page:
    limit: int
    offset: int


async def pagination(
    limit: Optional[int] = Query(default=None, ge=0),
    offset: int = Query(default=0, ge=0),
) -> Page:
    """
    limit falls back to settings.default_page_limit when omitted.
    """
    if limit is None:
        limit = get_settings().default_page_limit
    return Page(limit=limit, offset=offset)


def require_username(username: Optional[str]) -> str:
    if not username or not username.strip():
        raise UserNotFound("The Username is empty")
    return username
