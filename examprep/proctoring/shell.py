"""Kiosk shell policy: application mode, start page and route blocking."""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

VALID_APP_MODES = ("student", "instructor")
DEFAULT_APP_MODE = "student"

# Paths a student kiosk may never open
BLOCKED_PATHS = ("/instructor", "/admin", "/setup")
STUDENT_START_PATH = "/login"
STUDENT_FALLBACK_PATH = "/dashboard"
INSTRUCTOR_START_PATH = "/instructor"


def resolve_app_mode(value: Optional[str]) -> str:
    """Validate an APP_MODE value, defaulting to student mode when unset."""
    mode = (value or "").strip().lower()
    if not mode:
        logger.info("APP_MODE not set, using default: '%s'", DEFAULT_APP_MODE)
        return DEFAULT_APP_MODE
    if mode not in VALID_APP_MODES:
        raise ValueError(
            f"Invalid APP_MODE '{mode}'. Valid modes: {', '.join(VALID_APP_MODES)}"
        )
    return mode


def is_locked_down(mode: str) -> bool:
    """Student mode enables window restrictions and route blocking."""
    return resolve_app_mode(mode) == "student"


def start_path(mode: str) -> str:
    return STUDENT_START_PATH if is_locked_down(mode) else INSTRUCTOR_START_PATH


def navigation_redirect(url: str, mode: str) -> Optional[str]:
    """Return the fallback path if url is off-limits in this mode, else None."""
    if not is_locked_down(mode):
        return None
    path = urlsplit(url or "").path.lower()
    if any(path == blocked or path.startswith(blocked + "/") for blocked in BLOCKED_PATHS):
        logger.info("Blocked access to: %s", url)
        return STUDENT_FALLBACK_PATH
    return None
