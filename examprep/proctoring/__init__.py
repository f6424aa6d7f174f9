"""Proctoring: violation monitoring and kiosk shell policy."""

from examprep.proctoring.monitor import ViolationMonitor, thread_timer
from examprep.proctoring.shell import (
    navigation_redirect,
    is_locked_down,
    resolve_app_mode,
    start_path,
)

__all__ = [
    "ViolationMonitor",
    "thread_timer",
    "navigation_redirect",
    "is_locked_down",
    "resolve_app_mode",
    "start_path",
]
