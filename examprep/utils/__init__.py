"""
Utils Package
"""
from examprep.utils.helpers import (
    now_utc,
    as_utc,
    isoformat,
    parse_datetime,
    get_current_user,
    require_login,
    require_instructor
)
from examprep.utils.logging_config import configure_logging

__all__ = [
    'now_utc',
    'as_utc',
    'isoformat',
    'parse_datetime',
    'get_current_user',
    'require_login',
    'require_instructor',
    'configure_logging'
]
