"""
Helper Functions
Time handling, session identity and access decorators
"""
from datetime import datetime, timezone
from functools import wraps

from flask import current_app, session
import pytz

from examprep.errors import Unauthorized, ValidationError


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Attach UTC to naive datetimes read back from the database"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt):
    """ISO-8601 string in UTC, or None"""
    dt = as_utc(dt)
    return dt.isoformat() if dt else None


def parse_datetime(value, tz_name=None):
    """
    Parse a due date or timestamp into an aware UTC datetime.

    Accepts ISO datetimes (with or without offset) and bare dates. Naive
    values are read in the configured timezone; a bare date means the end
    of that day.
    """
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        try:
            if len(text) == 10:
                parsed = datetime.strptime(text, "%Y-%m-%d").replace(
                    hour=23, minute=59, second=59
                )
            else:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            raise ValidationError(f"Invalid date: {value}")

    if parsed.tzinfo is None:
        tz = pytz.timezone(tz_name or current_app.config["TIMEZONE"])
        parsed = tz.localize(parsed)
    return parsed.astimezone(timezone.utc)


def get_current_user():
    """Get current logged-in user from the signed session cookie"""
    from examprep.extensions import db
    from examprep.models import User

    user_id = session.get("user_id")
    if user_id is None:
        return None
    return db.session.get(User, user_id)


# Decorators
def require_login(f):
    """Decorator to require any signed-in user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if session.get("user_id") is None:
            raise Unauthorized("Login required")
        return f(*args, **kwargs)
    return decorated_function


def require_instructor(f):
    """
    Decorator to require instructor role
    Services re-check the role against the users table
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if session.get("user_id") is None or session.get("role") != "instructor":
            raise Unauthorized("Instructor access required")
        return f(*args, **kwargs)
    return decorated_function
