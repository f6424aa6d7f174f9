"""Client-side exam session engine."""

from examprep.session.engine import (
    Active,
    ExamSession,
    Frozen,
    SessionState,
    Submitted,
    Terminated,
)

__all__ = ["Active", "ExamSession", "Frozen", "SessionState", "Submitted", "Terminated"]
