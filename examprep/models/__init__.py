"""
Models Package
Exports all database models
"""
from examprep.models.user import User, ROLES
from examprep.models.question import Question, OPTION_KEYS
from examprep.models.result import TestResult
from examprep.models.answer import TestAnswer
from examprep.models.assignment import ExamAssignment, ASSIGNMENT_STATUSES
from examprep.models.feedback import Feedback

__all__ = [
    'User', 'ROLES', 'Question', 'OPTION_KEYS', 'TestResult', 'TestAnswer',
    'ExamAssignment', 'ASSIGNMENT_STATUSES', 'Feedback'
]
