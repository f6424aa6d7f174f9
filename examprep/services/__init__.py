"""
Services Package
"""
from examprep.services.question_bank import QuestionBank
from examprep.services.auth_service import AuthService
from examprep.services.exam_service import ExamService
from examprep.services.scoring_service import ScoringService
from examprep.services.assignment_service import AssignmentService
from examprep.services.feedback_service import FeedbackService
from examprep.services.performance_service import PerformanceService

__all__ = [
    'QuestionBank', 'AuthService', 'ExamService', 'ScoringService',
    'AssignmentService', 'FeedbackService', 'PerformanceService'
]
