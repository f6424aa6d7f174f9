"""
Feedback Service
Append-only instructor feedback and the reassessment flag
"""
import logging

from sqlalchemy import and_, func

from examprep.errors import NotFound, ValidationError
from examprep.extensions import db
from examprep.models import Feedback, TestResult, User
from examprep.services.auth_service import AuthService
from examprep.services.persistence import commit_unit
from examprep.utils import now_utc

logger = logging.getLogger(__name__)


class FeedbackService:
    """Instructor feedback history"""

    @staticmethod
    def add_feedback(instructor_id, student_id, feedback_text,
                     test_result_id=None, needs_reassessment=False):
        feedback_text = (feedback_text or '').strip()
        if student_id is None or not feedback_text:
            raise ValidationError("Student and feedback text are required")
        if not isinstance(needs_reassessment, bool):
            raise ValidationError("needsReassessment must be true or false")

        instructor = AuthService.require_instructor(instructor_id)

        student = db.session.get(User, student_id)
        if not student or student.role != 'student':
            raise NotFound(f"Student {student_id} not found")

        if test_result_id is not None:
            result = db.session.get(TestResult, test_result_id)
            if not result:
                raise NotFound(f"Test result {test_result_id} not found")
            if result.user_id != student.id:
                raise ValidationError("Test result belongs to a different student")

        feedback = Feedback(
            student_id=student.id,
            instructor_id=instructor.id,
            test_result_id=test_result_id,
            feedback_text=feedback_text,
            needs_reassessment=needs_reassessment,
            created_at=now_utc(),
        )
        db.session.add(feedback)
        commit_unit("add feedback")

        logger.info(
            "Instructor %s left feedback for student %s (reassess=%s)",
            instructor.id, student.id, feedback.needs_reassessment
        )
        return feedback

    @staticmethod
    def history(student_id):
        """Newest first"""
        return Feedback.query.filter_by(student_id=student_id).order_by(
            Feedback.created_at.desc(), Feedback.id.desc()
        ).all()

    @staticmethod
    def needs_reassessment(student_id):
        """Flag on the student's most recent feedback; False with no feedback"""
        latest = Feedback.query.filter_by(student_id=student_id).order_by(
            Feedback.created_at.desc(), Feedback.id.desc()
        ).first()
        return bool(latest.needs_reassessment) if latest else False

    @staticmethod
    def reassessment_flags():
        """Latest-feedback flag for every student that has feedback"""
        latest_at = db.session.query(
            Feedback.student_id,
            func.max(Feedback.created_at).label('created_at'),
        ).group_by(Feedback.student_id).subquery()

        # Rows sharing the newest timestamp fall back to the highest id
        latest_id = db.session.query(
            func.max(Feedback.id).label('id')
        ).select_from(Feedback).join(
            latest_at, and_(
                Feedback.student_id == latest_at.c.student_id,
                Feedback.created_at == latest_at.c.created_at,
            )
        ).group_by(Feedback.student_id).subquery()

        rows = db.session.query(
            Feedback.student_id, Feedback.needs_reassessment
        ).join(latest_id, Feedback.id == latest_id.c.id).all()

        return {row.student_id: bool(row.needs_reassessment) for row in rows}
