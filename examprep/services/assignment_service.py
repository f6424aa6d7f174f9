"""
Assignment Service
Fans an exam out to students and tracks each assignment's status
"""
import logging

from flask import current_app

from examprep.errors import NotFound, Unauthorized, ValidationError
from examprep.extensions import db
from examprep.models import ExamAssignment, User, ASSIGNMENT_STATUSES
from examprep.services.auth_service import AuthService
from examprep.services.persistence import commit_unit
from examprep.utils import now_utc, as_utc, parse_datetime

logger = logging.getLogger(__name__)

# Statuses a student may set on their own assignment
STUDENT_STATUSES = ('in_progress', 'completed')


def display_status(assignment, now=None):
    """
    Status shown to users.

    "overdue" is derived here from the due date and never written back.
    """
    if assignment.status == 'completed':
        return 'completed'
    now = as_utc(now) if now else now_utc()
    due = as_utc(assignment.due_date)
    if due and now > due:
        return 'overdue'
    return assignment.status


def serialize(assignment, now=None):
    payload = assignment.to_dict()
    payload['display_status'] = display_status(assignment, now)
    return payload


def _bounded_int(value, default, name, minimum, maximum=None):
    if value in (None, ''):
        return default
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a whole number")
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError(f"{name} is out of range")
    return value


class AssignmentService:
    """Exam assignment fan-out and status updates"""

    @staticmethod
    def assign_exam(instructor_id, student_ids, exam_name, description=None,
                    total_questions=None, passing_score=None, due_date=None):
        """
        Create one assignment per student as a single unit of work.

        Either every targeted student receives the assignment or, on any
        failure, none do.

        Returns:
            list: the created ExamAssignment rows, in student order
        """
        exam_name = (exam_name or '').strip()
        if not exam_name:
            raise ValidationError("Exam name is required")
        if not student_ids or not isinstance(student_ids, (list, tuple)):
            raise ValidationError("At least one student is required")

        instructor = AuthService.require_instructor(instructor_id)

        config = current_app.config
        total_questions = _bounded_int(
            total_questions, config['EXAM_QUESTION_COUNT'], "totalQuestions", 1
        )
        passing_score = _bounded_int(
            passing_score, config['DEFAULT_PASSING_SCORE'], "passingScore", 0, 100
        )
        due = parse_datetime(due_date)

        # Duplicate ids collapse to one row per student
        ordered_ids = []
        for student_id in student_ids:
            try:
                student_id = int(student_id)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid student id: {student_id}")
            if student_id not in ordered_ids:
                ordered_ids.append(student_id)

        students = {
            u.id: u for u in User.query.filter(
                User.id.in_(ordered_ids), User.role == 'student'
            ).all()
        }
        missing = [sid for sid in ordered_ids if sid not in students]
        if missing:
            raise NotFound(f"Students not found: {missing}")

        assignments = []
        for student_id in ordered_ids:
            assignment = ExamAssignment(
                instructor_id=instructor.id,
                student_id=student_id,
                exam_name=exam_name,
                description=(description or None),
                total_questions=total_questions,
                passing_score=passing_score,
                due_date=due,
                status='pending',
                created_at=now_utc(),
            )
            db.session.add(assignment)
            assignments.append(assignment)

        commit_unit("assign exam")

        logger.info(
            "Instructor %s assigned '%s' to %d students",
            instructor.id, exam_name, len(assignments)
        )
        return assignments

    @staticmethod
    def get(assignment_id):
        assignment = db.session.get(ExamAssignment, assignment_id)
        if not assignment:
            raise NotFound(f"Assignment {assignment_id} not found")
        return assignment

    @staticmethod
    def update_assignment(assignment_id, status, completed_at=None, actor_id=None):
        """
        Set an assignment's stored status.

        When actor_id is given it must be the assignment's instructor, or its
        student moving it to in_progress/completed. Marking an assignment
        completed stamps completed_at (now unless supplied); any other
        status clears it.
        """
        if status not in ASSIGNMENT_STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Valid: {', '.join(ASSIGNMENT_STATUSES)}"
            )

        assignment = AssignmentService.get(assignment_id)

        if actor_id is not None and actor_id != assignment.instructor_id:
            if actor_id != assignment.student_id or status not in STUDENT_STATUSES:
                raise Unauthorized("Not allowed to update this assignment")

        assignment.status = status
        if status == 'completed':
            assignment.completed_at = parse_datetime(completed_at) if completed_at else now_utc()
        else:
            assignment.completed_at = None

        commit_unit("update assignment")

        logger.info("Assignment %s -> %s", assignment.id, status)
        return assignment

    @staticmethod
    def delete_assignment(assignment_id, actor_id=None):
        assignment = AssignmentService.get(assignment_id)

        if actor_id is not None and actor_id != assignment.instructor_id:
            raise Unauthorized("Only the assigning instructor can delete this assignment")

        db.session.delete(assignment)
        commit_unit("delete assignment")

        logger.info("Deleted assignment %s", assignment_id)

    @staticmethod
    def list_for_instructor(instructor_id):
        AuthService.require_instructor(instructor_id)
        return ExamAssignment.query.filter_by(
            instructor_id=instructor_id
        ).order_by(ExamAssignment.created_at.desc(), ExamAssignment.id.desc()).all()

    @staticmethod
    def list_for_student(student_id):
        """Pending first, then in progress, then the rest; earliest due date first"""
        status_rank = db.case(
            (ExamAssignment.status == 'pending', 1),
            (ExamAssignment.status == 'in_progress', 2),
            else_=3
        )
        return ExamAssignment.query.filter_by(
            student_id=student_id
        ).order_by(
            status_rank,
            ExamAssignment.due_date.is_(None),
            ExamAssignment.due_date.asc(),
            ExamAssignment.created_at.desc(),
        ).all()
