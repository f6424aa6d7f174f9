"""
Student Routes
Test start/submit, result review, performance and assignments
"""
from flask import Blueprint, jsonify, request, session

from examprep.errors import Unauthorized, ValidationError
from examprep.services import (
    AssignmentService, ExamService, PerformanceService, ScoringService
)
from examprep.services.assignment_service import serialize
from examprep.utils import get_current_user, require_login

student_bp = Blueprint('student', __name__)


def _int_or_none(value, name):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be a number")


@student_bp.route('/start-test', methods=['POST'])
def start_test():
    """
    Draw a question set for the signed-in student, a known user id, or a
    guest identified by full name
    """
    data = request.get_json(silent=True) or {}
    requested_id = _int_or_none(data.get('userId'), 'userId')

    if session.get('user_id') is not None:
        if requested_id is not None and requested_id != session['user_id']:
            raise Unauthorized("Cannot start a test for another user")
        payload = ExamService.start_test(user_id=session['user_id'])
    else:
        student = ExamService.resolve_student(requested_id, data.get('fullname'))
        payload = ExamService.start_for(student)
        # Only a credential-less guest picked by name gets a session, so it
        # can open its own results; registered accounts must log in
        if requested_id is None and student.is_guest:
            session['user_id'] = student.id
            session['role'] = 'student'

    return jsonify(payload)


@student_bp.route('/submit-test', methods=['POST'])
def submit_test():
    """Score a finished session"""
    data = request.get_json(silent=True) or {}
    summary = ScoringService.submit_test(
        data.get('submissionToken'),
        data.get('answers'),
        data.get('timeTaken', 0),
    )
    return jsonify(summary), 201


@student_bp.route('/test-result/<int:result_id>')
@require_login
def test_result(result_id):
    """Result review; students may only open their own"""
    detail = PerformanceService.test_result_detail(result_id)
    if session.get('role') != 'instructor' and detail['result']['user_id'] != session['user_id']:
        raise Unauthorized("You do not have permission to view this result")
    return jsonify(detail)


@student_bp.route('/user-performance')
def user_performance():
    """Dashboard data for the signed-in user, or a userId / fullname lookup"""
    user_id = _int_or_none(request.args.get('userId'), 'userId')
    fullname = request.args.get('fullname')

    if user_id is None and not fullname:
        user = get_current_user()
        if not user:
            raise ValidationError("User ID or fullname required")
    else:
        user = PerformanceService.find_user(user_id, fullname)

    return jsonify(PerformanceService.user_performance(user))


@student_bp.route('/assignments')
@require_login
def my_assignments():
    """Assignments for the signed-in student"""
    assignments = AssignmentService.list_for_student(session['user_id'])
    rows = []
    for assignment in assignments:
        payload = serialize(assignment)
        payload['instructor_name'] = assignment.instructor.fullname
        payload['instructor_email'] = assignment.instructor.email
        rows.append(payload)
    return jsonify({'assignments': rows})


@student_bp.route('/assignments/<int:assignment_id>/status', methods=['POST'])
@require_login
def update_my_assignment(assignment_id):
    """Student marks their own assignment in progress or completed"""
    data = request.get_json(silent=True) or {}
    assignment = AssignmentService.update_assignment(
        assignment_id,
        data.get('status'),
        data.get('completedAt'),
        actor_id=session['user_id'],
    )
    return jsonify({'success': True, 'assignment': serialize(assignment)})
