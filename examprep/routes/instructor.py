"""
Instructor Routes
Exam assignment, feedback and student monitoring
"""
from flask import Blueprint, jsonify, request, session

from examprep.services import AssignmentService, FeedbackService, PerformanceService
from examprep.services.assignment_service import serialize
from examprep.utils import require_instructor

instructor_bp = Blueprint('instructor', __name__)


@instructor_bp.route('/assign-exam', methods=['POST'])
@require_instructor
def assign_exam():
    """Fan one exam out to several students"""
    data = request.get_json(silent=True) or {}
    assignments = AssignmentService.assign_exam(
        session['user_id'],
        data.get('studentIds'),
        data.get('examName'),
        description=data.get('description'),
        total_questions=data.get('totalQuestions'),
        passing_score=data.get('passingScore'),
        due_date=data.get('dueDate'),
    )
    return jsonify({
        'success': True,
        'assignments': [serialize(a) for a in assignments],
    }), 201


@instructor_bp.route('/assignments')
@require_instructor
def assignments():
    """Everything this instructor has assigned, newest first"""
    rows = []
    for assignment in AssignmentService.list_for_instructor(session['user_id']):
        payload = serialize(assignment)
        payload['student_name'] = assignment.student.fullname
        payload['student_email'] = assignment.student.email
        rows.append(payload)
    return jsonify({'assignments': rows})


@instructor_bp.route('/assignments/<int:assignment_id>', methods=['PUT'])
@require_instructor
def update_assignment(assignment_id):
    data = request.get_json(silent=True) or {}
    assignment = AssignmentService.update_assignment(
        assignment_id,
        data.get('status'),
        data.get('completedAt'),
        actor_id=session['user_id'],
    )
    return jsonify({'success': True, 'assignment': serialize(assignment)})


@instructor_bp.route('/assignments/<int:assignment_id>', methods=['DELETE'])
@require_instructor
def delete_assignment(assignment_id):
    AssignmentService.delete_assignment(assignment_id, actor_id=session['user_id'])
    return jsonify({'success': True})


@instructor_bp.route('/feedback', methods=['POST'])
@require_instructor
def add_feedback():
    """Append a feedback entry for a student"""
    data = request.get_json(silent=True) or {}
    feedback = FeedbackService.add_feedback(
        session['user_id'],
        data.get('studentId'),
        data.get('feedbackText'),
        test_result_id=data.get('testResultId'),
        needs_reassessment=data.get('needsReassessment', False),
    )
    return jsonify({'success': True, 'feedbackId': feedback.id}), 201


@instructor_bp.route('/students')
@require_instructor
def students():
    """All students with statistics"""
    return jsonify({'students': PerformanceService.list_students(session['user_id'])})


@instructor_bp.route('/students/<int:student_id>')
@require_instructor
def student_details(student_id):
    return jsonify(PerformanceService.student_details(session['user_id'], student_id))
