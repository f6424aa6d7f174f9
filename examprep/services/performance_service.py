"""
Performance Service
Read-side aggregates: domain accuracy, student statistics, result review
"""
from sqlalchemy import func

from examprep.errors import NotFound, ValidationError
from examprep.extensions import db
from examprep.models import Question, TestAnswer, TestResult, User
from examprep.services.auth_service import AuthService
from examprep.services.feedback_service import FeedbackService
from examprep.utils import isoformat


def _round2(value):
    return round(float(value or 0), 2)


def _feedback_rows(student_id):
    rows = []
    for fb in FeedbackService.history(student_id):
        payload = fb.to_dict()
        payload['instructor_name'] = fb.instructor.fullname if fb.instructor else None
        payload['instructor_email'] = fb.instructor.email if fb.instructor else None
        payload['test_score'] = fb.test_result.score if fb.test_result else None
        rows.append(payload)
    return rows


class PerformanceService:
    """Aggregations over results and answers"""

    @staticmethod
    def domain_performance(user_id):
        """
        Accuracy per question domain across all of a user's results

        Returns:
            list: dicts with domain, total_questions, correct_answers,
            percentage; best domain first
        """
        rows = db.session.query(
            Question.domain,
            func.count(TestAnswer.id).label('total_questions'),
            func.sum(
                db.case((TestAnswer.is_correct == True, 1), else_=0)
            ).label('correct_answers'),
        ).join(
            Question, TestAnswer.question_id == Question.id
        ).join(
            TestResult, TestAnswer.test_result_id == TestResult.id
        ).filter(
            TestResult.user_id == user_id
        ).group_by(Question.domain).all()

        performance = [
            {
                'domain': row.domain,
                'total_questions': int(row.total_questions or 0),
                'correct_answers': int(row.correct_answers or 0),
                'percentage': _round2(
                    (row.correct_answers or 0) / row.total_questions * 100
                    if row.total_questions else 0
                ),
            }
            for row in rows
        ]
        performance.sort(key=lambda item: (-item['percentage'], item['domain']))
        return performance

    @staticmethod
    def results_for(user_id):
        return TestResult.query.filter_by(user_id=user_id).order_by(
            TestResult.completed_at.desc(), TestResult.id.desc()
        ).all()

    @staticmethod
    def find_user(user_id=None, fullname=None):
        if user_id is not None:
            return AuthService.get_user(user_id)
        if fullname:
            user = User.query.filter(
                func.lower(User.fullname) == fullname.strip().lower()
            ).first()
            if not user:
                raise NotFound("User not found")
            return user
        raise ValidationError("User ID or fullname required")

    @staticmethod
    def user_performance(user):
        """Dashboard payload for one student"""
        results = PerformanceService.results_for(user.id)
        total_tests = len(results)
        avg_score = (
            sum(r.percentage for r in results) / total_tests if total_tests else 0
        )

        return {
            'fullname': user.fullname,
            'totalTests': total_tests,
            'avgScore': f'{avg_score:.2f}',
            'results': [r.to_dict() for r in results],
            'domainPerformance': PerformanceService.domain_performance(user.id),
            'feedback': _feedback_rows(user.id),
            'needsReassessment': FeedbackService.needs_reassessment(user.id),
        }

    @staticmethod
    def list_students(instructor_id):
        """Every student with result statistics and the latest reassessment flag"""
        AuthService.require_instructor(instructor_id)

        rows = db.session.query(
            User,
            func.count(func.distinct(TestResult.id)).label('total_tests'),
            func.avg(TestResult.score).label('avg_score'),
            func.max(TestResult.score).label('best_score'),
            func.min(TestResult.score).label('lowest_score'),
            func.max(TestResult.completed_at).label('last_test_date'),
        ).outerjoin(
            TestResult, TestResult.user_id == User.id
        ).filter(
            User.role == 'student'
        ).group_by(User.id).order_by(User.fullname.asc()).all()

        flags = FeedbackService.reassessment_flags()

        students = []
        for user, total_tests, avg_score, best_score, lowest_score, last_test in rows:
            payload = user.to_dict()
            payload.update({
                'total_tests': int(total_tests or 0),
                'avg_score': _round2(avg_score) if avg_score is not None else None,
                'best_score': best_score,
                'lowest_score': lowest_score,
                'last_test_date': isoformat(last_test),
                'needs_reassessment': flags.get(user.id, False),
            })
            students.append(payload)
        return students

    @staticmethod
    def student_details(instructor_id, student_id):
        AuthService.require_instructor(instructor_id)

        student = db.session.get(User, student_id)
        if not student or student.role != 'student':
            raise NotFound("Student not found")

        return {
            'student': student.to_dict(),
            'testResults': [r.to_dict() for r in PerformanceService.results_for(student.id)],
            'domainPerformance': PerformanceService.domain_performance(student.id),
            'feedback': _feedback_rows(student.id),
            'needsReassessment': FeedbackService.needs_reassessment(student.id),
        }

    @staticmethod
    def test_result_detail(result_id):
        """Result with per-question review rows"""
        result = db.session.get(TestResult, result_id)
        if not result:
            raise NotFound("Test result not found")

        payload = result.to_dict()
        payload['fullname'] = result.user.fullname if result.user else None

        answers = []
        for answer in sorted(result.answers, key=lambda a: a.question_id):
            row = answer.question.to_review_dict()
            row['question_id'] = row.pop('id')
            row['user_answer'] = answer.user_answer
            row['is_correct'] = answer.is_correct
            answers.append(row)

        return {'result': payload, 'answers': answers}
