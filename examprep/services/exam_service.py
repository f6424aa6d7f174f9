"""
Exam Service
Starts practice sessions and issues their one-time submission tokens
"""
import logging
import secrets

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from examprep.errors import Unauthorized, ValidationError
from examprep.services.auth_service import AuthService
from examprep.services.question_bank import QuestionBank

logger = logging.getLogger(__name__)

TOKEN_SALT = 'examprep-submission'


def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=TOKEN_SALT)


class ExamService:
    """Session start and submission token handling"""

    @staticmethod
    def resolve_student(user_id=None, fullname=None):
        """
        Resolve the test taker.

        A user id must name an existing user; otherwise a full name finds
        or creates a guest student.
        """
        if user_id is not None:
            user = AuthService.get_user(user_id)
        elif fullname and fullname.strip():
            user = AuthService.get_or_create_guest(fullname)
        else:
            raise ValidationError("User ID or full name is required")

        if user.is_instructor:
            raise Unauthorized("Instructors cannot take practice tests")
        return user

    @staticmethod
    def issue_submission_token(student_id, question_ids):
        payload = {
            'sid': student_id,
            'nonce': secrets.token_hex(16),
            'qids': list(question_ids),
        }
        return _serializer().dumps(payload)

    @staticmethod
    def load_submission_token(token):
        """
        Verify a submission token

        Returns:
            dict: student_id, nonce, question_ids
        """
        if not token:
            raise ValidationError("Submission token is required")

        config = current_app.config
        max_age = config['EXAM_TIME_LIMIT'] + config['SUBMISSION_GRACE_SECONDS']

        try:
            payload = _serializer().loads(token, max_age=max_age)
        except SignatureExpired:
            raise ValidationError("Submission token expired")
        except BadSignature:
            raise ValidationError("Invalid submission token")

        return {
            'student_id': payload['sid'],
            'nonce': payload['nonce'],
            'question_ids': payload['qids'],
        }

    @staticmethod
    def start_test(user_id=None, fullname=None):
        """
        Start a session: draw the question sequence and sign it.

        The server keeps no session state; everything needed to score the
        attempt travels in the submission token.
        """
        student = ExamService.resolve_student(user_id, fullname)
        return ExamService.start_for(student)

    @staticmethod
    def start_for(student):
        config = current_app.config

        questions = QuestionBank.sample(config['EXAM_QUESTION_COUNT'])
        question_ids = [q.id for q in questions]
        token = ExamService.issue_submission_token(student.id, question_ids)

        logger.info(
            "Started test for student %s with %d questions", student.id, len(questions)
        )

        return {
            'studentId': student.id,
            'fullname': student.fullname,
            'questions': [q.to_client_dict() for q in questions],
            'submissionToken': token,
            'examTimeLimit': config['EXAM_TIME_LIMIT'],
            'questionTimeLimit': config['QUESTION_TIME_LIMIT'],
        }
