"""
Scoring Service
Scores a finished session and persists the result with its answers
"""
import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from examprep.errors import (
    DuplicateSubmission, NotFound, PersistenceFailure, ValidationError
)
from examprep.extensions import db
from examprep.models import TestAnswer, TestResult, OPTION_KEYS
from examprep.services.exam_service import ExamService
from examprep.services.question_bank import QuestionBank
from examprep.utils import now_utc

logger = logging.getLogger(__name__)


def percentage_of(score, total):
    """Percentage rounded to two decimals"""
    if total <= 0:
        raise ValidationError("Total question count must be positive")
    return round(score / total * 100, 2)


def normalize_answers(answers):
    """
    Accept {questionId: key} or [{questionId, userAnswer}] and return
    {int question id: 'A'..'D' or None}
    """
    if answers is None:
        return {}

    if isinstance(answers, list):
        pairs = []
        for item in answers:
            if not isinstance(item, dict) or 'questionId' not in item:
                raise ValidationError("Each answer needs a questionId")
            pairs.append((item['questionId'], item.get('userAnswer')))
    elif isinstance(answers, dict):
        pairs = answers.items()
    else:
        raise ValidationError("Answers must be an object or a list")

    normalized = {}
    for question_id, key in pairs:
        try:
            question_id = int(question_id)
        except (TypeError, ValueError):
            raise ValidationError(f"Invalid question id: {question_id}")

        if key is None or str(key).strip() == '':
            normalized[question_id] = None
            continue

        key = str(key).strip().upper()
        if key not in OPTION_KEYS:
            raise ValidationError(f"Invalid option '{key}' for question {question_id}")
        normalized[question_id] = key

    return normalized


class ScoringService:
    """Deterministic scoring and atomic result persistence"""

    @staticmethod
    def grade(question_ids, answers, answer_key):
        """
        Mark each session question correct or incorrect.

        An absent answer is always incorrect.

        Returns:
            tuple: (details, score) where details is a list of
            (question_id, user_answer, is_correct)
        """
        details = []
        score = 0
        for question_id in question_ids:
            if question_id not in answer_key:
                raise NotFound(f"Question {question_id} not found")

            user_answer = answers.get(question_id)
            is_correct = user_answer is not None and user_answer == answer_key[question_id]
            if is_correct:
                score += 1
            details.append((question_id, user_answer, is_correct))

        return details, score

    @staticmethod
    def submit_test(submission_token, answers, time_taken):
        """
        Score and persist one session.

        One TestResult plus one TestAnswer per session question are written
        in a single commit. The token's nonce is unique per result, so a
        replayed submission is rejected instead of creating a second row.

        Returns:
            dict: resultId, score, totalQuestions, percentage
        """
        session_info = ExamService.load_submission_token(submission_token)
        question_ids = session_info['question_ids']
        nonce = session_info['nonce']

        answers = normalize_answers(answers)
        unknown = set(answers) - set(question_ids)
        if unknown:
            raise ValidationError(
                f"Answers reference questions outside this session: {sorted(unknown)}"
            )

        try:
            time_taken = int(time_taken or 0)
        except (TypeError, ValueError):
            raise ValidationError("timeTaken must be a number of seconds")
        if time_taken < 0:
            raise ValidationError("timeTaken cannot be negative")

        existing = TestResult.query.filter_by(submission_token=nonce).first()
        if existing:
            raise DuplicateSubmission(existing.id)

        answer_key = QuestionBank.answer_key(question_ids)
        details, score = ScoringService.grade(question_ids, answers, answer_key)
        total = len(question_ids)
        percentage = percentage_of(score, total)

        result = TestResult(
            user_id=session_info['student_id'],
            score=score,
            total_questions=total,
            percentage=percentage,
            time_taken=time_taken,
            completed_at=now_utc(),
            submission_token=nonce,
        )
        for question_id, user_answer, is_correct in details:
            result.answers.append(TestAnswer(
                question_id=question_id,
                user_answer=user_answer,
                is_correct=is_correct,
            ))

        db.session.add(result)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            existing = TestResult.query.filter_by(submission_token=nonce).first()
            if existing:
                raise DuplicateSubmission(existing.id)
            logger.exception("Failed to save test result for student %s", session_info['student_id'])
            raise PersistenceFailure("Failed to submit test")
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception("Failed to save test result for student %s", session_info['student_id'])
            raise PersistenceFailure("Failed to submit test")

        logger.info(
            "Student %s scored %d/%d (%.2f%%)",
            session_info['student_id'], score, total, percentage
        )

        return {
            'resultId': result.id,
            'score': score,
            'totalQuestions': total,
            'percentage': f'{percentage:.2f}',
        }
