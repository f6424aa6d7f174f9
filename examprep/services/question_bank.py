"""
Question Bank
Read-only question store: sampling, lookup and bulk import
"""
import logging

from sqlalchemy import func

from examprep.errors import NotFound, ValidationError
from examprep.extensions import db
from examprep.models import Question, OPTION_KEYS
from examprep.services.persistence import commit_unit

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    'question_text', 'option_a', 'option_b', 'option_c', 'option_d',
    'correct_answer', 'domain'
)


class QuestionBank:
    """Question lookup and sampling"""

    @staticmethod
    def count():
        return Question.query.count()

    @staticmethod
    def get(question_id):
        question = db.session.get(Question, question_id)
        if not question:
            raise NotFound(f"Question {question_id} not found")
        return question

    @staticmethod
    def answer_key(question_ids):
        """Map question id -> correct option for the given ids"""
        rows = db.session.query(Question.id, Question.correct_answer).filter(
            Question.id.in_(list(question_ids))
        ).all()
        return {row.id: row.correct_answer for row in rows}

    @staticmethod
    def sample(count):
        """
        Draw `count` distinct questions in random order.

        Sampling is independent per call; there is no domain balancing.
        """
        available = QuestionBank.count()
        if available < count:
            raise ValidationError(
                f"Question bank has {available} questions; {count} required"
            )

        questions = Question.query.order_by(func.random()).limit(count).all()
        return questions

    @staticmethod
    def import_questions(records):
        """
        Bulk import question dicts.

        Every record is validated before anything is written, so a bad
        record leaves the bank untouched.

        Returns:
            int: number of questions imported
        """
        if not isinstance(records, list) or not records:
            raise ValidationError("Expected a non-empty list of questions")

        questions = []
        for position, record in enumerate(records, 1):
            if not isinstance(record, dict):
                raise ValidationError(f"Question #{position} is not an object")

            missing = [f for f in REQUIRED_FIELDS if not str(record.get(f) or '').strip()]
            if missing:
                raise ValidationError(
                    f"Question #{position} is missing: {', '.join(missing)}"
                )

            correct = str(record['correct_answer']).strip().upper()
            if correct not in OPTION_KEYS:
                raise ValidationError(
                    f"Question #{position} has invalid correct_answer '{record['correct_answer']}'"
                )

            questions.append(Question(
                question_text=record['question_text'].strip(),
                option_a=record['option_a'],
                option_b=record['option_b'],
                option_c=record['option_c'],
                option_d=record['option_d'],
                correct_answer=correct,
                domain=record['domain'].strip(),
                explanation=record.get('explanation'),
            ))

        db.session.add_all(questions)
        commit_unit("import questions")

        logger.info("Imported %d questions", len(questions))
        return len(questions)
