# setup_db.py
"""
Database setup
Creates tables, seeds the default instructor and imports a question bank

Usage: python setup_db.py [questions.json]
"""
import json
import logging
import os
import sys

from examprep import create_app
from examprep.errors import ExamPrepError
from examprep.services import AuthService, QuestionBank

logger = logging.getLogger('examprep.setup')

DEFAULT_INSTRUCTOR_EMAIL = os.getenv('INSTRUCTOR_EMAIL', 'instructor@examprep.local')
DEFAULT_INSTRUCTOR_PASSWORD = os.getenv('INSTRUCTOR_PASSWORD', 'Instructor123!')


def load_question_file(path):
    """Read a JSON list of question records"""
    with open(path, encoding='utf-8') as handle:
        return json.load(handle)


def setup_database(question_file=None, app=None):
    """
    Seed the instructor account and optionally import questions

    Returns:
        dict: instructor_created, questions_imported
    """
    app = app or create_app()

    with app.app_context():
        instructor, created = AuthService.ensure_instructor(
            DEFAULT_INSTRUCTOR_EMAIL, DEFAULT_INSTRUCTOR_PASSWORD
        )
        if created:
            logger.info("Created instructor account %s", instructor.email)
        else:
            logger.info("Instructor account already exists")

        imported = 0
        if question_file:
            imported = QuestionBank.import_questions(load_question_file(question_file))

        logger.info("Question bank now holds %d questions", QuestionBank.count())

    return {'instructor_created': created, 'questions_imported': imported}


if __name__ == '__main__':
    try:
        setup_database(sys.argv[1] if len(sys.argv) > 1 else None)
    except (ExamPrepError, OSError, ValueError) as e:
        logger.error("Setup failed: %s", e)
        sys.exit(1)
