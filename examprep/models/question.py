"""
Question Model
Four-option multiple choice question with a domain tag
"""
from examprep.extensions import db

OPTION_KEYS = ('A', 'B', 'C', 'D')


class Question(db.Model):
    """Question model (read-only outside the question bank)"""
    __tablename__ = 'questions'

    id = db.Column(db.Integer, primary_key=True)
    question_text = db.Column(db.Text, nullable=False)
    option_a = db.Column(db.Text, nullable=False)
    option_b = db.Column(db.Text, nullable=False)
    option_c = db.Column(db.Text, nullable=False)
    option_d = db.Column(db.Text, nullable=False)
    correct_answer = db.Column(db.String(1), nullable=False)
    domain = db.Column(db.String(100), nullable=False, index=True)
    explanation = db.Column(db.Text)

    def __repr__(self):
        return f'<Question {self.id}: {self.question_text[:50]}...>'

    def to_client_dict(self):
        """Question as sent to a test taker (no answer key)"""
        return {
            'id': self.id,
            'question_text': self.question_text,
            'option_a': self.option_a,
            'option_b': self.option_b,
            'option_c': self.option_c,
            'option_d': self.option_d,
            'domain': self.domain,
        }

    def to_review_dict(self):
        payload = self.to_client_dict()
        payload['correct_answer'] = self.correct_answer
        payload['explanation'] = self.explanation
        return payload
