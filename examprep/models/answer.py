"""
TestAnswer Model
Stores one answer per question per result
"""
from examprep.extensions import db


class TestAnswer(db.Model):
    """Per-question answer detail"""
    __tablename__ = 'test_answers'
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    test_result_id = db.Column(
        db.Integer, db.ForeignKey('test_results.id', ondelete='CASCADE'),
        nullable=False, index=True
    )
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id'), nullable=False, index=True)
    user_answer = db.Column(db.String(1))  # NULL when unanswered
    is_correct = db.Column(db.Boolean, nullable=False, default=False)

    question = db.relationship('Question')

    __table_args__ = (
        db.UniqueConstraint(
            'test_result_id', 'question_id',
            name='unique_answer_per_result_question'
        ),
    )

    def __repr__(self):
        return f'<TestAnswer Q{self.question_id} in result {self.test_result_id}>'
