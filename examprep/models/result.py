"""
TestResult Model
One row per submitted exam session
"""
from examprep.extensions import db
from examprep.utils.helpers import now_utc, isoformat


class TestResult(db.Model):
    """Final exam result"""
    __tablename__ = 'test_results'
    # keep pytest from collecting the model
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    score = db.Column(db.Integer, nullable=False)
    total_questions = db.Column(db.Integer, nullable=False)
    percentage = db.Column(db.Float, nullable=False)
    time_taken = db.Column(db.Integer, nullable=False, default=0)  # seconds
    completed_at = db.Column(db.DateTime, default=now_utc)

    # One result per submission token
    submission_token = db.Column(db.String(64), unique=True, nullable=False)

    user = db.relationship('User', backref=db.backref('test_results', lazy=True))
    answers = db.relationship(
        'TestAnswer',
        backref='test_result',
        lazy=True,
        cascade='all, delete-orphan',
        order_by='TestAnswer.question_id'
    )

    def __repr__(self):
        return f'<TestResult user={self.user_id}: {self.score}/{self.total_questions}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'score': self.score,
            'total_questions': self.total_questions,
            'percentage': f'{self.percentage:.2f}',
            'time_taken': self.time_taken,
            'completed_at': isoformat(self.completed_at),
        }
