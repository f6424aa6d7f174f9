"""
Feedback Model
Append-only instructor feedback history per student
"""
from examprep.extensions import db
from examprep.utils.helpers import now_utc, isoformat


class Feedback(db.Model):
    """Student feedback model"""
    __tablename__ = 'student_feedback'

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    test_result_id = db.Column(db.Integer, db.ForeignKey('test_results.id'))
    feedback_text = db.Column(db.Text, nullable=False)
    needs_reassessment = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, default=now_utc)

    instructor = db.relationship('User', foreign_keys=[instructor_id])
    test_result = db.relationship('TestResult')

    def __repr__(self):
        return f'<Feedback for {self.student_id} by {self.instructor_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'student_id': self.student_id,
            'instructor_id': self.instructor_id,
            'test_result_id': self.test_result_id,
            'feedback_text': self.feedback_text,
            'needs_reassessment': bool(self.needs_reassessment),
            'created_at': isoformat(self.created_at),
        }
