"""
ExamAssignment Model
One row per (instructor, student, exam) directive
"""
from examprep.extensions import db
from examprep.utils.helpers import now_utc, isoformat

# Stored statuses; "overdue" is derived at read time and never persisted
ASSIGNMENT_STATUSES = ('pending', 'in_progress', 'completed')


class ExamAssignment(db.Model):
    """Exam assignment model"""
    __tablename__ = 'exam_assignments'

    id = db.Column(db.Integer, primary_key=True)
    instructor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    student_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    exam_name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    total_questions = db.Column(db.Integer, nullable=False, default=100)
    passing_score = db.Column(db.Integer, nullable=False, default=70)
    due_date = db.Column(db.DateTime)
    status = db.Column(db.String(20), nullable=False, default='pending')
    created_at = db.Column(db.DateTime, default=now_utc)
    completed_at = db.Column(db.DateTime)

    instructor = db.relationship('User', foreign_keys=[instructor_id])
    student = db.relationship('User', foreign_keys=[student_id])

    def __repr__(self):
        return f'<ExamAssignment {self.exam_name} -> {self.student_id} [{self.status}]>'

    def to_dict(self):
        return {
            'id': self.id,
            'instructor_id': self.instructor_id,
            'student_id': self.student_id,
            'exam_name': self.exam_name,
            'description': self.description,
            'total_questions': self.total_questions,
            'passing_score': self.passing_score,
            'due_date': isoformat(self.due_date),
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'completed_at': isoformat(self.completed_at),
        }
