"""
User Model
Students and instructors; guests are students without credentials
"""
from examprep.extensions import db
from examprep.utils.helpers import now_utc, isoformat

ROLES = ('student', 'instructor')


class User(db.Model):
    """User model"""
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    fullname = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True)
    password = db.Column(db.String(255))
    role = db.Column(db.String(20), nullable=False, default='student', index=True)
    created_at = db.Column(db.DateTime, default=now_utc)

    def __repr__(self):
        return f'<User {self.fullname} ({self.role})>'

    @property
    def is_instructor(self):
        return self.role == 'instructor'

    @property
    def is_guest(self):
        """Student created from a full name alone; it has no login"""
        return not self.email and not self.password

    def to_dict(self):
        return {
            'id': self.id,
            'fullname': self.fullname,
            'email': self.email,
            'role': self.role,
            'created_at': isoformat(self.created_at),
        }
