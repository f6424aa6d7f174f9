"""
Auth Service
Registration, login and role resolution for the identity collaborator
"""
import logging

from sqlalchemy import func
from werkzeug.security import generate_password_hash, check_password_hash

from examprep.errors import NotFound, Unauthorized, ValidationError
from examprep.extensions import db
from examprep.models import User, ROLES
from examprep.services.persistence import commit_unit

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class AuthService:
    """User accounts and role checks"""

    @staticmethod
    def register(fullname, email, password, role='student'):
        fullname = (fullname or '').strip()
        email = (email or '').strip().lower()

        if not fullname or not email or not password:
            raise ValidationError("All fields are required")

        if role not in ROLES:
            raise ValidationError(f"Invalid role '{role}'")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        if User.query.filter_by(email=email).first():
            raise ValidationError("Email already registered")

        user = User(
            fullname=fullname,
            email=email,
            password=generate_password_hash(password),
            role=role,
        )
        db.session.add(user)
        commit_unit("register user")

        logger.info("Registered %s user %s", role, user.id)
        return user

    @staticmethod
    def authenticate(email, password):
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = User.query.filter_by(email=email.strip().lower()).first()

        if not user or not user.password or not check_password_hash(user.password, password):
            raise Unauthorized("Invalid email or password")

        return user

    @staticmethod
    def get_user(user_id):
        user = db.session.get(User, user_id) if user_id is not None else None
        if not user:
            raise NotFound(f"User {user_id} not found")
        return user

    @staticmethod
    def get_or_create_guest(fullname):
        """Find a user by case-insensitive full name, creating a student if absent"""
        fullname = (fullname or '').strip()
        if not fullname:
            raise ValidationError("Full name is required")

        user = User.query.filter(
            func.lower(User.fullname) == fullname.lower()
        ).first()
        if user:
            return user

        user = User(fullname=fullname, role='student')
        db.session.add(user)
        commit_unit("create guest user")

        logger.info("Created guest student %s", user.id)
        return user

    @staticmethod
    def require_instructor(user_id):
        """Resolve user_id and require the instructor role"""
        user = db.session.get(User, user_id) if user_id is not None else None
        if not user or not user.is_instructor:
            raise Unauthorized("Instructor access required")
        return user

    @staticmethod
    def ensure_instructor(email, password, fullname='Instructor Admin'):
        """
        Create the default instructor account if it does not exist

        Returns:
            tuple: (user, created)
        """
        existing = User.query.filter_by(email=email.strip().lower()).first()
        if existing:
            return existing, False

        return AuthService.register(fullname, email, password, role='instructor'), True
