"""
Routes Package
Exports all route blueprints
"""
from examprep.routes.auth import auth_bp
from examprep.routes.student import student_bp
from examprep.routes.instructor import instructor_bp

__all__ = ['auth_bp', 'student_bp', 'instructor_bp']
