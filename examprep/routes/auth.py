"""
Authentication Routes
Handles registration, login, logout and the current identity
"""
from flask import Blueprint, jsonify, request, session

from examprep.errors import NotFound
from examprep.services import AuthService
from examprep.utils import get_current_user

auth_bp = Blueprint('auth', __name__)


def start_user_session(user):
    """Store the signed identity the gated routes rely on"""
    session.clear()
    session['user_id'] = user.id
    session['role'] = user.role
    session['email'] = user.email


@auth_bp.route('/register', methods=['POST'])
def register():
    """Student registration"""
    data = request.get_json(silent=True) or {}
    user = AuthService.register(
        data.get('fullname'),
        data.get('email'),
        data.get('password'),
    )
    return jsonify({'success': True, 'user': user.to_dict()}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Email + password login"""
    data = request.get_json(silent=True) or {}
    user = AuthService.authenticate(data.get('email'), data.get('password'))
    start_user_session(user)
    return jsonify({'success': True, 'user': user.to_dict()})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """User logout"""
    session.clear()
    return jsonify({'success': True})


@auth_bp.route('/me')
def me():
    """Current signed-in user"""
    user = get_current_user()
    if not user:
        raise NotFound("Not logged in")
    return jsonify({'user': user.to_dict()})
