from flask import Blueprint, request, jsonify, g
import logging

from portal.errors import ValidationFailed
from portal.services.auth_service import authenticate, generate_token, login_required
from portal.services.student_service import register_user

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/auth/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    if not data.get('email') or not data.get('password'):
        raise ValidationFailed("Email and password are required")

    token, profile = authenticate(data['email'], data['password'])
    return jsonify({'token': token, 'user': profile})


@auth_bp.route('/auth/register', methods=['POST'])
def register():
    data = request.get_json(silent=True) or {}
    profile = register_user(data)
    token = generate_token(profile['id'], profile['email'])
    return jsonify({'token': token, 'user': profile}), 201


@auth_bp.route('/profile', methods=['GET'])
@login_required
def profile():
    return jsonify(g.current_user)
