# walksense/authentication/routes.py
from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required
from walksense.errors import Unauthenticated
from walksense.logging_config import setup_logging
from walksense.authentication.views import (
    ScopeDelegate, bearer_token, login, resend_otp, revoke_token, start_registration, verify_otp,
)


auth_bp = Blueprint('auth', __name__)

# Setup logging
logger = setup_logging()


def _user_summary(user):
    return {'id': user.id, 'name': user.name, 'email': user.email, 'role': user.role}


@auth_bp.route('/register', methods=['POST'])
def register():
    email = start_registration(request.get_json(silent=True))
    return jsonify({
        'message': 'Registration initiated. Please check your email for a verification code.',
        'email': email,
        'requires_verification': True,
    }), 201


@auth_bp.route('/verify-otp', methods=['POST'])
def verify_otp_route():
    guardian_user = verify_otp(request.get_json(silent=True))
    return jsonify({
        'message': 'Account verified successfully! You can now login.',
        'user': guardian_user.to_dict(),
    }), 200


@auth_bp.route('/resend-otp', methods=['POST'])
def resend_otp_route():
    resend_otp(request.get_json(silent=True))
    return jsonify({'message': 'Verification code resent successfully.'}), 200


@auth_bp.route('/login', methods=['POST'])
def login_post():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    scope, token = login(data.get('email'), data.get('password'), data.get('login_as'))

    if isinstance(scope, ScopeDelegate):
        return jsonify({
            'success': True,
            'message': 'Login successful as PWD',
            'token': token,
            'user': _user_summary(scope.pwd_user),
            'guardian': {
                'id': scope.guardian.id,
                'name': scope.guardian.name,
                'email': scope.guardian.email,
            },
        }), 200

    return jsonify({
        'success': True,
        'message': 'Login successful',
        'token': token,
        'user': _user_summary(scope.user),
    }), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    token = bearer_token(request)
    if not token:
        raise Unauthenticated()
    if revoke_token(token):
        logger.info("Access token revoked.")
    return jsonify({'success': True, 'message': 'Logged out successfully'}), 200


@auth_bp.route('/user', methods=['GET'])
@login_required
def get_user():
    return jsonify({'user': current_user.to_dict()}), 200
