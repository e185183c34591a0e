from flask import Blueprint, request, jsonify, current_app
from services import auth_service
from utils import rate_limit, handle_exceptions

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')

@auth_bp.route('/register', methods=['POST'])
@handle_exceptions
def register():
    """Create an account from username, email and password"""
    data = request.get_json(silent=True) or request.form

    user = auth_service.register_user(
        data.get('username'),
        data.get('email'),
        data.get('password')
    )

    return jsonify({
        'message': 'Registration successful! Please log in.',
        'user': user.to_dict()
    }), 201

@auth_bp.route('/login', methods=['POST'])
@rate_limit(config_key='LOGIN_RATE_LIMIT_PER_MINUTE')
@handle_exceptions
def login():
    """Start a session for valid credentials"""
    data = request.get_json(silent=True) or request.form

    user = auth_service.authenticate(data.get('username'), data.get('password'))
    if not user:
        current_app.logger.info(f"Failed login for {data.get('username')!r}")
        return jsonify({'error': 'Incorrect username or password.'}), 401

    auth_service.login_user(user)
    return jsonify({
        'message': f'Welcome back {user.username}',
        'user': user.to_dict()
    })

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """End the current session"""
    auth_service.logout_user()
    return jsonify({'message': 'Logged out'})
