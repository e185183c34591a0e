from flask import Blueprint, request, jsonify
from services import auth_service
from utils import login_required, validate_json, handle_exceptions

users_api = Blueprint('users_api', __name__)

@users_api.route('/user/profile', methods=['GET'])
@login_required
def get_user_profile():
    """Get current user profile"""
    return jsonify(auth_service.get_current_user().to_dict())

@users_api.route('/user/profile', methods=['PUT'])
@login_required
@validate_json()
@handle_exceptions
def update_user_profile():
    """Update email, profile picture or currently listening status"""
    user = auth_service.update_profile(auth_service.get_current_user(), request.get_json())

    return jsonify({
        'success': True,
        'user': user.to_dict(),
        'message': 'Profile updated successfully'
    })

@users_api.route('/user', methods=['DELETE'])
@login_required
@handle_exceptions
def delete_user():
    """Delete the current account and everything attached to it"""
    auth_service.delete_account(auth_service.get_current_user())
    auth_service.logout_user()
    return jsonify({'message': 'Account deleted'})

@users_api.route('/check_username', methods=['POST'])
@login_required
@validate_json(['username'])
@handle_exceptions
def check_username():
    """Check if username is available"""
    username = request.get_json()['username']
    if not isinstance(username, str):
        raise ValueError("Username must be text")

    available, message = auth_service.check_username_availability(
        username.strip(), auth_service.current_user_id()
    )

    return jsonify({
        'available': available,
        'message': message
    })
