from flask import Blueprint, request, jsonify
from services import auth_service, social_graph_service
from utils import login_required, validate_json, handle_exceptions

friends_api = Blueprint('friends_api', __name__)

def _body():
    return request.get_json(silent=True) or {}

@friends_api.route('/friends', methods=['GET'])
@login_required
@handle_exceptions
def friends_overview():
    """Current user's friends plus sent and received pending requests"""
    caller_id = auth_service.current_user_id()
    pending = social_graph_service.list_pending(caller_id)

    return jsonify({
        'friends': social_graph_service.list_friends(caller_id),
        'sent': pending['sent'],
        'received': pending['received']
    })

@friends_api.route('/friends/search', methods=['GET'])
@login_required
@handle_exceptions
def search_friends():
    """Users matching a username fragment that have no relation to the caller yet"""
    query = request.args.get('query', '')
    return jsonify(social_graph_service.search_candidates(query, auth_service.current_user_id()))

@friends_api.route('/friends/requests', methods=['POST'])
@login_required
@validate_json(['friend_id'])
@handle_exceptions
def send_friend_request():
    """Send a friend request"""
    result = social_graph_service.send_request(auth_service.current_user_id(), _body().get('friend_id'))

    if result.get('already_related'):
        result['message'] = 'Friend request already sent or friendship exists.'
    else:
        result['message'] = 'Friend request sent!'
    return jsonify(result)

@friends_api.route('/friends/requests/accept', methods=['POST'])
@login_required
@validate_json(['sender_id'])
@handle_exceptions
def accept_friend_request():
    """Accept a request the current user received"""
    result = social_graph_service.accept_request(auth_service.current_user_id(), _body().get('sender_id'))
    result['message'] = 'Friend request accepted!'
    return jsonify(result)

@friends_api.route('/friends/requests/reject', methods=['POST'])
@login_required
@validate_json(['sender_id'])
@handle_exceptions
def reject_friend_request():
    """Reject a request the current user received"""
    result = social_graph_service.reject_request(auth_service.current_user_id(), _body().get('sender_id'))
    result['message'] = 'Friend request rejected.'
    return jsonify(result)

@friends_api.route('/friends/requests/cancel', methods=['POST'])
@login_required
@validate_json(['receiver_id'])
@handle_exceptions
def cancel_friend_request():
    """Withdraw a request the current user sent"""
    result = social_graph_service.cancel_request(auth_service.current_user_id(), _body().get('receiver_id'))
    result['message'] = 'Friend request canceled.'
    return jsonify(result)

@friends_api.route('/friends/<int:other_id>', methods=['DELETE'])
@login_required
@handle_exceptions
def remove_friend(other_id):
    """Remove a friend"""
    result = social_graph_service.unfriend(auth_service.current_user_id(), other_id)
    result['message'] = 'Friend removed.'
    return jsonify(result)

@friends_api.route('/friends/status/<int:other_id>', methods=['GET'])
@login_required
@handle_exceptions
def friendship_status(other_id):
    """Relationship between the current user and another user"""
    status = social_graph_service.relationship_status(auth_service.current_user_id(), other_id)
    return jsonify({'user_id': other_id, 'status': status})

@friends_api.route('/users/<int:user_id>/friends', methods=['GET'])
@login_required
@handle_exceptions
def user_friends(user_id):
    """Friends of any user, for profile pages"""
    return jsonify({
        'user_id': user_id,
        'friends': social_graph_service.list_friends(user_id)
    })

@friends_api.route('/users/<int:user_id>/friend_count', methods=['GET'])
@login_required
@handle_exceptions
def user_friend_count(user_id):
    return jsonify({
        'user_id': user_id,
        'friend_count': social_graph_service.friend_count(user_id)
    })
