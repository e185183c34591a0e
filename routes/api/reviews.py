from flask import Blueprint, request, jsonify
from services import auth_service, review_service
from utils import login_required, validate_json, handle_exceptions

reviews_api = Blueprint('reviews_api', __name__)

@reviews_api.route('/reviews', methods=['POST'])
@login_required
@validate_json(['title', 'artist', 'rating'])
@handle_exceptions
def create_review():
    """Post a review"""
    review = review_service.create_review(auth_service.current_user_id(), request.get_json())
    return jsonify({
        'message': 'Review posted',
        'review': review.to_dict()
    }), 201

@reviews_api.route('/reviews/feed', methods=['GET'])
@login_required
@handle_exceptions
def review_feed():
    """Latest reviews from the current user and their friends"""
    reviews = review_service.feed(auth_service.current_user_id())
    return jsonify({'reviews': [review.to_dict() for review in reviews]})

@reviews_api.route('/users/<int:user_id>/reviews', methods=['GET'])
@login_required
@handle_exceptions
def user_reviews(user_id):
    reviews = review_service.reviews_for(auth_service.current_user_id(), user_id)
    return jsonify({
        'user_id': user_id,
        'reviews': [review.to_dict() for review in reviews]
    })

@reviews_api.route('/reviews/<int:review_id>', methods=['DELETE'])
@login_required
@handle_exceptions
def delete_review(review_id):
    return jsonify(review_service.delete_review(auth_service.current_user_id(), review_id))
