from flask import current_app
from models import db, Review
from .social_graph_service import social_graph_service, coerce_user_id

MAX_BODY_LENGTH = 5000

class ReviewService:
    """Music reviews, visible to their author and the author's friends"""

    @staticmethod
    def _clean_text(data, field, max_length, required=True):
        value = data.get(field)
        value = value.strip() if isinstance(value, str) else ''
        if required and not value:
            raise ValueError(f"{field.capitalize()} is required")
        if len(value) > max_length:
            raise ValueError(f"{field.capitalize()} cannot exceed {max_length} characters")
        return value or None

    def create_review(self, author_id, data):
        author_id = coerce_user_id(author_id, 'author_id')

        title = self._clean_text(data, 'title', 200)
        artist = self._clean_text(data, 'artist', 200)
        body = self._clean_text(data, 'body', MAX_BODY_LENGTH, required=False)

        rating = data.get('rating')
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ValueError("Rating must be a whole number from 1 to 5")

        catalog_id = data.get('catalog_id')
        catalog_id = str(catalog_id).strip()[:50] if catalog_id not in (None, '') else None

        review = Review(
            user_id=author_id,
            title=title,
            artist=artist,
            catalog_id=catalog_id,
            rating=rating,
            body=body
        )
        db.session.add(review)

        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Error saving review by user {author_id}: {e}")
            raise

        current_app.logger.info(f"User {author_id} posted review {review.id}")
        return review

    def feed(self, viewer_id, limit=None):
        """Newest reviews by the viewer and the viewer's friends"""
        viewer_id = coerce_user_id(viewer_id, 'viewer_id')
        if limit is None:
            limit = current_app.config.get('FEED_LIMIT', 50)

        author_ids = social_graph_service.friend_ids(viewer_id) + [viewer_id]
        return Review.query.filter(
            Review.user_id.in_(author_ids)
        ).order_by(Review.created_at.desc(), Review.id.desc()).limit(limit).all()

    def reviews_for(self, viewer_id, author_id):
        """An author's reviews, if the viewer is the author or one of their friends"""
        viewer_id = coerce_user_id(viewer_id, 'viewer_id')
        author_id = coerce_user_id(author_id, 'author_id')

        if viewer_id != author_id and not social_graph_service.are_friends(viewer_id, author_id):
            raise PermissionError("Reviews are only visible to friends")

        return Review.query.filter_by(user_id=author_id).order_by(
            Review.created_at.desc(), Review.id.desc()
        ).all()

    def delete_review(self, viewer_id, review_id):
        """Delete a review owned by the viewer; missing reviews are a no-op"""
        viewer_id = coerce_user_id(viewer_id, 'viewer_id')
        review = db.session.get(Review, coerce_user_id(review_id, 'review_id'))
        if review is None:
            return {'ok': True}

        if review.user_id != viewer_id:
            raise PermissionError("Only the author can delete a review")

        db.session.delete(review)
        db.session.commit()
        current_app.logger.info(f"User {viewer_id} deleted review {review_id}")
        return {'ok': True}

# Global review service instance
review_service = ReviewService()
