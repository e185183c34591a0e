from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Index
from . import db

class Review(db.Model):
    __tablename__ = 'review'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)

    # What is being reviewed
    title = db.Column(db.String(200), nullable=False)
    artist = db.Column(db.String(200), nullable=False)
    catalog_id = db.Column(db.String(50), nullable=True)  # Discogs release/master id

    rating = db.Column(db.Integer, nullable=False)
    body = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False, index=True)

    author = db.relationship('User', back_populates='reviews')

    __table_args__ = (
        CheckConstraint('rating BETWEEN 1 AND 5', name='valid_review_rating'),
        Index('idx_review_user_created', 'user_id', 'created_at'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'username': self.author.username if self.author else None,
            'title': self.title,
            'artist': self.artist,
            'catalog_id': self.catalog_id,
            'rating': self.rating,
            'body': self.body,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }

    def __repr__(self):
        return f'<Review {self.id}: {self.artist} - {self.title} ({self.rating}/5)>'
