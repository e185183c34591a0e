from datetime import datetime, timezone
from . import db

class User(db.Model):
    __tablename__ = 'user'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    profile_picture = db.Column(db.String(500), nullable=True)
    listening_to = db.Column(db.String(200), nullable=True)  # "currently listening" status
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    last_login = db.Column(db.DateTime, nullable=True)

    # Relationships
    sent_relationships = db.relationship('Relationship', foreign_keys='Relationship.requester_id', back_populates='requester', lazy='dynamic', passive_deletes=True)
    received_relationships = db.relationship('Relationship', foreign_keys='Relationship.addressee_id', back_populates='addressee', lazy='dynamic', passive_deletes=True)
    reviews = db.relationship('Review', back_populates='author', lazy='dynamic', passive_deletes=True)

    def __repr__(self):
        return f'<User {self.username}>'

    def to_public_dict(self):
        """Fields any signed-in user may see"""
        return {
            'user_id': self.id,
            'username': self.username,
            'profile_picture': self.profile_picture,
            'listening_to': self.listening_to
        }

    def to_dict(self):
        """Convert user to dictionary for the owner's own API responses"""
        data = self.to_public_dict()
        data.update({
            'email': self.email,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None
        })
        return data
