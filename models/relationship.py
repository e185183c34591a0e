from datetime import datetime, timezone
from sqlalchemy import CheckConstraint, Index, UniqueConstraint
from . import db

class RelationshipStatus:
    PENDING = 'pending'
    ACCEPTED = 'accepted'

    ALL = (PENDING, ACCEPTED)

def canonical_pair(user_a, user_b):
    """Order two user ids so an unordered pair always maps to the same key"""
    return (user_a, user_b) if user_a <= user_b else (user_b, user_a)

class Relationship(db.Model):
    """One row per unordered pair of users, directed from requester to addressee.

    Rejected and canceled requests are deleted rather than kept with a
    terminal status, so a row is either pending or accepted.
    """
    __tablename__ = 'friendships'

    id = db.Column(db.Integer, primary_key=True)
    requester_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    addressee_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(20), nullable=False, default=RelationshipStatus.PENDING)

    # min/max of the two ids; carries the pair uniqueness
    pair_low = db.Column(db.Integer, nullable=False)
    pair_high = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc), nullable=False)
    responded_at = db.Column(db.DateTime, nullable=True)

    # Relationships
    requester = db.relationship('User', foreign_keys=[requester_id], back_populates='sent_relationships')
    addressee = db.relationship('User', foreign_keys=[addressee_id], back_populates='received_relationships')

    __table_args__ = (
        UniqueConstraint('pair_low', 'pair_high', name='unique_friendship_pair'),
        CheckConstraint('requester_id <> addressee_id', name='no_self_friendship'),
        CheckConstraint("status IN ('pending', 'accepted')", name='valid_friendship_status'),
        Index('idx_addressee_status', 'addressee_id', 'status'),
        Index('idx_requester_status', 'requester_id', 'status'),
    )

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        if self.requester_id is not None and self.addressee_id is not None:
            self.pair_low, self.pair_high = canonical_pair(self.requester_id, self.addressee_id)

    def other_user_id(self, user_id):
        return self.addressee_id if self.requester_id == user_id else self.requester_id

    def to_dict(self):
        return {
            'id': self.id,
            'requester_id': self.requester_id,
            'addressee_id': self.addressee_id,
            'status': self.status,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'responded_at': self.responded_at.isoformat() if self.responded_at else None
        }

    def __repr__(self):
        return f"<Relationship {self.requester_id}->{self.addressee_id} status={self.status}>"
