from datetime import datetime, timezone
from functools import wraps
from flask import current_app
from sqlalchemy import and_, case, func, or_, select, union_all
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from models import db, User, Relationship, RelationshipStatus
from models.relationship import canonical_pair
from .errors import InvalidArgument, StorageFailure

DEFAULT_SEARCH_LIMIT = 10

# Largest value a signed 64-bit INTEGER column can hold
MAX_ID = 2 ** 63 - 1


def coerce_user_id(value, field='user_id'):
    """Turn a request value into a positive integer id or raise InvalidArgument"""
    if value is None or isinstance(value, bool):
        raise InvalidArgument(f"Missing {field}")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidArgument(f"Missing {field}")

    if isinstance(value, float) and not value.is_integer():
        raise InvalidArgument(f"Invalid {field}: {value!r}")

    try:
        number = int(value)
    except (TypeError, ValueError, OverflowError):
        raise InvalidArgument(f"Invalid {field}: {value!r}")

    if not 0 < number <= MAX_ID:
        raise InvalidArgument(f"Invalid {field}: {value!r}")
    return number


def escape_like(text):
    return text.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


def storage_guard(operation):
    """Roll back and re-raise database errors as StorageFailure"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            try:
                return f(*args, **kwargs)
            except SQLAlchemyError as e:
                db.session.rollback()
                current_app.logger.error(f"Storage failure in {operation}: {e}")
                raise StorageFailure(f"{operation} failed") from e
        return decorated_function
    return decorator


class SocialGraphService:
    """Friend request state machine and relationship queries.

    Every call takes the authenticated caller id explicitly. Each unordered
    pair of users has at most one row, moving through:

        none -> pending(a->b) -> accepted -> none (unfriend)
                pending(a->b) -> none (reject by b / cancel by a)

    Transitions that find nothing to act on are silent no-ops so that
    retries and concurrent duplicates never surface as errors.
    """

    @staticmethod
    def _pair_filter(user_a, user_b):
        low, high = canonical_pair(user_a, user_b)
        return and_(Relationship.pair_low == low, Relationship.pair_high == high)

    def _find_pair(self, user_a, user_b):
        return Relationship.query.filter(self._pair_filter(user_a, user_b)).first()

    @staticmethod
    def _counterpart(user_id):
        """The other side of an edge touching user_id"""
        return case(
            (Relationship.requester_id == user_id, Relationship.addressee_id),
            else_=Relationship.requester_id
        )

    @staticmethod
    def _touches(user_id):
        return or_(Relationship.requester_id == user_id, Relationship.addressee_id == user_id)

    @staticmethod
    def _degree_subquery():
        """Accepted-edge count per user id"""
        accepted = Relationship.status == RelationshipStatus.ACCEPTED
        sides = union_all(
            select(Relationship.requester_id.label('user_id')).where(accepted),
            select(Relationship.addressee_id.label('user_id')).where(accepted)
        ).subquery()
        return select(
            sides.c.user_id,
            func.count().label('friend_count')
        ).group_by(sides.c.user_id).subquery()

    @staticmethod
    def _conditional_write(query, values=None):
        """Run one UPDATE/DELETE guarded by the expected prior state, return affected rows"""
        if values is None:
            affected = query.delete(synchronize_session=False)
        else:
            affected = query.update(values, synchronize_session=False)
        db.session.commit()
        return affected

    # State transitions

    @storage_guard('send_request')
    def send_request(self, caller_id, target_id):
        """Create a pending request from caller to target.

        Returns {'ok': True, 'already_related': True} without writing when the
        pair already has a row in either direction, whatever its status.
        """
        caller_id = coerce_user_id(caller_id, 'caller_id')
        target_id = coerce_user_id(target_id, 'friend_id')

        if target_id == caller_id:
            raise InvalidArgument("You cannot send a friend request to yourself")

        if db.session.get(User, caller_id) is None:
            raise InvalidArgument(f"User {caller_id} does not exist")

        if db.session.get(User, target_id) is None:
            raise InvalidArgument(f"User {target_id} does not exist")

        if self._find_pair(caller_id, target_id) is not None:
            current_app.logger.debug(f"Friend request {caller_id}->{target_id}: pair already related")
            return {'ok': True, 'already_related': True}

        try:
            db.session.add(Relationship(
                requester_id=caller_id,
                addressee_id=target_id,
                status=RelationshipStatus.PENDING
            ))
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            # Lost a race with a concurrent send for the same pair
            if self._find_pair(caller_id, target_id) is not None:
                current_app.logger.info(f"Friend request {caller_id}->{target_id}: concurrent insert, already related")
                return {'ok': True, 'already_related': True}
            raise

        current_app.logger.info(f"Friend request sent {caller_id}->{target_id}")
        return {'ok': True}

    @storage_guard('accept_request')
    def accept_request(self, caller_id, requester_id):
        caller_id = coerce_user_id(caller_id, 'caller_id')
        requester_id = coerce_user_id(requester_id, 'sender_id')

        affected = self._conditional_write(
            Relationship.query.filter_by(
                requester_id=requester_id,
                addressee_id=caller_id,
                status=RelationshipStatus.PENDING
            ),
            {
                Relationship.status: RelationshipStatus.ACCEPTED,
                Relationship.responded_at: datetime.now(timezone.utc)
            }
        )

        if affected:
            current_app.logger.info(f"Friend request accepted {requester_id}->{caller_id}")
        else:
            current_app.logger.debug(f"Accept {requester_id}->{caller_id}: no pending request")
        return {'ok': True}

    @storage_guard('reject_request')
    def reject_request(self, caller_id, requester_id):
        caller_id = coerce_user_id(caller_id, 'caller_id')
        requester_id = coerce_user_id(requester_id, 'sender_id')

        affected = self._conditional_write(
            Relationship.query.filter_by(
                requester_id=requester_id,
                addressee_id=caller_id,
                status=RelationshipStatus.PENDING
            )
        )

        if affected:
            current_app.logger.info(f"Friend request rejected {requester_id}->{caller_id}")
        else:
            current_app.logger.debug(f"Reject {requester_id}->{caller_id}: no pending request")
        return {'ok': True}

    @storage_guard('cancel_request')
    def cancel_request(self, caller_id, addressee_id):
        caller_id = coerce_user_id(caller_id, 'caller_id')
        addressee_id = coerce_user_id(addressee_id, 'receiver_id')

        affected = self._conditional_write(
            Relationship.query.filter_by(
                requester_id=caller_id,
                addressee_id=addressee_id,
                status=RelationshipStatus.PENDING
            )
        )

        if affected:
            current_app.logger.info(f"Friend request canceled {caller_id}->{addressee_id}")
        else:
            current_app.logger.debug(f"Cancel {caller_id}->{addressee_id}: no pending request")
        return {'ok': True}

    @storage_guard('unfriend')
    def unfriend(self, caller_id, other_id):
        caller_id = coerce_user_id(caller_id, 'caller_id')
        other_id = coerce_user_id(other_id, 'friend_id')

        affected = self._conditional_write(
            Relationship.query.filter(
                self._pair_filter(caller_id, other_id),
                Relationship.status == RelationshipStatus.ACCEPTED
            )
        )

        if affected:
            current_app.logger.info(f"Friendship removed {caller_id}<->{other_id}")
        else:
            current_app.logger.debug(f"Unfriend {caller_id}<->{other_id}: not friends")
        return {'ok': True}

    # Queries

    @storage_guard('list_friends')
    def list_friends(self, user_id):
        """Friends of user_id with their own friend counts, by username"""
        user_id = coerce_user_id(user_id)

        friends = db.session.query(
            self._counterpart(user_id).label('friend_id')
        ).filter(
            Relationship.status == RelationshipStatus.ACCEPTED,
            self._touches(user_id)
        ).subquery()
        degree = self._degree_subquery()

        rows = db.session.query(
            User.id,
            User.username,
            func.coalesce(degree.c.friend_count, 0)
        ).join(
            friends, friends.c.friend_id == User.id
        ).outerjoin(
            degree, degree.c.user_id == User.id
        ).order_by(User.username.asc()).all()

        return [
            {'user_id': friend_id, 'username': username, 'friend_count': count}
            for friend_id, username, count in rows
        ]

    @storage_guard('list_pending')
    def list_pending(self, caller_id):
        """Pending requests split into sent (caller is requester) and received"""
        caller_id = coerce_user_id(caller_id, 'caller_id')

        sent = db.session.query(User.id, User.username).join(
            Relationship, Relationship.addressee_id == User.id
        ).filter(
            Relationship.requester_id == caller_id,
            Relationship.status == RelationshipStatus.PENDING
        ).order_by(Relationship.created_at.asc(), Relationship.id.asc()).all()

        received = db.session.query(User.id, User.username).join(
            Relationship, Relationship.requester_id == User.id
        ).filter(
            Relationship.addressee_id == caller_id,
            Relationship.status == RelationshipStatus.PENDING
        ).order_by(Relationship.created_at.asc(), Relationship.id.asc()).all()

        return {
            'sent': [{'user_id': uid, 'username': name} for uid, name in sent],
            'received': [{'user_id': uid, 'username': name} for uid, name in received]
        }

    @storage_guard('search_candidates')
    def search_candidates(self, query, caller_id, limit=None):
        """Users whose username contains query, minus the caller and anyone already related"""
        if query is None or not str(query).strip():
            return []

        caller_id = coerce_user_id(caller_id, 'caller_id')
        if limit is None:
            limit = current_app.config.get('FRIEND_SEARCH_LIMIT', DEFAULT_SEARCH_LIMIT)

        pattern = f"%{escape_like(str(query).strip())}%"
        related = select(self._counterpart(caller_id)).where(self._touches(caller_id))

        users = User.query.filter(
            User.username.ilike(pattern, escape='\\'),
            User.id != caller_id,
            User.id.not_in(related)
        ).order_by(User.username.asc()).limit(limit).all()

        return [{'user_id': user.id, 'username': user.username} for user in users]

    @storage_guard('friend_count')
    def friend_count(self, user_id):
        user_id = coerce_user_id(user_id)
        return Relationship.query.filter(
            Relationship.status == RelationshipStatus.ACCEPTED,
            self._touches(user_id)
        ).count()

    @storage_guard('relationship_status')
    def relationship_status(self, caller_id, other_id):
        """One of 'self', 'none', 'request_sent', 'request_received', 'friends'"""
        caller_id = coerce_user_id(caller_id, 'caller_id')
        other_id = coerce_user_id(other_id)

        if caller_id == other_id:
            return 'self'

        row = self._find_pair(caller_id, other_id)
        if row is None:
            return 'none'
        if row.status == RelationshipStatus.ACCEPTED:
            return 'friends'
        return 'request_sent' if row.requester_id == caller_id else 'request_received'

    @storage_guard('are_friends')
    def are_friends(self, user_a, user_b):
        row = self._find_pair(coerce_user_id(user_a), coerce_user_id(user_b))
        return row is not None and row.status == RelationshipStatus.ACCEPTED

    @storage_guard('friend_ids')
    def friend_ids(self, user_id):
        user_id = coerce_user_id(user_id)
        rows = db.session.query(self._counterpart(user_id)).filter(
            Relationship.status == RelationshipStatus.ACCEPTED,
            self._touches(user_id)
        ).all()
        return [row[0] for row in rows]


# Global social graph service instance
social_graph_service = SocialGraphService()
