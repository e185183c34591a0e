from datetime import datetime, timezone
from flask import session, current_app
from werkzeug.security import generate_password_hash, check_password_hash
from models import db, User, Relationship, Review

FORBIDDEN_USERNAMES = ['admin', 'api', 'www', 'support', 'help', 'auth', 'friends', 'spinshare']

class AuthService:
    """Authentication service for managing user authentication"""

    @staticmethod
    def get_current_user():
        """Get the currently logged in user"""
        user_id = session.get('user_id')
        if user_id:
            return db.session.get(User, user_id)
        return None

    @staticmethod
    def current_user_id():
        return session.get('user_id')

    @staticmethod
    def is_authenticated():
        """Check if user is authenticated"""
        return 'user_id' in session

    @staticmethod
    def login_user(user):
        """Log in a user by setting session"""
        session.clear()
        session['user_id'] = user.id
        session.permanent = True

        # Update last login timestamp
        user.last_login = datetime.now(timezone.utc)
        db.session.commit()
        current_app.logger.info(f"User {user.id} logged in")

    @staticmethod
    def logout_user():
        """Log out the current user"""
        session.pop('user_id', None)

    @staticmethod
    def check_username_availability(username, current_user_id=None):
        """Check if a username is available"""
        if not isinstance(username, str) or len(username.strip()) < 2:
            return False, "Username must be at least 2 characters"

        if len(username) > 30:
            return False, "Username cannot exceed 30 characters"

        if username.lower() in FORBIDDEN_USERNAMES:
            return False, "This username is reserved"

        existing_user = User.query.filter_by(username=username).first()
        if existing_user and existing_user.id != current_user_id:
            return False, "This username is already taken"

        return True, "Username is available"

    @staticmethod
    def register_user(username, email, password):
        """Create a new account, raising ValueError on invalid input"""
        if not all(isinstance(value, str) for value in (username, email, password)):
            raise ValueError("All fields are required.")

        username = username.strip()
        email = email.strip().lower()

        if not username or not email or not password:
            raise ValueError("All fields are required.")

        available, message = AuthService.check_username_availability(username)
        if not available and message != "This username is already taken":
            raise ValueError(message)

        if '@' not in email or len(email) > 254:
            raise ValueError("Please enter a valid email address")

        existing_user = User.query.filter(
            db.or_(User.username == username, User.email == email)
        ).first()
        if existing_user:
            raise ValueError("Username or Email already in use. Please choose a different one.")

        user = User(
            username=username,
            email=email,
            password_hash=generate_password_hash(password)
        )
        db.session.add(user)

        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Registration error for {username}: {e}")
            raise

        current_app.logger.info(f"Registered user {user.id} ({username})")
        return user

    @staticmethod
    def authenticate(username, password):
        """Return the user matching the credentials, or None"""
        if not isinstance(username, str) or not isinstance(password, str):
            return None

        if not username or not password:
            return None

        user = User.query.filter_by(username=username.strip()).first()
        if not user or not check_password_hash(user.password_hash, password):
            return None
        return user

    @staticmethod
    def _text_field(data, field):
        value = data[field]
        if value is None:
            return ''
        if not isinstance(value, str):
            raise ValueError(f"{field.replace('_', ' ').capitalize()} must be text")
        return value.strip()

    @staticmethod
    def update_profile(user, data):
        """Apply settings changes (email, profile picture, currently listening)"""
        if 'email' in data:
            email = AuthService._text_field(data, 'email').lower()
            if '@' not in email or len(email) > 254:
                raise ValueError("Please enter a valid email address")
            taken = User.query.filter(User.email == email, User.id != user.id).first()
            if taken:
                raise ValueError("This email is already in use")
            user.email = email

        if 'profile_picture' in data:
            picture = AuthService._text_field(data, 'profile_picture')
            if len(picture) > 500:
                raise ValueError("Profile picture reference is too long")
            user.profile_picture = picture or None

        if 'listening_to' in data:
            listening_to = AuthService._text_field(data, 'listening_to')
            if len(listening_to) > 200:
                raise ValueError("Listening status cannot exceed 200 characters")
            user.listening_to = listening_to or None

        try:
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Profile update failed for user {user.id}: {e}")
            raise
        return user

    @staticmethod
    def delete_account(user):
        """Delete a user together with every friendship row and review referencing it"""
        user_id = user.id
        try:
            Relationship.query.filter(
                db.or_(Relationship.requester_id == user_id, Relationship.addressee_id == user_id)
            ).delete(synchronize_session=False)
            Review.query.filter_by(user_id=user_id).delete(synchronize_session=False)
            db.session.delete(user)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f"Account deletion failed for user {user_id}: {e}")
            raise

        current_app.logger.info(f"Deleted user {user_id}")

# Global auth service instance
auth_service = AuthService()
