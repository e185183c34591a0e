import pytest
from sqlalchemy import event
from werkzeug.security import generate_password_hash
from app import create_app
from models import db, User, Relationship
from models.relationship import canonical_pair

PASSWORD = 'secret123'

@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture
def client(app):
    return app.test_client()

@pytest.fixture
def make_user(app):
    """Create and commit a user with a cheap password hash"""
    def _make_user(username, email=None, password=PASSWORD):
        user = User(
            username=username,
            email=email or f'{username}@example.com',
            password_hash=generate_password_hash(password, method='pbkdf2:sha256:1000')
        )
        db.session.add(user)
        db.session.commit()
        db.session.refresh(user)
        return user
    return _make_user

@pytest.fixture
def login_as(app):
    """Return a fresh test client with a session for the given username"""
    def _login_as(username, password=PASSWORD):
        client = app.test_client()
        response = client.post('/auth/login', json={'username': username, 'password': password})
        assert response.status_code == 200, response.get_json()
        return client
    return _login_as

@pytest.fixture
def pair_rows(app):
    """All friendship rows for an unordered pair, read fresh from the database"""
    def _pair_rows(user_a, user_b):
        db.session.expire_all()
        low, high = canonical_pair(user_a, user_b)
        return Relationship.query.filter_by(pair_low=low, pair_high=high).all()
    return _pair_rows

@pytest.fixture
def statement_counter(app):
    """Count SQL statements sent to the engine while the test runs"""
    statements = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    event.listen(db.engine, 'before_cursor_execute', _record)
    yield statements
    event.remove(db.engine, 'before_cursor_execute', _record)
