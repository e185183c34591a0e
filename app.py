import os
import logging
import click
from flask import Flask, jsonify
from config import config
from models import db
from routes import register_blueprints
from services import cache_service, catalog_service

def create_app(config_name=None):
    """Application factory function

    Args:
        config_name (str): Configuration name to use (development, production, testing)

    Returns:
        Flask: Configured Flask application
    """
    app = Flask(__name__)

    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'default')

    # Load configuration
    app.config.from_object(config[config_name])
    app.logger.setLevel(getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO))

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Add security headers
    register_security_headers(app)

    # CLI commands
    register_cli_commands(app)

    # Initialize services
    with app.app_context():
        initialize_services(app)

    return app

def initialize_extensions(app):
    """Initialize Flask extensions"""
    db.init_app(app)

    # Create tables if they don't exist
    with app.app_context():
        db.create_all()
        app.logger.info("Database tables created/verified")

def initialize_services(app):
    """Initialize application services

    Both services degrade gracefully: no Redis means no caching, no Discogs
    token means music search answers 503.
    """
    cache_service.reset()
    cache_service._setup_redis()

    catalog_service._initialized = False
    catalog_service.client = None
    catalog_service._setup_client()

    app.logger.info("Services initialized")

def register_error_handlers(app):
    """Register error handlers for the application"""

    @app.errorhandler(400)
    def bad_request_error(error):
        return jsonify({'error': 'Bad request'}), 400

    @app.errorhandler(401)
    def unauthorized_error(error):
        return jsonify({'error': 'Authentication required'}), 401

    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({'error': 'Access forbidden'}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def rate_limit_error(error):
        return jsonify({'error': 'Rate limit exceeded. Please try again later.'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        app.logger.error(f'Internal server error: {error}')

        # Rollback database session to avoid issues
        db.session.rollback()

        if app.debug:
            return jsonify({'error': str(error)}), 500
        return jsonify({'error': 'Internal server error'}), 500

def register_security_headers(app):
    """Register security headers for all responses"""

    @app.after_request
    def security_headers(response):
        response.headers['X-Content-Type-Options'] = 'nosniff'
        response.headers['X-Frame-Options'] = 'DENY'
        response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'

        # Only add HSTS in production with HTTPS
        if not app.debug and app.config.get('SESSION_COOKIE_SECURE'):
            response.headers['Strict-Transport-Security'] = 'max-age=31536000; includeSubDomains'

        return response

def register_cli_commands(app):
    """Register CLI commands for the application"""

    @app.cli.command('init-db')
    def init_db():
        """Initialize the database"""
        db.create_all()
        click.echo("Database initialized!")

    @app.cli.command('drop-db')
    @click.confirmation_option(prompt='Are you sure you want to drop all tables?')
    def drop_db():
        """Drop all database tables"""
        db.drop_all()
        click.echo("Database tables dropped!")

    @app.cli.command('clear-cache')
    def clear_cache():
        """Clear all cached data"""
        if cache_service.flush_all():
            click.echo("Cache cleared!")
        else:
            click.echo("No cache available or error clearing cache.")

    @app.cli.command('debug-user-friendships')
    @click.argument('username')
    def debug_user_friendships(username):
        """Show every friendship row touching a user"""
        from models import User
        from services import social_graph_service

        user = User.query.filter_by(username=username).first()
        if not user:
            click.echo("❌ User not found")
            return

        click.echo(f"🔍 Friendships for: {user.username} (ID: {user.id})")

        friends = social_graph_service.list_friends(user.id)
        click.echo(f"👥 Friends ({len(friends)}):")
        for friend in friends:
            click.echo(f"   - {friend['username']} (ID: {friend['user_id']}, {friend['friend_count']} friends)")

        pending = social_graph_service.list_pending(user.id)
        click.echo(f"📤 Sent requests ({len(pending['sent'])}):")
        for entry in pending['sent']:
            click.echo(f"   - To: {entry['username']} (ID: {entry['user_id']})")

        click.echo(f"📥 Received requests ({len(pending['received'])}):")
        for entry in pending['received']:
            click.echo(f"   - From: {entry['username']} (ID: {entry['user_id']})")

    @app.cli.command('clean-friendships')
    @click.argument('username1')
    @click.argument('username2')
    @click.confirmation_option(prompt='This deletes all friendship data between the two users. Continue?')
    def clean_friendships(username1, username2):
        """Delete the friendship row between two users, whatever its status"""
        from models import User, Relationship
        from models.relationship import canonical_pair

        user1 = User.query.filter_by(username=username1).first()
        user2 = User.query.filter_by(username=username2).first()
        if not user1 or not user2:
            click.echo("❌ One or both users not found")
            return

        low, high = canonical_pair(user1.id, user2.id)
        deleted = Relationship.query.filter_by(pair_low=low, pair_high=high).delete(synchronize_session=False)
        db.session.commit()
        click.echo(f"✅ Deleted {deleted} friendship rows")

# Application factory setup
app = None

def get_app():
    """Get or create the Flask application instance"""
    global app
    if app is None:
        app = create_app()
    return app

# For direct execution or WSGI
if __name__ == "__main__":
    app = get_app()

    # Development server configuration
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ['true', '1', 'yes']
    port = int(os.environ.get('PORT', 5001))
    host = os.environ.get('HOST', '0.0.0.0')

    print("🚀 Starting SpinShare...")
    print(f"📍 Server: http://{host}:{port}")
    print(f"🔧 Debug mode: {debug_mode}")
    print(f"⚙️  Environment: {os.environ.get('FLASK_CONFIG', 'development')}")

    app.run(
        host=host,
        port=port,
        debug=debug_mode,
        threaded=True
    )
