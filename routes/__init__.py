from .auth import auth_bp
from .api import api_bp

def register_blueprints(app):
    """Register all blueprints with the Flask application"""

    # Register authentication routes
    app.register_blueprint(auth_bp)

    # Register API routes
    app.register_blueprint(api_bp)

__all__ = ['register_blueprints', 'auth_bp', 'api_bp']
