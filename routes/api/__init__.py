from flask import Blueprint
from .friends import friends_api
from .reviews import reviews_api
from .users import users_api
from .music import music_api

# Create main API blueprint
api_bp = Blueprint('api', __name__, url_prefix='/api')

# Register all API sub-blueprints
api_bp.register_blueprint(friends_api)
api_bp.register_blueprint(reviews_api)
api_bp.register_blueprint(users_api)
api_bp.register_blueprint(music_api)

__all__ = ['api_bp']
