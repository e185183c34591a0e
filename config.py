import os
from dotenv import load_dotenv

load_dotenv()

class Config:
    """Base configuration class"""
    # SECRET_KEY must be set via environment variable in production
    # Generate with: python -c "import secrets; print(secrets.token_hex(32))"
    SECRET_KEY = os.getenv('SECRET_KEY', "dev_key_change_in_production")

    # Verify SECRET_KEY is set properly in production
    if SECRET_KEY == "dev_key_change_in_production" and os.getenv('FLASK_CONFIG') == 'production':
        import warnings
        warnings.warn("⚠️ SECRET_KEY is using default value! Set SECRET_KEY in environment variables.")

    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///spinshare.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Session cookie
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    # Redis (catalog cache)
    REDIS_URL = os.getenv('REDIS_URL', 'redis://localhost:6379/0')

    # Discogs database API, authenticated with a personal user token
    DISCOGS_USER_TOKEN = os.getenv('DISCOGS_USER_TOKEN')
    CATALOG_RATE_LIMIT_PER_MINUTE = int(os.getenv('CATALOG_RATE_LIMIT_PER_MINUTE', 60))
    CATALOG_PAGE_SIZE = 20

    # Social graph
    FRIEND_SEARCH_LIMIT = 10
    FEED_LIMIT = 50

    # Login throttling per client address
    LOGIN_RATE_LIMIT_PER_MINUTE = int(os.getenv('LOGIN_RATE_LIMIT_PER_MINUTE', 10))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # User agent
    USER_AGENT = "SpinShare/1.0"

class DevelopmentConfig(Config):
    """Development configuration"""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URL', 'sqlite:///spinshare_dev.db')
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'DEBUG')

class ProductionConfig(Config):
    """Production configuration"""
    DEBUG = False
    SESSION_COOKIE_SECURE = True

class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    REDIS_URL = None
    DISCOGS_USER_TOKEN = None
    LOGIN_RATE_LIMIT_PER_MINUTE = 1000

# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
