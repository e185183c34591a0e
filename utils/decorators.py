import time
from collections import defaultdict, deque
from functools import wraps
from flask import jsonify, request, current_app
from werkzeug.exceptions import HTTPException
from services import auth_service
from services.errors import StorageFailure, CatalogRateLimited, CatalogUnavailable

def login_required(f):
    """Decorator that requires user to be authenticated

    Returns a 401 JSON response when there is no session, or when the
    session belongs to an account that has since been deleted.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not auth_service.is_authenticated():
            return jsonify({'error': 'Authentication required'}), 401

        if auth_service.get_current_user() is None:
            current_app.logger.info(f"Dropping session of deleted user {auth_service.current_user_id()}")
            auth_service.logout_user()
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function

def rate_limit(requests_per_minute=60, config_key=None):
    """Decorator for basic per-client rate limiting

    In-memory and per process; config_key, when given, names an app config
    value that overrides requests_per_minute at request time.
    """
    request_times = defaultdict(deque)

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            limit = current_app.config.get(config_key, requests_per_minute) if config_key else requests_per_minute
            client_id = request.environ.get('REMOTE_ADDR', 'unknown')
            current_time = time.time()

            # Drop requests older than one minute
            window_start = current_time - 60
            client_requests = request_times[client_id]
            while client_requests and client_requests[0] < window_start:
                client_requests.popleft()

            if len(client_requests) >= limit:
                return jsonify({'error': 'Rate limit exceeded'}), 429

            client_requests.append(current_time)
            return f(*args, **kwargs)
        return decorated_function
    return decorator

def validate_json(required_fields=None):
    """Decorator to validate JSON request data

    Args:
        required_fields (list): List of required field names
    """
    if required_fields is None:
        required_fields = []

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not request.is_json:
                return jsonify({'error': 'Content-Type must be application/json'}), 400

            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                return jsonify({'error': 'Invalid JSON'}), 400

            missing_fields = [field for field in required_fields if data.get(field) in (None, '')]
            if missing_fields:
                return jsonify({
                    'error': f'Missing required fields: {", ".join(missing_fields)}'
                }), 400

            return f(*args, **kwargs)
        return decorated_function
    return decorator

def handle_exceptions(f):
    """Decorator to map service exceptions to JSON error responses"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except HTTPException:
            raise
        except ValueError as e:
            # InvalidArgument is a ValueError
            current_app.logger.warning(f"ValueError in {f.__name__}: {str(e)}")
            return jsonify({'error': str(e)}), 400
        except PermissionError as e:
            return jsonify({'error': str(e)}), 403
        except CatalogRateLimited as e:
            response = jsonify({'error': 'Rate limit exceeded. Please try again later.'})
            response.headers['Retry-After'] = str(e.retry_after)
            return response, 429
        except CatalogUnavailable as e:
            return jsonify({'error': str(e)}), 503
        except StorageFailure:
            # Already logged and rolled back by the service
            return jsonify({'error': 'Internal server error'}), 500
        except Exception as e:
            from models import db
            db.session.rollback()
            current_app.logger.error(f"Unexpected error in {f.__name__}: {str(e)}")
            if current_app.debug:
                return jsonify({'error': str(e)}), 500
            else:
                return jsonify({'error': 'Internal server error'}), 500
    return decorated_function
