from .decorators import (
    login_required, rate_limit, validate_json, handle_exceptions
)

__all__ = [
    'login_required', 'rate_limit', 'validate_json', 'handle_exceptions'
]
