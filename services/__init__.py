from .cache_service import cache_service, cache_result
from .catalog_service import catalog_service
from .auth_service import auth_service
from .social_graph_service import social_graph_service
from .review_service import review_service
from .errors import (
    SocialGraphError, InvalidArgument, StorageFailure,
    CatalogError, CatalogRateLimited, CatalogUnavailable
)

__all__ = [
    'cache_service',
    'cache_result',
    'catalog_service',
    'auth_service',
    'social_graph_service',
    'review_service',
    'SocialGraphError',
    'InvalidArgument',
    'StorageFailure',
    'CatalogError',
    'CatalogRateLimited',
    'CatalogUnavailable'
]
