class SocialGraphError(Exception):
    """Base class for social graph failures"""


class InvalidArgument(SocialGraphError, ValueError):
    """Missing, malformed or self-referential user identifier"""


class StorageFailure(SocialGraphError):
    """The database rejected a statement for a reason other than pair uniqueness"""


class CatalogError(Exception):
    """Base class for music catalog lookup failures"""


class CatalogRateLimited(CatalogError):
    def __init__(self, retry_after):
        self.retry_after = retry_after
        super().__init__(f"Rate limit exceeded. Wait {retry_after} seconds")


class CatalogUnavailable(CatalogError):
    """Catalog client not configured or upstream call failed"""
