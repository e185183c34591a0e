import threading
import time
import discogs_client
import requests
from discogs_client.exceptions import DiscogsAPIError
from flask import current_app
from .cache_service import cache_result
from .errors import CatalogRateLimited, CatalogUnavailable

SEARCH_KINDS = ('release', 'master', 'artist')

class CatalogRateLimit:
    """Fixed one-minute window of allowed Discogs calls, shared by all requests"""
    def __init__(self, max_calls_per_minute=60):
        self.calls = 0
        self.reset_time = time.time() + 60
        self.max_calls_per_minute = max_calls_per_minute
        self._lock = threading.Lock()

    def check_limit(self):
        """Count one call or raise CatalogRateLimited"""
        with self._lock:
            current_time = time.time()

            # Reset counter if minute has passed
            if current_time >= self.reset_time:
                self.calls = 0
                self.reset_time = current_time + 60

            if self.calls >= self.max_calls_per_minute:
                raise CatalogRateLimited(int(self.reset_time - current_time) + 1)

            self.calls += 1

class CatalogService:
    """Music catalog lookups against the Discogs database API"""

    def __init__(self):
        self.client = None
        self.rate_limiter = CatalogRateLimit()
        self._initialized = False

    def _setup_client(self):
        """Setup Discogs client with app configuration - only call within app context"""
        if self._initialized:
            return

        config = current_app.config
        self.rate_limiter = CatalogRateLimit(config.get('CATALOG_RATE_LIMIT_PER_MINUTE', 60))

        if config.get('DISCOGS_USER_TOKEN'):
            self.client = discogs_client.Client(
                config['USER_AGENT'],
                user_token=config['DISCOGS_USER_TOKEN']
            )
            current_app.logger.info("✅ Discogs client initialized")
        else:
            current_app.logger.warning("⚠️ DISCOGS_USER_TOKEN missing - music search disabled")
        self._initialized = True

    def search(self, query, kind='release', page=1):
        """Search the catalog, returning a list of {id, type, title, year, thumb}"""
        query = (query or '').strip()
        if not query:
            return []

        if kind not in SEARCH_KINDS:
            raise ValueError(f"Unknown search type: {kind}")

        if page < 1:
            raise ValueError("Page must be at least 1")

        if not self._initialized:
            self._setup_client()

        if not self.client:
            raise CatalogUnavailable("Music search is not configured")

        return self._search(query, kind, page, current_app.config.get('CATALOG_PAGE_SIZE', 20))

    @cache_result(expire_seconds=900, key_prefix='catalog_search', skip_self=True)  # 15 minutes
    def _search(self, query, kind, page, page_size):
        self.rate_limiter.check_limit()

        try:
            results = self.client.search(query, type=kind)
            results.per_page = page_size
            items = results.page(page)
        except (DiscogsAPIError, requests.RequestException) as e:
            current_app.logger.error(f"Discogs search failed for {query!r}: {e}")
            raise CatalogUnavailable("Music search failed") from e

        return [self._summarize(item) for item in items]

    @staticmethod
    def _summarize(item):
        data = getattr(item, 'data', {}) or {}
        return {
            'id': data.get('id'),
            'type': data.get('type'),
            'title': data.get('title'),
            'year': data.get('year'),
            'thumb': data.get('thumb') or None
        }

# Global catalog service instance
catalog_service = CatalogService()
