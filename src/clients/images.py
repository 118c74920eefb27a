"""Image Search Client"""

import asyncio

import httpx
import pybreaker

from core import LRUCache, get_logger, hash_fields
from monitoring import metrics_collector

logger = get_logger(__name__)

ORIENTATIONS = ("landscape", "portrait", "squarish")


class ImageSearchClient:
    """
    Unsplash photo search with circuit breaker protection.

    ``search`` returns the URL of the best match, or ``""`` when there is no
    match, no access key, or the upstream is failing. Lookups never raise.
    """

    def __init__(
        self,
        access_key: str | None,
        base_url: str = "https://api.unsplash.com",
        timeout: float = 5.0,
        cache_size: int = 256,
        cache_ttl: int = 3600,
        client: httpx.Client | None = None,
    ) -> None:
        """
        Initialize client with circuit breaker.

        Args:
            access_key: Unsplash access key (lookups are disabled without one)
            base_url: API base URL
            timeout: Request timeout in seconds
            cache_size: Max cached lookups
            cache_ttl: Cache entry lifetime in seconds
        """
        self.access_key = access_key
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)
        self._cache: LRUCache[str] = LRUCache(max_size=cache_size, ttl_seconds=cache_ttl)

        class BreakerListener(pybreaker.CircuitBreakerListener):
            """Listener for circuit breaker state changes."""

            def state_change(self, cb, old_state, new_state):
                logger.warning(
                    "breaker_state_change",
                    breaker=cb.name,
                    from_state=str(old_state),
                    to_state=str(new_state),
                )

        self._breaker = pybreaker.CircuitBreaker(
            fail_max=5,
            reset_timeout=30,
            name="unsplash-http",
            listeners=[BreakerListener()],
        )

        logger.info("client_init", url=self.base_url, enabled=bool(access_key))

    @property
    def enabled(self) -> bool:
        return bool(self.access_key)

    def search(self, query: str, orientation: str = "landscape") -> str:
        """
        Find one image for a query.

        Args:
            query: Free-text search, e.g. "modern loft"
            orientation: landscape, portrait or squarish

        Returns:
            Image URL or empty string
        """
        if not self.enabled:
            metrics_collector.record_image_lookup("disabled")
            return ""
        if orientation not in ORIENTATIONS:
            orientation = "landscape"

        key = hash_fields(query.strip().lower(), orientation)
        cached = self._cache.get(key)
        if cached is not None:
            metrics_collector.record_image_lookup("cache_hit")
            return cached

        try:

            def _make_request():
                response = self._client.get(
                    f"{self.base_url}/search/photos",
                    params={
                        "query": query,
                        "orientation": orientation,
                        "per_page": 1,
                        "client_id": self.access_key,
                    },
                )
                # raise inside the breaker so HTTP errors count as failures
                response.raise_for_status()
                return response

            response = self._breaker.call(_make_request)
            data = response.json()
        except pybreaker.CircuitBreakerError:
            logger.error("search_failed", error="Circuit breaker open - image service unavailable")
            metrics_collector.record_image_lookup("breaker_open")
            return ""
        except httpx.HTTPError as e:
            logger.warning("http_error", error=str(e), query=query)
            metrics_collector.record_image_lookup("error")
            return ""
        except ValueError as e:
            logger.warning("invalid_response", error=str(e), query=query)
            metrics_collector.record_image_lookup("error")
            return ""

        url = self._first_url(data)
        self._cache.set(key, url)
        metrics_collector.record_image_lookup("hit" if url else "miss")
        logger.debug("searched", query=query, orientation=orientation, found=bool(url))
        return url

    async def asearch(self, query: str, orientation: str = "landscape") -> str:
        """``search`` off the event loop."""
        return await asyncio.to_thread(self.search, query, orientation)

    @staticmethod
    def _first_url(data) -> str:
        if not isinstance(data, dict):
            return ""
        results = data.get("results") or []
        if not results or not isinstance(results[0], dict):
            return ""
        urls = results[0].get("urls") or {}
        return urls.get("regular") or ""

    def close(self) -> None:
        """Close HTTP client."""
        self._client.close()
