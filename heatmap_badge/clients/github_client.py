import logging
from urllib.parse import quote

import httpx

from heatmap_badge.domain import CachedPage
from heatmap_badge.errors import CacheConsistencyError
from heatmap_badge.errors import OriginError
from heatmap_badge.services.page_cache import PageCache
from heatmap_badge.services.page_cache import cache_key_for
from heatmap_badge.settings import Settings


logger = logging.getLogger(__name__)

DEFAULT_URL_TEMPLATE = "https://github.com/users/{username}/contributions"
DEFAULT_USER_AGENT = "github-heatmap-badge"


class ContributionPageFetcher:
    """Fetch GitHub contribution pages, revalidating against a cached copy.

    Every request is conditional when validators are known: a ``304`` reuses
    the stored markup, a ``200`` replaces it. The fetcher never retries.
    """

    def __init__(
        self,
        cache: PageCache,
        client: httpx.Client,
        url_template: str = DEFAULT_URL_TEMPLATE,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._cache = cache
        self._client = client
        self._url_template = url_template
        self._user_agent = user_agent

    @classmethod
    def from_settings(
        cls, settings: Settings, cache: PageCache
    ) -> "ContributionPageFetcher":
        client = httpx.Client(
            timeout=settings.github_timeout_seconds, follow_redirects=True
        )
        return cls(
            cache=cache,
            client=client,
            url_template=settings.contributions_url_template,
            user_agent=settings.github_user_agent,
        )

    def contributions_url(self, username: str) -> str:
        return self._url_template.format(username=quote(username, safe=""))

    def fetch(self, username: str) -> str:
        """Return the contributions page markup for ``username``.

        Raises:
            OriginError: If GitHub answers with a non-2xx, non-304 status.
            CacheConsistencyError: If GitHub answers 304 with nothing cached.
            httpx.HTTPError: If the request itself fails.
        """

        key = cache_key_for(username)
        cached = self._cache.get(key)

        response = self._client.get(
            self.contributions_url(username),
            headers=self._request_headers(cached),
        )

        if response.status_code == 304:
            return self._reuse_cached_page(username, key, cached, response)

        if not response.is_success:
            logger.warning(
                "GitHub returned %s for %s", response.status_code, username
            )
            raise OriginError(response.status_code)

        page = CachedPage(
            html=response.text,
            etag=response.headers.get("etag") or (cached.etag if cached else None),
            last_modified=response.headers.get("last-modified")
            or (cached.last_modified if cached else None),
        )
        self._cache.put(key, page)
        logger.info("Fetched fresh contributions page for %s", username)
        return page.html

    def close(self) -> None:
        self._client.close()

    def _request_headers(self, cached: CachedPage | None) -> dict[str, str]:
        headers = {
            "User-Agent": self._user_agent,
            "Accept": "text/html",
        }
        if cached is not None and cached.etag:
            headers["If-None-Match"] = cached.etag
        if cached is not None and cached.last_modified:
            headers["If-Modified-Since"] = cached.last_modified
        return headers

    def _reuse_cached_page(
        self,
        username: str,
        key: str,
        cached: CachedPage | None,
        response: httpx.Response,
    ) -> str:
        if cached is None or not cached.html:
            raise CacheConsistencyError(
                "GitHub returned 304 but no cached page is available"
            )

        etag = response.headers.get("etag") or cached.etag
        last_modified = response.headers.get("last-modified") or cached.last_modified
        if (etag, last_modified) != (cached.etag, cached.last_modified):
            self._cache.put(
                key,
                CachedPage(html=cached.html, etag=etag, last_modified=last_modified),
            )

        logger.info("Contributions page for %s not modified", username)
        return cached.html
