"""
HTTP client the Review service uses to ask the Article service whether an
article exists.

Status handling
---------------
* 2xx            -> the article exists.
* 404, 400       -> the article does not resolve.
* anything else, connection errors and timeouts -> ``DependencyUnavailableError``.

A 5xx from the Article service says nothing about the article, so it is
reported as an outage rather than as a missing record.
"""
import logging
from typing import Final

import httpx

from article_review.config import Settings
from article_review.errors import DependencyUnavailableError

logger = logging.getLogger(__name__)

ARTICLES_PATH: Final[str] = "/api/v1/articles"

_MISSING_STATUSES: Final[frozenset[int]] = frozenset({400, 404})


class ArticleClient:
    """Existence checks against the Article service's single-record endpoint."""

    def __init__(
        self,
        base_url: str,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float = 5.0,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ArticleClient":
        return cls(
            settings.ARTICLE_SERVICE_URL,
            timeout=settings.ARTICLE_SERVICE_TIMEOUT,
            token=settings.ARTICLE_SERVICE_TOKEN,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def exists(self, article_id: str) -> bool:
        url = f"{self.base_url}{ARTICLES_PATH}/{article_id}"
        try:
            resp = await self._http.get(url, headers=self._headers(), timeout=self.timeout)
        except httpx.TimeoutException as exc:
            logger.warning("Article service timed out after %.1fs: %s", self.timeout, url)
            raise DependencyUnavailableError(
                f"Article service did not answer within {self.timeout:g}s."
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("Article service unreachable at %s: %s", url, exc)
            raise DependencyUnavailableError("Article service is unreachable.") from exc

        if resp.is_success:
            return True
        if resp.status_code in _MISSING_STATUSES:
            logger.debug("Article %s not found (HTTP %d)", article_id, resp.status_code)
            return False
        logger.warning("Article service answered HTTP %d for %s", resp.status_code, url)
        raise DependencyUnavailableError(
            f"Article service answered HTTP {resp.status_code}."
        )
