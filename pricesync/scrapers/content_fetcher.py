# pricesync/scrapers/content_fetcher.py

"""Fetches rendered page text through the Firecrawl scrape API."""

import logging
from dataclasses import dataclass
from typing import Any

from curl_cffi import requests as curl_requests

from pricesync.config.settings import Settings
from pricesync.models.price import ScrapeStatus
from pricesync.scrapers.platforms import build_search_url


@dataclass(frozen=True)
class RawContent:
    """Rendered main-content text of one platform search page."""

    platform_id: str
    url: str
    text: str


@dataclass(frozen=True)
class FetchError:
    """A fetch that did not produce usable text.

    ``status`` is ``failed`` when the service answered but reported
    failure (or sent no body) and ``error`` when the call itself
    raised.
    """

    platform_id: str
    url: str
    message: str
    status: ScrapeStatus = ScrapeStatus.FAILED


FetchOutcome = RawContent | FetchError


class ContentFetcher:
    """One fetch per (product, platform) against the content service.

    No retries here: a failed fetch is recorded and only retried by
    a later run.
    """

    def __init__(
        self,
        api_key: str | None = None,
        session: Any = None,
    ) -> None:
        self.logger = logging.getLogger("pricesync.fetcher")
        self.settings = Settings()
        self.api_key = api_key or self.settings.require_api_key()
        self.session = session or curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def _build_payload(
        self, url: str, region: str,
    ) -> dict[str, Any]:
        """Request body for a rendered, main-content-only scrape."""
        return {
            "url": url,
            "formats": ["markdown"],
            "onlyMainContent": True,
            "waitFor": self.settings.RENDER_WAIT_MS,
            "location": {
                "country": region,
                "languages": list(self.settings.FETCH_LANGUAGES),
            },
        }

    def fetch(
        self,
        platform_id: str,
        product_name: str,
        region: str | None = None,
    ) -> FetchOutcome:
        """Fetch the search page of *product_name* on *platform_id*.

        Never raises: transport errors, non-success responses and
        missing bodies all come back as :class:`FetchError`.
        """
        url = build_search_url(platform_id, product_name)
        if not url:
            return FetchError(
                platform_id=platform_id,
                url="",
                message=f"Unsupported platform: {platform_id}",
            )

        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = self._build_payload(
            url, region or self.settings.FETCH_COUNTRY
        )

        try:
            resp = self.session.post(
                self.settings.FIRECRAWL_SCRAPE_URL,
                headers=headers,
                json=payload,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            self.logger.warning(
                "[%s] Request error: %s",
                platform_id,
                exc,
                exc_info=True,
            )
            return FetchError(
                platform_id=platform_id,
                url=url,
                message=str(exc) or type(exc).__name__,
                status=ScrapeStatus.ERROR,
            )

        try:
            data: Any = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            self.logger.warning(
                "[%s] HTTP %d with non-JSON body",
                platform_id,
                resp.status_code,
            )
            return FetchError(
                platform_id=platform_id,
                url=url,
                message=f"HTTP {resp.status_code}: invalid response body",
            )

        body = data.get("data") or {}
        markdown = body.get("markdown") if isinstance(body, dict) else None
        if not data.get("success") or not markdown:
            message = str(data.get("error") or "Unknown error")
            if resp.status_code != 200:
                message = f"HTTP {resp.status_code}: {message}"
            self.logger.warning(
                "[%s] Scrape failed: %s", platform_id, message,
            )
            return FetchError(
                platform_id=platform_id,
                url=url,
                message=message,
            )

        self.logger.debug(
            "[%s] Fetched %d chars from %s",
            platform_id,
            len(markdown),
            url,
        )
        return RawContent(
            platform_id=platform_id,
            url=url,
            text=str(markdown),
        )
