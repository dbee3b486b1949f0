"""GitHub source — topic search and raw manifest retrieval.

Discovery uses the repository search API, sorted by stars. Manifests are
read from ``raw.githubusercontent.com`` at each repository's default branch.
Transport-level failures (DNS, connect, timeout, reset) are retried with
capped exponential backoff; HTTP status codes are never retried.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

import httpx

from plugin_registry.config import BuilderConfig
from plugin_registry.errors import DiscoveryFailure
from plugin_registry.registry.models import DiscoveryItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestOutcome:
    """Either a response (any status) or the transport error that prevented one."""

    response: httpx.Response | None = None
    error: str = ""
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.response is not None


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one repository's manifest."""

    status: str  # found | not_found | failed
    manifest: Any = None
    status_code: int | None = None
    error: str = ""

    FOUND = "found"
    NOT_FOUND = "not_found"
    FAILED = "failed"

    @classmethod
    def found(cls, manifest: Any) -> FetchResult:
        return cls(status=cls.FOUND, manifest=manifest, status_code=200)

    @classmethod
    def not_found(cls, status_code: int) -> FetchResult:
        return cls(status=cls.NOT_FOUND, status_code=status_code)

    @classmethod
    def failed(cls, error: str) -> FetchResult:
        return cls(status=cls.FAILED, error=error)


class GitHubSource:
    """Discovers topic-tagged repositories and fetches their manifests.

    Parameters
    ----------
    config : BuilderConfig
        Endpoints, paging, timeout and retry settings.
    client : httpx.Client | None
        Client to issue requests with. When *None* one is created from the
        config and closed by :meth:`close`.
    sleep : callable
        Used to wait between retries.
    """

    def __init__(
        self,
        config: BuilderConfig,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._owns_client = client is None
        self._client = client or httpx.Client(timeout=config.timeout, follow_redirects=True)
        self._sleep = sleep

    def __enter__(self) -> GitHubSource:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover(self, topic: str) -> list[DiscoveryItem]:
        """Return every repository tagged with *topic*, most-starred first.

        Raises:
            DiscoveryFailure: Any page returned a non-200 status, or could
                not be retrieved at all.
        """
        url: str | None = f"{self.config.api_base}/search/repositories"
        params: dict | None = {
            "q": f"topic:{topic}",
            "sort": "stars",
            "order": "desc",
            "per_page": str(self.config.per_page),
        }
        items: list[DiscoveryItem] = []

        logger.info("Searching GitHub for repos with topic: %s", topic)
        if not self.config.authenticated:
            logger.debug("No GITHUB_TOKEN set; using unauthenticated rate limits")

        for page in range(1, self.config.max_pages + 1):
            outcome = self._request(url, params=params, headers=self._api_headers())
            if not outcome.ok:
                raise DiscoveryFailure(None, outcome.error)

            resp = outcome.response
            if resp.status_code != 200:
                raise DiscoveryFailure(resp.status_code, _error_message(resp))

            try:
                data = resp.json()
            except ValueError as e:
                raise DiscoveryFailure(resp.status_code, f"invalid JSON in search response: {e}") from e

            if page == 1:
                logger.info("Found %s repos", data.get("total_count", 0))

            page_items = data.get("items") or []
            items.extend(DiscoveryItem.from_api(raw) for raw in page_items)

            next_link = resp.links.get("next", {}).get("url")
            if not next_link or len(page_items) < self.config.per_page:
                break
            # The next link already carries the query string
            url, params = next_link, None
        else:
            logger.warning(
                "Stopped discovery after %d pages; remaining results were not fetched",
                self.config.max_pages,
            )

        return items

    # ------------------------------------------------------------------
    # Manifests
    # ------------------------------------------------------------------

    def manifest_url(self, item: DiscoveryItem) -> str:
        return (
            f"{self.config.raw_base}/{item.full_name}/"
            f"{item.default_branch}/{self.config.manifest_path}"
        )

    def fetch_manifest(self, item: DiscoveryItem) -> FetchResult:
        """Fetch and decode the manifest at the item's default branch.

        A body that is not JSON is returned as text, so the validator can
        reject it as malformed.
        """
        outcome = self._request(self.manifest_url(item), headers=self._raw_headers())
        if not outcome.ok:
            return FetchResult.failed(outcome.error)

        resp = outcome.response
        if resp.status_code != 200:
            return FetchResult.not_found(resp.status_code)

        try:
            return FetchResult.found(json.loads(resp.text))
        except ValueError:
            return FetchResult.found(resp.text)

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        url: str,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
    ) -> RequestOutcome:
        """GET *url*, retrying transport errors with exponential backoff.

        Other request errors (undecodable body, too many redirects) are
        returned as a failed outcome without retrying.

        Delay before retry n (1-based) is ``base_delay * 2 ** (n - 1)``,
        capped at ``max_delay``.
        """
        max_attempts = self.config.max_attempts
        last_error = ""

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = min(self.config.base_delay * (2 ** (attempt - 2)), self.config.max_delay)
                logger.debug(
                    "Retrying %s after %.1fs (attempt %d/%d)", url, delay, attempt, max_attempts
                )
                self._sleep(delay)

            try:
                resp = self._client.get(url, params=params, headers=headers)
            except httpx.TransportError as e:
                last_error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
                logger.debug("Request to %s failed: %s", url, last_error)
                continue
            except httpx.RequestError as e:
                # Corrupt encodings and redirect loops will not fix themselves
                error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
                logger.warning("Request to %s failed: %s", url, error)
                return RequestOutcome(error=error, attempts=attempt)

            return RequestOutcome(response=resp, attempts=attempt)

        logger.warning("Giving up on %s after %d attempt(s): %s", url, max_attempts, last_error)
        return RequestOutcome(error=last_error, attempts=max_attempts)

    def _api_headers(self) -> dict[str, str]:
        headers = {
            "User-Agent": self.config.user_agent,
            "Accept": "application/vnd.github.v3+json",
        }
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    def _raw_headers(self) -> dict[str, str]:
        headers = {"User-Agent": self.config.user_agent}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers


def _error_message(resp: httpx.Response) -> str:
    """Pull GitHub's ``message`` out of an error body, if there is one."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""
