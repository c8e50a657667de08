"""HTTP source loader.

Loads entities from a JSON REST API (JSONPlaceholder by default) using a
shared ``httpx.AsyncClient``. Transport failures are mapped onto the
tiercache error taxonomy:

- 404 -> NotFoundError
- timeouts, connection errors, other non-2xx, unparseable bodies
  -> SourceUnavailableError
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx

from tiercache.cache.base import Key
from tiercache.config import settings
from tiercache.errors import NotFoundError, SourceUnavailableError
from tiercache.source.base import SourceLoader

logger = logging.getLogger(__name__)


def create_http_client(
    base_url: str | None = None,
    timeout: float | None = None,
    connect_timeout: float | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create the shared client for the source of record."""
    if timeout is None:
        timeout = settings.source_timeout
    if connect_timeout is None:
        connect_timeout = settings.source_connect_timeout
    return httpx.AsyncClient(
        base_url=base_url or settings.source_base_url,
        timeout=httpx.Timeout(timeout, connect=connect_timeout),
        headers={"Accept": "application/json"},
        follow_redirects=True,
        transport=transport,
    )


class HttpSourceLoader(SourceLoader):
    """Loads one resource per key from ``path`` (e.g. ``/posts/{key}``).

    Args:
        client: Shared async HTTP client (owns base URL and timeouts)
        path: Path template with a ``{key}`` placeholder
        parse: Turns the decoded JSON document into a domain value
        resource_type: Name used in NotFoundError messages
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        path: str,
        parse: Callable[[Any], Any],
        resource_type: str = "Resource",
    ):
        self.client = client
        self.path = path
        self.parse = parse
        self.resource_type = resource_type

    async def load(self, key: Key) -> Any:
        url = self.path.format(key=key)
        document = await self._fetch_json(url, key)
        try:
            return self.parse(document)
        except (ValueError, TypeError, KeyError) as e:
            raise SourceUnavailableError(
                f"Unexpected {self.resource_type} payload from {url}: {e}", key=key
            ) from e

    async def load_all(self, path: str) -> list[Any]:
        """Fetch a JSON array from ``path`` and parse every element."""
        document = await self._fetch_json(path, None)
        if not isinstance(document, list):
            raise SourceUnavailableError(f"Expected a JSON array from {path}")
        try:
            return [self.parse(item) for item in document]
        except (ValueError, TypeError, KeyError) as e:
            raise SourceUnavailableError(
                f"Unexpected {self.resource_type} payload from {path}: {e}"
            ) from e

    async def _fetch_json(self, url: str, key: Key | None) -> Any:
        try:
            response = await self.client.get(url)
        except httpx.TimeoutException as e:
            logger.warning(f"Timed out loading {url}")
            raise SourceUnavailableError(f"Timed out loading {url}", key=key) from e
        except httpx.TransportError as e:
            logger.warning(f"Transport error loading {url}: {e}")
            raise SourceUnavailableError(f"Could not reach source for {url}: {e}", key=key) from e

        if response.status_code == 404:
            raise NotFoundError(self.resource_type, key if key is not None else url)
        if response.is_error:
            raise SourceUnavailableError(
                f"Source returned HTTP {response.status_code} for {url}", key=key
            )

        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailableError(f"Invalid JSON from {url}", key=key) from e
