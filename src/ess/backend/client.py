"""SRU backend client - issues searchRetrieve calls against the search proxy.

Uses one shared ``httpx.AsyncClient`` for the lifetime of the process.

Usage::

    client = BackendSearchClient(base_url="http://metaproxy:9000")
    await client.initialize()
    result = await client.search("bibdk", "query", "harry potter", 1, 10, tracking_id)
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ess.backend.parser import parse_search_retrieve_response
from ess.core.exceptions import BackendHttpError
from ess.models.record import BackendSearchResult
from ess.observability.metrics import BACKEND_READ_RESPONSE_SECONDS, BACKEND_REQUEST_SECONDS

logger = logging.getLogger(__name__)


class BackendSearchClient:
    """Client for the SRU search proxy.

    Args:
        base_url: SRU proxy base URL; the base name is appended as a path segment.
        timeout: HTTP request timeout in seconds.
        **kwargs: Extra keyword arguments passed to ``httpx.AsyncClient``.
    """

    def __init__(self, base_url: str, timeout: float = 30.0, **kwargs: Any) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client_kwargs = kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def initialize(self) -> None:
        """Create the shared ``httpx.AsyncClient``."""
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            **self._client_kwargs,
        )
        logger.info("SRU backend client ready for %s", self._base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def search(
        self,
        base: str,
        query_param: str,
        query: str,
        start: int,
        rows: int,
        tracking_id: str,
    ) -> BackendSearchResult:
        """Run one searchRetrieve request and parse the response.

        Raises:
            BackendHttpError: The backend was unreachable or did not answer 200 OK.
            BackendParseError: The body is not a valid searchRetrieveResponse.
        """
        resp = await self.request(base, query_param, query, start, rows, tracking_id)
        return self.read_response(resp, tracking_id)

    async def request(
        self,
        base: str,
        query_param: str,
        query: str,
        start: int,
        rows: int,
        tracking_id: str,
    ) -> httpx.Response:
        """Issue the searchRetrieve GET and check its status.

        Raises:
            BackendHttpError: The backend was unreachable or did not answer 200 OK.
        """
        if not self._client:
            raise BackendHttpError("SRU backend client not initialized.")

        params = {
            query_param: query,
            "startRecord": start,
            "maximumRecords": rows,
        }
        try:
            with BACKEND_REQUEST_SECONDS.time():
                resp = await self._client.get(
                    f"/{base}",
                    params=params,
                    headers={"Accept": "application/xml"},
                )
        except httpx.HTTPError as e:
            logger.error("Search failed with transport error: %s for: %s", e, tracking_id)
            raise BackendHttpError(f"SRU request failed: {e}") from e

        if resp.status_code != 200:
            logger.error("Search failed with http code: %d for: %s", resp.status_code, tracking_id)
            raise BackendHttpError(
                f"SRU request returned HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        return resp

    def read_response(self, resp: httpx.Response, tracking_id: str) -> BackendSearchResult:
        """Deserialise a searchRetrieve response body.

        Raises:
            BackendParseError: The body is not a valid searchRetrieveResponse.
        """
        content_type = resp.headers.get("content-type", "")
        if "xml" not in content_type:
            logger.warning("Unexpected SRU content type %r for: %s", content_type, tracking_id)

        with BACKEND_READ_RESPONSE_SECONDS.time():
            result = parse_search_retrieve_response(resp.content)

        for diagnostic in result.diagnostics:
            logger.warning(
                "SRU diagnostic %s (%s) for: %s",
                diagnostic.uri,
                diagnostic.message or diagnostic.details or "",
                tracking_id,
            )
        return result
