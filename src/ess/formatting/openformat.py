"""OpenFormat formatter: formats records through an HTTP formatting service.

Posts each record document to the service and uses the root element of the
XML answer as the formatted output.

Usage::

    formatter = OpenFormatFormatter(url="http://openformat/api/format")
    await formatter.initialize()
    element = await formatter.format(document, "briefDisplay", "base: 123", tracking_id)
"""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from typing import Any

import httpx

from ess.core.exceptions import FormattingError
from ess.formatting.base import Formatter

logger = logging.getLogger(__name__)


class OpenFormatFormatter(Formatter):
    """Formatter backed by an HTTP formatting service.

    Args:
        url: Formatting endpoint URL.
        timeout: HTTP request timeout in seconds.
        **kwargs: Extra keyword arguments passed to ``httpx.AsyncClient``.
    """

    def __init__(self, url: str, timeout: float = 30.0, **kwargs: Any) -> None:
        self._url = url
        self._timeout = timeout
        self._client_kwargs = kwargs
        self._client: httpx.AsyncClient | None = None

    @property
    def name(self) -> str:
        return "openformat"

    async def initialize(self) -> None:
        """Create the shared ``httpx.AsyncClient``."""
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout), **self._client_kwargs)
        logger.info("Formatting client ready for %s", self._url)

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def format(
        self,
        document: ET.Element,
        output_format: str,
        record_id: str,
        tracking_id: str,
    ) -> ET.Element:
        if not self._client:
            raise FormattingError("Formatting client not initialized.")

        try:
            content = ET.tostring(document, encoding="utf-8")
        except RecursionError as e:
            raise FormattingError(f"Record {record_id} is too deeply nested to serialise") from e

        try:
            resp = await self._client.post(
                self._url,
                params={"outputFormat": output_format, "id": record_id, "trackingId": tracking_id},
                content=content,
                headers={"Content-Type": "application/xml", "Accept": "application/xml"},
            )
        except httpx.HTTPError as e:
            raise FormattingError(f"Formatting request failed: {e}") from e

        if resp.status_code != 200:
            raise FormattingError(f"Formatting service returned HTTP {resp.status_code} for {record_id}")

        try:
            return ET.fromstring(resp.content)
        except ET.ParseError as e:
            raise FormattingError(f"Malformed formatting response for {record_id}: {e}") from e
