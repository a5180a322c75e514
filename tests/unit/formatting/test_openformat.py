"""Tests for the HTTP formatting collaborator."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from unittest.mock import AsyncMock

import httpx
import pytest

from ess.core.exceptions import FormattingError
from ess.formatting.openformat import OpenFormatFormatter

URL = "http://format.test/format"


@pytest.fixture
def formatter() -> OpenFormatFormatter:
    return OpenFormatFormatter(url=URL)


@pytest.fixture
def http_client(formatter: OpenFormatFormatter) -> AsyncMock:
    client = AsyncMock(spec=httpx.AsyncClient)
    formatter._client = client
    return client


def _response(status_code: int, content: bytes) -> httpx.Response:
    return httpx.Response(status_code, content=content, request=httpx.Request("POST", URL))


class TestOpenFormatProperties:
    def test_name(self, formatter: OpenFormatFormatter) -> None:
        assert formatter.name == "openformat"

    def test_error_element(self, formatter: OpenFormatFormatter) -> None:
        elem = formatter.error_element("Internal Server Error")
        assert elem.tag == "error"
        assert elem.text == "Internal Server Error"


class TestOpenFormatFormat:
    async def test_not_initialized_raises(self, formatter: OpenFormatFormatter) -> None:
        with pytest.raises(FormattingError, match="not initialized"):
            await formatter.format(ET.Element("record"), "briefDisplay", "id", "t")

    async def test_returns_root_element(self, formatter: OpenFormatFormatter, http_client: AsyncMock) -> None:
        http_client.post.return_value = _response(200, b"<briefDisplay><title>Harry</title></briefDisplay>")
        document = ET.fromstring('<record><controlfield tag="001">1</controlfield></record>')

        elem = await formatter.format(document, "briefDisplay", "bibdk:1", "track-1")

        assert elem.tag == "briefDisplay"
        assert elem.findtext("title") == "Harry"
        args, kwargs = http_client.post.call_args
        assert args == (URL,)
        assert kwargs["params"] == {"outputFormat": "briefDisplay", "id": "bibdk:1", "trackingId": "track-1"}
        assert ET.fromstring(kwargs["content"]).find("controlfield").text == "1"
        assert kwargs["headers"]["Content-Type"] == "application/xml"

    async def test_non_ok_status(self, formatter: OpenFormatFormatter, http_client: AsyncMock) -> None:
        http_client.post.return_value = _response(500, b"boom")
        with pytest.raises(FormattingError, match="HTTP 500"):
            await formatter.format(ET.Element("record"), "briefDisplay", "id", "t")

    async def test_malformed_body(self, formatter: OpenFormatFormatter, http_client: AsyncMock) -> None:
        http_client.post.return_value = _response(200, b"<unclosed>")
        with pytest.raises(FormattingError, match="Malformed"):
            await formatter.format(ET.Element("record"), "briefDisplay", "id", "t")

    async def test_deeply_nested_document(self, formatter: OpenFormatFormatter, http_client: AsyncMock) -> None:
        document = ET.fromstring("<record>" + "<a>" * 5000 + "</a>" * 5000 + "</record>")
        with pytest.raises(FormattingError, match="too deeply nested"):
            await formatter.format(document, "briefDisplay", "bibdk:deep", "t")
        http_client.post.assert_not_called()

    async def test_transport_error(self, formatter: OpenFormatFormatter, http_client: AsyncMock) -> None:
        http_client.post.side_effect = httpx.ConnectError("refused")
        with pytest.raises(FormattingError, match="request failed"):
            await formatter.format(ET.Element("record"), "briefDisplay", "id", "t")


class TestOpenFormatLifecycle:
    async def test_initialize_and_shutdown(self, formatter: OpenFormatFormatter) -> None:
        await formatter.initialize()
        assert isinstance(formatter._client, httpx.AsyncClient)
        await formatter.shutdown()
        assert formatter._client is None
