"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
import random
import xml.etree.ElementTree as ET
from collections.abc import AsyncIterator, Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from ess.backend.client import BackendSearchClient
from ess.config.settings import Settings
from ess.core.exceptions import FormattingError
from ess.core.pipeline import ResponsePipeline
from ess.core.pool import WorkerPool
from ess.formatting.base import Formatter

SRU_NS = "http://docs.oasis-open.org/ns/search-ws/sruResponse"


def marc_record(control_001: str | None = "12345", extra_fields: str = "") -> str:
    """A small MARCXML-like record document."""
    control = f'<controlfield tag="001">{control_001}</controlfield>' if control_001 is not None else ""
    return (
        '<record xmlns="info:lc/xmlns/marcxchange-v1">'
        '<leader>00000n    2200000   4500</leader>'
        f"{control}"
        '<controlfield tag="005">20240101</controlfield>'
        f"{extra_fields}"
        "</record>"
    )


def sru_record(data: str, escaping: str | None = "xml", position: int = 1) -> str:
    esc = f"<recordXMLEscaping>{escaping}</recordXMLEscaping>" if escaping is not None else ""
    return (
        "<record>"
        "<recordSchema>marcxchange</recordSchema>"
        f"{esc}"
        f"<recordData>{data}</recordData>"
        f"<recordPosition>{position}</recordPosition>"
        "</record>"
    )


def sru_response(records: list[str], hits: int | None = None) -> bytes:
    """Build a searchRetrieveResponse body from ``sru_record`` strings."""
    hits = len(records) if hits is None else hits
    body = "".join(records)
    records_xml = f"<records>{body}</records>" if records else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<searchRetrieveResponse xmlns="{SRU_NS}">'
        "<version>2.0</version>"
        f"<numberOfRecords>{hits}</numberOfRecords>"
        f"{records_xml}"
        "</searchRetrieveResponse>"
    ).encode()


def xml_response(body: bytes, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=body,
        headers={"content-type": "application/xml"},
        request=httpx.Request("GET", "http://sru.test/bibdk"),
    )


class FakeFormatter(Formatter):
    """In-memory formatter.

    Produces ``<formatted id=... format=...>`` elements. ``delays`` maps a
    record id to seconds to sleep first; ``randomize`` sleeps a random short
    time for every record; ids in ``fail`` raise FormattingError and ids in
    ``crash`` raise RuntimeError.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.delays: dict[str, float] = {}
        self.randomize = False
        self.fail: set[str] = set()
        self.crash: set[str] = set()
        self.started = 0
        self.finished = 0

    @property
    def name(self) -> str:
        return "fake"

    async def format(
        self,
        document: ET.Element,
        output_format: str,
        record_id: str,
        tracking_id: str,
    ) -> ET.Element:
        self.calls.append((record_id, output_format, tracking_id))
        self.started += 1
        if self.randomize:
            await asyncio.sleep(random.uniform(0, 0.05))
        elif record_id in self.delays:
            await asyncio.sleep(self.delays[record_id])
        if record_id in self.fail:
            raise FormattingError(f"cannot format {record_id}")
        if record_id in self.crash:
            raise RuntimeError(f"formatter crashed on {record_id}")
        self.finished += 1
        return ET.Element("formatted", {"id": record_id, "format": output_format})


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        search={
            "bases": ["bibdk", "danbib"],
            "sru_url": "http://sru.test",
            "max_page_size": 10,
            "id_prefix": "bibdk:",
        },
        formatting={"url": "http://format.test/format"},
    )


@pytest.fixture
def formatter() -> FakeFormatter:
    return FakeFormatter()


@pytest.fixture
def sru_client() -> AsyncMock:
    """Mocked ``httpx.AsyncClient`` for the SRU backend."""
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def backend(sru_client: AsyncMock) -> BackendSearchClient:
    client = BackendSearchClient(base_url="http://sru.test")
    client._client = sru_client
    return client


@pytest.fixture
async def pool() -> AsyncIterator[WorkerPool]:
    worker_pool = WorkerPool()
    await worker_pool.start()
    yield worker_pool
    await worker_pool.shutdown()


@pytest.fixture
def pipeline(
    settings: Settings,
    backend: BackendSearchClient,
    formatter: FakeFormatter,
    pool: WorkerPool,
) -> ResponsePipeline:
    """Pipeline with a mocked SRU client, in-memory formatter and started pool."""
    return ResponsePipeline(settings, backend=backend, formatter=formatter, pool=pool)


@pytest.fixture
def serve_sru(sru_client: AsyncMock) -> Callable[..., None]:
    """Make the mocked SRU client answer with the given records."""

    def _serve(records: list[str], hits: int | None = None, status_code: int = 200) -> None:
        sru_client.get.return_value = xml_response(sru_response(records, hits), status_code)

    return _serve
