"""SRU searchRetrieveResponse parsing.

Element lookups use the ``{*}`` wildcard so SRU 1.2 and SRU 2.0 namespaces
(and un-namespaced test documents) parse the same way.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from ess.core.exceptions import BackendParseError
from ess.core.tree import local_name
from ess.models.record import BackendSearchResult, Diagnostic, RawRecord


def parse_search_retrieve_response(body: bytes | str) -> BackendSearchResult:
    """Parse an SRU response body.

    Raises:
        BackendParseError: The body is not well-formed XML, is not a
            ``searchRetrieveResponse``, or carries invalid counts.
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise BackendParseError(f"Malformed SRU response: {e}") from e

    if local_name(root.tag) != "searchRetrieveResponse":
        raise BackendParseError(f"Unexpected SRU root element: {local_name(root.tag)}")

    hits = _int(_text(root, "numberOfRecords"), "numberOfRecords")
    if hits is None:
        hits = 0
    if hits < 0:
        raise BackendParseError(f"Negative numberOfRecords: {hits}")

    records: list[RawRecord] = []
    records_elem = root.find("{*}records")
    if records_elem is not None:
        records = [_parse_record(r) for r in records_elem.findall("{*}record")]

    diagnostics: list[Diagnostic] = []
    diagnostics_elem = root.find("{*}diagnostics")
    if diagnostics_elem is not None:
        diagnostics = [
            Diagnostic(
                uri=_text(d, "uri") or "",
                details=_text(d, "details"),
                message=_text(d, "message"),
            )
            for d in diagnostics_elem.findall("{*}diagnostic")
        ]

    return BackendSearchResult(hits=hits, records=records, diagnostics=diagnostics)


def _parse_record(record: ET.Element) -> RawRecord:
    content: list[ET.Element | str] = []
    data = record.find("{*}recordData")
    if data is not None:
        if data.text and data.text.strip():
            content.append(data.text)
        for child in data:
            if isinstance(child.tag, str):
                content.append(child)
            if child.tail and child.tail.strip():
                content.append(child.tail)

    return RawRecord(
        escaping=_text(record, "recordXMLEscaping"),
        content=content,
        schema_name=_text(record, "recordSchema"),
        position=_int(_text(record, "recordPosition"), "recordPosition"),
    )


def _text(parent: ET.Element, name: str) -> str | None:
    elem = parent.find(f"{{*}}{name}")
    if elem is None or elem.text is None:
        return None
    return elem.text.strip()


def _int(value: str | None, name: str) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise BackendParseError(f"Invalid {name}: {value!r}") from e
