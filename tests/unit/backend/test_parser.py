"""Tests for SRU searchRetrieveResponse parsing."""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest
from conftest import marc_record, sru_record, sru_response

from ess.backend.parser import parse_search_retrieve_response
from ess.core.exceptions import BackendParseError

SRU12 = "http://www.loc.gov/zing/srw/"


class TestParse:
    def test_hits_and_records(self) -> None:
        body = sru_response([sru_record(marc_record("1"), position=1), sru_record(marc_record("2"), position=2)], hits=99)
        result = parse_search_retrieve_response(body)
        assert result.hits == 99
        assert len(result.records) == 2
        first = result.records[0]
        assert first.escaping == "xml"
        assert first.is_xml_escaped
        assert first.schema_name == "marcxchange"
        assert first.position == 1
        assert len(first.content) == 1
        assert isinstance(first.content[0], ET.Element)
        assert first.content[0].tag == "{info:lc/xmlns/marcxchange-v1}record"

    def test_no_records_element(self) -> None:
        result = parse_search_retrieve_response(sru_response([], hits=0))
        assert result.hits == 0
        assert result.records == []

    def test_missing_escaping_is_none(self) -> None:
        result = parse_search_retrieve_response(sru_response([sru_record(marc_record(), escaping=None)]))
        assert result.records[0].escaping is None
        assert not result.records[0].is_xml_escaped

    def test_string_escaped_record_content_is_text(self) -> None:
        result = parse_search_retrieve_response(sru_response([sru_record("&lt;record/&gt;", escaping="string")]))
        assert result.records[0].content == ["<record/>"]

    def test_whitespace_around_document_ignored(self) -> None:
        result = parse_search_retrieve_response(sru_response([sru_record(f"\n  {marc_record()}\n  ")]))
        assert len(result.records[0].content) == 1

    def test_multiple_documents_kept(self) -> None:
        result = parse_search_retrieve_response(sru_response([sru_record(marc_record("a") + marc_record("b"))]))
        assert len(result.records[0].content) == 2

    def test_sru_1_2_namespace(self) -> None:
        body = (
            f'<srw:searchRetrieveResponse xmlns:srw="{SRU12}">'
            "<srw:numberOfRecords>1</srw:numberOfRecords>"
            "<srw:records><srw:record><srw:recordSchema>marcx</srw:recordSchema>"
            "<srw:recordXMLEscaping>xml</srw:recordXMLEscaping>"
            f"<srw:recordData>{marc_record('7')}</srw:recordData>"
            "</srw:record></srw:records>"
            "</srw:searchRetrieveResponse>"
        )
        result = parse_search_retrieve_response(body)
        assert result.hits == 1
        assert len(result.records) == 1

    def test_diagnostics(self) -> None:
        body = (
            '<searchRetrieveResponse xmlns="http://docs.oasis-open.org/ns/search-ws/sruResponse">'
            "<numberOfRecords>0</numberOfRecords>"
            '<diagnostics><diagnostic xmlns="http://docs.oasis-open.org/ns/search-ws/diagnostic">'
            "<uri>info:srw/diagnostic/1/10</uri><details>bad query</details><message>Query syntax error</message>"
            "</diagnostic></diagnostics>"
            "</searchRetrieveResponse>"
        )
        result = parse_search_retrieve_response(body)
        assert result.diagnostics[0].uri == "info:srw/diagnostic/1/10"
        assert result.diagnostics[0].message == "Query syntax error"


class TestParseErrors:
    def test_malformed_xml(self) -> None:
        with pytest.raises(BackendParseError, match="Malformed"):
            parse_search_retrieve_response(b"<searchRetrieveResponse>")

    def test_wrong_root(self) -> None:
        with pytest.raises(BackendParseError, match="root element"):
            parse_search_retrieve_response(b"<explainResponse/>")

    def test_non_numeric_hits(self) -> None:
        with pytest.raises(BackendParseError, match="numberOfRecords"):
            parse_search_retrieve_response(b"<searchRetrieveResponse><numberOfRecords>many</numberOfRecords></searchRetrieveResponse>")

    def test_negative_hits(self) -> None:
        with pytest.raises(BackendParseError):
            parse_search_retrieve_response(b"<searchRetrieveResponse><numberOfRecords>-1</numberOfRecords></searchRetrieveResponse>")
