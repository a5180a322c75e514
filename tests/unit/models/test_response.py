"""Tests for the gateway response XML rendering."""

from __future__ import annotations

import xml.etree.ElementTree as ET

import pytest
from pydantic import ValidationError

from ess.models.request import QueryLanguage, SearchRequest
from ess.models.response import EssResponse, FormattedRecord


def _record(position: int, tag: str = "formatted", text: str | None = None, is_error: bool = False) -> FormattedRecord:
    elem = ET.Element(tag)
    elem.text = text
    return FormattedRecord(position=position, element=elem, is_error=is_error)


class TestEssResponse:
    def test_element_layout(self) -> None:
        response = EssResponse(
            hits=57,
            tracking_id="track-1",
            records=[_record(0), _record(1, "error", "Internal Server Error", is_error=True)],
        )
        root = response.to_element()
        assert root.tag == "essResponse"
        assert [child.tag for child in root] == ["hits", "records", "trackingId"]
        assert root.findtext("hits") == "57"
        assert root.findtext("trackingId") == "track-1"
        assert [e.tag for e in root.find("records")] == ["formatted", "error"]

    def test_empty_records(self) -> None:
        root = EssResponse(hits=0, tracking_id="t").to_element()
        assert len(root.find("records")) == 0

    def test_to_xml_has_declaration(self) -> None:
        body = EssResponse(hits=1, tracking_id="æøå", records=[_record(0)]).to_xml()
        assert body.startswith(b"<?xml version='1.0' encoding='utf-8'?>")
        assert ET.fromstring(body).findtext("trackingId") == "æøå"

    def test_negative_hits_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EssResponse(hits=-1, tracking_id="t")


class TestSearchRequest:
    def test_query_parameter_per_language(self) -> None:
        assert QueryLanguage.STRUCTURED.query_param == "x-pquery"
        assert QueryLanguage.SIMPLE.query_param == "query"

    def test_labels(self) -> None:
        assert QueryLanguage.STRUCTURED.label == "rpn"
        assert QueryLanguage.SIMPLE.label == "cql"

    def test_start_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            SearchRequest(
                base="bibdk",
                query="q",
                query_language=QueryLanguage.SIMPLE,
                start=0,
                rows=10,
                format="briefDisplay",
                tracking_id="t",
            )
