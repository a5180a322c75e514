"""Backend record models - what the SRU response parser produces."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from enum import Enum

from pydantic import BaseModel, Field


class RecordEscaping(str, Enum):
    """SRU ``recordXMLEscaping`` values."""

    XML = "xml"
    STRING = "string"


class RawRecord(BaseModel):
    """One ``record`` element of a searchRetrieveResponse.

    ``content`` holds the nodes found inside ``recordData``: child elements,
    plus any non-blank text segments as plain strings.
    """

    model_config = {"arbitrary_types_allowed": True}

    escaping: str | None = Field(default=None, description="Raw recordXMLEscaping value")
    content: list[ET.Element | str] = Field(default_factory=list, description="recordData nodes")
    schema_name: str | None = Field(default=None, description="recordSchema")
    position: int | None = Field(default=None, description="recordPosition")

    @property
    def is_xml_escaped(self) -> bool:
        return self.escaping == RecordEscaping.XML.value


class Diagnostic(BaseModel):
    """An SRU diagnostic reported by the backend."""

    uri: str = Field(default="", description="Diagnostic URI")
    details: str | None = Field(default=None, description="Diagnostic details")
    message: str | None = Field(default=None, description="Human readable message")


class BackendSearchResult(BaseModel):
    """Parsed searchRetrieveResponse."""

    model_config = {"arbitrary_types_allowed": True}

    hits: int = Field(default=0, ge=0, description="numberOfRecords")
    records: list[RawRecord] = Field(default_factory=list, description="Records in backend order")
    diagnostics: list[Diagnostic] = Field(default_factory=list, description="SRU diagnostics")
