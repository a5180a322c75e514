"""Gateway response models and their XML rendering."""

from __future__ import annotations

import xml.etree.ElementTree as ET

from pydantic import BaseModel, Field


class FormattedRecord(BaseModel):
    """One output element, keyed by its position in the backend record list."""

    model_config = {"arbitrary_types_allowed": True}

    position: int = Field(ge=0, description="Index in the backend record sequence")
    element: ET.Element = Field(description="Formatted output or error placeholder")
    is_error: bool = Field(default=False, description="True for error placeholders")


class EssResponse(BaseModel):
    """Response returned to the caller.

    ``records`` has the same length and order as the backend's record list.
    """

    hits: int = Field(ge=0, description="Total hit count reported by the backend")
    tracking_id: str = Field(description="Caller supplied or generated tracking id")
    records: list[FormattedRecord] = Field(default_factory=list, description="Formatted records in order")

    def to_element(self) -> ET.Element:
        root = ET.Element("essResponse")
        ET.SubElement(root, "hits").text = str(self.hits)
        records = ET.SubElement(root, "records")
        for record in self.records:
            records.append(record.element)
        ET.SubElement(root, "trackingId").text = self.tracking_id
        return root

    def to_xml(self) -> bytes:
        """Serialise to an XML document with declaration."""
        return ET.tostring(self.to_element(), encoding="utf-8", xml_declaration=True)
