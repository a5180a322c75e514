"""Record identifier resolution.

Each XML-escaped record carries exactly one document element. The record's
identifier is taken from the first ``controlfield`` child with ``tag="001"``;
records without one get a generated identifier so every formatted record
still has a unique id. Only the two levels below the document element are
examined, whatever the depth of the record.
"""

from __future__ import annotations

import logging
import uuid
import xml.etree.ElementTree as ET
from dataclasses import dataclass

from ess.core.exceptions import RecordContentCountError, RecordContentTypeError, RecordEscapingError
from ess.core.tree import Node, find_first_child, from_etree
from ess.models.record import RawRecord

logger = logging.getLogger(__name__)

CONTROL_FIELD = "controlfield"
ID_TAG = "001"


@dataclass(frozen=True)
class ResolvedRecord:
    """A record ready for formatting."""

    identifier: str
    document: ET.Element


def extract_identifier(document: Node, prefix: str) -> str:
    """Build the identifier for a document tree.

    Uses the text of the first ``controlfield tag="001"`` child. Falls back to
    ``prefix`` plus a random UUID when there is no such child, or when its
    first child is not a text node.
    """
    field = find_first_child(document, CONTROL_FIELD, "tag", ID_TAG)
    if field is not None:
        first = field.first_child
        if first is not None and first.is_text:
            return prefix + first.value
    return prefix + str(uuid.uuid4())


class RecordIdentifierResolver:
    """Validates a raw record and derives its caller-facing identifier."""

    def __init__(self, prefix: str) -> None:
        self.prefix = prefix

    def resolve(self, record: RawRecord) -> ResolvedRecord:
        """Validate ``record`` and return its document and identifier.

        Raises:
            RecordEscapingError: The record is not XML-escaped.
            RecordContentCountError: ``recordData`` does not hold exactly one node.
            RecordContentTypeError: The single node is text, not an element.
        """
        logger.debug("esc: %s", record.escaping)
        if not record.is_xml_escaped:
            raise RecordEscapingError(record.escaping)

        if len(record.content) != 1:
            kinds = [_kind(node) for node in record.content]
            raise RecordContentCountError(len(record.content), kinds)

        document = record.content[0]
        if not isinstance(document, ET.Element):
            raise RecordContentTypeError(f"Not of type XML: {_kind(document)}")

        return ResolvedRecord(
            identifier=extract_identifier(from_etree(document, depth=2), self.prefix),
            document=document,
        )


def _kind(node: ET.Element | str) -> str:
    return "element" if isinstance(node, ET.Element) else "text"
