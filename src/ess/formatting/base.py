"""Base formatter: abstract interface for the record formatting collaborator.

A formatter turns one record document plus its identifier into one output
element in the requested format. The pipeline treats it as an opaque unit of
work; implementations only have to:
  1. Format a single record
  2. Build an error placeholder element
  3. Manage their own resources across startup and shutdown
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from abc import ABC, abstractmethod


class Formatter(ABC):
    """Abstract base class for record formatters.

    Formatters are shared by all concurrent requests and must not keep
    per-request state.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique formatter name (e.g., 'openformat')."""

    async def initialize(self) -> None:
        """Acquire resources. Called once during application startup."""

    async def shutdown(self) -> None:
        """Release resources. Called during application shutdown."""

    @abstractmethod
    async def format(
        self,
        document: ET.Element,
        output_format: str,
        record_id: str,
        tracking_id: str,
    ) -> ET.Element:
        """Format one record.

        Args:
            document: The record's document element.
            output_format: Requested output format name.
            record_id: Identifier derived for the record.
            tracking_id: Request correlation id.

        Returns:
            The formatted output element.

        Raises:
            FormattingError: If the record cannot be formatted.
        """

    def error_element(self, message: str) -> ET.Element:
        """Build the placeholder used in place of a record that failed."""
        elem = ET.Element("error")
        elem.text = message
        return elem
