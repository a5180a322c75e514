"""Search request models."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class QueryLanguage(str, Enum):
    """Query language chosen by the caller."""

    STRUCTURED = "structured"  # RPN / PQF
    SIMPLE = "simple"  # CQL

    @property
    def query_param(self) -> str:
        """Name of the SRU query parameter carrying a query in this language."""
        return "x-pquery" if self is QueryLanguage.STRUCTURED else "query"

    @property
    def label(self) -> str:
        return "rpn" if self is QueryLanguage.STRUCTURED else "cql"


class SearchRequest(BaseModel):
    """A validated and defaulted search request."""

    base: str = Field(description="Base (SRU database) to search")
    query: str = Field(description="Query text in the chosen language")
    query_language: QueryLanguage = Field(description="Language of ``query``")
    start: int = Field(default=1, ge=1, description="1-based position of the first record")
    rows: int = Field(ge=1, description="Number of records to fetch")
    format: str = Field(description="Output format passed to the formatter")
    tracking_id: str = Field(min_length=1, description="Correlation id for logs and response")
