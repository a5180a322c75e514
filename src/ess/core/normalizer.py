"""Request parameter validation and defaulting."""

from __future__ import annotations

import uuid
from collections.abc import Iterable

from ess.core.exceptions import UnknownBaseError
from ess.models.request import QueryLanguage, SearchRequest


class QueryNormalizer:
    """Turns raw query parameters into a :class:`SearchRequest`.

    - ``start`` defaults to 1 and is raised to 1 when lower.
    - ``rows`` defaults to ``max_page_size`` and is clamped down to it. A
      value below 1 also becomes ``max_page_size``.
    - A missing or empty ``tracking_id`` is replaced with a fresh UUID.
    - ``base`` must be one of ``known_bases``.
    """

    def __init__(self, known_bases: Iterable[str], max_page_size: int) -> None:
        if max_page_size < 1:
            raise ValueError("max_page_size must be positive")
        self.known_bases = frozenset(known_bases)
        self.max_page_size = max_page_size

    def normalize(
        self,
        base: str,
        query: str,
        output_format: str,
        query_language: QueryLanguage,
        start: int | None = None,
        rows: int | None = None,
        tracking_id: str | None = None,
    ) -> SearchRequest:
        """Validate and default the parameters.

        Raises:
            UnknownBaseError: ``base`` is not configured.
        """
        if not tracking_id:
            tracking_id = str(uuid.uuid4())

        if base not in self.known_bases:
            raise UnknownBaseError(base, tracking_id)

        return SearchRequest(
            base=base,
            query=query,
            query_language=query_language,
            start=max(start if start is not None else 1, 1),
            rows=self._rows(rows),
            format=output_format,
            tracking_id=tracking_id,
        )

    def _rows(self, rows: int | None) -> int:
        if rows is None or rows < 1 or rows >= self.max_page_size:
            return self.max_page_size
        return rows
