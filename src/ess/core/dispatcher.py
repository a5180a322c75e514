"""Concurrent per-record formatting with ordered fan-in.

Every record becomes one unit of work run through the shared
:class:`~ess.core.pool.WorkerPool` inside a request-scoped
``asyncio.TaskGroup``. Results are read back by position, so the output order
is the backend order no matter which unit finishes first. Leaving the task
group early (deadline, cancellation of the request, or an unexpected fault)
cancels every unit that is still running.
"""

from __future__ import annotations

import asyncio
import logging
import xml.etree.ElementTree as ET
from collections.abc import Sequence
from dataclasses import dataclass
from functools import partial

from ess.core.exceptions import AssemblyError, FormattingError, FormattingTimeoutError
from ess.core.pool import WorkerPool
from ess.formatting.base import Formatter
from ess.models.response import FormattedRecord
from ess.observability.metrics import FORMATTING_SECONDS, record_record_error

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FormattingJob:
    """A record that resolved cleanly and goes to the formatter."""

    identifier: str
    document: ET.Element
    output_format: str


@dataclass(frozen=True)
class PlaceholderJob:
    """A record that failed earlier; it becomes an error element."""

    message: str


Unit = FormattingJob | PlaceholderJob


class FormattingDispatcher:
    """Fans records out to the formatter and collects them in order.

    Args:
        formatter: The formatting collaborator.
        pool: Shared worker pool.
        deadline_seconds: Time allowed for all units of one request; None
            waits indefinitely.
        error_message: Text of placeholders for records the formatter rejects.
    """

    def __init__(
        self,
        formatter: Formatter,
        pool: WorkerPool,
        deadline_seconds: float | None = None,
        error_message: str = "Internal Server Error",
    ) -> None:
        self.formatter = formatter
        self.pool = pool
        self.deadline_seconds = deadline_seconds
        self.error_message = error_message

    async def dispatch(self, units: Sequence[Unit], tracking_id: str) -> list[FormattedRecord]:
        """Run all units and return their results in input order.

        Raises:
            FormattingTimeoutError: The deadline passed before every unit finished.
            AssemblyError: A unit failed with anything other than a FormattingError.
        """
        if not units:
            return []

        try:
            async with asyncio.timeout(self.deadline_seconds):
                async with asyncio.TaskGroup() as tg:
                    tasks = [
                        tg.create_task(self.pool.run(partial(self._run_unit, position, unit, tracking_id)))
                        for position, unit in enumerate(units)
                    ]
        except TimeoutError as e:
            logger.error(
                "Formatting %d records exceeded %.1fs deadline for: %s",
                len(units),
                self.deadline_seconds or 0.0,
                tracking_id,
            )
            raise FormattingTimeoutError(f"Formatting exceeded {self.deadline_seconds}s deadline") from e
        except ExceptionGroup as eg:
            logger.error("Error collecting formatted records: %s for: %s", eg.exceptions[0], tracking_id)
            raise AssemblyError(f"Formatting failed: {eg.exceptions[0]}") from eg

        cancelled = sum(1 for task in tasks if task.cancelled())
        if cancelled:
            raise AssemblyError(f"{cancelled} formatting units were cancelled")
        return [task.result() for task in tasks]

    async def _run_unit(self, position: int, unit: Unit, tracking_id: str) -> FormattedRecord:
        if isinstance(unit, PlaceholderJob):
            return self._placeholder(position, unit.message)

        try:
            with FORMATTING_SECONDS.time():
                element = await self.formatter.format(
                    unit.document,
                    unit.output_format,
                    unit.identifier,
                    tracking_id,
                )
        except FormattingError as e:
            logger.error("Formatting record %d (%s) failed: %s for: %s", position, unit.identifier, e, tracking_id)
            record_record_error(type(e).__name__)
            return self._placeholder(position, self.error_message)

        return FormattedRecord(position=position, element=element)

    def _placeholder(self, position: int, message: str) -> FormattedRecord:
        return FormattedRecord(
            position=position,
            element=self.formatter.error_element(message),
            is_error=True,
        )
