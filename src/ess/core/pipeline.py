"""ESS response pipeline - owns the request lifecycle end to end.

Pipeline:
  Raw params → [QueryNormalizer] → SearchRequest
             → [BackendSearchClient] → BackendSearchResult
             → [RecordIdentifierResolver] → per-record jobs / placeholders
             → [FormattingDispatcher] → ordered FormattedRecords
             → EssResponse

Each stage is tracked as a :class:`PipelineState`. Any failure moves straight
to ``FAILED``; there are no retries. The caller only ever sees the error's
``public_message``. The cause, the state it happened in, and the tracking id
go to the log.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from ess.backend.client import BackendSearchClient
from ess.core.dispatcher import FormattingDispatcher, FormattingJob, PlaceholderJob, Unit
from ess.core.exceptions import EssError, RecordContentCountError, RecordError, UnexpectedError, UnknownBaseError
from ess.core.identifier import RecordIdentifierResolver
from ess.core.normalizer import QueryNormalizer
from ess.core.pool import WorkerPool
from ess.formatting.base import Formatter
from ess.formatting.openformat import OpenFormatFormatter
from ess.models.record import BackendSearchResult
from ess.models.request import QueryLanguage, SearchRequest
from ess.models.response import EssResponse
from ess.observability.metrics import REQUEST_SECONDS, record_outcome, record_record_error

if TYPE_CHECKING:
    from ess.config.settings import Settings

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    VALIDATING = "validating"
    QUERYING = "querying"
    PARSING = "parsing"
    RESOLVING = "resolving"
    FORMATTING = "formatting"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


class ResponsePipeline:
    """Turns one search request into one :class:`EssResponse`.

    The backend client, formatter and worker pool are process-wide and can be
    injected; when omitted they are built from ``settings``.

    Attributes:
        settings: Application configuration.
        normalizer: Parameter validation and defaulting.
        backend: SRU backend client.
        resolver: Record identifier resolver.
        dispatcher: Concurrent formatting dispatcher.
    """

    def __init__(
        self,
        settings: Settings,
        backend: BackendSearchClient | None = None,
        formatter: Formatter | None = None,
        pool: WorkerPool | None = None,
    ) -> None:
        self.settings = settings
        self.normalizer = QueryNormalizer(settings.search.bases, settings.search.max_page_size)
        self.backend = backend or BackendSearchClient(settings.search.sru_url, timeout=settings.search.timeout)
        self.formatter = formatter or OpenFormatFormatter(settings.formatting.url, timeout=settings.formatting.timeout)
        self.pool = pool or WorkerPool(settings.formatting.max_workers)
        self.resolver = RecordIdentifierResolver(settings.search.id_prefix)
        self.dispatcher = FormattingDispatcher(
            self.formatter,
            self.pool,
            deadline_seconds=settings.formatting.deadline_seconds,
            error_message=settings.formatting.error_message,
        )

    async def initialize(self) -> None:
        """Start the worker pool and open the shared HTTP clients."""
        await self.pool.start()
        await self.backend.initialize()
        await self.formatter.initialize()
        logger.info("ESS pipeline initialized with %d known bases", len(self.normalizer.known_bases))

    async def shutdown(self) -> None:
        """Cancel outstanding work and close the shared HTTP clients."""
        await self.pool.shutdown()
        await self.formatter.shutdown()
        await self.backend.shutdown()
        logger.info("ESS pipeline shut down")

    async def run(
        self,
        *,
        base: str,
        query: str,
        output_format: str,
        query_language: QueryLanguage,
        start: int | None = None,
        rows: int | None = None,
        tracking_id: str | None = None,
    ) -> EssResponse:
        """Execute one search request.

        Raises:
            EssError: Any classified failure; non-gateway exceptions are
                wrapped in :class:`UnexpectedError`.
        """
        state = PipelineState.VALIDATING
        try:
            request = self.normalizer.normalize(
                base,
                query,
                output_format,
                query_language,
                start=start,
                rows=rows,
                tracking_id=tracking_id,
            )
        except UnknownBaseError as e:
            logger.error("Unknown base requested: %s for: %s", e.base, e.tracking_id)
            state = PipelineState.FAILED
            record_outcome(type(e).__name__)
            logger.debug("Request finished in state %s for: %s", state.value, e.tracking_id)
            raise

        tracking_id = request.tracking_id
        logger.info(
            "base: %s; format: %s; start: %d; rows: %d; trackingId: %s; query: %s; type: %s",
            request.base,
            request.format,
            request.start,
            request.rows,
            tracking_id,
            request.query,
            request.query_language.label,
        )

        try:
            with (
                structlog.contextvars.bound_contextvars(tracking_id=tracking_id, base=request.base),
                REQUEST_SECONDS.labels(query_language=request.query_language.label).time(),
            ):
                state = PipelineState.QUERYING
                resp = await self.backend.request(
                    request.base,
                    request.query_language.query_param,
                    request.query,
                    request.start,
                    request.rows,
                    tracking_id,
                )

                state = PipelineState.PARSING
                result = self.backend.read_response(resp, tracking_id)

                state = PipelineState.RESOLVING
                units = self._resolve(result, request)

                state = PipelineState.FORMATTING
                records = await self.dispatcher.dispatch(units, tracking_id)

                state = PipelineState.ASSEMBLING
                response = EssResponse(hits=result.hits, tracking_id=tracking_id, records=records)
        except EssError as e:
            logger.error("Error Processing Response in state %s: %s for: %s", state.value, e, tracking_id)
            logger.debug("Error Processing Response:", exc_info=True)
            state = PipelineState.FAILED
            record_outcome(type(e).__name__)
            raise
        except Exception as e:
            logger.error("Unexpected error in state %s: %s for: %s", state.value, e, tracking_id, exc_info=True)
            state = PipelineState.FAILED
            record_outcome(UnexpectedError.__name__)
            raise UnexpectedError(str(e)) from e
        else:
            state = PipelineState.DONE
            logger.debug("Request done with %d of %d hits for: %s", len(response.records), response.hits, tracking_id)
            record_outcome(state.value)
        finally:
            logger.debug("Request finished in state %s for: %s", state.value, tracking_id)
        return response

    def _resolve(self, result: BackendSearchResult, request: SearchRequest) -> list[Unit]:
        """Map every raw record to a formatting job or an error placeholder."""
        units: list[Unit] = []
        for position, record in enumerate(result.records):
            try:
                resolved = self.resolver.resolve(record)
            except RecordError as e:
                logger.error("Record %d rejected: %s for: %s", position, e, request.tracking_id)
                if isinstance(e, RecordContentCountError):
                    logger.debug("Types: %s", ", ".join(e.kinds))
                record_record_error(type(e).__name__)
                units.append(PlaceholderJob(self.settings.formatting.error_message))
                continue
            units.append(FormattingJob(resolved.identifier, resolved.document, request.format))
        return units
