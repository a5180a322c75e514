"""Search endpoints - structured (RPN) and simple (CQL) query variants.

Both answer with an XML ``essResponse`` document on success. Every failure is
a 500 with a plain-text body: ``Unknown base requested`` when the base is not
configured, ``Internal Server Error`` otherwise.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse, Response

from ess.api.deps import get_pipeline
from ess.core.exceptions import EssError
from ess.core.pipeline import ResponsePipeline
from ess.models.request import QueryLanguage
from ess.models.response import EssResponse

logger = logging.getLogger(__name__)

router = APIRouter()

DISCONNECT_POLL_SECONDS = 0.5
CLIENT_CLOSED_REQUEST = 499

_RESPONSES: dict[int | str, dict[str, Any]] = {
    200: {"description": "Formatted records", "content": {"application/xml": {}}},
    422: {"description": "Validation error - missing base, query or format"},
    500: {
        "description": "'Unknown base requested' or 'Internal Server Error'",
        "content": {"text/plain": {}},
    },
}


@router.get(
    "/rpn/",
    summary="Structured (RPN) search",
    response_class=Response,
    responses=_RESPONSES,
)
async def search_rpn(
    request: Request,
    base: str = Query(description="Base to search"),
    query: str = Query(description="RPN (PQF) query"),
    output_format: str = Query(alias="format", description="Output format"),
    start: int | None = Query(default=None, description="1-based first record (default 1)"),
    rows: int | None = Query(default=None, description="Records per page (default and max: max_page_size)"),
    tracking_id: str | None = Query(default=None, alias="trackingId", description="Correlation id"),
    pipeline: ResponsePipeline = Depends(get_pipeline),
) -> Response:
    """Search with a structured (RPN) query."""
    return await _process(
        request, pipeline, QueryLanguage.STRUCTURED, base, query, output_format, start, rows, tracking_id
    )


@router.get(
    "/",
    summary="Simple (CQL) search",
    response_class=Response,
    responses=_RESPONSES,
)
async def search_cql(
    request: Request,
    base: str = Query(description="Base to search"),
    query: str = Query(description="CQL query"),
    output_format: str = Query(alias="format", description="Output format"),
    start: int | None = Query(default=None, description="1-based first record (default 1)"),
    rows: int | None = Query(default=None, description="Records per page (default and max: max_page_size)"),
    tracking_id: str | None = Query(default=None, alias="trackingId", description="Correlation id"),
    pipeline: ResponsePipeline = Depends(get_pipeline),
) -> Response:
    """Search with a simple (CQL) query."""
    return await _process(
        request, pipeline, QueryLanguage.SIMPLE, base, query, output_format, start, rows, tracking_id
    )


async def _process(
    request: Request,
    pipeline: ResponsePipeline,
    query_language: QueryLanguage,
    base: str,
    query: str,
    output_format: str,
    start: int | None,
    rows: int | None,
    tracking_id: str | None,
) -> Response:
    run = pipeline.run(
        base=base,
        query=query,
        output_format=output_format,
        query_language=query_language,
        start=start,
        rows=rows,
        tracking_id=tracking_id,
    )
    try:
        response = await _cancel_on_disconnect(request, run)
    except EssError as e:
        return PlainTextResponse(e.public_message, status_code=500)

    if response is None:
        return Response(status_code=CLIENT_CLOSED_REQUEST)
    return Response(content=response.to_xml(), media_type="application/xml")


async def _cancel_on_disconnect(
    request: Request,
    run: Coroutine[Any, Any, EssResponse],
) -> EssResponse | None:
    """Await ``run`` but cancel it if the client goes away first.

    Returns None when the client disconnected.
    """
    task = asyncio.ensure_future(run)
    watcher = asyncio.ensure_future(_wait_for_disconnect(request))
    try:
        await asyncio.wait({task, watcher}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        raise
    finally:
        watcher.cancel()
        await asyncio.gather(watcher, return_exceptions=True)

    if not task.done():
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        logger.warning("Client disconnected; cancelled search for base %s", request.query_params.get("base"))
        return None
    return task.result()


async def _wait_for_disconnect(request: Request) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)
