"""Scrape endpoint for the request counters."""
from fastapi import APIRouter, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(prefix="/debug", tags=["system"])


@router.get("/metrics", include_in_schema=False)
async def read_metrics(request: Request) -> Response:
    return Response(
        content=generate_latest(request.app.state.metrics.registry),
        media_type=CONTENT_TYPE_LATEST,
    )
