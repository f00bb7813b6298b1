#!/usr/bin/env python3

"""
Places API endpoints.

Search, place lookup, location detail with sentiment breakdown and
free-standing narrative analysis.
"""

import asyncio
import logging
from typing import Awaitable, Optional, TypeVar

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from shared.review_sentiment.exceptions import ReviewSentimentError
from shared.review_sentiment.service import ReviewSentimentService

from .errors import API_KEY_MISSING, error_response, response_for_exception
from .models import (
    AnalyzeSentimentRequest,
    AnalyzeSentimentResponse,
    PlaceDetailsResponse,
    PlaceResponse,
    PlaceSearchResponse,
    ReviewPageResponse,
    SearchReviewResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Shown when no narrative could be produced for an explicit analysis request
ANALYSIS_FALLBACK = "No analysis available"

DISCONNECT_POLL_SECONDS = 0.5

T = TypeVar("T")


class ClientDisconnected(Exception):
    """The client went away before the response was ready."""


async def run_until_disconnected(request: Request, awaitable: Awaitable[T]) -> T:
    """
    Await a long-running operation, cancelling it if the client disconnects.
    
    Raises:
        ClientDisconnected: If the client disconnected first
    """
    task = asyncio.ensure_future(awaitable)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return task.result()
            if await request.is_disconnected():
                logger.info(f"Client disconnected from {request.url.path}, cancelling")
                task.cancel()
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()


# --- Global Service Instance ---

_service: Optional[ReviewSentimentService] = None


def set_service(service: Optional[ReviewSentimentService]):
    """Set the shared ReviewSentimentService instance."""
    global _service
    _service = service


def get_service() -> Optional[ReviewSentimentService]:
    """Get the shared ReviewSentimentService instance."""
    return _service


def _service_unavailable() -> JSONResponse:
    # Startup leaves the service unset when an API key is missing
    return error_response(500, API_KEY_MISSING)


# --- API Endpoints ---

@router.get("/places", response_model=PlaceSearchResponse)
async def search_places(
    q: Optional[str] = Query(None, description="Free-text search query"),
    pageToken: Optional[str] = Query(None, description="Token for the next result page"),
):
    """Text search for places, with each place's reviews classified."""
    if not q and not pageToken:
        return error_response(400, "Query or pageToken is required")

    service = get_service()
    if not service:
        return _service_unavailable()

    try:
        page = await service.search_places(q, pageToken)
    except (ReviewSentimentError, ValueError) as e:
        return response_for_exception(e, "fetch places")

    if not page.places:
        return error_response(404, "No places found")

    return PlaceSearchResponse(
        places=[PlaceResponse.from_place(place) for place in page.places],
        nextPageToken=page.next_page_token,
    )


@router.get("/places/{place_id}/details", response_model=PlaceDetailsResponse)
async def get_place_details(
    request: Request,
    place_id: str,
    refresh: bool = Query(False, description="Recompute even if a cached result exists"),
):
    """Location detail with rating breakdown, sentiment percentages and narrative."""
    service = get_service()
    if not service:
        return _service_unavailable()

    try:
        report = await run_until_disconnected(
            request, service.analyze_location(place_id, refresh=refresh)
        )
    except ClientDisconnected:
        # Nobody is listening; the status only shows up in the access log
        return JSONResponse(status_code=499, content={"error": "Client disconnected"})
    except (ReviewSentimentError, ValueError) as e:
        return response_for_exception(e, "fetch place details")

    return PlaceDetailsResponse.from_report(report)


@router.get("/places/{place_id}/reviews", response_model=ReviewPageResponse)
async def get_place_reviews(
    place_id: str,
    pageToken: Optional[str] = Query(None, description="Token for the next review page"),
):
    """One page of classified reviews for a place."""
    service = get_service()
    if not service:
        return _service_unavailable()

    try:
        page = await service.fetch_reviews(place_id, pageToken)
    except (ReviewSentimentError, ValueError) as e:
        return response_for_exception(e, "fetch reviews")

    return ReviewPageResponse(
        reviews=[SearchReviewResponse.from_review(r) for r in page.reviews],
        nextPageToken=page.next_page_token,
    )


@router.get("/places/{place_id}", response_model=PlaceResponse)
async def get_place(place_id: str):
    """Normalized place without sentiment."""
    service = get_service()
    if not service:
        return _service_unavailable()

    try:
        place = await service.get_place(place_id)
    except (ReviewSentimentError, ValueError) as e:
        return response_for_exception(e, "fetch place")

    return PlaceResponse.from_place(place)


@router.post("/analyze-sentiment", response_model=AnalyzeSentimentResponse)
async def analyze_sentiment(body: AnalyzeSentimentRequest):
    """Narrative summary for a list of review texts."""
    texts = [t for t in body.review_texts() if t and t.strip()]
    if not texts:
        return error_response(400, "No reviews provided")

    service = get_service()
    if not service:
        return _service_unavailable()

    analysis = await service.analyze_texts(texts, body.locationName)
    return AnalyzeSentimentResponse(analysis=analysis or ANALYSIS_FALLBACK)
