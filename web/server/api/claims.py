#!/usr/bin/env python3

"""
Claimed-business API endpoints.

The caller is identified by the X-User-Id header; session handling is done
upstream of this service.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Header, Query
from fastapi.responses import JSONResponse

from shared.review_sentiment.exceptions import StorageError
from shared.review_sentiment.interfaces import ClaimStoreInterface

from .errors import error_response, response_for_exception
from .models import ClaimRequest, ClaimResponse, ClaimStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Global Store Instance ---

_claim_store: Optional[ClaimStoreInterface] = None


def set_claim_store(store: Optional[ClaimStoreInterface]):
    """Set the shared claim store."""
    global _claim_store
    _claim_store = store


def get_claim_store() -> Optional[ClaimStoreInterface]:
    """Get the shared claim store."""
    return _claim_store


def _check_access(user_id: Optional[str]) -> Optional[JSONResponse]:
    if not user_id:
        return error_response(401, "Unauthorized")
    if get_claim_store() is None:
        return error_response(503, "Claim storage not available")
    return None


# --- API Endpoints ---

@router.get("/places/claimed", response_model=List[ClaimResponse])
async def list_claimed_places(x_user_id: Optional[str] = Header(None)):
    """Places claimed by the current user, in claim order."""
    denied = _check_access(x_user_id)
    if denied:
        return denied

    try:
        records = get_claim_store().list_claims(x_user_id)
    except StorageError as e:
        return response_for_exception(e, "fetch claimed places")
    return [ClaimResponse.from_record(r) for r in records]


@router.get("/places/claim", response_model=ClaimStatusResponse)
async def get_claim_status(
    placeId: Optional[str] = Query(None, description="Directory place identifier"),
    x_user_id: Optional[str] = Header(None),
):
    """Whether the current user has claimed a place."""
    denied = _check_access(x_user_id)
    if denied:
        return denied
    if not placeId:
        return error_response(400, "Place ID is required")

    try:
        claimed = get_claim_store().is_claimed(x_user_id, placeId)
    except StorageError as e:
        return response_for_exception(e, "check claim status")
    return ClaimStatusResponse(claimed=claimed)


@router.post("/places/{place_id}/claim", response_model=ClaimStatusResponse)
async def toggle_claim(
    place_id: str,
    body: Optional[ClaimRequest] = None,
    x_user_id: Optional[str] = Header(None),
):
    """Claim a place, or release it if the user already holds it."""
    denied = _check_access(x_user_id)
    if denied:
        return denied

    body = body or ClaimRequest()
    store = get_claim_store()
    try:
        if not store.is_claimed(x_user_id, place_id) and not (body.name and body.address):
            return error_response(400, "Name and address are required")
        claimed = store.toggle_claim(x_user_id, place_id, body.name or "", body.address or "")
    except StorageError as e:
        return response_for_exception(e, "update claim")

    logger.info(f"User {x_user_id} {'claimed' if claimed else 'released'} {place_id}")
    return ClaimStatusResponse(claimed=claimed)


@router.delete("/places/{place_id}/claim")
async def delete_claim(place_id: str, x_user_id: Optional[str] = Header(None)):
    """Release a claim held by the current user."""
    denied = _check_access(x_user_id)
    if denied:
        return denied

    try:
        get_claim_store().unclaim(x_user_id, place_id)
    except StorageError as e:
        return response_for_exception(e, "remove claim")
    return {"success": True}


@router.get("/places/{place_id}/location", response_model=ClaimResponse)
async def get_claimed_location(place_id: str, x_user_id: Optional[str] = Header(None)):
    """The stored claim record for a place."""
    denied = _check_access(x_user_id)
    if denied:
        return denied

    try:
        record = get_claim_store().get_claim_by_place(place_id)
    except StorageError as e:
        return response_for_exception(e, "fetch location")
    if record is None:
        return error_response(404, "Location not found")
    return ClaimResponse.from_record(record)
