"""
Review sources.

PlacesDirectorySource talks to the Google Places API (v1) and normalizes
places and reviews into library models.
"""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from .config import ReviewSentimentSettings
from .exceptions import MalformedResponseError, UpstreamFetchError
from .interfaces import ReviewSource
from .models import OpeningHours, Place, PlaceSearchPage, Review, ReviewPage

logger = logging.getLogger(__name__)


REVIEW_FIELDS = [
    "reviews.name",
    "reviews.text",
    "reviews.rating",
    "reviews.relativePublishTimeDescription",
    "reviews.authorAttribution",
]

PLACE_FIELDS = [
    "id",
    "displayName",
    "formattedAddress",
    "rating",
    "userRatingCount",
    "internationalPhoneNumber",
    "websiteUri",
    "regularOpeningHours",
    "businessStatus",
]

DETAILS_FIELD_MASK = ",".join(PLACE_FIELDS + REVIEW_FIELDS + ["photos.name"])
SEARCH_FIELD_MASK = ",".join(f"places.{field}" for field in PLACE_FIELDS + REVIEW_FIELDS)

PHOTO_MAX_PX = 400


# --- Normalization ---


def decode_review_text(raw: Any) -> str:
    """
    Resolve a review's text field to a plain string.

    The directory sends either a plain string or an object such as
    ``{"text": "...", "languageCode": "en"}``. Any other shape yields "".
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        inner = raw.get("text")
        if isinstance(inner, str):
            return inner
    return ""


def _coerce_rating(raw: Any) -> int:
    try:
        value = int(round(float(raw)))
    except (TypeError, ValueError):
        return 0
    return min(max(value, 0), 5)


def _expect(value: Any, kind: type, what: str) -> Any:
    if not isinstance(value, kind):
        raise MalformedResponseError(f"Expected {what} to be {kind.__name__}, got {type(value).__name__}")
    return value


def normalize_review(raw: Dict[str, Any]) -> Review:
    """Build a Review from one directory review object."""
    _expect(raw, dict, "review")
    author = _expect(raw.get("authorAttribution") or {}, dict, "authorAttribution")
    return Review(
        id=raw.get("name") or "",
        author=author.get("displayName") or "Anonymous",
        rating=_coerce_rating(raw.get("rating")),
        text=decode_review_text(raw.get("text")),
        timestamp_label=raw.get("relativePublishTimeDescription") or "Recent",
        profile_photo_url=author.get("photoUri") or "",
    )


def _normalize_opening_hours(raw: Optional[Dict[str, Any]]) -> Optional[OpeningHours]:
    if not raw:
        return None
    _expect(raw, dict, "regularOpeningHours")
    periods = _expect(raw.get("periods") or [], list, "periods")
    return OpeningHours(
        open_now=any(bool(_expect(period, dict, "period").get("open")) for period in periods),
        weekday_text=list(_expect(raw.get("weekdayDescriptions") or [], list, "weekdayDescriptions")),
    )


def normalize_place(raw: Dict[str, Any]) -> Place:
    """
    Build a Place from a directory place object.
    
    Raises:
        MalformedResponseError: If the object or a nested field has the wrong shape
    """
    _expect(raw, dict, "place")

    display_name = raw.get("displayName") or {}
    photos = _expect(raw.get("photos") or [], list, "photos")
    reviews = _expect(raw.get("reviews") or [], list, "reviews")
    photo_name = _expect(photos[0], dict, "photo").get("name") if photos else None
    try:
        return Place(
            id=raw.get("id") or "",
            name=display_name.get("text", "") if isinstance(display_name, dict) else "",
            address=raw.get("formattedAddress") or "",
            rating=float(raw.get("rating") or 0.0),
            total_reviews=int(raw.get("userRatingCount") or 0),
            phone_number=raw.get("internationalPhoneNumber") or "",
            website=raw.get("websiteUri") or "",
            opening_hours=_normalize_opening_hours(raw.get("regularOpeningHours")),
            business_status=raw.get("businessStatus") or "",
            reviews=[normalize_review(r) for r in reviews],
            photo_name=photo_name,
        )
    except (TypeError, ValueError) as e:
        # Scalar fields of the wrong type (pydantic ValidationError is a ValueError)
        raise MalformedResponseError(f"Malformed place {raw.get('id')!r}: {e}")


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


# --- Source ---


class PlacesDirectorySource(ReviewSource):
    """
    Google Places API (v1) review source.
    
    Each call makes a single attempt; retrying is left to the caller.
    The default tier returns at most 5 reviews per place and no review
    continuation token.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://places.googleapis.com/v1",
        language_code: str = "en",
        max_results: int = 20,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize source.
        
        Args:
            api_key: Places API key
            base_url: API root
            language_code: Language for names and reviews
            max_results: Places per text-search page (max 20)
            timeout: HTTP timeout in seconds
            client: Optional pre-built client (tests use httpx.MockTransport)
        """
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.language_code = language_code
        self.max_results = max_results
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: ReviewSentimentSettings,
        client: Optional[httpx.AsyncClient] = None,
    ) -> "PlacesDirectorySource":
        """Build from settings. Raises ConfigurationError when no API key is set."""
        return cls(
            api_key=settings.require_places_api_key(),
            base_url=settings.places_base_url,
            language_code=settings.places_language_code,
            max_results=settings.places_max_results,
            timeout=settings.places_timeout_seconds,
            client=client,
        )

    def _headers(self, field_mask: Optional[str] = None) -> Dict[str, str]:
        headers = {"X-Goog-Api-Key": self.api_key}
        if field_mask:
            headers["X-Goog-FieldMask"] = field_mask
        return headers

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Places API unreachable ({method} {url}): {e}")
            raise UpstreamFetchError(f"Places API unreachable: {e}")

        if not response.is_success:
            body = _response_body(response)
            logger.error(f"Places API error {response.status_code}: {body}")
            raise UpstreamFetchError(
                f"Places API returned {response.status_code}",
                status_code=response.status_code,
                body=body,
            )

        data = _response_body(response)
        if not isinstance(data, dict):
            raise MalformedResponseError("Places API returned a non-object body")
        return data

    async def search_text(
        self, query: Optional[str], page_token: Optional[str] = None
    ) -> PlaceSearchPage:
        """Search places by free text (or continue a previous search)."""
        if not query and not page_token:
            raise ValueError("query or page_token is required")

        payload: Dict[str, Any] = {
            "textQuery": query or "",
            "languageCode": self.language_code,
            "maxResultCount": self.max_results,
        }
        params = None
        if page_token:
            payload["pageToken"] = page_token
            params = {"pageToken": page_token}

        data = await self._request(
            "POST",
            f"{self.base_url}/places:searchText",
            params=params,
            json=payload,
            headers=self._headers(SEARCH_FIELD_MASK),
        )

        places = [normalize_place(p) for p in data.get("places") or []]
        logger.info(f"Text search '{query}' returned {len(places)} places")
        return PlaceSearchPage(
            places=places,
            next_page_token=data.get("nextPageToken") or data.get("pageToken"),
        )

    async def get_details(self, place_id: str) -> Place:
        """Fetch one place with its reviews."""
        if not place_id:
            raise ValueError("place_id must be a non-empty directory identifier")

        data = await self._request(
            "GET",
            f"{self.base_url}/places/{quote(place_id, safe='')}",
            headers=self._headers(DETAILS_FIELD_MASK),
        )
        return normalize_place(data)

    async def fetch_reviews(
        self, location_id: str, page_token: Optional[str] = None
    ) -> ReviewPage:
        """Fetch reviews for a location."""
        if not location_id:
            raise ValueError("location_id must be a non-empty directory identifier")
        if page_token:
            # Details responses never carry a review continuation token.
            logger.debug(f"No further review pages for {location_id}")
            return ReviewPage()

        place = await self.get_details(location_id)
        return ReviewPage(reviews=place.reviews)

    async def get_photo_url(self, photo_name: str) -> Optional[str]:
        """Resolve the first photo to a URL. Best effort: failures return None."""
        try:
            data = await self._request(
                "GET",
                f"{self.base_url}/{photo_name}/media",
                params={
                    "maxHeightPx": PHOTO_MAX_PX,
                    "maxWidthPx": PHOTO_MAX_PX,
                    "skipHttpRedirect": "true",
                },
                headers=self._headers(),
            )
        except (UpstreamFetchError, MalformedResponseError) as e:
            logger.warning(f"Photo lookup failed for {photo_name}: {e}")
            return None
        return data.get("photoUri")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def get_source_name(self) -> str:
        return "places.googleapis.com"


class StaticReviewSource(ReviewSource):
    """
    In-memory source built from Place objects.
    
    Used for offline development and tests.
    """

    def __init__(self, places: List[Place]):
        self._places = {place.id: place for place in places}

    async def get_details(self, place_id: str) -> Place:
        if place_id not in self._places:
            raise UpstreamFetchError(
                f"Place not found: {place_id}",
                status_code=404,
                body={"error": {"status": "NOT_FOUND"}},
            )
        return self._places[place_id]

    async def fetch_reviews(
        self, location_id: str, page_token: Optional[str] = None
    ) -> ReviewPage:
        if not location_id:
            raise ValueError("location_id must be a non-empty directory identifier")
        if page_token:
            return ReviewPage()
        place = await self.get_details(location_id)
        return ReviewPage(reviews=place.reviews)

    async def search_text(
        self, query: Optional[str], page_token: Optional[str] = None
    ) -> PlaceSearchPage:
        if not query and not page_token:
            raise ValueError("query or page_token is required")
        if page_token:
            return PlaceSearchPage()
        needle = (query or "").lower()
        return PlaceSearchPage(
            places=[
                p for p in self._places.values()
                if needle in p.name.lower() or needle in p.address.lower()
            ]
        )

    def get_source_name(self) -> str:
        return "static"
