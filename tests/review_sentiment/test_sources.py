"""
Unit tests for review sources and normalization.
"""

import json

import httpx
import pytest

from shared.review_sentiment import (
    MalformedResponseError,
    Place,
    StaticReviewSource,
    UpstreamFetchError,
    decode_review_text,
    normalize_place,
    normalize_review,
)
from shared.review_sentiment.sources import DETAILS_FIELD_MASK, SEARCH_FIELD_MASK


@pytest.mark.unit
class TestDecodeReviewText:
    """Tests for the review text union decode."""

    def test_plain_string(self):
        assert decode_review_text("Great pizza") == "Great pizza"

    def test_object_with_text(self):
        assert decode_review_text({"text": "Great pizza", "languageCode": "en"}) == "Great pizza"

    def test_object_without_text(self):
        assert decode_review_text({"languageCode": "en"}) == ""

    def test_object_with_non_string_text(self):
        assert decode_review_text({"text": 42}) == ""

    @pytest.mark.parametrize("raw", [None, 12, ["a"]])
    def test_other_shapes(self, raw):
        assert decode_review_text(raw) == ""


@pytest.mark.unit
class TestNormalization:
    """Tests for place and review normalization."""

    def test_normalize_place(self, sample_place_raw):
        place = normalize_place(sample_place_raw)

        assert place.id == "ChIJ-test-bistro"
        assert place.name == "Test Bistro"
        assert place.address == "1 Main Street, Springfield"
        assert place.rating == 4.3
        assert place.total_reviews == 182
        assert place.phone_number == "+1 555-0100"
        assert place.business_status == "OPERATIONAL"
        assert place.photo_name == "places/ChIJ-test-bistro/photos/abc123"
        assert place.opening_hours.open_now is True
        assert place.opening_hours.weekday_text[0].startswith("Monday")
        assert len(place.reviews) == 3

    def test_both_text_shapes_normalize(self, sample_place_raw):
        reviews = normalize_place(sample_place_raw).reviews

        assert reviews[0].text == "Great food and friendly staff!"
        assert reviews[1].text == "Slow service and cold soup."
        assert reviews[2].text == ""

    def test_review_defaults(self):
        review = normalize_review({"name": "r9", "rating": 4})

        assert review.author == "Anonymous"
        assert review.timestamp_label == "Recent"
        assert review.profile_photo_url == ""

    def test_rating_is_clamped(self):
        assert normalize_review({"name": "r", "rating": 9}).rating == 5
        assert normalize_review({"name": "r", "rating": "n/a"}).rating == 0

    def test_place_without_optional_fields(self):
        place = normalize_place({"id": "bare"})

        assert place.name == ""
        assert place.opening_hours is None
        assert place.reviews == []
        assert place.photo_name is None

    def test_non_object_place_rejected(self):
        with pytest.raises(MalformedResponseError):
            normalize_place(["not", "a", "place"])


@pytest.mark.unit
class TestPlacesDirectorySource:
    """Tests for the Places API adapter over a mock transport."""

    @pytest.mark.asyncio
    async def test_get_details(self, places_source_factory, sample_place_raw):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["headers"] = request.headers
            return httpx.Response(200, json=sample_place_raw)

        source = places_source_factory(handler)
        place = await source.get_details("ChIJ-test-bistro")
        await source.aclose()

        assert place.name == "Test Bistro"
        assert seen["url"] == "https://places.test/v1/places/ChIJ-test-bistro"
        assert seen["headers"]["X-Goog-Api-Key"] == "test-key"
        assert seen["headers"]["X-Goog-FieldMask"] == DETAILS_FIELD_MASK

    @pytest.mark.asyncio
    async def test_non_success_status_raises_with_status_and_body(self, places_source_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"error": {"status": "PERMISSION_DENIED"}})

        source = places_source_factory(handler)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await source.get_details("anything")

        assert exc_info.value.status_code == 403
        assert exc_info.value.body == {"error": {"status": "PERMISSION_DENIED"}}

    @pytest.mark.asyncio
    async def test_text_error_body_kept(self, places_source_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        source = places_source_factory(handler)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await source.get_details("anything")

        assert exc_info.value.status_code == 502
        assert exc_info.value.body == "Bad Gateway"

    @pytest.mark.asyncio
    async def test_network_error_raises_without_status(self, places_source_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        source = places_source_factory(handler)

        with pytest.raises(UpstreamFetchError) as exc_info:
            await source.get_details("anything")

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_non_object_body_is_malformed(self, places_source_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[1, 2, 3])

        source = places_source_factory(handler)

        with pytest.raises(MalformedResponseError):
            await source.get_details("anything")

    @pytest.mark.asyncio
    async def test_search_text(self, places_source_factory, sample_place_raw):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            seen["mask"] = request.headers["X-Goog-FieldMask"]
            return httpx.Response(200, json={"places": [sample_place_raw], "nextPageToken": "tok-2"})

        source = places_source_factory(handler)
        page = await source.search_text("bistro")

        assert seen["method"] == "POST"
        assert seen["path"] == "/v1/places:searchText"
        assert seen["body"]["textQuery"] == "bistro"
        assert seen["mask"] == SEARCH_FIELD_MASK
        assert [p.name for p in page.places] == ["Test Bistro"]
        assert page.next_page_token == "tok-2"

    @pytest.mark.asyncio
    async def test_search_requires_query_or_token(self, places_source_factory):
        source = places_source_factory(lambda request: httpx.Response(200, json={}))

        with pytest.raises(ValueError):
            await source.search_text(None)

    @pytest.mark.asyncio
    async def test_search_with_no_results(self, places_source_factory):
        source = places_source_factory(lambda request: httpx.Response(200, json={}))

        page = await source.search_text("nowhere")

        assert page.places == []
        assert page.next_page_token is None

    @pytest.mark.asyncio
    async def test_fetch_reviews(self, places_source_factory, sample_place_raw):
        source = places_source_factory(lambda request: httpx.Response(200, json=sample_place_raw))

        page = await source.fetch_reviews("ChIJ-test-bistro")
        continuation = await source.fetch_reviews("ChIJ-test-bistro", page_token="next")

        assert len(page.reviews) == 3
        assert page.next_page_token is None
        assert continuation.reviews == []

    @pytest.mark.asyncio
    async def test_get_photo_url(self, places_source_factory):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/v1/places/p/photos/abc/media"
            assert request.url.params["skipHttpRedirect"] == "true"
            return httpx.Response(200, json={"photoUri": "https://img.example.com/abc"})

        source = places_source_factory(handler)

        assert await source.get_photo_url("places/p/photos/abc") == "https://img.example.com/abc"

    @pytest.mark.asyncio
    async def test_photo_failure_returns_none(self, places_source_factory):
        source = places_source_factory(lambda request: httpx.Response(404, json={}))

        assert await source.get_photo_url("places/p/photos/abc") is None


@pytest.mark.unit
class TestStaticReviewSource:
    """Tests for the in-memory source."""

    @pytest.mark.asyncio
    async def test_missing_place_raises_404(self):
        source = StaticReviewSource([])

        with pytest.raises(UpstreamFetchError) as exc_info:
            await source.get_details("missing")

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_search_matches_name(self, sample_place):
        source = StaticReviewSource([sample_place, Place(id="other", name="Harbour Bar")])

        page = await source.search_text("corner")

        assert [p.id for p in page.places] == ["place-1"]


@pytest.mark.unit
class TestMalformedNestedShapes:
    """Wrong nested shapes surface as MalformedResponseError."""

    @pytest.mark.parametrize("raw", [
        {"id": "p1", "reviews": "oops"},
        {"id": "p1", "reviews": ["not a review"]},
        {"id": "p1", "reviews": [{"name": "r1", "authorAttribution": "someone"}]},
        {"id": "p1", "photos": ["places/p1/photos/a"]},
        {"id": "p1", "photos": {"name": "x"}},
        {"id": "p1", "regularOpeningHours": {"periods": ["mon"]}},
        {"id": "p1", "regularOpeningHours": "always"},
        {"id": "p1", "rating": "five"},
        {"id": "p1", "userRatingCount": [1]},
    ])
    def test_normalize_place(self, raw):
        with pytest.raises(MalformedResponseError):
            normalize_place(raw)

    def test_normalize_review_non_object(self):
        with pytest.raises(MalformedResponseError):
            normalize_review("great")

    @pytest.mark.asyncio
    async def test_details_with_malformed_reviews(self, places_source_factory):
        source = places_source_factory(
            lambda request: httpx.Response(200, json={"id": "p1", "reviews": "oops"})
        )

        with pytest.raises(MalformedResponseError):
            await source.get_details("p1")
