"""
Pytest fixtures for review_sentiment tests.
"""

from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest

from shared.review_sentiment import (
    AggregateCache,
    ClaimStorage,
    Place,
    PlacesDirectorySource,
    Review,
    ReviewSentimentService,
    StaticReviewSource,
)
from shared.review_agent import NarrativeSummarizer, SentimentClassifier


# --- Sample Data ---

SAMPLE_PLACE_RAW: Dict[str, Any] = {
    "id": "ChIJ-test-bistro",
    "displayName": {"text": "Test Bistro", "languageCode": "en"},
    "formattedAddress": "1 Main Street, Springfield",
    "rating": 4.3,
    "userRatingCount": 182,
    "internationalPhoneNumber": "+1 555-0100",
    "websiteUri": "https://bistro.example.com",
    "businessStatus": "OPERATIONAL",
    "regularOpeningHours": {
        "periods": [
            {"open": {"day": 1, "hour": 9, "minute": 0}, "close": {"day": 1, "hour": 17, "minute": 0}},
        ],
        "weekdayDescriptions": ["Monday: 9:00 AM - 5:00 PM", "Tuesday: Closed"],
    },
    "photos": [{"name": "places/ChIJ-test-bistro/photos/abc123"}],
    "reviews": [
        {
            "name": "places/ChIJ-test-bistro/reviews/r1",
            "rating": 5,
            "text": {"text": "Great food and friendly staff!", "languageCode": "en"},
            "relativePublishTimeDescription": "a week ago",
            "authorAttribution": {"displayName": "Alice", "photoUri": "https://photos.example.com/alice"},
        },
        {
            "name": "places/ChIJ-test-bistro/reviews/r2",
            "rating": 2,
            "text": "Slow service and cold soup.",
            "relativePublishTimeDescription": "2 months ago",
            "authorAttribution": {"displayName": "Bob"},
        },
        {
            "name": "places/ChIJ-test-bistro/reviews/r3",
            "rating": 3,
            "text": {"languageCode": "en"},
        },
    ],
}


def make_review(review_id: str, rating: int = 5, text: str = "Great place", **kwargs: Any) -> Review:
    """Build a Review with sensible defaults."""
    return Review(id=review_id, rating=rating, text=text, **kwargs)


def make_place(place_id: str = "place-1", name: str = "Corner Cafe", reviews: Optional[List[Review]] = None) -> Place:
    """Build a Place with sensible defaults."""
    if reviews is None:
        reviews = [
            make_review("r1", 5, "Excellent coffee, friendly staff"),
            make_review("r2", 1, "Terrible and rude service"),
            make_review("r3", 4, "Fine"),
        ]
    return Place(
        id=place_id,
        name=name,
        address="2 High Street, Springfield",
        rating=4.1,
        total_reviews=len(reviews),
        reviews=reviews,
    )


# --- Fixtures ---

@pytest.fixture
def sample_place_raw() -> Dict[str, Any]:
    """Directory details response for one place."""
    return SAMPLE_PLACE_RAW


@pytest.fixture
def sample_place() -> Place:
    return make_place()


@pytest.fixture
def mock_classifier() -> SentimentClassifier:
    """Keyword-heuristic classifier (no LLM calls)."""
    return SentimentClassifier(mock_llm=True)


@pytest.fixture
def mock_summarizer() -> NarrativeSummarizer:
    return NarrativeSummarizer(mock_llm=True)


@pytest.fixture
def static_service(sample_place, mock_classifier, mock_summarizer) -> ReviewSentimentService:
    """Service over an in-memory source with mock LLM components."""
    return ReviewSentimentService(
        source=StaticReviewSource([sample_place]),
        classifier=mock_classifier,
        summarizer=mock_summarizer,
        cache=AggregateCache(),
    )


@pytest.fixture
def places_source_factory() -> Callable[[Callable[[httpx.Request], httpx.Response]], PlacesDirectorySource]:
    """Build a PlacesDirectorySource whose HTTP calls go to a handler function."""
    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> PlacesDirectorySource:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return PlacesDirectorySource(
            api_key="test-key",
            base_url="https://places.test/v1",
            client=client,
        )
    return factory


@pytest.fixture
def claim_storage(tmp_path) -> ClaimStorage:
    """Claim storage in a temporary database."""
    storage = ClaimStorage(tmp_path / "claims.db")
    yield storage
    storage.close()


# --- Pytest Configuration ---

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "llm: Tests that require LLM (may incur costs)")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")
