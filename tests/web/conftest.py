"""
Pytest fixtures for web API tests.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from shared.review_sentiment import (
    AggregateCache,
    ClaimStorage,
    Place,
    Review,
    ReviewSentimentService,
    StaticReviewSource,
)
from shared.review_sentiment.models import OpeningHours
from shared.review_agent import NarrativeSummarizer, SentimentClassifier
from web.server.api import claims, places
from web.server.api.errors import register_error_handlers


SAMPLE_PLACE = Place(
    id="ChIJ-corner-cafe",
    name="Corner Cafe",
    address="2 High Street, Springfield",
    rating=4.2,
    total_reviews=87,
    phone_number="+1 555-0199",
    website="https://cafe.example.com",
    opening_hours=OpeningHours(open_now=True, weekday_text=["Monday: 8:00 AM - 4:00 PM"]),
    business_status="OPERATIONAL",
    reviews=[
        Review(id="r1", author="Alice", rating=5, text="Excellent coffee and friendly staff", timestamp_label="a week ago"),
        Review(id="r2", author="Bob", rating=1, text="Rude service, cold food", timestamp_label="a month ago"),
        Review(id="r3", rating=4, text="", timestamp_label="2 months ago"),
        Review(id="r4", author="Dana", rating=5, text="Love it", timestamp_label="3 months ago"),
    ],
)


def build_app() -> FastAPI:
    """App with the review routers mounted the way the server mounts them."""
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(claims.router, prefix="/api")
    app.include_router(places.router, prefix="/api")
    return app


@pytest.fixture
def service() -> ReviewSentimentService:
    return ReviewSentimentService(
        source=StaticReviewSource([SAMPLE_PLACE]),
        classifier=SentimentClassifier(mock_llm=True),
        summarizer=NarrativeSummarizer(mock_llm=True),
        cache=AggregateCache(),
    )


@pytest.fixture
def client(service, tmp_path):
    """Test client with the service and a temporary claim store injected."""
    store = ClaimStorage(tmp_path / "claims.db")
    places.set_service(service)
    claims.set_claim_store(store)
    yield TestClient(build_app())
    places.set_service(None)
    claims.set_claim_store(None)
    store.close()


@pytest.fixture
def unconfigured_client():
    """Test client with no service, as after startup without API keys."""
    places.set_service(None)
    claims.set_claim_store(None)
    return TestClient(build_app())


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "llm: Tests that require LLM (may incur costs)")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")
