"""
Pytest fixtures for review_agent tests.
"""

from typing import List, Optional

import pytest
from langchain_core.language_models.fake_chat_models import FakeListChatModel

from shared.review_sentiment import Review, SentimentLabel


def make_review(
    review_id: str,
    rating: int = 5,
    label: Optional[SentimentLabel] = None,
    score: Optional[float] = None,
) -> Review:
    """Build a classified (or unclassified) review."""
    if label is not None and score is None:
        score = {"positive": 0.7, "neutral": 0.0, "negative": -0.7}[label.value]
    return Review(
        id=review_id,
        rating=rating,
        text=f"review {review_id}",
        sentiment_label=label,
        sentiment_score=score,
    )


@pytest.fixture
def fake_llm_factory():
    """Build a fake chat model that replies with the given messages in turn."""
    def factory(responses: List[str]) -> FakeListChatModel:
        return FakeListChatModel(responses=responses)
    return factory


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "llm: Tests that require LLM (may incur costs)")
    config.addinivalue_line("markers", "slow: Tests that take longer to run")
