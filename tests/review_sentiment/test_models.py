"""
Unit tests for review_sentiment models.
"""

import pytest
from pydantic import ValidationError

from shared.review_sentiment import (
    Classification,
    ClassificationError,
    ClassificationResult,
    Review,
    SentimentLabel,
)


@pytest.mark.unit
class TestClassificationResult:
    """Tests for the explicit classification result."""

    def test_success(self):
        result = ClassificationResult.success(
            Classification(score=0.6, label=SentimentLabel.POSITIVE)
        )
        assert result.ok
        assert result.error is None
        assert result.classification.score == 0.6

    def test_failure(self):
        result = ClassificationResult.failure(ClassificationError("bad reply"))
        assert not result.ok
        assert result.classification is None
        assert "bad reply" in str(result.error)


@pytest.mark.unit
class TestReview:
    """Tests for Review model."""

    def test_defaults(self):
        review = Review(id="r1")
        assert review.author == "Anonymous"
        assert review.rating == 0
        assert review.text == ""
        assert review.timestamp_label == "Recent"
        assert review.sentiment_label is None
        assert review.sentiment_score is None

    def test_rating_out_of_range_rejected(self):
        with pytest.raises(ValidationError):
            Review(id="r1", rating=6)

    def test_with_classification_success(self):
        review = Review(id="r1", rating=5, text="Lovely")
        result = ClassificationResult.success(
            Classification(score=0.9, label=SentimentLabel.POSITIVE)
        )

        classified = review.with_classification(result)

        assert classified.sentiment_label == SentimentLabel.POSITIVE
        assert classified.sentiment_score == 0.9
        # Original is untouched
        assert review.sentiment_label is None

    def test_with_classification_failure_is_neutral_unscored(self):
        review = Review(id="r1", rating=1, text="???")
        classified = review.with_classification(
            ClassificationResult.failure(ClassificationError("timeout"))
        )

        assert classified.sentiment_label == SentimentLabel.NEUTRAL
        assert classified.sentiment_score is None
        assert classified.text == "???"


@pytest.mark.unit
class TestSentimentLabel:
    """Tests for SentimentLabel enum."""

    def test_values(self):
        assert {label.value for label in SentimentLabel} == {"positive", "neutral", "negative"}

    def test_string_comparison(self):
        assert SentimentLabel.NEGATIVE == "negative"
