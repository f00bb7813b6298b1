"""
Pydantic models for review_sentiment library.

All data structures used throughout the library are defined here for consistency
and validation. Models use Pydantic for automatic validation and serialization.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ClassificationError


# --- Sentiment ---


class SentimentLabel(str, Enum):
    """The three labels the classifier may assign to a review."""

    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


SENTIMENT_LABELS = [label.value for label in SentimentLabel]


class Classification(BaseModel):
    """Sentiment result for one review."""

    model_config = ConfigDict(frozen=True)

    score: float = Field(..., description="Sentiment score, nominally -1.0 to 1.0")
    label: SentimentLabel = Field(..., description="Sentiment label")


@dataclass(frozen=True)
class ClassificationResult:
    """
    Outcome of one classification call.

    Exactly one of ``classification`` and ``error`` is set. Callers decide how
    to treat the error case; the aggregator counts it as neutral.
    """

    classification: Optional[Classification] = None
    error: Optional[ClassificationError] = None

    @property
    def ok(self) -> bool:
        return self.classification is not None

    @classmethod
    def success(cls, classification: Classification) -> "ClassificationResult":
        return cls(classification=classification)

    @classmethod
    def failure(cls, error: ClassificationError) -> "ClassificationResult":
        return cls(error=error)


# --- Places Directory Models ---


class Review(BaseModel):
    """
    A single review fetched from the places directory.

    Sentiment fields are filled in by the classifier, which returns a new
    instance; reviews are never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Directory review identifier")
    author: str = Field(default="Anonymous", description="Author display name")
    rating: int = Field(default=0, ge=0, le=5, description="Star rating 1-5 (0 = unrated)")
    text: str = Field(default="", description="Normalized review text")
    timestamp_label: str = Field(
        default="Recent", description='Relative publish time (e.g., "2 weeks ago")'
    )
    profile_photo_url: str = Field(default="", description="Author photo URL")
    sentiment_label: Optional[SentimentLabel] = Field(
        default=None, description="Label assigned by the classifier"
    )
    sentiment_score: Optional[float] = Field(
        default=None, description="Score assigned by the classifier (None = unscored)"
    )

    def with_classification(self, result: ClassificationResult) -> "Review":
        """Return a copy carrying the classification (neutral/unscored on error)."""
        if result.classification is None:
            return self.model_copy(
                update={"sentiment_label": SentimentLabel.NEUTRAL, "sentiment_score": None}
            )
        return self.model_copy(
            update={
                "sentiment_label": result.classification.label,
                "sentiment_score": result.classification.score,
            }
        )


class OpeningHours(BaseModel):
    """Opening hours as displayed in the dashboard."""

    open_now: bool = False
    weekday_text: List[str] = Field(default_factory=list)


class Place(BaseModel):
    """A business location from the places directory."""

    id: str = Field(..., description="Opaque directory identifier")
    name: str = ""
    address: str = ""
    rating: float = 0.0
    total_reviews: int = 0
    phone_number: str = ""
    website: str = ""
    opening_hours: Optional[OpeningHours] = None
    business_status: str = ""
    reviews: List[Review] = Field(default_factory=list)
    photo_name: Optional[str] = Field(
        default=None, description="Resource name of the first photo, if any"
    )
    photo_url: Optional[str] = None


class PlaceSearchPage(BaseModel):
    """One page of text-search results."""

    places: List[Place] = Field(default_factory=list)
    next_page_token: Optional[str] = None


class ReviewPage(BaseModel):
    """One page of reviews for a location."""

    reviews: List[Review] = Field(default_factory=list)
    next_page_token: Optional[str] = None


# --- Aggregation Models ---


class RatingBucket(BaseModel):
    """Share of reviews with a given star rating."""

    stars: int = Field(..., ge=1, le=5)
    percentage: int = Field(..., ge=0, le=100)


class SentimentBreakdown(BaseModel):
    """Rounded share of each sentiment label (each 0-100)."""

    positive: int = Field(default=0, ge=0, le=100)
    neutral: int = Field(default=0, ge=0, le=100)
    negative: int = Field(default=0, ge=0, le=100)


class LocationAggregate(BaseModel):
    """
    Derived percentages and narrative for one location's review set.

    Percentages are rounded independently, so each group sums to within 1 of
    100 for a non-empty review set and to 0 for an empty one.
    """

    location_id: str
    rating_breakdown: List[RatingBucket] = Field(default_factory=list)
    sentiment: SentimentBreakdown = Field(default_factory=SentimentBreakdown)
    narrative: str = ""
    review_count: int = 0
    unscored_count: int = Field(
        default=0, description="Reviews whose classification failed (counted neutral)"
    )


class LocationReport(BaseModel):
    """Cached result for a location: the place, its classified reviews and the aggregate."""

    place: Place
    reviews: List[Review] = Field(default_factory=list)
    aggregate: LocationAggregate
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# --- Claims ---


class ClaimRecord(BaseModel):
    """Binds a location to the user who claimed it."""

    id: Optional[int] = None
    user_id: str
    place_id: str
    name: str
    address: str
    created_utc: Optional[str] = None
