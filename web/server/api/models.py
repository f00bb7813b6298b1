#!/usr/bin/env python3

"""
Pydantic models for API requests and responses built from review_sentiment models.

Field names follow what the dashboard front end reads, which mixes
camelCase (search results) and snake_case (place details).
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Union

from shared.review_sentiment.models import (
    ClaimRecord,
    LocationReport,
    OpeningHours,
    Place,
    Review,
)


class SentimentScore(BaseModel):
    """Per-review classification as returned in search results."""
    score: Optional[float] = None
    label: str


class OpeningHoursResponse(BaseModel):
    open_now: bool = False
    weekday_text: List[str] = Field(default_factory=list)

    @classmethod
    def from_hours(cls, hours: Optional[OpeningHours]) -> Optional["OpeningHoursResponse"]:
        if hours is None:
            return None
        return cls(open_now=hours.open_now, weekday_text=hours.weekday_text)


class SearchReviewResponse(BaseModel):
    """Review embedded in a search result."""
    id: str
    rating: int
    text: str
    author: str
    date: str
    profilePhotoUrl: str = ""
    sentiment: Optional[SentimentScore] = None

    @classmethod
    def from_review(cls, review: Review) -> "SearchReviewResponse":
        sentiment = None
        # Unscored reviews are reported as null, the UI shows them as neutral
        if review.sentiment_score is not None and review.sentiment_label is not None:
            sentiment = SentimentScore(
                score=review.sentiment_score, label=review.sentiment_label.value
            )
        return cls(
            id=review.id,
            rating=review.rating,
            text=review.text,
            author=review.author,
            date=review.timestamp_label,
            profilePhotoUrl=review.profile_photo_url,
            sentiment=sentiment,
        )


class PlaceResponse(BaseModel):
    """Place as listed in search results and the plain place lookup."""
    id: str
    placeId: str
    name: str
    address: str
    rating: float
    totalReviews: int
    phoneNumber: str
    website: str
    openingHours: Optional[OpeningHoursResponse] = None
    businessStatus: str
    photoUrl: Optional[str] = None
    reviews: List[SearchReviewResponse] = Field(default_factory=list)

    @classmethod
    def from_place(cls, place: Place) -> "PlaceResponse":
        return cls(
            id=place.id,
            placeId=place.id,
            name=place.name,
            address=place.address,
            rating=place.rating,
            totalReviews=place.total_reviews,
            phoneNumber=place.phone_number,
            website=place.website,
            openingHours=OpeningHoursResponse.from_hours(place.opening_hours),
            businessStatus=place.business_status,
            photoUrl=place.photo_url,
            reviews=[SearchReviewResponse.from_review(r) for r in place.reviews],
        )


class PlaceSearchResponse(BaseModel):
    places: List[PlaceResponse]
    nextPageToken: Optional[str] = None


class DetailReviewResponse(BaseModel):
    """Review in the location detail view."""
    id: str
    author: str
    rating: int
    text: str
    time: str
    profilePhotoUrl: str = ""
    sentiment: str
    sentimentScore: Optional[float] = None

    @classmethod
    def from_review(cls, review: Review) -> "DetailReviewResponse":
        label = review.sentiment_label.value if review.sentiment_label else "neutral"
        return cls(
            id=review.id,
            author=review.author,
            rating=review.rating,
            text=review.text,
            time=review.timestamp_label,
            profilePhotoUrl=review.profile_photo_url,
            sentiment=label,
            sentimentScore=review.sentiment_score,
        )


class SentimentSummaryResponse(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    analysis: str = ""


class RatingBucketResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    stars: int
    percentage: int


class PlaceDetailsResponse(BaseModel):
    """Full location detail with sentiment breakdown."""
    id: str
    name: str
    rating: float
    user_ratings_total: int
    formatted_address: str
    formatted_phone_number: str
    website: str = ""
    business_status: str
    photo_url: Optional[str] = None
    opening_hours: OpeningHoursResponse
    reviews: List[DetailReviewResponse]
    ratingBreakdown: List[RatingBucketResponse]
    sentiment: SentimentSummaryResponse
    unscoredReviews: int = 0
    generatedAt: str

    @classmethod
    def from_report(cls, report: LocationReport) -> "PlaceDetailsResponse":
        place = report.place
        aggregate = report.aggregate
        return cls(
            id=place.id,
            name=place.name,
            rating=place.rating,
            user_ratings_total=place.total_reviews,
            formatted_address=place.address,
            formatted_phone_number=place.phone_number,
            website=place.website,
            business_status=place.business_status or "OPERATIONAL",
            photo_url=place.photo_url,
            opening_hours=(
                OpeningHoursResponse.from_hours(place.opening_hours) or OpeningHoursResponse()
            ),
            reviews=[DetailReviewResponse.from_review(r) for r in report.reviews],
            ratingBreakdown=[
                RatingBucketResponse.model_validate(bucket)
                for bucket in aggregate.rating_breakdown
            ],
            sentiment=SentimentSummaryResponse(
                positive=aggregate.sentiment.positive,
                neutral=aggregate.sentiment.neutral,
                negative=aggregate.sentiment.negative,
                analysis=aggregate.narrative,
            ),
            unscoredReviews=aggregate.unscored_count,
            generatedAt=report.generated_at.isoformat(),
        )


class ReviewPageResponse(BaseModel):
    reviews: List[SearchReviewResponse]
    nextPageToken: Optional[str] = None


class ReviewForAnalysis(BaseModel):
    text: str = ""
    rating: Optional[int] = None


class AnalyzeSentimentRequest(BaseModel):
    """Reviews may be plain strings or {text, rating} objects."""
    reviews: Optional[List[Union[str, ReviewForAnalysis]]] = None
    locationName: str = "this business"

    def review_texts(self) -> List[str]:
        texts = []
        for review in self.reviews or []:
            texts.append(review if isinstance(review, str) else review.text)
        return texts


class AnalyzeSentimentResponse(BaseModel):
    analysis: str


# --- Claims ---

class ClaimRequest(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None


class ClaimStatusResponse(BaseModel):
    claimed: bool


class ClaimResponse(BaseModel):
    id: Optional[int] = None
    placeId: str
    name: str
    address: str
    createdAt: Optional[str] = None

    @classmethod
    def from_record(cls, record: ClaimRecord) -> "ClaimResponse":
        return cls(
            id=record.id,
            placeId=record.place_id,
            name=record.name,
            address=record.address,
            createdAt=record.created_utc,
        )
