"""
Sentiment and rating aggregation for a location's reviews.

Reduces classified reviews into rounded percentage breakdowns.
"""

import logging
import math
from collections import Counter
from typing import List, Sequence

from shared.review_sentiment.models import (
    LocationAggregate,
    RatingBucket,
    Review,
    SentimentBreakdown,
    SentimentLabel,
)

logger = logging.getLogger(__name__)

STAR_VALUES = [5, 4, 3, 2, 1]


def percentage(count: int, total: int) -> int:
    """
    Share of total as a whole percent, rounding halves up.
    
    Returns 0 when total is 0.
    """
    if total <= 0:
        return 0
    return int(math.floor(100.0 * count / total + 0.5))


def effective_label(review: Review) -> SentimentLabel:
    """Label used for aggregation: unscored or failed reviews count as neutral."""
    if review.sentiment_label is None:
        return SentimentLabel.NEUTRAL
    return review.sentiment_label


class SentimentAggregator:
    """
    Computes star-rating and sentiment breakdowns.
    
    Each percentage is rounded independently, so a group may sum to 99 or
    101. The math is order-independent; callers keep review order for display.
    """

    def rating_breakdown(self, reviews: Sequence[Review]) -> List[RatingBucket]:
        """
        Percentage of rated reviews per star value, 5 stars first.
        
        Unrated reviews (rating 0) are left out of the total so the buckets
        still sum to about 100.
        """
        rated = [review.rating for review in reviews if review.rating in STAR_VALUES]
        total = len(rated)
        counts = Counter(rated)
        return [
            RatingBucket(stars=stars, percentage=percentage(counts.get(stars, 0), total))
            for stars in STAR_VALUES
        ]

    def sentiment_breakdown(self, reviews: Sequence[Review]) -> SentimentBreakdown:
        """Percentage of reviews per sentiment label."""
        total = len(reviews)
        counts = Counter(effective_label(review) for review in reviews)
        return SentimentBreakdown(
            positive=percentage(counts.get(SentimentLabel.POSITIVE, 0), total),
            neutral=percentage(counts.get(SentimentLabel.NEUTRAL, 0), total),
            negative=percentage(counts.get(SentimentLabel.NEGATIVE, 0), total),
        )

    def aggregate(
        self,
        location_id: str,
        reviews: Sequence[Review],
        narrative: str = "",
    ) -> LocationAggregate:
        """
        Build the aggregate for one location.
        
        Args:
            location_id: Directory identifier of the location
            reviews: Classified reviews (unclassified ones count as neutral)
            narrative: Summary text, "" when unavailable
        """
        unscored = sum(1 for review in reviews if review.sentiment_score is None)
        if unscored:
            logger.debug(f"{location_id}: {unscored}/{len(reviews)} reviews unscored, counted neutral")

        return LocationAggregate(
            location_id=location_id,
            rating_breakdown=self.rating_breakdown(reviews),
            sentiment=self.sentiment_breakdown(reviews),
            narrative=narrative,
            review_count=len(reviews),
            unscored_count=unscored,
        )
