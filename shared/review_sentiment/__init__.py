"""
Review Sentiment Library

Aggregates customer reviews for a business location: fetches reviews from a
places directory, scores each review's sentiment with an LLM, and reduces the
results into rating and sentiment breakdowns with a narrative summary.

Main components:
    - Models: Pydantic models for data structures
    - Config: Settings loading and validation
    - Sources: Places directory adapter
    - Cache: Per-location result cache with single-flight
    - Storage: Claimed locations database
    - Service: The aggregation pipeline

Example usage:
    from shared.review_sentiment import (
        ReviewSentimentService,
        get_settings,
    )
    
    settings = get_settings()
    service = ReviewSentimentService.from_settings(settings)
    report = await service.analyze_location("ChIJN1t_tDeuEmsRUsoyG83frY4")
    print(report.aggregate.sentiment)
"""

# --- Exceptions ---
from .exceptions import (
    CacheError,
    ClassificationError,
    ConfigurationError,
    MalformedResponseError,
    ReviewSentimentError,
    StorageError,
    SummaryError,
    UpstreamFetchError,
)

# --- Models ---
from .models import (
    SENTIMENT_LABELS,
    SentimentLabel,
    Classification,
    ClassificationResult,
    Review,
    OpeningHours,
    Place,
    PlaceSearchPage,
    ReviewPage,
    RatingBucket,
    SentimentBreakdown,
    LocationAggregate,
    LocationReport,
    ClaimRecord,
)

# --- Configuration ---
from .config import (
    ReviewSentimentSettings,
    get_settings,
    get_cached_settings,
)

# --- Interfaces ---
from .interfaces import (
    ReviewSource,
    SentimentClassifierInterface,
    SummaryGeneratorInterface,
    ClaimStoreInterface,
)

# --- Sources ---
from .sources import (
    PlacesDirectorySource,
    StaticReviewSource,
    decode_review_text,
    normalize_place,
    normalize_review,
)

# --- Cache ---
from .cache import AggregateCache, SingleFlight

# --- Database / Storage ---
from .database import SCHEMA_VERSION, get_connection, create_schema
from .storage import ClaimStorage

# --- Service ---
from .service import NARRATIVE_FALLBACK, ReviewSentimentService

__all__ = [
    # Exceptions
    "ReviewSentimentError",
    "ConfigurationError",
    "UpstreamFetchError",
    "MalformedResponseError",
    "ClassificationError",
    "SummaryError",
    "StorageError",
    "CacheError",
    # Models
    "SENTIMENT_LABELS",
    "SentimentLabel",
    "Classification",
    "ClassificationResult",
    "Review",
    "OpeningHours",
    "Place",
    "PlaceSearchPage",
    "ReviewPage",
    "RatingBucket",
    "SentimentBreakdown",
    "LocationAggregate",
    "LocationReport",
    "ClaimRecord",
    # Configuration
    "ReviewSentimentSettings",
    "get_settings",
    "get_cached_settings",
    # Interfaces
    "ReviewSource",
    "SentimentClassifierInterface",
    "SummaryGeneratorInterface",
    "ClaimStoreInterface",
    # Sources
    "PlacesDirectorySource",
    "StaticReviewSource",
    "decode_review_text",
    "normalize_place",
    "normalize_review",
    # Cache
    "AggregateCache",
    "SingleFlight",
    # Database / Storage
    "SCHEMA_VERSION",
    "get_connection",
    "create_schema",
    "ClaimStorage",
    # Service
    "NARRATIVE_FALLBACK",
    "ReviewSentimentService",
]
