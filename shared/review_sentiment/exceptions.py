"""
Exception hierarchy for review_sentiment library.

All exceptions inherit from ReviewSentimentError for easy catching of library-specific errors.
"""

from typing import Any, Optional


class ReviewSentimentError(Exception):
    """Base exception for review_sentiment library."""

    pass


class ConfigurationError(ReviewSentimentError):
    """Raised when configuration is invalid or missing.
    
    Examples:
        - Missing places directory API key
        - Missing LLM API key when the mock LLM is disabled
    """

    pass


class UpstreamFetchError(ReviewSentimentError):
    """Raised when the places directory is unreachable or answers non-2xx.
    
    Carries the upstream status (None when no response was received)
    and the decoded response body so the HTTP layer can mirror it.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class MalformedResponseError(ReviewSentimentError):
    """Raised when an external API returns an unexpected shape.
    
    Examples:
        - Places response that is not a JSON object
        - Chat completion without any content
    """

    pass


class ClassificationError(ReviewSentimentError):
    """Raised when sentiment classification of a review fails.
    
    Never surfaced to HTTP callers: the classifier collapses it into an
    error result and the aggregator counts the review as neutral.
    """

    pass


class SummaryError(ReviewSentimentError):
    """Raised when the narrative summary call fails."""

    pass


class StorageError(ReviewSentimentError):
    """Raised when claim database operations fail."""

    pass


class CacheError(ReviewSentimentError):
    """Raised when cache operations fail."""

    pass
