"""
Abstract interfaces for review_sentiment library.

These interfaces define the contracts that must be implemented by concrete classes.
They enable dependency injection and testing with mocks.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .models import (
    ClaimRecord,
    Classification,
    ClassificationResult,
    Place,
    PlaceSearchPage,
    ReviewPage,
)


class ReviewSource(ABC):
    """
    Abstract base class for review data sources.
    
    Implementations:
        - PlacesDirectorySource: Google Places API v1
        - StaticReviewSource: In-memory places (offline runs, tests)
    """

    @abstractmethod
    async def fetch_reviews(
        self, location_id: str, page_token: Optional[str] = None
    ) -> ReviewPage:
        """
        Fetch one page of reviews for a location.
        
        Args:
            location_id: Non-empty directory identifier
            page_token: Opaque token from a previous page
            
        Returns:
            ReviewPage with normalized reviews

        Raises:
            UpstreamFetchError: Directory unreachable or non-2xx
        """
        pass

    @abstractmethod
    async def get_details(self, place_id: str) -> Place:
        """Fetch one place with its reviews."""
        pass

    @abstractmethod
    async def search_text(
        self, query: Optional[str], page_token: Optional[str] = None
    ) -> PlaceSearchPage:
        """Search places by free text."""
        pass

    async def get_photo_url(self, photo_name: str) -> Optional[str]:
        """Resolve a photo resource name to a URL. Sources without photos return None."""
        return None

    async def aclose(self) -> None:
        """Release network resources."""
        return None

    def get_source_name(self) -> str:
        """Get the name/identifier of this source."""
        return self.__class__.__name__


class SentimentClassifierInterface(ABC):
    """
    Abstract interface for per-review sentiment classification.
    
    Concrete implementation: SentimentClassifier (in review_agent/classifier.py)
    """

    @abstractmethod
    async def try_classify(self, text: str) -> ClassificationResult:
        """Classify one review text, reporting failure as an error result."""
        pass

    async def classify(self, text: str) -> Optional[Classification]:
        """Classify one review text; None means neutral/unscored."""
        result = await self.try_classify(text)
        return result.classification

    @abstractmethod
    def get_token_usage(self) -> Dict[str, int]:
        """Get cumulative token usage stats."""
        pass


class SummaryGeneratorInterface(ABC):
    """
    Abstract interface for narrative summaries over a location's reviews.
    """

    @abstractmethod
    async def generate_summary(self, texts: List[str], location_name: str) -> str:
        """
        Generate a short actionable summary paragraph.
        
        Raises:
            SummaryError: If the LLM call fails or returns nothing
        """
        pass


class ClaimStoreInterface(ABC):
    """
    Abstract interface for location claims.
    
    Concrete implementation: ClaimStorage (in storage.py)
    """

    @abstractmethod
    def is_claimed(self, user_id: str, place_id: str) -> bool:
        pass

    @abstractmethod
    def claim(self, user_id: str, place_id: str, name: str, address: str) -> ClaimRecord:
        pass

    @abstractmethod
    def unclaim(self, user_id: str, place_id: str) -> bool:
        """Remove a claim. Returns True if one existed."""
        pass

    def toggle_claim(self, user_id: str, place_id: str, name: str, address: str) -> bool:
        """
        Claim the place if unclaimed, otherwise remove the claim.
        
        Returns:
            True if the place is claimed after the call
        """
        if self.unclaim(user_id, place_id):
            return False
        self.claim(user_id, place_id, name, address)
        return True

    @abstractmethod
    def list_claims(self, user_id: str) -> List[ClaimRecord]:
        pass

    @abstractmethod
    def get_claim_by_place(self, place_id: str) -> Optional[ClaimRecord]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass
