"""
Review sentiment pipeline service.

Fetches a location's reviews, classifies each one, aggregates the results
and asks for a narrative summary. Results are cached per location.
"""

import asyncio
import logging
from typing import TYPE_CHECKING, List, Optional

from .cache import AggregateCache, SingleFlight
from .config import ReviewSentimentSettings
from .exceptions import ClassificationError, SummaryError
from .interfaces import ReviewSource, SentimentClassifierInterface, SummaryGeneratorInterface
from .models import (
    ClassificationResult,
    LocationReport,
    Place,
    PlaceSearchPage,
    Review,
    ReviewPage,
)

if TYPE_CHECKING:
    from shared.review_agent.aggregator import SentimentAggregator

logger = logging.getLogger(__name__)

NARRATIVE_FALLBACK = ""


class ReviewSentimentService:
    """
    Orchestrates source -> classifier -> aggregator -> cache.
    
    Control flow for one location:
        1. Fetch place details (with reviews) from the source
        2. Classify reviews concurrently (bounded, with per-call timeout)
           while the narrative summary and photo lookup run alongside
        3. Aggregate percentages and store the report in the cache
    
    Classification and summary failures degrade (neutral / empty narrative);
    source failures propagate as UpstreamFetchError.
    """

    def __init__(
        self,
        source: ReviewSource,
        classifier: SentimentClassifierInterface,
        summarizer: SummaryGeneratorInterface,
        aggregator: Optional["SentimentAggregator"] = None,
        cache: Optional[AggregateCache] = None,
        concurrency: int = 5,
        classification_timeout: float = 20.0,
        summary_timeout: float = 30.0,
        single_flight: bool = True,
    ):
        """
        Initialize the service.
        
        Args:
            source: Review source (places directory)
            classifier: Per-review sentiment classifier
            summarizer: Narrative summary generator
            aggregator: SentimentAggregator (default instance if None)
            cache: Result cache (new empty cache if None)
            concurrency: Max concurrent classification calls per batch
            classification_timeout: Seconds before one classification counts as failed
            summary_timeout: Seconds before the narrative falls back
            single_flight: Share one computation between concurrent requests
                for the same location
        """
        if aggregator is None:
            from shared.review_agent.aggregator import SentimentAggregator
            aggregator = SentimentAggregator()

        self.source = source
        self.classifier = classifier
        self.summarizer = summarizer
        self.aggregator = aggregator
        self.cache = cache if cache is not None else AggregateCache()
        self.concurrency = max(1, concurrency)
        self.classification_timeout = classification_timeout
        self.summary_timeout = summary_timeout
        self.single_flight = single_flight
        self._flights = SingleFlight()

    @classmethod
    def from_settings(
        cls,
        settings: ReviewSentimentSettings,
        source: Optional[ReviewSource] = None,
        classifier: Optional[SentimentClassifierInterface] = None,
        summarizer: Optional[SummaryGeneratorInterface] = None,
        cache: Optional[AggregateCache] = None,
    ) -> "ReviewSentimentService":
        """
        Build a service from settings, creating any component not supplied.
        
        Raises:
            ConfigurationError: If a required API key is missing
        """
        from shared.review_agent import NarrativeSummarizer, SentimentClassifier
        from .sources import PlacesDirectorySource

        return cls(
            source=source or PlacesDirectorySource.from_settings(settings),
            classifier=classifier or SentimentClassifier.from_settings(settings),
            summarizer=summarizer or NarrativeSummarizer.from_settings(settings),
            cache=cache,
            concurrency=settings.classification_concurrency,
            classification_timeout=settings.classification_timeout_seconds,
            summary_timeout=settings.summary_timeout_seconds,
            single_flight=settings.single_flight,
        )

    # --- Classification ---

    async def _classify_one(self, review: Review, semaphore: asyncio.Semaphore) -> Review:
        async with semaphore:
            try:
                result = await asyncio.wait_for(
                    self.classifier.try_classify(review.text),
                    timeout=self.classification_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Classification of review {review.id} timed out after "
                    f"{self.classification_timeout}s"
                )
                result = ClassificationResult.failure(ClassificationError("Classification timed out"))

        if not result.ok:
            logger.debug(f"Review {review.id} unscored: {result.error}")
        return review.with_classification(result)

    async def classify_reviews(self, reviews: List[Review]) -> List[Review]:
        """
        Classify reviews concurrently, preserving order.
        
        Failed or timed-out classifications yield a neutral, unscored review.
        """
        if not reviews:
            return []
        semaphore = asyncio.Semaphore(self.concurrency)
        return list(await asyncio.gather(
            *(self._classify_one(review, semaphore) for review in reviews)
        ))

    # --- Narrative ---

    async def summarize(self, texts: List[str], location_name: str) -> str:
        """Narrative summary, or NARRATIVE_FALLBACK if it cannot be produced."""
        if not any(t and t.strip() for t in texts):
            return NARRATIVE_FALLBACK
        try:
            return await asyncio.wait_for(
                self.summarizer.generate_summary(texts, location_name),
                timeout=self.summary_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Narrative summary for {location_name} timed out")
        except SummaryError as e:
            logger.warning(f"Narrative summary for {location_name} unavailable: {e}")
        return NARRATIVE_FALLBACK

    async def analyze_texts(self, texts: List[str], location_name: str) -> str:
        """Narrative summary for free-standing review texts."""
        return await self.summarize(texts, location_name)

    # --- Locations ---

    async def _photo_url(self, place: Place) -> Optional[str]:
        if not place.photo_name:
            return None
        return await self.source.get_photo_url(place.photo_name)

    async def _build_report(self, location_id: str) -> LocationReport:
        place = await self.source.get_details(location_id)
        logger.info(f"Analyzing {len(place.reviews)} reviews for {location_id}")

        reviews, narrative, photo_url = await asyncio.gather(
            self.classify_reviews(place.reviews),
            self.summarize([r.text for r in place.reviews], place.name or location_id),
            self._photo_url(place),
        )

        aggregate = self.aggregator.aggregate(location_id, reviews, narrative)
        report = LocationReport(
            place=place.model_copy(update={"reviews": reviews, "photo_url": photo_url}),
            reviews=reviews,
            aggregate=aggregate,
        )
        self.cache.put(location_id, report)
        return report

    async def analyze_location(self, location_id: str, refresh: bool = False) -> LocationReport:
        """
        Get the report for a location, computing it if not cached.
        
        Args:
            location_id: Directory identifier
            refresh: Ignore any cached report
        
        Raises:
            ValueError: If location_id is empty
            UpstreamFetchError: If the directory fetch fails
        """
        if not location_id:
            raise ValueError("location_id must be a non-empty directory identifier")

        if not refresh:
            cached = self.cache.get(location_id)
            if cached is not None:
                logger.debug(f"Cache hit for {location_id}")
                return cached

        if self.single_flight:
            return await self._flights.do(location_id, lambda: self._build_report(location_id))
        return await self._build_report(location_id)

    async def get_place(self, place_id: str) -> Place:
        """Normalized place without sentiment, with its photo URL resolved."""
        place = await self.source.get_details(place_id)
        photo_url = await self._photo_url(place)
        return place.model_copy(update={"photo_url": photo_url})

    def get_cached_report(self, location_id: str) -> Optional[LocationReport]:
        return self.cache.get(location_id)

    async def fetch_reviews(
        self, location_id: str, page_token: Optional[str] = None
    ) -> ReviewPage:
        """One page of classified reviews for a location."""
        page = await self.source.fetch_reviews(location_id, page_token)
        reviews = await self.classify_reviews(page.reviews)
        return ReviewPage(reviews=reviews, next_page_token=page.next_page_token)

    async def search_places(
        self, query: Optional[str], page_token: Optional[str] = None
    ) -> PlaceSearchPage:
        """Text search with every place's reviews classified."""
        page = await self.source.search_text(query, page_token)

        all_reviews = [review for place in page.places for review in place.reviews]
        classified = await self.classify_reviews(all_reviews)

        places = []
        offset = 0
        for place in page.places:
            count = len(place.reviews)
            places.append(place.model_copy(update={"reviews": classified[offset:offset + count]}))
            offset += count

        return PlaceSearchPage(places=places, next_page_token=page.next_page_token)

    async def aclose(self) -> None:
        await self.source.aclose()
