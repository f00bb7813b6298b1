"""
Narrative summary generation over a location's reviews.

Uses LLM to turn raw review texts into a short, actionable paragraph.
"""

import logging
from typing import Any, Dict, List, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.review_sentiment.config import ReviewSentimentSettings
from shared.review_sentiment.exceptions import ConfigurationError, SummaryError
from shared.review_sentiment.interfaces import SummaryGeneratorInterface

logger = logging.getLogger(__name__)


SUMMARY_SYSTEM_PROMPT = (
    "You are an expert in analyzing customer reviews for local businesses (mainly restaurants). "
    "Provide a concise but comprehensive analysis that includes: 1) Overall sentiment direction "
    "2) Key themes or patterns 3) Notable strengths or areas for improvement. Keep the response "
    "to 5-7 sentences maximum and focus on actionable insights. Make sure the response flows "
    "well and can be read as a paragraph."
)

SUMMARY_USER_TEMPLATE = (
    "Please analyze these reviews for {location_name} and provide a detailed summary "
    "of the overall sentiment:\n\n{combined_reviews}"
)


class NarrativeSummarizer(SummaryGeneratorInterface):
    """
    Generates a 5-7 sentence summary of a location's reviews.
    
    Independent of per-review classification: it only needs the raw text,
    so it can run while reviews are being classified.
    """

    def __init__(
        self,
        llm_model: str = "gpt-3.5-turbo",
        llm_temperature: float = 0.7,  # Higher than classification for more natural text
        max_tokens: int = 200,
        api_key: Optional[str] = None,
        max_retries: int = 2,
        mock_llm: bool = False,
        llm: Optional[BaseChatModel] = None,
    ):
        """
        Initialize summary generator.
        
        Args:
            llm_model: LLM model name
            llm_temperature: LLM temperature
            max_tokens: Cap on generated tokens
            api_key: OpenAI API key (uses env var if not provided)
            max_retries: Maximum number of attempts per LLM call
            mock_llm: If True, build the summary without an LLM
            llm: Pre-built chat model (takes precedence over llm_model)
        """
        self.llm_model = llm_model
        self.llm_temperature = llm_temperature
        self.max_tokens = max_tokens
        self.api_key = api_key
        self.max_retries = max_retries
        self.mock_llm = mock_llm and llm is None

        self._prompt = ChatPromptTemplate.from_messages([
            ("system", SUMMARY_SYSTEM_PROMPT),
            ("human", SUMMARY_USER_TEMPLATE),
        ])
        self._chain = None
        if llm is not None:
            self._chain = self._prompt | llm
        elif not self.mock_llm:
            self._init_chain()

    @classmethod
    def from_settings(cls, settings: ReviewSentimentSettings) -> "NarrativeSummarizer":
        return cls(
            llm_model=settings.llm_model,
            llm_temperature=settings.summary_temperature,
            max_tokens=settings.summary_max_tokens,
            api_key=settings.require_llm_api_key(),
            max_retries=settings.llm_max_retries,
            mock_llm=settings.use_mock_llm,
        )

    def _init_chain(self) -> None:
        """Initialize LangChain chain."""
        try:
            from langchain_openai import ChatOpenAI
        except ImportError as e:
            raise ConfigurationError(
                f"LangChain OpenAI not available. Install with: pip install langchain-openai. Error: {e}"
            )

        llm_kwargs: Dict[str, Any] = {
            "model": self.llm_model,
            "temperature": self.llm_temperature,
            "max_tokens": self.max_tokens,
        }
        if self.api_key:
            llm_kwargs["api_key"] = self.api_key

        self._chain = self._prompt | ChatOpenAI(**llm_kwargs)

    def _mock_generate(self, texts: List[str], location_name: str) -> str:
        """Generate mock summary for testing."""
        return (
            f"{location_name} has {len(texts)} recent reviews. "
            "Customers mention a mix of experiences. "
            "Review the most recent feedback for recurring themes."
        )

    async def generate_summary(self, texts: List[str], location_name: str) -> str:
        """
        Summarize review texts for a location.
        
        Raises:
            SummaryError: If there is nothing to summarize, the call fails,
                or the reply is empty
        """
        texts = [t for t in texts if t and t.strip()]
        if not texts:
            raise SummaryError("No review text to summarize")

        if self.mock_llm:
            return self._mock_generate(texts, location_name)

        if self._chain is None:
            raise SummaryError("LLM chain not initialized")

        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self.max_retries),
                wait=wait_exponential(multiplier=1, min=1, max=8),
                retry=retry_if_exception_type(Exception),
                reraise=True,
            ):
                with attempt:
                    response = await self._chain.ainvoke({
                        "location_name": location_name,
                        "combined_reviews": "\n".join(texts),
                    })
        except Exception as e:
            logger.error(f"Summary call failed for {location_name}: {e}")
            raise SummaryError(f"Summary call failed: {e}")

        content = response.content if hasattr(response, "content") else str(response)
        content = (content or "").strip()
        if not content:
            raise SummaryError("Summary response was empty")
        return content
