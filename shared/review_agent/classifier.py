"""
LLM-based review sentiment classification.

Uses LangChain to score a single review as positive, neutral or negative.
"""

import json
import logging
from typing import Any, Dict, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.prompts import ChatPromptTemplate
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.review_sentiment.config import ReviewSentimentSettings
from shared.review_sentiment.exceptions import ClassificationError, ConfigurationError
from shared.review_sentiment.interfaces import SentimentClassifierInterface
from shared.review_sentiment.models import (
    SENTIMENT_LABELS,
    Classification,
    ClassificationResult,
    SentimentLabel,
)

logger = logging.getLogger(__name__)


CLASSIFIER_SYSTEM_PROMPT = (
    "You are a sentiment analysis expert. Analyze the sentiment of the given text "
    "and respond with ONLY a JSON object in this exact format: "
    '{{"score": number, "label": string}} where score is between -1 and 1, '
    'and label is one of: "positive", "negative", or "neutral".'
)

POSITIVE_WORDS = ["great", "excellent", "amazing", "delicious", "friendly", "love", "best", "fantastic"]
NEGATIVE_WORDS = ["terrible", "awful", "rude", "cold", "slow", "worst", "dirty", "disappointing"]


def parse_classification(response_text: str) -> Classification:
    """
    Parse an LLM reply into a Classification.
    
    Raises:
        ClassificationError: If the reply is not JSON, the score is not a
            number, or the label is not one of the allowed values
    """
    # The whole reply must be the JSON object; text around it is rejected
    try:
        data = json.loads((response_text or "").strip())
    except json.JSONDecodeError as e:
        raise ClassificationError(f"Failed to parse classifier response as JSON: {e}")

    if not isinstance(data, dict):
        raise ClassificationError("Classifier response is not a JSON object")

    score = data.get("score")
    label = data.get("label")
    # bool is an int subclass; true/false are not scores
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ClassificationError(f"Invalid sentiment score: {score!r}")
    if label not in SENTIMENT_LABELS:
        raise ClassificationError(f"Invalid sentiment label: {label!r}")

    return Classification(score=float(score), label=SentimentLabel(label))


class SentimentClassifier(SentimentClassifierInterface):
    """
    Classifies one review per LLM call.
    
    Features:
        - Deterministic decoding hint (temperature 0) and JSON response format
        - Retry logic for transient failures
        - Token usage tracking
        - Every failure becomes an error result, never an exception
        - Support for mock LLM or an injected chat model for testing
    """

    def __init__(
        self,
        llm_model: str = "gpt-3.5-turbo",
        llm_temperature: float = 0.0,
        api_key: Optional[str] = None,
        max_retries: int = 2,
        mock_llm: bool = False,
        llm: Optional[BaseChatModel] = None,
    ):
        """
        Initialize classifier.
        
        Args:
            llm_model: LLM model name
            llm_temperature: LLM temperature (0.0 = deterministic)
            api_key: OpenAI API key (uses env var if not provided)
            max_retries: Maximum number of attempts per LLM call
            mock_llm: If True, use keyword heuristics instead of an LLM
            llm: Pre-built chat model (takes precedence over llm_model)
        """
        self.llm_model = llm_model
        self.llm_temperature = llm_temperature
        self.api_key = api_key
        self.max_retries = max_retries
        self.mock_llm = mock_llm and llm is None

        self._token_usage = {
            "input_tokens": 0,
            "output_tokens": 0,
            "total_calls": 0,
        }

        self._prompt = ChatPromptTemplate.from_messages([
            ("system", CLASSIFIER_SYSTEM_PROMPT),
            ("human", "{review_text}"),
        ])
        self._chain = None
        if llm is not None:
            self._chain = self._prompt | llm
        elif not self.mock_llm:
            self._init_chain()

    @classmethod
    def from_settings(cls, settings: ReviewSentimentSettings) -> "SentimentClassifier":
        return cls(
            llm_model=settings.llm_model,
            llm_temperature=settings.classifier_temperature,
            api_key=settings.require_llm_api_key(),
            max_retries=settings.llm_max_retries,
            mock_llm=settings.use_mock_llm,
        )

    def _init_chain(self) -> None:
        """Initialize LangChain chain against the OpenAI chat API."""
        try:
            from langchain_openai import ChatOpenAI
        except ImportError as e:
            raise ConfigurationError(
                f"LangChain OpenAI not available. Install with: pip install langchain-openai. Error: {e}"
            )

        llm_kwargs: Dict[str, Any] = {
            "model": self.llm_model,
            "temperature": self.llm_temperature,
        }
        if self.api_key:
            llm_kwargs["api_key"] = self.api_key

        llm = ChatOpenAI(**llm_kwargs).bind(response_format={"type": "json_object"})
        self._chain = self._prompt | llm

    def _mock_classify(self, review_text: str) -> str:
        """Keyword heuristic standing in for the LLM. Returns a JSON reply."""
        text_lower = review_text.lower()
        positives = sum(text_lower.count(word) for word in POSITIVE_WORDS)
        negatives = sum(text_lower.count(word) for word in NEGATIVE_WORDS)

        if positives > negatives:
            result = {"score": min(1.0, 0.4 + 0.2 * (positives - negatives)), "label": "positive"}
        elif negatives > positives:
            result = {"score": max(-1.0, -0.4 - 0.2 * (negatives - positives)), "label": "negative"}
        else:
            result = {"score": 0.0, "label": "neutral"}
        return json.dumps(result)

    async def _call_llm(self, review_text: str) -> str:
        """Call LLM with retry logic. Returns the raw reply content."""
        self._token_usage["total_calls"] += 1
        if self.mock_llm:
            return self._mock_classify(review_text)

        if self._chain is None:
            raise ClassificationError("LLM chain not initialized")

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(Exception),
            reraise=True,
        ):
            with attempt:
                response = await self._chain.ainvoke({"review_text": review_text})

        content = response.content if hasattr(response, "content") else str(response)

        usage = getattr(response, "usage_metadata", None)
        if usage:
            self._token_usage["input_tokens"] += usage.get("input_tokens", 0)
            self._token_usage["output_tokens"] += usage.get("output_tokens", 0)

        return content

    async def try_classify(self, text: str) -> ClassificationResult:
        """
        Classify one review text.
        
        Unreachable LLM, timeouts inside the client and malformed replies all
        produce the same error result.
        """
        if not text or not text.strip():
            return ClassificationResult.failure(ClassificationError("Empty review text"))

        try:
            content = await self._call_llm(text)
            classification = parse_classification(content)
        except ClassificationError as e:
            logger.warning(f"Unusable classifier response: {e}")
            return ClassificationResult.failure(e)
        except Exception as e:
            logger.warning(f"Classifier call failed: {e}")
            return ClassificationResult.failure(ClassificationError(f"Classifier call failed: {e}"))

        return ClassificationResult.success(classification)

    def get_token_usage(self) -> Dict[str, int]:
        """Get cumulative token usage stats."""
        return self._token_usage.copy()

    def reset_token_usage(self) -> None:
        """Reset token usage counters."""
        self._token_usage = {
            "input_tokens": 0,
            "output_tokens": 0,
            "total_calls": 0,
        }
