"""
Review Agent

LLM-based review processing for the sentiment dashboard.

Components:
    - SentimentClassifier: Score one review as positive/neutral/negative
    - SentimentAggregator: Reduce classified reviews into percentage breakdowns
    - NarrativeSummarizer: Generate a short summary paragraph for a location
"""

from .classifier import SentimentClassifier, parse_classification
from .aggregator import SentimentAggregator, percentage
from .summarizer import NarrativeSummarizer

__all__ = [
    "SentimentClassifier",
    "parse_classification",
    "SentimentAggregator",
    "percentage",
    "NarrativeSummarizer",
]
