"""
Unit tests for review_agent narrative summarizer.
"""

import pytest
from langchain_core.messages import AIMessage
from langchain_core.runnables import RunnableLambda

from shared.review_sentiment import SummaryError
from shared.review_agent import NarrativeSummarizer


@pytest.mark.unit
class TestNarrativeSummarizer:
    """Tests for NarrativeSummarizer."""

    @pytest.mark.asyncio
    async def test_returns_llm_text(self, fake_llm_factory):
        summarizer = NarrativeSummarizer(
            llm=fake_llm_factory(["  Customers love the brunch but find weekends crowded.  "])
        )

        summary = await summarizer.generate_summary(["Great brunch", "Too busy"], "Corner Cafe")

        assert summary == "Customers love the brunch but find weekends crowded."

    @pytest.mark.asyncio
    async def test_prompt_includes_location_and_reviews(self):
        captured = {}

        def capture(prompt_value):
            captured["messages"] = prompt_value.to_messages()
            return AIMessage(content="Summary.")

        summarizer = NarrativeSummarizer(llm=RunnableLambda(capture))

        await summarizer.generate_summary(["Great brunch", "Too busy"], "Corner Cafe")

        system, human = captured["messages"]
        assert "customer reviews" in system.content
        assert "Corner Cafe" in human.content
        assert "Great brunch\nToo busy" in human.content

    @pytest.mark.asyncio
    async def test_blank_texts_rejected(self, fake_llm_factory):
        summarizer = NarrativeSummarizer(llm=fake_llm_factory(["unused"]))

        with pytest.raises(SummaryError):
            await summarizer.generate_summary(["", "   "], "Corner Cafe")

    @pytest.mark.asyncio
    async def test_empty_reply_rejected(self, fake_llm_factory):
        summarizer = NarrativeSummarizer(llm=fake_llm_factory(["   "]))

        with pytest.raises(SummaryError):
            await summarizer.generate_summary(["Great brunch"], "Corner Cafe")

    @pytest.mark.asyncio
    async def test_llm_failure_raises_summary_error(self):
        def explode(_):
            raise TimeoutError("LLM timed out")

        summarizer = NarrativeSummarizer(llm=RunnableLambda(explode), max_retries=1)

        with pytest.raises(SummaryError):
            await summarizer.generate_summary(["Great brunch"], "Corner Cafe")

    @pytest.mark.asyncio
    async def test_mock_mode(self):
        summarizer = NarrativeSummarizer(mock_llm=True)

        summary = await summarizer.generate_summary(["Great", "", "Awful"], "Corner Cafe")

        assert summary.startswith("Corner Cafe has 2 recent reviews.")
