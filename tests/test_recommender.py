"""Tests for lunchdash.recommender."""

import asyncio

import pytest

from lunchdash.domain.models import Category, CategoryName, Transaction
from lunchdash.errors import RecommendationError
from lunchdash.recommender import AnthropicOracle, Recommender, build_recommender

TRANSACTION = Transaction(id=7, date="2025-01-03", payee="Shell", amount="45.00")
CATEGORIES = [
    Category(id=1, name=CategoryName("Fuel")),
    Category(id=2, name=CategoryName("Dining")),
]


class FakeOracle:
    def __init__(self, answer: str = "", delay: float = 0.0, error: Exception | None = None) -> None:
        self.answer = answer
        self.delay = delay
        self.error = error
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


class TestRecommender:
    """Tests for Recommender.recommend."""

    def test_valid_answer(self) -> None:
        """Should return the parsed recommendation."""
        oracle = FakeOracle('{"category_id": 1, "confidence": 95, "reasoning": "Gas station"}')
        rec = asyncio.run(Recommender(oracle).recommend(TRANSACTION, CATEGORIES))
        assert rec.category_id == 1
        assert rec.category_name == "Fuel"
        assert "- Payee: Shell" in oracle.prompts[0]

    def test_timeout(self) -> None:
        """Should give up after the deadline."""
        oracle = FakeOracle('{"category_id": 1}', delay=1.0)
        with pytest.raises(RecommendationError, match="timed out"):
            asyncio.run(Recommender(oracle).recommend(TRANSACTION, CATEGORIES, timeout=0.01))

    def test_transport_failure(self) -> None:
        """Should wrap unexpected oracle errors."""
        oracle = FakeOracle(error=ConnectionError("offline"))
        with pytest.raises(RecommendationError, match="offline"):
            asyncio.run(Recommender(oracle).recommend(TRANSACTION, CATEGORIES))

    def test_contract_violation(self) -> None:
        """Should reject an answer naming an unknown category."""
        oracle = FakeOracle('{"category_id": 42}')
        with pytest.raises(RecommendationError, match="42"):
            asyncio.run(Recommender(oracle).recommend(TRANSACTION, CATEGORIES))

    def test_disabled(self) -> None:
        """Should refuse to run without an oracle."""
        recommender = Recommender(None)
        assert not recommender.enabled
        with pytest.raises(RecommendationError, match="not configured"):
            asyncio.run(recommender.recommend(TRANSACTION, CATEGORIES))


class TestBuildRecommender:
    """Tests for build_recommender."""

    def test_without_key(self) -> None:
        """Should build a disabled recommender."""
        assert not build_recommender("").enabled

    def test_with_key(self) -> None:
        """Should wire an Anthropic-backed oracle."""
        recommender = build_recommender("sk-test", model="claude-test")
        assert recommender.enabled
        assert isinstance(recommender.oracle, AnthropicOracle)
        assert recommender.oracle.model == "claude-test"
