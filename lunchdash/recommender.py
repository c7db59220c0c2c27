"""AI category recommendations through an external oracle."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

import anthropic

from lunchdash.config import DEFAULT_AI_MODEL, DEFAULT_AI_TIMEOUT
from lunchdash.domain.models import Category, Transaction
from lunchdash.domain.recommend import CategoryRecommendation, build_prompt, parse_recommendation
from lunchdash.errors import RecommendationError

logger = logging.getLogger(__name__)

MAX_TOKENS = 300


class Oracle(Protocol):
    async def complete(self, prompt: str) -> str: ...


class AnthropicOracle:
    """Oracle backed by the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_AI_MODEL,
        client: anthropic.AsyncAnthropic | None = None,
    ) -> None:
        self.model = model
        self.client = client if client is not None else anthropic.AsyncAnthropic(api_key=api_key)

    async def complete(self, prompt: str) -> str:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=MAX_TOKENS,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise RecommendationError(f"failed to call Anthropic API: {e}") from e

        for block in message.content:
            text = getattr(block, "text", None)
            if text:
                return text
        return ""


class Recommender:
    """Asks an oracle for one transaction's category.

    Disabled when there is no oracle; callers check `enabled` first.
    """

    def __init__(self, oracle: Oracle | None) -> None:
        self.oracle = oracle

    @property
    def enabled(self) -> bool:
        return self.oracle is not None

    async def recommend(
        self,
        transaction: Transaction,
        categories: Sequence[Category],
        timeout: float = DEFAULT_AI_TIMEOUT,
    ) -> CategoryRecommendation:
        """Make a single bounded attempt at a recommendation.

        Raises:
            RecommendationError: On timeout, transport failure, or a response
                that breaks the JSON contract. No partial result is returned.
        """
        if self.oracle is None:
            raise RecommendationError("AI recommendations are not configured")

        logger.debug(f"Requesting recommendation for transaction {transaction.id} ({transaction.payee})")
        prompt = build_prompt(transaction, categories)

        try:
            text = await asyncio.wait_for(self.oracle.complete(prompt), timeout=timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"Recommendation for transaction {transaction.id} timed out after {timeout}s")
            raise RecommendationError(f"recommendation timed out after {timeout}s") from e
        except RecommendationError:
            raise
        except Exception as e:
            logger.error(f"Recommendation for transaction {transaction.id} failed: {e}")
            raise RecommendationError(f"recommendation failed: {e}") from e

        recommendation = parse_recommendation(text, categories)
        logger.debug(
            f"Recommended {recommendation.category_name} ({recommendation.confidence:.0f}%) "
            f"for transaction {transaction.id}"
        )
        return recommendation


def build_recommender(api_key: str, model: str = DEFAULT_AI_MODEL) -> Recommender:
    """Create a recommender, disabled when no API key is configured."""
    if not api_key:
        return Recommender(None)
    return Recommender(AnthropicOracle(api_key, model=model))
