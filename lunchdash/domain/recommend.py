"""Category recommendation prompt and response contract.

The oracle answers in free text expected to contain one JSON object. This
module builds the prompt and validates the answer; talking to the oracle
lives in lunchdash.recommender.
"""

import json
from collections.abc import Iterable
from dataclasses import dataclass

from lunchdash.domain.models import Category, Transaction
from lunchdash.errors import RecommendationError

MAX_CONFIDENCE = 100.0


@dataclass(frozen=True)
class CategoryRecommendation:
    """Advisory suggestion; applying it is a separate user action."""

    category_id: int
    category_name: str
    confidence: float
    reasoning: str


def format_transaction(transaction: Transaction) -> str:
    return (
        "Transaction Details:\n"
        f"- Payee: {transaction.payee}\n"
        f"- Amount: {transaction.amount}\n"
        f"- Date: {transaction.date}\n"
        f"- Notes: {transaction.notes}"
    )


def format_categories(categories: Iterable[Category]) -> str:
    lines = ["Available Categories:"]
    lines.extend(f"- ID: {c.id}, Name: {c.name}" for c in categories)
    return "\n".join(lines) + "\n"


def build_prompt(transaction: Transaction, categories: Iterable[Category]) -> str:
    """Build the categorization prompt with the full category roster."""
    return f"""You are a financial transaction categorization expert.
Please analyze the following transaction and recommend the most appropriate category from the available options.

{format_transaction(transaction)}

{format_categories(categories)}

Please respond with ONLY a JSON object in this exact format:
{{
  "category_id": <number>,
  "confidence": <number between 0-100>,
  "reasoning": "<brief explanation>"
}}

Guidelines:
- Choose the category that best matches the transaction based on the payee, amount, and context
- Confidence should reflect how certain you are (100 = very certain, 50 = moderate, 0 = just guessing)
- Keep reasoning brief (1-2 sentences max)
- If no category seems appropriate, choose the closest match and set confidence low
- Consider common spending patterns and merchant categories"""


def _category_id(value: object) -> int:
    # Numeric strings are accepted; bools and fractional numbers are not
    if isinstance(value, bool):
        raise RecommendationError(f"invalid category_id format: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise RecommendationError(f"invalid category_id format: {value!r}")


def _confidence(value: object) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    try:
        confidence = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if confidence != confidence:
        return 0.0
    return min(max(confidence, 0.0), MAX_CONFIDENCE)


def parse_recommendation(text: str, categories: Iterable[Category]) -> CategoryRecommendation:
    """Extract and validate the oracle's JSON answer.

    Args:
        text: Raw oracle response, possibly with prose around the JSON.
        categories: The roster that was offered in the prompt.

    Returns:
        CategoryRecommendation naming one of the offered categories, with
        confidence clamped to [0, 100].

    Raises:
        RecommendationError: If the response is empty, holds no parseable
            JSON object, or names a category that was not offered.
    """
    text = (text or "").strip()
    if not text:
        raise RecommendationError("empty response from oracle")

    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end == -1 or end < start:
        raise RecommendationError(f"no JSON found in response: {text}")

    try:
        payload = json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise RecommendationError(f"failed to parse JSON response: {e}") from e

    if not isinstance(payload, dict):
        raise RecommendationError("response JSON is not an object")
    if "category_id" not in payload:
        raise RecommendationError("response is missing category_id")

    category_id = _category_id(payload["category_id"])

    by_id = {c.id: c for c in categories}
    category = by_id.get(category_id)
    if category is None:
        raise RecommendationError(f"recommended category ID {category_id} not found in available categories")

    reasoning = payload.get("reasoning")

    return CategoryRecommendation(
        category_id=category.id,
        category_name=category.name,
        confidence=_confidence(payload.get("confidence")),
        reasoning="" if reasoning is None else str(reasoning),
    )
