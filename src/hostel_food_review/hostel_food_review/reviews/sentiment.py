"""Keyword sentiment for short meal reviews."""
from __future__ import annotations

from typing import Optional

from ..core.enums import Sentiment

POSITIVE_KEYWORDS = (
    "good", "great", "excellent", "tasty", "delicious", "nice", "amazing", "love", "loved",
    "wonderful", "fantastic", "fresh", "hot", "perfect", "best", "superb", "awesome", "yummy",
    "well cooked", "clean",
)

NEGATIVE_KEYWORDS = (
    "bad", "terrible", "awful", "disgusting", "cold", "stale", "undercooked", "salty", "burnt",
    "worst", "horrible", "tasteless", "raw", "oily", "dirty", "insect", "hair", "spoiled",
    "rotten", "not cooked", "bland", "overcooked", "spicy", "too much", "unhygienic", "waste",
)


def analyze_sentiment(text: Optional[str]) -> Sentiment:
    # Substring match: "cold" also hits "colder"
    lowered = (text or "").lower()
    if not lowered.strip():
        return Sentiment.NEUTRAL

    positive = sum(1 for word in POSITIVE_KEYWORDS if word in lowered)
    negative = sum(1 for word in NEGATIVE_KEYWORDS if word in lowered)
    if negative > positive:
        return Sentiment.NEGATIVE
    if positive > negative:
        return Sentiment.POSITIVE
    return Sentiment.NEUTRAL
