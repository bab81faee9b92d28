import math
import re
from typing import Optional

from models import (
    Budget,
    PerformanceNeeds,
    PrimaryUse,
    Product,
    ProductCategory,
    RecommendationLevel,
    RecommendationResult,
    SizePreference,
    UserPreference,
)

# Half-open price intervals [min, max)
BUDGET_RANGES = {
    Budget.LOW: (0, 500),
    Budget.MEDIUM: (500, 1000),
    Budget.HIGH: (1000, math.inf),
}

PERFORMANCE_BONUS = 3
USE_CASE_BONUS = 3
SIZE_BONUS = 2

HIGH_LEVEL_SCORE = 5
MEDIUM_LEVEL_SCORE = 3

HIGH_END_PROCESSORS = {
    ProductCategory.LAPTOP: ["i9", "Ryzen 9"],
    ProductCategory.SMARTPHONE: ["8 Gen 2", "A16"],
}

# Display size (inches) separating compact from large, per category
DISPLAY_THRESHOLDS = {
    ProductCategory.LAPTOP: 15,
    ProductCategory.TABLET: 11,
    ProductCategory.SMARTPHONE: 6.5,
}

LEVEL_RANK = {
    RecommendationLevel.HIGH: 3,
    RecommendationLevel.MEDIUM: 2,
    RecommendationLevel.LOW: 1,
}


def spec_text(product: Product, key: str) -> str:
    value = product.specs.get(key)
    return "" if value is None else str(value)


_LEADING_NUMBER_RE = re.compile(r"\s*(\d*\.?\d+)")


def display_size(product: Product) -> Optional[float]:
    """Leading number of the display spec ("15.6-inch 4K" or "15.6 inch OLED" -> 15.6), or None."""
    raw = spec_text(product, "display").split("-")[0]
    match = _LEADING_NUMBER_RE.match(raw)
    return float(match.group(1)) if match else None


def level_for_score(score: int) -> RecommendationLevel:
    if score >= HIGH_LEVEL_SCORE:
        return RecommendationLevel.HIGH
    if score >= MEDIUM_LEVEL_SCORE:
        return RecommendationLevel.MEDIUM
    return RecommendationLevel.LOW


def leading_number(text: str, unit: str) -> float:
    """First number followed by ``unit`` ("108MP main" -> 108.0), 0 if none."""
    match = re.search(rf"(\d+(?:\.\d+)?)\s*{unit}", text, re.IGNORECASE)
    return float(match.group(1)) if match else 0.0


def _mentions(product: Product, words: list[str]) -> bool:
    text = f"{product.name} {product.description}".lower()
    return any(word in text for word in words)


# (category, topic) -> filter for suggested products, kept in catalog order
TOPIC_SELECTORS = {
    (ProductCategory.LAPTOP, "gaming"): lambda p: (
        "game" in p.name.lower() or "RTX" in spec_text(p, "gpu")
    ),
    (ProductCategory.LAPTOP, "business"): lambda p: _mentions(
        p, ["business", "productivity", "professional"]
    ),
    (ProductCategory.TABLET, "drawing"): lambda p: _mentions(p, ["stylus"]),
    (ProductCategory.TABLET, "reading"): lambda p: _mentions(
        p, ["reading", "streaming", "entertainment"]
    ),
}

# (category, topic) -> sort key, largest first; products scoring 0 are dropped
TOPIC_RANKINGS = {
    (ProductCategory.SMARTPHONE, "camera"): lambda p: leading_number(spec_text(p, "camera"), "MP"),
    (ProductCategory.SMARTPHONE, "battery"): lambda p: leading_number(spec_text(p, "battery"), "mAh"),
}

MAX_TOPIC_SUGGESTIONS = 3


def topic_suggestions(
    category: ProductCategory, topic: str, products: list[Product]
) -> list[Product]:
    """In-stock products of ``category`` that suit a small-talk topic."""
    candidates = [p for p in products if p.category == category and p.in_stock]

    selector = TOPIC_SELECTORS.get((category, topic))
    if selector is not None:
        return [p for p in candidates if selector(p)][:MAX_TOPIC_SUGGESTIONS]

    ranking = TOPIC_RANKINGS.get((category, topic))
    if ranking is not None:
        ranked = sorted(candidates, key=ranking, reverse=True)
        return [p for p in ranked if ranking(p) > 0][:MAX_TOPIC_SUGGESTIONS]

    return []


class RecommendationEngine:
    def get_recommendations(
        self, preference: UserPreference, products: list[Product]
    ) -> list[RecommendationResult]:
        """
        Rank a catalog snapshot against the user's preferences.

        Only in-stock products inside the budget interval are returned.
        Results are ordered high -> medium -> low; within a level the
        catalog order is kept (stable sort), which is not a contract.
        """
        filtered = self._filter_products(products, preference.budget)

        results = []
        for product in filtered:
            score = self._score_product(product, preference)
            results.append(
                RecommendationResult(product=product, level=level_for_score(score), score=score)
            )

        results.sort(key=lambda r: LEVEL_RANK[r.level], reverse=True)
        return results

    def _filter_products(self, products: list[Product], budget: Budget) -> list[Product]:
        low, high = BUDGET_RANGES[budget]
        return [p for p in products if p.stock > 0 and low <= p.price < high]

    def _score_product(self, product: Product, preference: UserPreference) -> int:
        return (
            self._performance_score(product, preference)
            + self._use_case_score(product, preference)
            + self._size_score(product, preference)
        )

    def _performance_score(self, product: Product, preference: UserPreference) -> int:
        if preference.performance_needs != PerformanceNeeds.HIGH:
            return 0
        processor = spec_text(product, "processor")
        markers = HIGH_END_PROCESSORS.get(product.category, [])
        if any(marker in processor for marker in markers):
            return PERFORMANCE_BONUS
        return 0

    def _use_case_score(self, product: Product, preference: UserPreference) -> int:
        name = product.name.lower()

        if preference.primary_use == PrimaryUse.GAMING:
            if "game" in name or "RTX" in spec_text(product, "gpu"):
                return USE_CASE_BONUS
        elif preference.primary_use == PrimaryUse.CREATIVE:
            if "creative" in name or "pro" in name:
                return USE_CASE_BONUS

        return 0

    def _size_score(self, product: Product, preference: UserPreference) -> int:
        threshold = DISPLAY_THRESHOLDS.get(product.category)
        size = display_size(product)
        if threshold is None or size is None:
            return 0

        if preference.size == SizePreference.COMPACT and size < threshold:
            return SIZE_BONUS
        if preference.size == SizePreference.LARGE and size > threshold:
            return SIZE_BONUS
        return 0


# Singleton instance
_engine: Optional[RecommendationEngine] = None


def get_recommendation_engine() -> RecommendationEngine:
    """Get the recommendation engine singleton instance."""
    global _engine
    if _engine is None:
        _engine = RecommendationEngine()
    return _engine
