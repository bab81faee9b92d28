"""
Keyword intent classification for chat utterances.

Rules are evaluated in the order of INTENT_RULES and the first match wins,
so overlapping keyword sets ("see available" vs "available") resolve to the
earlier entry. Classification is a pure function of the utterance and the
session context and always ends in FALLBACK.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from models import ProductCategory


class Intent(str, Enum):
    RECOMMENDATION_STEP = "recommendation_step"
    LIST_AVAILABLE = "list_available"
    RECOMMEND = "recommend"
    GET_PRICE = "get_price"
    GET_STOCK = "get_stock"
    GET_SPECS = "get_specs"
    COMPARE = "compare"
    CATEGORY_SMALLTALK = "category_smalltalk"
    GREETING = "greeting"
    HELP = "help"
    FALLBACK = "fallback"


LIST_AVAILABLE_KEYWORDS = ["see available", "show available", "what do you have", "what is available"]
RECOMMEND_KEYWORDS = ["recommend", "suggestion", "best for me", "what should i"]
PRICE_KEYWORDS = ["price", "cost", "how much"]
STOCK_KEYWORDS = ["stock", "available", "in store", "can i buy", "do you have"]
SPECS_KEYWORDS = ["spec", "detail", "feature", "tell me about", "more about"]
COMPARE_KEYWORDS = ["compare", "difference between", "versus", "vs"]
HELP_KEYWORDS = ["help"]

# Small-talk topics per selected category: topic -> keywords
CATEGORY_TOPICS: dict[ProductCategory, dict[str, list[str]]] = {
    ProductCategory.LAPTOP: {
        "gaming": ["gaming", "game"],
        "business": ["work", "business"],
        "battery": ["battery"],
        "slow": ["slow"],
    },
    ProductCategory.SMARTPHONE: {
        "camera": ["camera", "photo"],
        "battery": ["battery"],
        "screen": ["screen"],
    },
    ProductCategory.TABLET: {
        "drawing": ["draw", "stylus", "sketch"],
        "reading": ["read", "stream", "movie"],
    },
}

# Support phrases understood for any selected category
SUPPORT_TOPICS: dict[str, list[str]] = {
    "not_working": ["not working"],
    "broken": ["broken"],
    "how_to": ["how to"],
    "setup": ["setup", "set up"],
    "warranty": ["warranty"],
}

_GREETING_RE = re.compile(r"\b(?:hello|hi)\b")
_CHOICE_RE = re.compile(r"\b([1-4])\b")


@dataclass(frozen=True)
class ClassifierContext:
    text: str
    in_recommendation_flow: bool = False
    selected_category: Optional[ProductCategory] = None


@dataclass(frozen=True)
class Classification:
    intent: Intent
    text: str
    choice: Optional[str] = None
    topic: Optional[str] = None


@dataclass(frozen=True)
class IntentRule:
    intent: Intent
    matches: Callable[[ClassifierContext], bool]


def contains_any(text: str, keywords: list[str]) -> bool:
    return any(keyword in text for keyword in keywords)


def _keywords(keywords: list[str]) -> Callable[[ClassifierContext], bool]:
    return lambda ctx: contains_any(ctx.text, keywords)


def match_topic(text: str, category: Optional[ProductCategory]) -> Optional[str]:
    """First support phrase (then small-talk topic of the category) found in text.

    Support phrases go first: "not working" contains "work" and "already"
    contains "read".
    """
    if category is None:
        return None
    for topic, keywords in SUPPORT_TOPICS.items():
        if contains_any(text, keywords):
            return topic
    for topic, keywords in CATEGORY_TOPICS.get(category, {}).items():
        if contains_any(text, keywords):
            return topic
    return None


INTENT_RULES: list[IntentRule] = [
    IntentRule(Intent.RECOMMENDATION_STEP, lambda ctx: ctx.in_recommendation_flow),
    IntentRule(Intent.LIST_AVAILABLE, _keywords(LIST_AVAILABLE_KEYWORDS)),
    IntentRule(Intent.RECOMMEND, _keywords(RECOMMEND_KEYWORDS)),
    IntentRule(Intent.GET_PRICE, _keywords(PRICE_KEYWORDS)),
    IntentRule(Intent.GET_STOCK, _keywords(STOCK_KEYWORDS)),
    IntentRule(Intent.GET_SPECS, _keywords(SPECS_KEYWORDS)),
    IntentRule(Intent.COMPARE, _keywords(COMPARE_KEYWORDS)),
    IntentRule(
        Intent.CATEGORY_SMALLTALK,
        lambda ctx: match_topic(ctx.text, ctx.selected_category) is not None,
    ),
    IntentRule(
        Intent.GREETING,
        lambda ctx: ctx.selected_category is None and bool(_GREETING_RE.search(ctx.text)),
    ),
    IntentRule(
        Intent.HELP,
        lambda ctx: ctx.selected_category is None and contains_any(ctx.text, HELP_KEYWORDS),
    ),
]


def extract_choice(text: str) -> Optional[str]:
    """A standalone menu number ("1".."4") typed by the user, if any."""
    match = _CHOICE_RE.search(text)
    return match.group(1) if match else None


def classify(
    text: str,
    in_recommendation_flow: bool = False,
    selected_category: Optional[ProductCategory] = None,
) -> Classification:
    normalized = text.lower().strip()
    ctx = ClassifierContext(normalized, in_recommendation_flow, selected_category)

    intent = Intent.FALLBACK
    for rule in INTENT_RULES:
        if rule.matches(ctx):
            intent = rule.intent
            break

    topic = None
    if intent == Intent.CATEGORY_SMALLTALK:
        topic = match_topic(normalized, selected_category)

    return Classification(
        intent=intent,
        text=normalized,
        choice=extract_choice(normalized),
        topic=topic,
    )
