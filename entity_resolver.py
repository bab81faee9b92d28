import re
from typing import Optional

from models import Product, ProductCategory

FILLER_PHRASES = [
    "price of",
    "specs of",
    "tell me about",
    "info on",
    "details on",
    "about the",
    "the",
    "is",
    "are",
    "have",
    "has",
]

_FILLER_RE = re.compile(
    r"\b(?:" + "|".join(re.escape(p) for p in FILLER_PHRASES) + r")\b",
    re.IGNORECASE,
)

# Checked in order; the first keyword found decides the category.
CATEGORY_KEYWORDS: dict[ProductCategory, list[str]] = {
    ProductCategory.LAPTOP: ["laptop", "computer", "notebook"],
    ProductCategory.SMARTPHONE: ["smartphone", "phone", "mobile", "cellphone"],
    ProductCategory.TABLET: ["tablet", "ipad", "slate"],
}

FUZZY_CHUNK_SIZE = 4

_COMPARE_SPLIT_RE = re.compile(r"\b(?:vs\.?|versus|and|with|between|compare)\b|,", re.IGNORECASE)


def clean_query(query: str) -> str:
    """Lower-case the query and drop filler phrases."""
    cleaned = _FILLER_RE.sub(" ", query.lower())
    return " ".join(cleaned.split())


def name_chunks(name: str, size: int = FUZZY_CHUNK_SIZE) -> list[str]:
    name_lower = name.lower()
    return [name_lower[i:i + size] for i in range(len(name_lower) - size + 1)]


def find_product(query: str, products: list[Product]) -> Optional[Product]:
    """
    Resolve the product a query refers to.

    Full-name containment wins; otherwise the first product (in catalog
    order) sharing any 4-character chunk of its name with the query.
    Short overlapping names can produce false positives.
    """
    query_lower = query.lower()
    cleaned = clean_query(query)

    for product in products:
        name_lower = product.name.lower()
        if name_lower in cleaned or name_lower in query_lower:
            return product

    for product in products:
        if any(chunk in cleaned for chunk in name_chunks(product.name)):
            return product

    return None


def find_products(query: str, products: list[Product]) -> list[Product]:
    """Resolve every product named in a comparison query, in mention order."""
    found = []
    for fragment in _COMPARE_SPLIT_RE.split(query):
        if not fragment or not fragment.strip():
            continue
        product = find_product(fragment, products)
        if product is not None and product not in found:
            found.append(product)
    return found


def find_category(query: str) -> Optional[ProductCategory]:
    query_lower = query.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in query_lower for keyword in keywords):
            return category
    return None


def find_category_products(
    query: str, products: list[Product]
) -> Optional[tuple[ProductCategory, list[Product]]]:
    """Resolve a category mention to (category, products in that category)."""
    category = find_category(query)
    if category is None:
        return None
    return category, [p for p in products if p.category == category]
