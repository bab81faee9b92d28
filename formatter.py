"""Plain-text rendering of products and recommendations for chat replies."""
from models import Product, RecommendationLevel, RecommendationResult, SpecValue
from prompts import RECOMMENDATION_INTRO

TIER_TITLES = [
    (RecommendationLevel.HIGH, "Highly Recommended"),
    (RecommendationLevel.MEDIUM, "Good Options"),
    (RecommendationLevel.LOW, "Other Options"),
]


def format_price(price: float) -> str:
    return f"${price:,.2f}"


def format_spec_value(value: SpecValue) -> str:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def format_spec_key(key: str) -> str:
    label = key.replace("_", " ")
    return label[:1].upper() + label[1:]


def format_stock(product: Product) -> str:
    if product.stock > 0:
        return f"{product.stock} in stock"
    return "out of stock"


def format_product_line(product: Product) -> str:
    return f"{product.name} - {format_price(product.price)} ({format_stock(product)})"


def format_product_listing(products: list[Product]) -> str:
    return "\n".join(
        f"{i}. {format_product_line(product)}" for i, product in enumerate(products, start=1)
    )


def format_specs(product: Product) -> str:
    lines = [f"Here are the specifications for the {product.name}:"]
    lines.extend(
        f"{format_spec_key(key)}: {format_spec_value(value)}" for key, value in product.specs.items()
    )
    if not product.specs:
        lines.append("No detailed specifications are listed for this product.")
    return "\n".join(lines)


def format_price_answer(product: Product) -> str:
    text = f"The {product.name} is priced at {format_price(product.price)}"
    if product.price_mxn is not None:
        text += f" (MX{format_price(product.price_mxn)})"
    if product.stock > 0:
        return f"{text}. We currently have {product.stock} units in stock."
    return f"{text}. It is currently out of stock."


def format_stock_answer(product: Product) -> str:
    if product.stock > 0:
        return (
            f"Yes! The {product.name} is in stock with {product.stock} units available "
            f"at {format_price(product.price)}."
        )
    return f"Sorry, the {product.name} is currently out of stock."


def format_comparison(products: list[Product]) -> str:
    """Side-by-side listing of price, stock and every spec key any product has."""
    keys = []
    for product in products:
        for key in product.specs:
            if key not in keys:
                keys.append(key)

    lines = ["Here's how they compare:"]
    lines.append("Price: " + " | ".join(f"{p.name}: {format_price(p.price)}" for p in products))
    lines.append("Stock: " + " | ".join(f"{p.name}: {p.stock}" for p in products))
    for key in keys:
        values = []
        for product in products:
            value = product.specs.get(key)
            values.append(f"{product.name}: {'-' if value is None else format_spec_value(value)}")
        lines.append(f"{format_spec_key(key)}: " + " | ".join(values))
    return "\n".join(lines)


def format_recommendations(results: list[RecommendationResult]) -> str:
    sections = [RECOMMENDATION_INTRO]
    for level, title in TIER_TITLES:
        tier = [r for r in results if r.level == level]
        if not tier:
            continue
        lines = [f"{title}:"]
        for i, result in enumerate(tier, start=1):
            product = result.product
            lines.append(f"{i}. {product.name} - {format_price(product.price)}")
            if level == RecommendationLevel.HIGH and product.description:
                lines.append(f"   {product.description}")
        sections.append("\n".join(lines))
    return "\n\n".join(sections)
