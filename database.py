import asyncio
import json
import time
from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Optional

import httpx
from pydantic import ValidationError

from config import config
from entity_resolver import find_category
from logger import get_logger
from models import Product, ProductCategory

logger = get_logger("catalog")


class CatalogState(str, Enum):
    NOT_LOADED = "not_loaded"
    LOADED = "loaded"
    FAILED = "failed"


def detect_category(row: dict) -> Optional[ProductCategory]:
    """Detect a product category from an explicit field, else from name and description."""
    raw = row.get("category") or row.get("type")
    if raw:
        try:
            return ProductCategory(str(raw).strip().title())
        except ValueError:
            pass
    text = " ".join(
        str(row.get(key) or "") for key in ("name", "short_description", "description")
    )
    return find_category(text)


def product_from_row(row: dict) -> Optional[Product]:
    """Map a raw catalog row onto a Product, or None if it has no known category."""
    category = detect_category(row)
    if category is None:
        logger.warning(f"Skipping product {row.get('id')!r}: no recognizable category")
        return None

    price = row.get("price")
    if price is None:
        price = row.get("price_usd", 0)

    return Product(
        id=str(row["id"]),
        name=row["name"],
        category=category,
        price=price,
        stock=row.get("stock") or 0,
        description=row.get("description") or row.get("short_description") or "",
        specs=row.get("specs") or {},
        brand=row.get("brand") or row.get("company"),
        image_url=row.get("image_url"),
        rating=row.get("rating"),
        price_mxn=row.get("price_mxn"),
    )


class JsonCatalogProvider:
    """Catalog read from a local JSON file ({"products": [...]})."""

    def __init__(self, json_path: str = None):
        if json_path is None:
            json_path = Path(__file__).parent / "products.json"
        self.json_path = Path(json_path)

    async def fetch_products(self) -> list[dict]:
        with open(self.json_path, "r") as f:
            data = json.load(f)
        if isinstance(data, list):
            return data
        return data.get("products", [])


class SupabaseCatalogProvider:
    """Catalog read from a Supabase REST table."""

    def __init__(
        self, url: str, key: str, table: str = "products", timeout: float = 10.0, transport=None
    ):
        if not url or not key:
            logger.warning("SUPABASE_URL or SUPABASE_KEY not set in environment.")
        self.url = url
        self.table = table
        self.timeout = timeout
        self.transport = transport
        self.headers = {
            "apikey": key,
            "Authorization": f"Bearer {key}",
            "Content-Type": "application/json",
        }

    async def fetch_products(self) -> list[dict]:
        async with httpx.AsyncClient(
            base_url=self.url, headers=self.headers, timeout=self.timeout, transport=self.transport
        ) as client:
            response = await client.get(f"/rest/v1/{self.table}", params={"select": "*"})
            response.raise_for_status()
            rows = response.json()
        if not isinstance(rows, list):
            raise ValueError(f"Unexpected catalog payload from {self.table}: {type(rows).__name__}")
        return rows


class ProductDatabase:
    """
    Snapshot of the catalog in front of an async provider.

    Reads are synchronous and always served from the last good snapshot;
    a failed refresh leaves the database empty and in the FAILED state.
    """

    def __init__(self, provider, ttl_seconds: int = 0):
        self.provider = provider
        self.ttl_seconds = ttl_seconds
        self.products: list[Product] = []
        self.state = CatalogState.NOT_LOADED
        self.loaded_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def available(self) -> bool:
        return self.state == CatalogState.LOADED and bool(self.products)

    def needs_refresh(self) -> bool:
        if self.state != CatalogState.LOADED:
            return True
        if not self.ttl_seconds:
            return False
        return time.monotonic() - self.loaded_at >= self.ttl_seconds

    async def ensure_fresh(self) -> None:
        if self.needs_refresh():
            await self.refresh()

    async def refresh(self) -> None:
        """Fetch a new snapshot from the provider."""
        async with self._lock:
            try:
                rows = await self.provider.fetch_products()
                products = self._build_snapshot(rows)
            except (httpx.HTTPError, OSError, ValueError) as e:
                logger.error(f"Catalog fetch failed: {e}")
                self.products = []
                self.state = CatalogState.FAILED
                self.loaded_at = None
                return

            self.products = products
            self.state = CatalogState.LOADED
            self.loaded_at = time.monotonic()

            categories = Counter(p.category.value for p in self.products)
            logger.info(f"Loaded {len(self.products)} products. Categories: {dict(categories)}")

    def _build_snapshot(self, rows: list[dict]) -> list[Product]:
        products = []
        seen = set()
        for row in rows:
            if not isinstance(row, dict):
                logger.warning(f"Skipping non-object catalog row: {row!r}")
                continue
            try:
                product = product_from_row(row)
            except (KeyError, ValidationError) as e:
                logger.warning(f"Skipping malformed product row {row.get('id')!r}: {e}")
                continue
            if product is None:
                continue
            if product.id in seen:
                logger.warning(f"Duplicate product id {product.id!r}, keeping the first one")
                continue
            seen.add(product.id)
            products.append(product)
        return products

    def get_all_products(self) -> list[Product]:
        return list(self.products)

    def get_available_products(self) -> list[Product]:
        """Products with stock left."""
        return [p for p in self.products if p.in_stock]

    def get_product_by_id(self, product_id: str) -> Optional[Product]:
        for product in self.products:
            if product.id == product_id:
                return product
        return None

    def get_products_by_category(self, category: ProductCategory) -> list[Product]:
        return [p for p in self.products if p.category == category]

    def get_categories(self) -> list[dict]:
        """Categories that have products, as {id, name, count}."""
        counts = Counter(p.category for p in self.products)
        return [
            {"id": cat.value.lower(), "name": cat.value, "count": counts[cat]}
            for cat in ProductCategory
            if counts[cat]
        ]


def build_provider():
    if config.CATALOG_SOURCE == "supabase":
        return SupabaseCatalogProvider(
            config.SUPABASE_URL,
            config.SUPABASE_KEY,
            table=config.SUPABASE_TABLE,
            timeout=config.HTTP_TIMEOUT,
        )
    return JsonCatalogProvider(config.CATALOG_PATH)


# Singleton instance
_db: Optional[ProductDatabase] = None


def get_database() -> ProductDatabase:
    """Get the database singleton instance."""
    global _db
    if _db is None:
        _db = ProductDatabase(build_provider(), ttl_seconds=config.CATALOG_TTL_SECONDS)
    return _db
