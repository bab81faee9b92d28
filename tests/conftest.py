import asyncio

import pytest

from chat_service import ChatService
from database import ProductDatabase
from models import Product
from recommendation_engine import RecommendationEngine

CATALOG_ROWS = [
    {
        "id": "laptop-1", "name": "ProBook X5", "category": "Laptop", "price": 1299.99, "stock": 23,
        "description": "High-performance laptop for professionals",
        "specs": {"processor": "Intel Core i7-12700H", "ram": "16GB DDR5", "display": "15.6-inch 4K"},
    },
    {
        "id": "laptop-2", "name": "UltraSlim 7", "category": "Laptop", "price": 899.99, "stock": 15,
        "description": "Ultra-thin laptop for on-the-go productivity",
        "specs": {"processor": "AMD Ryzen 7 5800U", "ram": "8GB DDR4", "display": "14-inch Full HD"},
    },
    {
        "id": "laptop-3", "name": "GameMaster Pro", "category": "Laptop", "price": 1799.99, "stock": 7,
        "description": "Ultimate gaming laptop with powerful cooling",
        "specs": {
            "processor": "Intel Core i9-12900HK", "display": "17.3-inch 165Hz", "gpu": "NVIDIA RTX 4080 Mobile",
        },
    },
    {
        "id": "laptop-4", "name": "BusinessBook Air", "category": "Laptop", "price": 1099.99, "stock": 0,
        "description": "Slim business laptop with enterprise-grade security",
        "specs": {"processor": "Intel Core i5-1240P", "display": "13.3-inch QHD"},
    },
    {
        "id": "smartphone-1", "name": "Pixel Ultra", "category": "Smartphone", "price": 899.99, "stock": 42,
        "description": "Premium smartphone with the best camera on the market",
        "specs": {
            "processor": "Snapdragon 8 Gen 2", "display": "6.7-inch AMOLED",
            "battery": "5000mAh", "camera": "108MP main + 48MP ultrawide",
        },
    },
    {
        "id": "smartphone-2", "name": "Essential Lite", "category": "Smartphone", "price": 399.99, "stock": 56,
        "description": "Affordable smartphone with all essential features",
        "specs": {
            "processor": "MediaTek Dimensity 900", "display": "6.4-inch LCD",
            "battery": "4800mAh", "camera": "64MP main + 8MP wide",
        },
    },
    {
        "id": "tablet-1", "name": "Kindle Fire HD", "category": "Tablet", "price": 199.99, "stock": 31,
        "description": "Affordable entertainment tablet for reading and streaming",
        "specs": {"processor": "MediaTek MT8183", "display": "10.1-inch Full HD"},
    },
]


class FakeCatalogProvider:
    def __init__(self, rows=None, error: Exception = None):
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls = 0

    async def fetch_products(self):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.rows


def make_product(**overrides) -> Product:
    fields = {
        "id": "p-1",
        "name": "Sample Device",
        "category": "Laptop",
        "price": 750.0,
        "stock": 5,
        "description": "A sample device",
        "specs": {},
    }
    fields.update(overrides)
    return Product(**fields)


def loaded_database(rows) -> ProductDatabase:
    db = ProductDatabase(FakeCatalogProvider(rows))
    asyncio.run(db.refresh())
    return db


@pytest.fixture
def catalog_db() -> ProductDatabase:
    return loaded_database(CATALOG_ROWS)


@pytest.fixture
def products(catalog_db) -> list[Product]:
    return catalog_db.get_all_products()


@pytest.fixture
def service(catalog_db) -> ChatService:
    return ChatService(db=catalog_db, engine=RecommendationEngine())


@pytest.fixture
def chat(service):
    """Send one utterance on a fresh session and return (session, replies)."""
    session = service.create_session()

    def send(text, target=None):
        return asyncio.run(service.send_message(target or session, text))

    send.session = session
    return send
