import asyncio

import pytest

from conftest import make_product
from database import JsonCatalogProvider, ProductDatabase
from entity_resolver import (
    clean_query,
    find_category,
    find_category_products,
    find_product,
    find_products,
)
from models import ProductCategory


def test_clean_query_strips_fillers():
    assert clean_query("What is the price of the UltraSlim 7?") == "what ultraslim 7?"
    assert clean_query("Tell me about the Pixel Ultra") == "pixel ultra"


def test_clean_query_keeps_words_containing_fillers():
    assert clean_query("this theme") == "this theme"


def test_exact_name_match(products):
    product = find_product("how much is the UltraSlim 7", products)
    assert product.id == "laptop-2"


def test_exact_match_is_case_insensitive(products):
    assert find_product("PIXEL ULTRA please", products).id == "smartphone-1"


def test_every_product_resolves_by_full_name(products):
    for product in products:
        assert find_product(product.name, products) == product
        assert find_product(f"tell me about the {product.name.upper()}", products) == product


def test_every_bundled_product_resolves_by_full_name():
    db = ProductDatabase(JsonCatalogProvider())
    asyncio.run(db.refresh())
    catalog = db.get_all_products()
    assert len(catalog) == 15
    for product in catalog:
        assert find_product(f"price of {product.name}", catalog) == product


def test_fuzzy_chunk_match(products):
    # "mast" is a 4-character chunk of "GameMaster Pro"
    assert find_product("the master one", products).id == "laptop-3"


def test_fuzzy_first_catalog_match_wins():
    catalog = [
        make_product(id="a", name="Ultra Book"),
        make_product(id="b", name="Ultra Phone", category="Smartphone"),
    ]
    # Both names share "ultr"; catalog order decides
    assert find_product("something ultra", catalog).id == "a"


def test_no_match_returns_none(products):
    assert find_product("how much is the Zephyr 3000", products) is None


def test_find_products_for_comparison(products):
    found = find_products("compare pixel ultra vs essential lite", products)
    assert [p.id for p in found] == ["smartphone-1", "smartphone-2"]


def test_find_products_deduplicates(products):
    found = find_products("UltraSlim 7 and UltraSlim 7", products)
    assert [p.id for p in found] == ["laptop-2"]


@pytest.mark.parametrize(
    "text,category",
    [
        ("any good laptops?", ProductCategory.LAPTOP),
        ("a notebook for school", ProductCategory.LAPTOP),
        ("new cellphone", ProductCategory.SMARTPHONE),
        ("mobile deals", ProductCategory.SMARTPHONE),
        ("an ipad maybe", ProductCategory.TABLET),
        ("nothing here", None),
    ],
)
def test_find_category(text, category):
    assert find_category(text) == category


def test_category_keyword_order():
    # Laptop keywords are checked before smartphone keywords
    assert find_category("phone or computer") == ProductCategory.LAPTOP


def test_find_category_products(products):
    category, matches = find_category_products("show me tablets", products)
    assert category == ProductCategory.TABLET
    assert [p.id for p in matches] == ["tablet-1"]


def test_find_category_products_empty_category():
    catalog = [make_product(category="Laptop")]
    category, matches = find_category_products("tablets?", catalog)
    assert category == ProductCategory.TABLET
    assert matches == []
