import asyncio

import httpx

import prompts
from chat_service import ChatService, ChatSession, SessionStore
from conftest import CATALOG_ROWS, FakeCatalogProvider, loaded_database
from database import ProductDatabase
from models import ProductCategory, RecommendationStep, Sender


def test_new_session_starts_with_greeting(service):
    session = service.create_session()
    assert [m.text for m in session.transcript] == [prompts.INITIAL_GREETING]
    assert not session.in_recommendation_flow


def test_list_category_availability(chat):
    [reply] = chat("What laptops do you have?")
    lines = reply.text.splitlines()[1:]
    assert lines == [
        "1. ProBook X5 - $1,299.99 (23 in stock)",
        "2. UltraSlim 7 - $899.99 (15 in stock)",
        "3. GameMaster Pro - $1,799.99 (7 in stock)",
    ]
    assert [p.id for p in reply.products] == ["laptop-1", "laptop-2", "laptop-3"]
    assert reply.product_category == ProductCategory.LAPTOP


def test_list_available_products(chat):
    [reply] = chat("Show available products")
    assert "BusinessBook Air" not in reply.text
    assert reply.text.count("\n") == 6
    assert "1. ProBook X5" in reply.text


def test_price_inquiry(chat):
    [reply] = chat("how much is the UltraSlim 7")
    assert "$899.99" in reply.text
    assert "15" in reply.text


def test_unknown_product_falls_back(chat):
    [reply] = chat("how much is the Zephyr 3000")
    assert reply.text == prompts.FALLBACK_RESPONSE


def test_stock_of_out_of_stock_product(chat):
    [reply] = chat("Is the BusinessBook Air in stock?")
    assert "out of stock" in reply.text


def test_specs_dump(chat):
    [reply] = chat("tell me about the GameMaster Pro")
    assert "Processor: Intel Core i9-12900HK" in reply.text
    assert "Gpu: NVIDIA RTX 4080 Mobile" in reply.text


def test_compare_two_products(chat):
    [reply] = chat("compare Pixel Ultra vs Essential Lite")
    assert "Pixel Ultra: $899.99 | Essential Lite: $399.99" in reply.text


def test_compare_needs_two_products(chat):
    [reply] = chat("compare Pixel Ultra")
    assert "Please name both" in reply.text


def test_full_recommendation_dialogue(chat):
    session = chat.session
    [question] = chat("Can you recommend something for me?")
    assert question.text == prompts.RECOMMENDATION_QUESTIONS[RecommendationStep.BUDGET]
    assert session.recommendation_step == RecommendationStep.BUDGET

    chat("2")
    chat("productivity")
    assert session.recommendation_step == RecommendationStep.SIZE
    chat("large")
    ack, result = chat("high")

    assert not session.in_recommendation_flow
    assert ack.text == prompts.RECOMMENDATION_ACK
    assert result.text.startswith(prompts.RECOMMENDATION_INTRO)
    assert result.recommendations[0].product.id == "smartphone-1"
    assert "Highly Recommended:\n1. Pixel Ultra - $899.99" in result.text


def test_dialogue_swallows_keywords_until_complete(chat):
    chat("recommend me a device")
    [reply] = chat("show available products")
    assert reply.text == prompts.RECOMMENDATION_QUESTIONS[RecommendationStep.PRIMARY_USE]


def test_dialogue_with_no_match_exits():
    db = loaded_database([row for row in CATALOG_ROWS if row["price"] >= 500])
    service = ChatService(db=db)
    session = service.create_session()
    for answer in ["recommend", "low", "gaming", "large", "high"]:
        replies = asyncio.run(service.send_message(session, answer))
    assert [r.text for r in replies] == [prompts.NO_RECOMMENDATIONS]
    assert not session.in_recommendation_flow


def test_recommend_after_reset_starts_fresh(service):
    session = service.create_session()
    for answer in ["recommend", "low", "gaming"]:
        asyncio.run(service.send_message(session, answer))
    asyncio.run(service.reset(session))
    asyncio.run(service.send_message(session, "recommend"))
    assert session.recommendation_step == RecommendationStep.BUDGET
    assert session.dialogue.preference.budget.value == "medium"


def test_select_category_and_smalltalk(service):
    session = service.create_session()
    greeting = asyncio.run(service.select_category(session, ProductCategory.SMARTPHONE))
    assert greeting.product_category == ProductCategory.SMARTPHONE
    assert greeting.text == prompts.CATEGORY_GREETINGS[ProductCategory.SMARTPHONE]

    [reply] = asyncio.run(service.send_message(session, "which one takes the best photos?"))
    assert "1. Pixel Ultra" in reply.text
    assert [p.id for p in reply.products] == ["smartphone-1", "smartphone-2"]

    [reply] = asyncio.run(service.send_message(session, "mine is not working"))
    assert reply.text.startswith("I'm sorry to hear your smartphone isn't working")

    [reply] = asyncio.run(service.send_message(session, "hmm"))
    assert "your smartphones" in reply.text


def test_support_phrases_win_over_category_topics(service):
    session = service.create_session()
    asyncio.run(service.select_category(session, ProductCategory.LAPTOP))
    [reply] = asyncio.run(service.send_message(session, "My laptop is not working"))
    assert reply.text.startswith("I'm sorry to hear your laptop isn't working")
    assert reply.products is None

    asyncio.run(service.select_category(session, ProductCategory.TABLET))
    [reply] = asyncio.run(service.send_message(session, "I already did the setup"))
    assert reply.text.startswith("Setting up your new tablet is easy!")


def test_greeting_and_help(chat):
    [reply] = chat("hi there")
    assert reply.text == prompts.GREETING_RESPONSE
    [reply] = chat("help")
    assert reply.text == prompts.HELP_RESPONSE


def test_transcript_is_append_only(chat):
    session = chat.session
    chat("hello")
    chat("how much is the UltraSlim 7")
    senders = [m.sender for m in session.transcript]
    assert senders == [Sender.BOT, Sender.USER, Sender.BOT, Sender.USER, Sender.BOT]
    assert len({m.id for m in session.transcript}) == len(session.transcript)
    assert not session.typing


def test_blank_input_is_ignored(chat):
    assert chat("   ") == []
    assert len(chat.session.transcript) == 1


def test_reset_clears_everything(service):
    session = service.create_session()
    asyncio.run(service.select_category(session, ProductCategory.LAPTOP))
    asyncio.run(service.send_message(session, "recommend"))
    greeting = asyncio.run(service.reset(session))
    assert session.transcript == [greeting]
    assert session.selected_category is None
    assert not session.in_recommendation_flow


def test_failed_catalog_degrades_to_no_products():
    provider = FakeCatalogProvider(error=httpx.ConnectError("unreachable"))
    service = ChatService(db=ProductDatabase(provider))
    session = service.create_session()

    for text in ["show available products", "how much is the UltraSlim 7", "recommend something"]:
        [reply] = asyncio.run(service.send_message(session, text))
        assert reply.text == prompts.NO_PRODUCTS_RESPONSE
    assert not session.in_recommendation_flow
    # Still failing, so every turn retried the fetch
    assert provider.calls == 3


def test_empty_catalog_degrades_to_no_products():
    service = ChatService(db=loaded_database([]))
    session = service.create_session()
    [reply] = asyncio.run(service.send_message(session, "What laptops do you have?"))
    assert reply.text == prompts.NO_PRODUCTS_RESPONSE


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_session_store_evicts_idle_sessions():
    clock = FakeClock()
    store = SessionStore(idle_seconds=60, clock=clock)
    stale = store.add(ChatSession())
    active = store.add(ChatSession())

    clock.now = 50
    assert store.get(active.id) is active
    clock.now = 70
    fresh = store.add(ChatSession())

    assert store.get(stale.id) is None
    assert store.get(active.id) is active
    assert store.get(fresh.id) is fresh
    assert len(store) == 2


def test_session_store_caps_live_sessions():
    store = SessionStore(max_sessions=2, clock=FakeClock())
    first = store.add(ChatSession())
    second = store.add(ChatSession())
    store.get(first.id)
    third = store.add(ChatSession())

    assert len(store) == 2
    assert store.get(second.id) is None
    assert store.get(first.id) is first
    assert store.get(third.id) is third
