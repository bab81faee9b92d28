import asyncio
import time
import uuid
from collections import OrderedDict
from typing import Optional

import prompts
import recommendation_dialogue
from config import config
from database import ProductDatabase, get_database
from entity_resolver import find_category_products, find_product, find_products
from formatter import (
    format_comparison,
    format_price,
    format_price_answer,
    format_product_listing,
    format_recommendations,
    format_specs,
    format_stock_answer,
)
from intent_classifier import Classification, Intent, classify
from logger import get_logger
from models import (
    ConversationMessage,
    Product,
    ProductCategory,
    RecommendationState,
    RecommendationStep,
    Sender,
)
from recommendation_engine import RecommendationEngine, get_recommendation_engine, topic_suggestions

logger = get_logger("chat")


def bot_message(text: str, **extra) -> ConversationMessage:
    return ConversationMessage(sender=Sender.BOT, text=text, **extra)


class ChatSession:
    """Transcript and dialogue state of one conversation."""

    def __init__(self, session_id: str = None):
        self.id = session_id or uuid.uuid4().hex
        self.transcript: list[ConversationMessage] = []
        self.selected_category: Optional[ProductCategory] = None
        self.dialogue: Optional[RecommendationState] = None
        self.typing = False
        self.lock = asyncio.Lock()
        self.last_active = 0.0

    @property
    def in_recommendation_flow(self) -> bool:
        return self.dialogue is not None

    @property
    def recommendation_step(self) -> Optional[RecommendationStep]:
        return self.dialogue.step if self.dialogue else None

    def append(self, *messages: ConversationMessage) -> None:
        self.transcript.extend(messages)


class SessionStore:
    """
    In-memory sessions keyed by id, least recently used first.

    Adding a session evicts the ones idle for ``idle_seconds`` and then the
    least recently used until at most ``max_sessions`` remain.
    """

    def __init__(self, idle_seconds: int = 0, max_sessions: int = 0, clock=time.monotonic):
        self.idle_seconds = idle_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: OrderedDict[str, ChatSession] = OrderedDict()

    def add(self, session: ChatSession) -> ChatSession:
        self._evict()
        session.last_active = self._clock()
        self._sessions[session.id] = session
        if self.max_sessions:
            while len(self._sessions) > self.max_sessions:
                session_id, _ = self._sessions.popitem(last=False)
                logger.info(f"Session evicted (limit {self.max_sessions}): {session_id}")
        return session

    def get(self, session_id: str) -> Optional[ChatSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_active = self._clock()
            self._sessions.move_to_end(session_id)
        return session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict(self) -> None:
        if not self.idle_seconds:
            return
        now = self._clock()
        while self._sessions:
            session_id, oldest = next(iter(self._sessions.items()))
            if now - oldest.last_active < self.idle_seconds:
                break
            del self._sessions[session_id]
            logger.info(f"Session evicted (idle): {session_id}")

    def __len__(self) -> int:
        return len(self._sessions)


class ChatService:
    """
    Runs one conversational turn at a time per session.

    The catalog is refreshed (awaited) before a turn is classified; the
    rest of the turn is synchronous and works on that snapshot.
    """

    def __init__(self, db: ProductDatabase = None, engine: RecommendationEngine = None):
        self.db = db or get_database()
        self.engine = engine or get_recommendation_engine()
        self.sessions = SessionStore(
            idle_seconds=config.SESSION_IDLE_SECONDS, max_sessions=config.MAX_SESSIONS
        )
        self._handlers = {
            Intent.RECOMMENDATION_STEP: self._handle_recommendation_step,
            Intent.LIST_AVAILABLE: self._handle_list_available,
            Intent.RECOMMEND: self._handle_recommend,
            Intent.GET_PRICE: self._handle_price,
            Intent.GET_STOCK: self._handle_stock,
            Intent.GET_SPECS: self._handle_specs,
            Intent.COMPARE: self._handle_compare,
            Intent.CATEGORY_SMALLTALK: self._handle_smalltalk,
            Intent.GREETING: lambda session, c: [bot_message(prompts.GREETING_RESPONSE)],
            Intent.HELP: lambda session, c: [bot_message(prompts.HELP_RESPONSE)],
            Intent.FALLBACK: self._handle_fallback,
        }

    # Session operations

    def create_session(self) -> ChatSession:
        session = self.sessions.add(ChatSession())
        session.append(bot_message(prompts.INITIAL_GREETING))
        logger.info(f"Session created: {session.id}")
        return session

    async def send_message(self, session: ChatSession, text: str) -> list[ConversationMessage]:
        """Append a user utterance and return the bot replies it produced."""
        if not text or not text.strip():
            return []

        async with session.lock:
            session.append(ConversationMessage(sender=Sender.USER, text=text))
            session.typing = True
            try:
                await self.db.ensure_fresh()
                replies = self.respond(session, text)
            finally:
                session.typing = False
            session.append(*replies)
            return replies

    async def select_category(
        self, session: ChatSession, category: ProductCategory
    ) -> ConversationMessage:
        async with session.lock:
            session.selected_category = category
            greeting = bot_message(prompts.CATEGORY_GREETINGS[category], product_category=category)
            session.append(greeting)
            return greeting

    async def reset(self, session: ChatSession) -> ConversationMessage:
        """Start over: clear the transcript, category and any dialogue."""
        async with session.lock:
            session.transcript = []
            session.selected_category = None
            session.dialogue = None
            greeting = bot_message(prompts.INITIAL_GREETING)
            session.append(greeting)
            logger.info(f"Session reset: {session.id}")
            return greeting

    # Turn handling

    def respond(self, session: ChatSession, text: str) -> list[ConversationMessage]:
        classification = classify(text, session.in_recommendation_flow, session.selected_category)
        logger.debug(
            f"Session {session.id} | intent={classification.intent.value} | topic={classification.topic}"
        )
        return self._handlers[classification.intent](session, classification)

    def _catalog(self) -> list[Product]:
        return self.db.get_all_products() if self.db.available else []

    def _no_products(self) -> list[ConversationMessage]:
        return [bot_message(prompts.NO_PRODUCTS_RESPONSE)]

    def _handle_fallback(self, session: ChatSession, classification: Classification):
        if session.selected_category is not None:
            label = prompts.category_label(session.selected_category)
            return [
                bot_message(
                    prompts.CATEGORY_FALLBACK.format(category=f"your {label}"),
                    product_category=session.selected_category,
                )
            ]
        return [bot_message(prompts.FALLBACK_RESPONSE)]

    def _handle_list_available(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        products = self.db.get_available_products()
        if not products:
            return [bot_message(prompts.NO_STOCK_RESPONSE)]
        text = "Here are the products currently available:\n" + format_product_listing(products)
        return [bot_message(text, products=products)]

    def _handle_recommend(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        session.dialogue = recommendation_dialogue.start()
        logger.info(f"Session {session.id} | recommendation dialogue started")
        return [bot_message(prompts.RECOMMENDATION_QUESTIONS[session.dialogue.step])]

    def _handle_recommendation_step(self, session: ChatSession, classification: Classification):
        state = recommendation_dialogue.advance(session.dialogue, classification.text)
        if not state.complete:
            session.dialogue = state
            return [bot_message(prompts.RECOMMENDATION_QUESTIONS[state.step])]

        session.dialogue = None
        logger.info(
            f"Session {session.id} | recommendation dialogue complete | {state.preference.model_dump(mode='json')}"
        )
        if not self.db.available:
            return self._no_products()

        results = self.engine.get_recommendations(state.preference, self._catalog())
        if not results:
            return [bot_message(prompts.NO_RECOMMENDATIONS)]
        return [
            bot_message(prompts.RECOMMENDATION_ACK),
            bot_message(format_recommendations(results), recommendations=results),
        ]

    def _handle_price(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        catalog = self._catalog()

        product = find_product(classification.text, catalog)
        if product is not None:
            return [
                bot_message(
                    format_price_answer(product),
                    product_category=product.category,
                    products=[product],
                )
            ]

        found = find_category_products(classification.text, catalog)
        if found is not None:
            category, products = found
            label = prompts.category_label(category)
            if not products:
                return [bot_message(f"We don't currently carry any {label}.", product_category=category)]
            lines = [f"{i}. {p.name} - {format_price(p.price)}" for i, p in enumerate(products, start=1)]
            text = f"Here are the prices for our {label}:\n" + "\n".join(lines)
            return [bot_message(text, product_category=category, products=products)]

        return self._handle_fallback(session, classification)

    def _handle_stock(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        catalog = self._catalog()

        product = find_product(classification.text, catalog)
        if product is not None:
            return [
                bot_message(
                    format_stock_answer(product),
                    product_category=product.category,
                    products=[product],
                )
            ]

        found = find_category_products(classification.text, catalog)
        if found is not None:
            category, products = found
            label = prompts.category_label(category)
            in_stock = [p for p in products if p.in_stock]
            if not in_stock:
                return [
                    bot_message(f"Sorry, none of our {label} are in stock right now.", product_category=category)
                ]
            text = f"We have these {label} available:\n" + format_product_listing(in_stock)
            return [bot_message(text, product_category=category, products=in_stock)]

        return self._handle_fallback(session, classification)

    def _handle_specs(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        catalog = self._catalog()

        product = find_product(classification.text, catalog)
        if product is not None:
            return [
                bot_message(format_specs(product), product_category=product.category, products=[product])
            ]

        found = find_category_products(classification.text, catalog)
        if found is not None and found[1]:
            category, products = found
            lines = [f"{i}. {p.name} - {p.description}" for i, p in enumerate(products, start=1)]
            text = f"Here's an overview of our {prompts.category_label(category)}:\n" + "\n".join(lines)
            return [bot_message(text, product_category=category, products=products)]

        return self._handle_fallback(session, classification)

    def _handle_compare(self, session: ChatSession, classification: Classification):
        if not self.db.available:
            return self._no_products()
        catalog = self._catalog()

        products = find_products(classification.text, catalog)
        if len(products) >= 2:
            return [bot_message(format_comparison(products), products=products)]

        examples = [p.name for p in catalog[:2]]
        while len(examples) < 2:
            examples.append("another product")
        return [bot_message(prompts.COMPARE_NEED_TWO.format(first=examples[0], second=examples[1]))]

    def _handle_smalltalk(self, session: ChatSession, classification: Classification):
        category = session.selected_category
        topic = classification.topic

        if topic in prompts.SUPPORT_RESPONSES:
            text = prompts.SUPPORT_RESPONSES[topic].format(product=category.value.lower())
            return [bot_message(text, product_category=category)]

        template = prompts.TOPIC_RESPONSES[category][topic]
        if "{suggestions}" not in template:
            return [bot_message(template, product_category=category)]

        if not self.db.available:
            return self._no_products()
        suggestions = topic_suggestions(category, topic, self._catalog())
        if not suggestions:
            text = prompts.TOPIC_NO_MATCH.format(category=category.value.lower())
            return [bot_message(text, product_category=category)]

        text = template.format(suggestions=format_product_listing(suggestions))
        return [bot_message(text, product_category=category, products=suggestions)]


# Singleton instance
_chat_service: Optional[ChatService] = None


def get_chat_service() -> ChatService:
    """Get the chat service singleton instance."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService()
    return _chat_service
