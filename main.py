from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from chat_service import ChatSession, get_chat_service
from config import config
from database import get_database
from logger import get_logger
from models import (
    CategoryRequest,
    ChatResponse,
    ConversationMessage,
    MessageRequest,
    Product,
    ProductCategory,
    SessionResponse,
)

logger = get_logger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting storefront assistant | catalog_source={config.CATALOG_SOURCE}")
    await get_database().ensure_fresh()
    yield


app = FastAPI(
    title="Storefront Assistant API",
    description="Rule-based shopping assistant with guided product recommendations",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session(session_id: str) -> ChatSession:
    session = get_chat_service().sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _session_response(session: ChatSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.id,
        selected_category=session.selected_category,
        in_recommendation_flow=session.in_recommendation_flow,
        recommendation_step=session.recommendation_step,
        typing=session.typing,
        transcript=session.transcript,
    )


@app.get("/")
async def root():
    return {"message": "Storefront Assistant API", "docs": "/docs"}


@app.post("/api/sessions", response_model=SessionResponse, status_code=201)
async def create_session():
    """Open a chat session; the transcript starts with the assistant's greeting."""
    session = get_chat_service().create_session()
    return _session_response(session)


@app.get("/api/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str):
    return _session_response(_get_session(session_id))


@app.post("/api/sessions/{session_id}/messages", response_model=ChatResponse)
async def send_message(session_id: str, request: MessageRequest):
    """
    Send a user utterance and get the assistant's replies.

    Example messages:
    - "What laptops do you have?"
    - "How much is the UltraSlim 7?"
    - "Compare Pixel Ultra vs iConnect Pro"
    - "Can you recommend something for me?"
    """
    session = _get_session(session_id)
    messages = await get_chat_service().send_message(session, request.text)
    return ChatResponse(
        session_id=session.id,
        in_recommendation_flow=session.in_recommendation_flow,
        recommendation_step=session.recommendation_step,
        messages=messages,
    )


@app.post("/api/sessions/{session_id}/category", response_model=ConversationMessage)
async def select_category(session_id: str, request: CategoryRequest):
    session = _get_session(session_id)
    return await get_chat_service().select_category(session, request.category)


@app.post("/api/sessions/{session_id}/reset", response_model=ConversationMessage)
async def reset_session(session_id: str):
    session = _get_session(session_id)
    return await get_chat_service().reset(session)


@app.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    """Drop a session entirely."""
    if not get_chat_service().sessions.delete(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session deleted"}


@app.get("/api/products", response_model=list[Product])
async def list_products(category: Optional[ProductCategory] = None):
    """
    List all products with optional category filtering.
    """
    db = get_database()
    await db.ensure_fresh()
    if category:
        return db.get_products_by_category(category)
    return db.get_all_products()


@app.get("/api/products/{product_id}", response_model=Product)
async def get_product(product_id: str):
    db = get_database()
    await db.ensure_fresh()
    product = db.get_product_by_id(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@app.get("/api/categories")
async def list_categories():
    """
    Get all product categories that currently have products.
    """
    db = get_database()
    await db.ensure_fresh()
    return {"categories": db.get_categories()}


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    db = get_database()
    return {
        "status": "healthy",
        "catalog_state": db.state.value,
        "products_loaded": len(db.get_all_products()),
        "sessions_active": len(get_chat_service().sessions),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=config.PORT)
