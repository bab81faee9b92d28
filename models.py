import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ProductCategory(str, Enum):
    LAPTOP = "Laptop"
    SMARTPHONE = "Smartphone"
    TABLET = "Tablet"


class Budget(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PrimaryUse(str, Enum):
    PRODUCTIVITY = "productivity"
    CREATIVE = "creative"
    GAMING = "gaming"
    BROWSING = "browsing"


class SizePreference(str, Enum):
    COMPACT = "compact"
    STANDARD = "standard"
    LARGE = "large"


class PerformanceNeeds(str, Enum):
    BASIC = "basic"
    MODERATE = "moderate"
    HIGH = "high"


class RecommendationLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationStep(str, Enum):
    BUDGET = "budget"
    PRIMARY_USE = "primary_use"
    SIZE = "size"
    PERFORMANCE_NEEDS = "performance_needs"
    COMPLETE = "complete"


class Sender(str, Enum):
    USER = "user"
    BOT = "bot"


SpecValue = Union[bool, int, float, str]


class Product(BaseModel):
    id: str
    name: str
    category: ProductCategory
    price: float = Field(..., ge=0, description="Price in USD, used for all comparisons")
    stock: int = Field(0, ge=0, description="Units in stock, 0 means unavailable")
    description: str = ""
    specs: dict[str, SpecValue] = Field(default_factory=dict, description="Technical specifications")
    brand: Optional[str] = None
    image_url: Optional[str] = None
    rating: Optional[float] = None
    price_mxn: Optional[float] = Field(None, ge=0, description="Display-only secondary price")

    @property
    def in_stock(self) -> bool:
        return self.stock > 0


class UserPreference(BaseModel):
    model_config = ConfigDict(frozen=True)

    budget: Budget = Budget.MEDIUM
    primary_use: PrimaryUse = PrimaryUse.PRODUCTIVITY
    size: SizePreference = SizePreference.STANDARD
    performance_needs: PerformanceNeeds = PerformanceNeeds.MODERATE


class RecommendationResult(BaseModel):
    product: Product
    level: RecommendationLevel
    score: int = Field(0, ge=0, description="Raw additive match score")


class RecommendationState(BaseModel):
    """One step of the guided recommendation dialogue."""

    model_config = ConfigDict(frozen=True)

    step: RecommendationStep = RecommendationStep.BUDGET
    preference: UserPreference = Field(default_factory=UserPreference)

    @property
    def complete(self) -> bool:
        return self.step == RecommendationStep.COMPLETE


def new_message_id() -> str:
    return uuid.uuid4().hex


class ConversationMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_message_id)
    sender: Sender
    text: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    product_category: Optional[ProductCategory] = None
    products: Optional[list[Product]] = None
    recommendations: Optional[list[RecommendationResult]] = None


# API Models
class MessageRequest(BaseModel):
    text: str = Field(..., max_length=2000, description="User utterance")


class CategoryRequest(BaseModel):
    category: ProductCategory


class SessionResponse(BaseModel):
    session_id: str
    selected_category: Optional[ProductCategory] = None
    in_recommendation_flow: bool = False
    recommendation_step: Optional[RecommendationStep] = None
    typing: bool = False
    transcript: list[ConversationMessage]


class ChatResponse(BaseModel):
    session_id: str
    in_recommendation_flow: bool
    recommendation_step: Optional[RecommendationStep] = None
    messages: list[ConversationMessage]
