from models import ProductCategory, RecommendationStep

INITIAL_GREETING = "Hello! I'm your product support assistant. How can I help you today?"

GREETING_RESPONSE = (
    "Hello! How can I assist you today? You can select a product category to get more specific help."
)

HELP_RESPONSE = (
    "I'm here to help with product support. Please select a product category to get started. "
    "You can also ask me to show available products, check prices and stock, "
    "compare two products, or recommend something for you."
)

FALLBACK_RESPONSE = (
    "I'd be happy to help with that. To provide more specific assistance, "
    "could you select which product you're inquiring about?"
)

NO_PRODUCTS_RESPONSE = (
    "I'm sorry, there are no products available right now. Please try again later."
)

NO_STOCK_RESPONSE = "I'm sorry, nothing is in stock right now. Please check back soon."

COMPARE_NEED_TWO = (
    "I can compare two products side by side. Please name both, "
    "for example \"compare {first} vs {second}\"."
)

CATEGORY_GREETINGS = {
    ProductCategory.LAPTOP: "I can help with your laptop questions. What would you like to know?",
    ProductCategory.SMARTPHONE: "I'm here to assist with your smartphone. What would you like to know?",
    ProductCategory.TABLET: "I can help you with tablets. Are you looking for work, drawing or entertainment?",
}

CATEGORY_FALLBACK = (
    "I understand you're asking about {category}. "
    "Could you provide more details about your specific question or issue?"
)

# Canned small-talk answers; "{suggestions}" is filled with matching products
TOPIC_RESPONSES = {
    ProductCategory.LAPTOP: {
        "gaming": "For gaming you'll want a dedicated GPU and a fast processor. Take a look at:\n{suggestions}",
        "business": "For work on the go, these laptops balance battery life and portability:\n{suggestions}",
        "battery": "Battery issues can be common. Is your laptop not holding a charge, "
                   "not charging at all, or shutting down unexpectedly?",
        "slow": "If your laptop is running slowly, it could be due to low storage space, too many "
                "background processes, or it might need a restart. Have you tried restarting it recently?",
    },
    ProductCategory.SMARTPHONE: {
        "camera": "If photography matters to you, these phones have our best cameras:\n{suggestions}",
        "battery": "Looking for a phone that lasts all day? These have the largest batteries:\n{suggestions}",
        "screen": "I understand you're having an issue with your smartphone screen. "
                  "Is it cracked, not responding to touch, or displaying incorrectly?",
    },
    ProductCategory.TABLET: {
        "drawing": "For drawing and note-taking, these tablets support a stylus:\n{suggestions}",
        "reading": "For reading and streaming, these tablets are great value:\n{suggestions}",
    },
}

SUPPORT_RESPONSES = {
    "not_working": "I'm sorry to hear your {product} isn't working properly. "
                   "Could you describe what happens when you try to use it?",
    "broken": "I understand your {product} might be damaged. "
              "Can you describe the physical condition and any visible damage?",
    "how_to": "I'd be happy to guide you through using your {product}. "
              "What specific feature are you trying to use?",
    "setup": "Setting up your new {product} is easy! First, make sure all components are unpacked. "
             "Have you already tried connecting it?",
    "warranty": "For warranty information on your {product}, please provide your purchase date and "
                "product model. Our standard warranty is 1 year from purchase.",
}

TOPIC_NO_MATCH = "I don't have a matching {category} in stock right now, but I can recommend alternatives."

RECOMMENDATION_QUESTIONS = {
    RecommendationStep.BUDGET: (
        "Let's find the right device for you! What's your budget?\n"
        "1. Low (under $500)\n"
        "2. Medium ($500 - $1000)\n"
        "3. High (over $1000)"
    ),
    RecommendationStep.PRIMARY_USE: (
        "What will you mainly use it for?\n"
        "1. Productivity\n"
        "2. Creative work\n"
        "3. Gaming\n"
        "4. Browsing and streaming"
    ),
    RecommendationStep.SIZE: (
        "What size do you prefer?\n"
        "1. Compact\n"
        "2. Standard\n"
        "3. Large"
    ),
    RecommendationStep.PERFORMANCE_NEEDS: (
        "How much performance do you need?\n"
        "1. Basic\n"
        "2. Moderate\n"
        "3. High"
    ),
}

RECOMMENDATION_ACK = "Thanks! Let me find the best matches for your preferences..."

RECOMMENDATION_INTRO = "Based on your preferences, here are my recommendations:"

NO_RECOMMENDATIONS = (
    "I couldn't find an exact match for your preferences. "
    "Try again with a different budget or size by asking for a recommendation."
)


def category_label(category: ProductCategory) -> str:
    """Plural, lower-case name used in sentences ("laptops")."""
    return f"{category.value.lower()}s"
