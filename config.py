import os
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Catalog source: "json" (bundled demo catalog) or "supabase"
    CATALOG_SOURCE = os.getenv("CATALOG_SOURCE", "json").lower()
    CATALOG_PATH = os.getenv("CATALOG_PATH", str(Path(__file__).parent / "products.json"))

    # Remote catalog
    SUPABASE_URL = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY = os.getenv("SUPABASE_KEY", "")
    SUPABASE_TABLE = os.getenv("SUPABASE_TABLE", "products")
    HTTP_TIMEOUT = float(os.getenv("HTTP_TIMEOUT", 10))

    # Re-fetch the catalog after this many seconds (0 = fetch once)
    CATALOG_TTL_SECONDS = int(os.getenv("CATALOG_TTL_SECONDS", 300))

    # In-memory chat sessions: idle eviction (0 = never) and a hard cap
    SESSION_IDLE_SECONDS = int(os.getenv("SESSION_IDLE_SECONDS", 3600))
    MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", 1000))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT = int(os.getenv("PORT", 3000))


config = Config()
