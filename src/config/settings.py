# src/config/settings.py

"""Central configuration for the gidersen storefront."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the gidersen storefront."""

    # --- Backend ---
    SUPABASE_URL: str = os.getenv(
        "SUPABASE_URL", "https://sxhlsfivxasepvszugtz.supabase.co"
    ).rstrip("/")
    # Public anon key of the hosted project; row level security applies
    SUPABASE_ANON_KEY: str = os.getenv(
        "SUPABASE_ANON_KEY",
        "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9."
        "eyJpc3MiOiJzdXBhYmFzZSIsInJlZiI6InN4aGxzZml2eGFzZXB2c3p1Z3R6Iiwi"
        "cm9sZSI6ImFub24iLCJpYXQiOjE3NzIwMzA0ODksImV4cCI6MjA4NzYwNjQ4OX0."
        "IYhA6GkA4fFFxlrO6M4AONdE5bIAy5GDE-6RqlngjDU",
    )
    PRODUCT_IMAGE_BUCKET: str = "product-images"
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    SESSION_REFRESH_MARGIN: int = 60    # Refresh tokens this close to expiry

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Site content ---
    SITE_URL: str = os.getenv(
        "GIDERSEN_SITE_URL", "https://gidersen.com"
    ).rstrip("/")
    SLOGANS_URL: str = os.getenv(
        "GIDERSEN_SLOGANS_URL", f"{SITE_URL}/content/slogans.json"
    )
    SLOGAN_INTERVAL: float = 3.0        # Seconds between slogan changes
    DEFAULT_SLOGANS: list[str] = [
        "Gidersen Daha Ucuz",
        "Gidersen Daha Hızlı",
        "Gidersen Daha Mutlu",
        "Gidersen Doğru Ürün",
    ]
    PRODUCT_CATEGORIES: list[str] = [
        "Elektronik",
        "Moda",
        "Ev & Yaşam",
    ]
    HOME_PREVIEW_COUNT: int = 3
    CURRENCY_SYMBOL: str = "₺"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    SESSION_FILE: Path = DATA_DIR / "session.json"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Backend endpoints (health check registry) ---
    BACKEND_ENDPOINTS: list[dict[str, str]] = [
        {
            "id": "rest",
            "label": "Database",
            "path": "/rest/v1/",
        },
        {
            "id": "auth",
            "label": "Auth",
            "path": "/auth/v1/health",
        },
        {
            "id": "storage",
            "label": "Storage",
            "path": "/storage/v1/version",
        },
    ]
