import os
from pathlib import Path

APP_DIR = Path(__file__).resolve().parents[1]
DATA_DIR = APP_DIR / "data"

# --- Versioning Unifié (Source de vérité) ---
ENGINE_VERSION = "0.3.0"

# --- Table de signatures CDN (surcharge optionnelle) ---
CDN_SIGNATURES_FILE = "cdn_signatures.json"

# --- Identité HTTP ---
USER_AGENT = "Pageload.io"
# On refuse la compression : le corps est analysé tel quel
ACCEPT_ENCODING = "identity;q=1.0, *;q=0"

# --- Limites ---
RESPONSE_RAW_MAX_BYTES: int = 2_097_152
MAX_CONCURRENT_DNS_LOOKUPS: int = 10

# --- Timeouts ---
HTTP_TIMEOUT_TOTAL: float = 30.0
HTTP_TIMEOUT_CONNECT: float = 5.0  # Fail-fast sur cible injoignable

DNS_TIMEOUT: float = 2.0

# --- Retries ---
DEFAULT_RETRIES: int = 0
# 0 = pas de délai entre tentatives (comportement minimal)
RETRY_BACKOFF: float = 0.0

# --- Heuristique de détection ---
STATIC_ASSET_EXTENSIONS: tuple[str, ...] = ("jpg", "jpeg", "css", "js", "gif", "png")
MIN_STATIC_ASSETS_PER_GROUP: int = 2
MIN_STATIC_ASSETS_PER_HOST: int = 3

# --- Logging / service ---
LOG_LEVEL: str = os.environ.get("PAGESPY_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
# Bibliothèques trop bavardes au niveau INFO (une ligne par requête/lookup)
QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "uvicorn.access", "dns")

API_HOST: str = os.environ.get("PAGESPY_HOST", "127.0.0.1")
API_PORT: int = int(os.environ.get("PAGESPY_PORT", "8000"))
