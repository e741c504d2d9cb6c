import os
import re
from typing import List

from dotenv import load_dotenv
load_dotenv()

# ---- Helius (transactions + token metadata) ----
HELIUS_API_KEY = os.environ.get("HELIUS_API_KEY")
HELIUS_BASE_URL = os.environ.get("HELIUS_BASE_URL", "https://api.helius.xyz/v0")

HELIUS_REQUESTS_PER_SEC = 5.0
HELIUS_TIMEOUT_SEC = 60
HELIUS_MAX_RETRIES = 2
HELIUS_DEFAULT_LIMIT = 50
HELIUS_TRANSACTION_TYPES = [
    "TRANSFER",
    "NFT_SALE",
    "NFT_MINT",
    "SWAP",
    "TOKEN_MINT",
    "TOKEN_BURN",
    "NFT_LISTING",
    "NFT_CANCEL_LISTING",
    "NFT_BID",
    "NFT_CANCEL_BID",
]

# ---- Token metadata enrichment ----
TOKEN_METADATA_BATCH_SIZE = 5
TOKEN_METADATA_BATCH_TIMEOUT_SEC = 8
TOKEN_METADATA_ITEM_TIMEOUT_SEC = 3

# ---- Entity lookups ----
ENTITY_BATCH_SIZE = 10
ENTITY_LOOKUP_TIMEOUT_SEC = 5

SNS_BASE_URL = os.environ.get("SNS_BASE_URL", "https://api.solana.name/v1")
SNS_REQUESTS_PER_SEC = 10.0

SOLSCAN_BASE_URL = os.environ.get("SOLSCAN_BASE_URL", "https://api.solscan.io")
SOLSCAN_REQUESTS_PER_SEC = 5.0
SOLSCAN_USER_AGENT = "Mozilla/5.0 (compatible; WalletGraph/1.0)"

JUPITER_TOKEN_BASE_URL = os.environ.get("JUPITER_TOKEN_BASE_URL", "https://tokens.jup.ag")
JUPITER_REQUESTS_PER_SEC = 10.0

DEXSCREENER_BASE_URL = "https://api.dexscreener.com/latest/dex"
DEXSCREENER_REQUESTS_PER_SEC = 4.0
DEXSCREENER_CHAIN_ID = "solana"

# ---- Cache / rate limiting (Redis) ----
REDIS_URL = os.environ.get("REDIS_URL")
REDIS_SOCKET_TIMEOUT_SEC = 2.0
CACHE_TTL_SECONDS = 86400           # 24h for entity + token records
LOCAL_CACHE_MAX_SIZE = int(os.environ.get("LOCAL_CACHE_MAX_SIZE", "5000"))

RATE_LIMIT_REQUESTS = int(os.environ.get("RATE_LIMIT_REQUESTS", "10"))
RATE_LIMIT_WINDOW_SEC = int(os.environ.get("RATE_LIMIT_WINDOW_SEC", "60"))
RATE_LIMIT_KEY_PREFIX = "ratelimit:"

# ---- Pipeline ----
PIPELINE_DEADLINE_SEC = float(os.environ.get("PIPELINE_DEADLINE_SEC", "45"))

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


_HELIUS_KEY_RE = re.compile(r"^[a-f0-9-]{36}$")


def validate_environment() -> List[str]:
    """
    Return human-readable warnings about the current configuration.

    A missing HELIUS_API_KEY is not reported here; the Helius adapter raises
    ConfigurationError when it is actually needed.
    """
    warnings: List[str] = []
    if HELIUS_API_KEY and not _HELIUS_KEY_RE.match(HELIUS_API_KEY):
        warnings.append("HELIUS_API_KEY format appears invalid")
    if not REDIS_URL:
        warnings.append("REDIS_URL not set - shared cache and rate limiting disabled")
    return warnings
