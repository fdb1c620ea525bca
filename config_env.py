# Configuration from environment variables (.env locally, Railway Variables in production).

import os
from dotenv import load_dotenv

load_dotenv()


def _env(key: str, default: str = "") -> str:
    return os.environ.get(key, default).strip()


def _env_int(key: str, default: int) -> int:
    try:
        return int(_env(key, str(default)))
    except ValueError:
        return default


def _env_float(key: str, default: float) -> float:
    try:
        return float(_env(key, str(default)))
    except ValueError:
        return default


# ============================================================================
# Secrets
# ============================================================================
TELEGRAM_TOKEN = _env("TELEGRAM_TOKEN")

# ============================================================================
# Providers
# ============================================================================
CNPJA_BASE_URL = _env("CNPJA_BASE_URL", "https://open.cnpja.com/office/")
RECEITAWS_BASE_URL = _env("RECEITAWS_BASE_URL", "https://www.receitaws.com.br/v1/cnpj/")
# Cross-origin proxy for ReceitaWS; empty string calls ReceitaWS directly
RECEITAWS_PROXY_URL = os.environ.get("RECEITAWS_PROXY_URL", "https://api.allorigins.win/get").strip()
BRASILAPI_BASE_URL = _env("BRASILAPI_BASE_URL", "https://brasilapi.com.br/api/cnpj/v1/")

HTTP_TIMEOUT_SECONDS = _env_float("HTTP_TIMEOUT_SECONDS", 15.0)

# ============================================================================
# Retry policy (attempts per lookup, delay between attempts)
# ============================================================================
CNPJA_MAX_ATTEMPTS = _env_int("CNPJA_MAX_ATTEMPTS", 1)
RECEITAWS_MAX_ATTEMPTS = _env_int("RECEITAWS_MAX_ATTEMPTS", 3)
BRASILAPI_MAX_ATTEMPTS = _env_int("BRASILAPI_MAX_ATTEMPTS", 2)
RETRY_DELAY_SECONDS = _env_float("RETRY_DELAY_SECONDS", 1.5)

# ============================================================================
# Logging
# ============================================================================
LOG_LEVEL = _env("LOG_LEVEL", "INFO").upper()

# Backend API port (railway_start.py)
PORT = _env("PORT", "8000")
