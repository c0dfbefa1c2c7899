import os
from dotenv import load_dotenv

# Load .env from repo root (dotenv auto-walks up from CWD)
load_dotenv()


def _get_bool(name: str, default: bool = False) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}


def _get_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def _read_secret_file(path: str | None) -> str | None:
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read().strip()
    except OSError:
        return None


# --- Supabase / PostgREST ---
SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY") or _read_secret_file(
    os.getenv("SUPABASE_SERVICE_ROLE_KEY_FILE")
)

# --- Auth ---
JWT_SECRET = os.getenv("JWT_SECRET", "football_prediction_api_dev_secret_key")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRES_HOURS = int(os.getenv("JWT_EXPIRES_HOURS", "24"))
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "10"))

# --- HTTP server ---
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "3001"))
API_DEBUG = _get_bool("API_DEBUG", False)
CORS_ORIGINS = _get_list("CORS_ORIGINS", "*")

# --- Comments ---
COMMENTS_PAGE_SIZE = int(os.getenv("COMMENTS_PAGE_SIZE", "20"))
COMMENTS_PAGE_SIZE_MAX = int(os.getenv("COMMENTS_PAGE_SIZE_MAX", "100"))
