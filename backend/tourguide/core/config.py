import os
import re

from dotenv import find_dotenv, load_dotenv


# Load environment variables with .env, .env.dev/.env.prod support
def _load_env_files() -> None:
    """
    Load .env files with this precedence:
    1) Base .env (if present)
    2) Explicit file via ENV_FILE (e.g., .env.dev or ./config/.env.prod)
    3) Environment-specific file inferred from ENVIRONMENT/ENV/PYTHON_ENV
        - Supports aliases like dev/development, prod/production, stage/staging
    Note: Existing OS environment variables are never overridden.
    """
    base_path = find_dotenv(".env", usecwd=True)
    if base_path:
        load_dotenv(base_path, override=False)

    explicit = os.environ.get("ENV_FILE")
    if explicit:
        explicit_path = explicit if os.path.isabs(explicit) else find_dotenv(explicit, usecwd=True)
        if explicit_path:
            load_dotenv(explicit_path, override=False)
            return

    env_name = (
        os.environ.get("ENVIRONMENT") or os.environ.get("ENV") or os.environ.get("PYTHON_ENV")
    )
    if env_name:
        slug = str(env_name).strip().lower()
        alias = {
            "dev": "development",
            "prod": "production",
            "stg": "staging",
            "test": "test",
        }
        resolved = alias.get(slug, slug)
        for candidate in (f".env.{resolved}", f".env.{slug}"):
            path = find_dotenv(candidate, usecwd=True)
            if path:
                load_dotenv(path, override=False)
                break


_load_env_files()

# === Environment Configuration ===
ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")  # development, staging, production

# === Server Configuration ===
SERVER_HOST = os.environ.get("SERVER_HOST", "0.0.0.0")


def _get_int_env(var_name: str, default_value: int) -> int:
    """
    Parse an integer environment variable robustly.
    - Trims whitespace and trailing semicolons.
    - Falls back to the first integer found in the string.
    - Returns the provided default if parsing fails.
    """
    raw = os.environ.get(var_name, str(default_value))
    text = str(raw).strip().rstrip(";")
    try:
        return int(text)
    except ValueError:
        match = re.search(r"[-+]?\d+", text or "")
        if match:
            return int(match.group(0))
    return int(default_value)


def _get_float_env(var_name: str, default_value: float | None) -> float | None:
    """Parse a float environment variable; empty or "none" disables the setting."""
    raw = os.environ.get(var_name)
    if raw is None:
        return default_value
    text = raw.strip().rstrip(";").lower()
    if text in ("", "none", "off"):
        return None
    try:
        return float(text)
    except ValueError:
        return default_value


def _get_bool_env(var_name: str, default_value: bool) -> bool:
    return os.environ.get(var_name, str(default_value)).strip().lower() in ("1", "true", "yes")


SERVER_PORT = _get_int_env("SERVER_PORT", 5000)
DEBUG = _get_bool_env("DEBUG", True)
LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()


# === CORS Configuration ===
def _get_cors_origins() -> list[str]:
    """
    Return CORS origins from env or a safe default.
    Example env format:
      CORS_ORIGINS="http://localhost:5173,http://127.0.0.1:5173,https://yourdomain.com"
    """
    raw = os.environ.get("CORS_ORIGINS", "").strip()
    if not raw:
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


CORS_ORIGINS = _get_cors_origins()

# === Database Configuration ===
MONGODB_URI = os.environ.get("MONGODB_URI")
DATABASE_NAME = os.environ.get("DATABASE_NAME", "maharashtra_tour_guide")

# === Wikimedia Commons ===
WIKIMEDIA_API_URL = os.environ.get("WIKIMEDIA_API_URL", "https://commons.wikimedia.org/w/api.php")
WIKIMEDIA_USER_AGENT = os.environ.get(
    "WIKIMEDIA_USER_AGENT", "MaharashtraTourGuide/1.0 (https://github.com/maharashtra-tour-guide)"
)
WIKIMEDIA_THUMB_WIDTH = _get_int_env("WIKIMEDIA_THUMB_WIDTH", 800)
WIKIMEDIA_HTTP_TIMEOUT = _get_float_env("WIKIMEDIA_HTTP_TIMEOUT", 10.0)

# === Image Enrichment ===
# Workers draining the enrichment queue; 1 reproduces strictly sequential lookups
ENRICHMENT_CONCURRENCY = max(1, _get_int_env("ENRICHMENT_CONCURRENCY", 3))
ENRICHMENT_ITEM_TIMEOUT = _get_float_env("ENRICHMENT_ITEM_TIMEOUT", 15.0)
ENRICHMENT_BATCH_DEADLINE = _get_float_env("ENRICHMENT_BATCH_DEADLINE", 120.0)
ENRICHMENT_PERSIST = _get_bool_env("ENRICHMENT_PERSIST", False)

# === Geolocation ===
NEARBY_DEFAULT_RADIUS_KM = _get_int_env("NEARBY_DEFAULT_RADIUS_KM", 10)

# === Travel Assistant (LLM) ===
OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")

# === Application Settings ===
APP_NAME = "Maharashtra Tour Guide API"
APP_VERSION = "1.0.0"
