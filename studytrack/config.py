from pathlib import Path
import os

from dotenv import load_dotenv

# Load .env from the repo root, then from the package directory (if present).
REPO_ROOT = Path(__file__).resolve().parents[1]
load_dotenv(REPO_ROOT / ".env")
load_dotenv(Path(__file__).resolve().parent / ".env")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./studytrack.db")
SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
ACCESS_TOKEN_EXPIRE_MINUTES = _env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 30)
# Session cookie is sent over HTTPS only when enabled.
COOKIE_SECURE = _env_bool("COOKIE_SECURE", False)

_cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000")
CORS_ORIGINS = [origin.strip() for origin in _cors_origins.split(",") if origin.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# OpenAI-compatible chat completions gateway
AI_GATEWAY_URL = os.getenv("AI_GATEWAY_URL", "https://ai.gateway.lovable.dev/v1")
AI_API_KEY = os.getenv("AI_API_KEY") or os.getenv("OPENAI_API_KEY")
AI_MODEL = os.getenv("AI_MODEL", "google/gemini-2.5-flash")

# Unchecking "completed" leaves progress alone unless this is switched on.
RESET_PROGRESS_ON_UNCOMPLETE = _env_bool("RESET_PROGRESS_ON_UNCOMPLETE", False)

DEFAULT_TAG_COLOR = os.getenv("DEFAULT_TAG_COLOR", "#6366f1")
