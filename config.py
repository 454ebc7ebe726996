"""App-wide configuration and environment settings."""

import os
try:
    import streamlit as st
except ImportError:
    st = None
from dotenv import load_dotenv

load_dotenv()  # Load from .env file

def get_secret(key, default=None, *aliases):
    """Try st.secrets first, then os.getenv. Aliases are checked in order after key."""
    for name in (key, *aliases):
        if st is not None:
            try:
                # Accessing st.secrets might raise FileNotFoundError if no secrets.toml on local
                if name in st.secrets:
                    return st.secrets[name]
            except (FileNotFoundError, AttributeError, KeyError):
                pass
        value = os.getenv(name)
        if value is not None:
            return value
    return default

# LLM (Google Gemini)
GOOGLE_API_KEY = get_secret("GOOGLE_API_KEY", "", "GEMINI_API_KEY")
LLM_MODEL = get_secret("LLM_MODEL", "gemini-2.5-flash", "GEMINI_MODEL")
VISION_MODEL = get_secret("VISION_MODEL", LLM_MODEL, "GEMINI_VISION_MODEL")
LLM_TEMPERATURE = float(get_secret("LLM_TEMPERATURE", "0.2"))

# Pipeline
MIN_NATIVE_PDF_CHARS = int(os.getenv("MIN_NATIVE_PDF_CHARS", "50"))  # Shorter native PDF text means a scan
MAX_HISTORY_TURNS = int(os.getenv("MAX_HISTORY_TURNS", "12"))
FIELD_SCHEMA_MODE = os.getenv("FIELD_SCHEMA_MODE", "passthrough").lower()  # passthrough | coerce

# Uploads
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(50 * 1024 * 1024)))

# Sessions
SESSION_SECRET = get_secret("SESSION_SECRET", "dev-secret")
SESSION_MAX_AGE_S = int(os.getenv("SESSION_MAX_AGE_S", str(30 * 60)))

# Timeouts (OCR of large scans can take minutes)
REQUEST_TIMEOUT_MS = int(os.getenv("REQUEST_TIMEOUT_MS", str(15 * 60 * 1000)))
HEADERS_TIMEOUT_MS = int(os.getenv("HEADERS_TIMEOUT_MS", str(REQUEST_TIMEOUT_MS + 60 * 1000)))
KEEPALIVE_TIMEOUT_MS = int(os.getenv("KEEPALIVE_TIMEOUT_MS", str(75 * 1000)))

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# LangSmith
LANGSMITH_TRACING = os.getenv("LANGSMITH_TRACING", "false").lower() in ("true", "1")
LANGSMITH_PROJECT = os.getenv("LANGSMITH_PROJECT", "loan-doc-assistant")

# Server
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "8000"))
API_BASE_URL = get_secret("API_BASE_URL", f"http://localhost:{PORT}")
