"""Console settings read from the environment, with `.env` loaded through python-dotenv.

Every setting has an accessor below; other modules never read os.environ themselves.
"""

from pathlib import Path

from dotenv import load_dotenv
import os


def _project_root() -> Path:
    """Resolve project root (the directory holding app.py)."""
    return Path(__file__).resolve().parent.parent.parent


def load_config() -> None:
    """
    Load .env from project root. Idempotent; safe to call multiple times.
    Existing environment variables win over .env values so tests can patch them.
    """
    env_path = _project_root() / ".env"
    load_dotenv(env_path, override=False)


def get_required(key: str) -> str:
    """
    Get required env var. Raises if missing or empty.

    Raises:
        ValueError: If key is missing or empty after trimming.
    """
    load_config()
    val = os.getenv(key, "").strip()
    if not val:
        raise ValueError(
            f"Missing required environment variable: {key}. "
            "Set it in .env or export it."
        )
    return val


def get_optional(key: str, default: str = "") -> str:
    """Get optional env var; return default if missing or empty."""
    load_config()
    val = os.getenv(key, "").strip()
    return val if val else default


def get_optional_float(key: str, default: float) -> float:
    """Get optional env var as float; return default if missing or invalid."""
    load_config()
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


# --- Public config accessors ---

def base_url() -> str:
    """Optional: registry console origin. Default http://localhost:8080."""
    return get_optional("REGISTRAR_CONSOLE_BASE_URL", "http://localhost:8080").rstrip("/")


def xhr_path() -> str:
    """Optional: path of the EPP-over-XHR endpoint."""
    return get_optional("REGISTRAR_CONSOLE_XHR_PATH", "/registrar-xhr")


def client_id() -> str:
    """Required: registrar client id used for login and the endpoint query string."""
    return get_required("REGISTRAR_CONSOLE_CLIENT_ID")


def xsrf_token() -> str:
    """Required: anti-forgery token echoed as X-CSRF-Token on every command."""
    return get_required("REGISTRAR_CONSOLE_XSRF_TOKEN")


def epp_password() -> str:
    """Optional: password sent in the login command. The transport session usually authenticates."""
    return get_optional("REGISTRAR_CONSOLE_EPP_PASSWORD", "")


def request_timeout_seconds() -> float:
    """Optional: HTTP request timeout. Default 30 seconds."""
    return get_optional_float("REGISTRAR_CONSOLE_TIMEOUT_SECONDS", 30.0)


def log_level() -> str:
    """Optional: log level name. Default INFO."""
    return get_optional("REGISTRAR_CONSOLE_LOG_LEVEL", "INFO").upper()


def product_name() -> str:
    """Optional: product name shown in the console header."""
    return get_optional("REGISTRAR_CONSOLE_PRODUCT_NAME", "Domain Registry")
