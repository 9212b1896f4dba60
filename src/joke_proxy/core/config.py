"""
Shared configuration for both FastAPI and stdlib servers.
"""
import os
import logging
from dotenv import load_dotenv

load_dotenv()

DEFAULT_PORT = 8080
DEFAULT_JOKE_API_URL = "https://official-joke-api.appspot.com/random_joke"


def env_int(name: str, default: int) -> int:
    """Read an integer env var; empty or unset means default."""
    value = os.getenv(name, "")
    if not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be a valid integer, got {value!r}. Configure this in your .env file.")


def env_float(name: str, default: float) -> float:
    """Read a float env var; empty or unset means default."""
    value = os.getenv(name, "")
    if not value.strip():
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}. Configure this in your .env file.")


class Config:
    """Centralized configuration loaded from environment variables."""

    # Server
    HOST = os.getenv("HOST") or "0.0.0.0"

    # Connection timeouts (seconds)
    READ_TIMEOUT = 5
    WRITE_TIMEOUT = 10
    IDLE_TIMEOUT = 120
    SHUTDOWN_TIMEOUT = env_float("SHUTDOWN_TIMEOUT", 5.0)

    # Upstream joke API
    JOKE_API_URL = os.getenv("JOKE_API_URL") or DEFAULT_JOKE_API_URL
    JOKE_TIMEOUT = env_float("JOKE_TIMEOUT", 10.0)

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Read at server start, not import
    @classmethod
    def get_port(cls) -> int:
        """Get the listen port from env. Raises ValueError if PORT is not an integer."""
        return env_int("PORT", DEFAULT_PORT)


def setup_logging():
    """Configure logging based on LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )
    # Reduce httpx logging verbosity
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger(__name__)
