# Core shared modules for both FastAPI and stdlib servers
from .config import Config, setup_logging
from .access_log import format_remote_addr, format_request_line, log_request
from .jokes import (
    Joke,
    JokeError,
    JokeFetchError,
    JokeDecodeError,
    parse_joke,
    fetch_joke,
    fetch_joke_async,
)

__all__ = [
    # Config
    "Config",
    "setup_logging",
    # Request logging
    "format_remote_addr",
    "format_request_line",
    "log_request",
    # Jokes
    "Joke",
    "JokeError",
    "JokeFetchError",
    "JokeDecodeError",
    "parse_joke",
    "fetch_joke",
    "fetch_joke_async",
]
