"""
Client for the official joke API.
Used by the FastAPI server (async) and the stdlib server (sync).
"""
import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import Config

logger = logging.getLogger(__name__)


class JokeError(Exception):
    """Base error for joke retrieval. `str(exc)` is safe to show to clients."""

    message = "Failed to get a joke"

    def __init__(self, detail: Optional[str] = None):
        super().__init__(self.message)
        self.detail = detail


class JokeFetchError(JokeError):
    """The upstream could not be reached or did not answer in time."""

    message = "Failed to get a joke"


class JokeDecodeError(JokeError):
    """The upstream answered with something that is not a joke object."""

    message = "Failed to decode the joke"


@dataclass
class Joke:
    setup: str = ""
    punchline: str = ""

    def as_text(self) -> str:
        return f"{self.setup}\n{self.punchline}"


class _JSONObject(list):
    """Key/value pairs of a decoded JSON object, in document order."""


def _reject_constant(name: str):
    raise ValueError(f"invalid JSON constant {name}")


_decoder = json.JSONDecoder(object_pairs_hook=_JSONObject, parse_constant=_reject_constant)

# Field name -> Joke attribute; keys match case-insensitively
_FIELDS = {"setup": "setup", "punchline": "punchline"}


def parse_joke(content: bytes) -> Joke:
    """
    Decode an upstream response body into a Joke.

    Only the first JSON value in the body is read; anything after it is
    ignored. A `null` body is an empty joke. Keys match case-insensitively,
    the last matching key wins, and `null` values leave the field unset.
    Missing fields become empty strings, unknown fields are ignored.

    Raises:
        JokeDecodeError: body is not valid JSON, not an object or null,
            or setup/punchline is neither a string nor null
    """
    text = content.decode("utf-8", errors="replace").lstrip(" \t\r\n")
    try:
        data, _ = _decoder.raw_decode(text)
    except ValueError as e:
        raise JokeDecodeError(str(e)) from e

    joke = Joke()
    if data is None:
        return joke

    if not isinstance(data, _JSONObject):
        raise JokeDecodeError(f"expected a JSON object, got {type(data).__name__}")

    for key, value in data:
        attr = _FIELDS.get(key.lower())
        if attr is None or value is None:
            continue
        if not isinstance(value, str):
            raise JokeDecodeError(f"cannot use {type(value).__name__} as joke {attr}")
        setattr(joke, attr, value)

    return joke


def fetch_joke(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> Joke:
    """Fetch a random joke synchronously."""
    url = url or Config.JOKE_API_URL
    timeout = timeout if timeout is not None else Config.JOKE_TIMEOUT

    try:
        with httpx.Client(timeout=timeout, transport=transport) as client:
            response = client.get(url)
    except httpx.HTTPError as e:
        logger.error(f"Joke API request failed: {type(e).__name__} - {e}")
        raise JokeFetchError(str(e)) from e

    return parse_joke(response.content)


async def fetch_joke_async(
    url: Optional[str] = None,
    timeout: Optional[float] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Joke:
    """Fetch a random joke without blocking the event loop."""
    url = url or Config.JOKE_API_URL
    timeout = timeout if timeout is not None else Config.JOKE_TIMEOUT

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            response = await client.get(url)
    except httpx.HTTPError as e:
        logger.error(f"Joke API request failed: {type(e).__name__} - {e}")
        raise JokeFetchError(str(e)) from e

    return parse_joke(response.content)
