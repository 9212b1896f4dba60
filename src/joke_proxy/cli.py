#!/usr/bin/env python3
"""
Joke proxy CLI - quick checks from the command line

Usage:
    python -m joke_proxy.cli joke                                  # Print a joke from the upstream API
    python -m joke_proxy.cli status                                # Check the local server's /health
    python -m joke_proxy.cli status --url http://host:8080         # Check another server
"""

import asyncio
import argparse
import httpx
import os
import sys
from typing import Optional
from dotenv import load_dotenv

from .core import fetch_joke_async, JokeError

# Fix Windows console encoding for Unicode
if sys.platform == "win32":
    sys.stdout.reconfigure(encoding='utf-8', errors='replace')
    sys.stderr.reconfigure(encoding='utf-8', errors='replace')

# Load environment variables
load_dotenv()

PORT = os.getenv("PORT") or "8080"
DEFAULT_SERVER_URL = f"http://127.0.0.1:{PORT}"


async def cmd_joke(transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """Fetch one joke straight from the upstream API"""
    try:
        joke = await fetch_joke_async(transport=transport)
    except JokeError as e:
        print(f"✗ {e}: {e.detail}")
        return False

    print(joke.as_text())
    return True


async def cmd_status(server_url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> bool:
    """Check that a running server answers its health check"""
    print(f"Server URL: {server_url}")

    async with httpx.AsyncClient(timeout=5.0, transport=transport) as client:
        try:
            response = await client.get(f"{server_url.rstrip('/')}/health")
        except httpx.HTTPError as e:
            print(f"Health: ✗ Cannot connect ({e})")
            return False

    if response.status_code != 200:
        print(f"Health: ✗ Not healthy ({response.status_code})")
        return False

    print(f"Health: ✓ {response.text}")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Joke proxy CLI - quick checks from the command line",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m joke_proxy.cli joke       Print a random joke
  python -m joke_proxy.cli status     Check the running server
        """
    )
    parser.add_argument(
        "command",
        choices=["joke", "status"],
        help="Command to run"
    )
    parser.add_argument(
        "--url",
        default=DEFAULT_SERVER_URL,
        help=f"Server base URL for 'status' (default: {DEFAULT_SERVER_URL})"
    )

    args = parser.parse_args(argv)

    if args.command == "joke":
        ok = asyncio.run(cmd_joke())
    else:
        ok = asyncio.run(cmd_status(args.url))

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
