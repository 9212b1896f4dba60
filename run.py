#!/usr/bin/env python3
"""
Run the joke proxy server.

Usage:
    python run.py              # FastAPI/uvicorn (production)
    python run.py --stdlib     # stdlib http.server

    # or with venv
    .venv/bin/python run.py
    .venv/bin/python run.py --stdlib
"""
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))


def run_fastapi():
    """Run with FastAPI/uvicorn (production performance)"""
    from joke_proxy.main import serve
    serve()


def run_stdlib():
    """Run with stdlib http.server"""
    from joke_proxy.stdlib_server import main as stdlib_main
    stdlib_main()


if __name__ == "__main__":
    use_stdlib = "--stdlib" in sys.argv or "-s" in sys.argv

    if use_stdlib:
        print("=" * 60)
        print("  MODE: stdlib http.server")
        print("  Note: Use FastAPI in production for better performance")
        print("=" * 60)
        run_stdlib()
    else:
        run_fastapi()
