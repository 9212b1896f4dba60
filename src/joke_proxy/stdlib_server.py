#!/usr/bin/env python3
"""
Joke proxy using Python stdlib http.server.

Same routes as the FastAPI app, without uvicorn in the process.
Uses the synchronous joke client from the shared core modules.

Run with: python -m joke_proxy.stdlib_server
"""
import os
import sys
import signal
import logging
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, Optional
from urllib.parse import urlsplit

from .core import Config, setup_logging, format_remote_addr, log_request, fetch_joke, JokeError

# Setup logging
logger = setup_logging()

GREETING = "Hello, World!"


class JokeRequestHandler(BaseHTTPRequestHandler):
    """Serves /, /health and /joke for every method."""

    server_version = "JokeProxy/1.0"
    # Socket timeout while reading the request; send_text switches to WRITE_TIMEOUT
    timeout = Config.READ_TIMEOUT

    def log_message(self, format, *args):
        # Request lines are already logged by dispatch()
        logger.debug(f"[{self.client_address[0]}] {format % args}")

    def send_text(self, status: int, body: str, headers: Optional[Dict[str, str]] = None):
        """Send a plain text response; write failures are logged, not raised."""
        data = body.encode("utf-8")
        try:
            self.connection.settimeout(Config.WRITE_TIMEOUT)
            self.send_response(status)
            self.send_header("Content-Type", "text/plain; charset=utf-8")
            self.send_header("Content-Length", str(len(data)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            if self.command != "HEAD":
                self.wfile.write(data)
        except OSError as e:
            logger.error(f"Error writing response: {e}")
            self.close_connection = True

    def handle_joke(self):
        try:
            joke = fetch_joke()
        except JokeError as e:
            self.send_text(500, f"{e}\n", {"X-Content-Type-Options": "nosniff"})
            return
        self.send_text(200, joke.as_text())

    def dispatch(self):
        log_request(
            self.command,
            self.path,
            format_remote_addr(self.client_address[0], self.client_address[1]),
            self.headers.get("User-Agent", ""),
        )

        path = urlsplit(self.path).path
        if path == "/health":
            self.send_text(200, "OK")
        elif path == "/joke":
            self.handle_joke()
        else:
            self.send_text(200, GREETING)

    def __getattr__(self, name):
        # do_GET, do_TRACE, do_PURGE, ...: every method is dispatched
        if name.startswith("do_"):
            return self.dispatch
        raise AttributeError(name)


class JokeHTTPServer(ThreadingHTTPServer):
    """Threaded server whose server_close() waits for in-flight requests."""

    daemon_threads = False
    block_on_close = True
    allow_reuse_port = False


def create_server(host: str, port: int, handler=JokeRequestHandler) -> JokeHTTPServer:
    """Bind and return the server. Raises OSError if the address is unavailable."""
    return JokeHTTPServer((host, port), handler)


def _stop(server: JokeHTTPServer):
    server.shutdown()
    server.server_close()


def run_until_stopped(server: JokeHTTPServer, stop_event: threading.Event, timeout: float) -> bool:
    """
    Serve in a background thread until stop_event is set, then shut down.

    Returns:
        True if the server stopped and drained within timeout, False otherwise
    """
    serve_thread = threading.Thread(target=server.serve_forever, name="http-serve", daemon=True)
    serve_thread.start()

    stop_event.wait()
    logger.info("Shutting down server...")

    stopper = threading.Thread(target=_stop, args=(server,), name="http-shutdown", daemon=True)
    stopper.start()
    stopper.join(timeout)
    if stopper.is_alive():
        return False

    serve_thread.join()
    return True


def main():
    host = Config.HOST
    try:
        port = Config.get_port()
    except ValueError as e:
        logger.critical(f"Could not listen on {os.getenv('PORT')}: {e}")
        sys.exit(1)

    try:
        server = create_server(host, port)
    except OSError as e:
        logger.critical(f"Could not listen on {port}: {e}")
        sys.exit(1)

    stop_event = threading.Event()

    def handle_signal(signum, frame):
        logger.info(f"Received {signal.Signals(signum).name}")
        stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    logger.info(f"Server starting on port {port}")

    if not run_until_stopped(server, stop_event, Config.SHUTDOWN_TIMEOUT):
        logger.critical(f"Server Shutdown Failed: requests still running after {Config.SHUTDOWN_TIMEOUT}s")
        logging.shutdown()
        # Handler threads are non-daemon; sys.exit would wait for them
        os._exit(1)

    logger.info("Server gracefully stopped")


if __name__ == "__main__":
    main()
