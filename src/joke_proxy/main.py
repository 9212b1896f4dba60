import os
import sys
import time
import logging
from typing import Optional

from contextlib import asynccontextmanager, contextmanager
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
import uvicorn

from .core import Config, setup_logging, format_remote_addr, log_request, fetch_joke_async, JokeError
from .check_port import port_bind_error

# Setup logging
logger = setup_logging()

GREETING = "Hello, World!"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI application"""
    logger.info(f"Proxying jokes from {Config.JOKE_API_URL} (timeout: {Config.JOKE_TIMEOUT}s)")
    logger.info(f"Logging level: {Config.LOG_LEVEL}")
    yield
    logger.info("Application shutdown complete")


# FastAPI Application
app = FastAPI(
    title="Joke Proxy",
    description="Greeting, health check and random joke relay",
    version="1.0.0",
    lifespan=lifespan
)


def _request_uri(request: Request) -> str:
    """Raw request target: path plus query string, as sent by the client."""
    raw_path = request.scope.get("raw_path") or request.url.path.encode()
    uri = raw_path.decode("latin-1")
    query = request.scope.get("query_string", b"")
    if query:
        uri += "?" + query.decode("latin-1")
    return uri


def _remote_addr(request: Request) -> str:
    if request.client is None:
        return ""
    return format_remote_addr(request.client.host, request.client.port)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    log_request(
        request.method,
        _request_uri(request),
        _remote_addr(request),
        request.headers.get("user-agent", ""),
    )
    return await call_next(request)


# Routes
# Registered with add_route (methods=None) so they answer every method,
# extension methods included, like a plain mux handler

async def health_check(request: Request):
    """Health check endpoint"""
    return PlainTextResponse("OK")


async def joke(request: Request):
    """Relay a random joke from the upstream API as plain text"""
    try:
        result = await fetch_joke_async()
    except JokeError as e:
        return PlainTextResponse(
            f"{e}\n",
            status_code=500,
            headers={"X-Content-Type-Options": "nosniff"},
        )
    return PlainTextResponse(result.as_text())


async def root(request: Request):
    """Greeting for / and any unknown path"""
    return PlainTextResponse(GREETING)


app.add_route("/health", health_check)
app.add_route("/joke", joke)
# Must be registered last: it claims every path the routes above do not
app.add_route("/{path:path}", root)


class GracefulServer(uvicorn.Server):
    """uvicorn server that reports shutdown progress and overruns."""

    def __init__(self, config: uvicorn.Config):
        super().__init__(config)
        self.shutdown_overran = False

    @contextmanager
    def capture_signals(self):
        # uvicorn >= 0.29 re-raises captured signals once run() returns;
        # clear them so serve() can log the stop and pick its exit status
        with super().capture_signals():
            try:
                yield
            finally:
                captured = getattr(self, "_captured_signals", None)
                if captured:
                    captured.clear()

    def handle_exit(self, sig, frame):
        if not self.should_exit:
            logger.info("Shutting down server...")
        super().handle_exit(sig, frame)

    async def shutdown(self, sockets=None):
        started = time.monotonic()
        await super().shutdown(sockets=sockets)
        timeout = self.config.timeout_graceful_shutdown
        if timeout is not None and time.monotonic() - started >= timeout:
            self.shutdown_overran = True


def build_config(host: str, port: int) -> uvicorn.Config:
    return uvicorn.Config(
        app,
        host=host,
        port=port,
        log_level=Config.LOG_LEVEL.lower(),
        access_log=False,  # log_requests middleware covers this
        timeout_keep_alive=Config.IDLE_TIMEOUT,
        timeout_graceful_shutdown=Config.SHUTDOWN_TIMEOUT,
    )


def serve(host: Optional[str] = None, port: Optional[int] = None):
    """
    Run the FastAPI server until SIGINT/SIGTERM, then shut down gracefully.

    Exits the process with status 1 if the port cannot be bound or the
    shutdown does not finish within SHUTDOWN_TIMEOUT.
    """
    host = host or Config.HOST
    if not port:
        try:
            port = Config.get_port()
        except ValueError as e:
            logger.critical(f"Could not listen on {os.getenv('PORT')}: {e}")
            sys.exit(1)

    error = port_bind_error(host, port)
    if error is not None:
        logger.critical(f"Could not listen on {port}: {error}")
        sys.exit(1)

    server = GracefulServer(build_config(host, port))
    logger.info(f"Server starting on port {port}")
    server.run()

    if not server.started:
        logger.critical(f"Could not listen on {port}: server failed to start")
        sys.exit(1)

    if server.shutdown_overran:
        logger.critical(f"Server Shutdown Failed: connections still open after {Config.SHUTDOWN_TIMEOUT}s")
        sys.exit(1)

    logger.info("Server gracefully stopped")


if __name__ == "__main__":
    serve()
