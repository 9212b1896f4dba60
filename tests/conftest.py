"""
Pytest configuration for joke-proxy tests.

This file ensures that the src directory is in the Python path
so that tests can import from joke_proxy, and provides a fixture for
running a server in a child process so signal handling can be tested.
"""
import os
import sys
import time
import socket
import subprocess
from pathlib import Path

import httpx
import pytest

# Add src directory to Python path
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class ServerProcess:
    """A server started with `python -c <code>` on 127.0.0.1:<port>."""

    def __init__(self, code: str, port: int, env=None):
        self.port = port
        self.url = f"http://127.0.0.1:{port}"
        pythonpath = os.pathsep.join(p for p in [str(src_path), os.environ.get("PYTHONPATH", "")] if p)
        child_env = {
            **os.environ,
            "PYTHONPATH": pythonpath,
            "PYTHONUNBUFFERED": "1",
            "HOST": "127.0.0.1",
            "PORT": str(port),
            "LOG_LEVEL": "INFO",
            **(env or {}),
        }
        self.proc = subprocess.Popen(
            [sys.executable, "-c", code],
            env=child_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
        )

    def wait_until_ready(self, timeout: float = 20.0) -> bool:
        """Poll /health until it answers 200 or the process exits."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.proc.poll() is not None:
                return False
            try:
                if httpx.get(f"{self.url}/health", timeout=0.5).status_code == 200:
                    return True
            except httpx.HTTPError:
                pass
            time.sleep(0.1)
        return False

    def finish(self, timeout: float = 20.0):
        """Wait for exit. Returns (returncode, combined output)."""
        output, _ = self.proc.communicate(timeout=timeout)
        return self.proc.returncode, output

    def stop(self, sig, timeout: float = 20.0):
        self.proc.send_signal(sig)
        return self.finish(timeout)


@pytest.fixture
def server_process():
    """Factory fixture: server_process(code, port=None, env=None) -> ServerProcess."""
    started = []

    def start(code: str, port=None, env=None) -> ServerProcess:
        process = ServerProcess(code, port or free_port(), env)
        started.append(process)
        return process

    yield start

    for process in started:
        if process.proc.poll() is None:
            process.proc.kill()
            process.proc.communicate()
