"""
Request logging shared by both servers.
"""
import logging

logger = logging.getLogger(__name__)


def format_remote_addr(host: str, port: int) -> str:
    """host:port, with IPv6 hosts in brackets ([::1]:8080)."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def format_request_line(method: str, uri: str, remote_addr: str, user_agent: str) -> str:
    return f"method={method} uri={uri} remote_addr={remote_addr} user_agent={user_agent}"


def log_request(method: str, uri: str, remote_addr: str, user_agent: str) -> None:
    """Log one incoming request before it is dispatched."""
    logger.info(format_request_line(method, uri, remote_addr, user_agent))
