import os
import socket
import sys
from typing import Optional

from dotenv import load_dotenv


def port_bind_error(host: str, port: int) -> Optional[OSError]:
    """
    Try to bind host:port the way the servers do.

    Returns the OSError if binding fails, None if the port is free.
    """
    # Bind to all interfaces for the wildcard host
    bind_host = "" if host == "0.0.0.0" else host

    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    # Both servers set SO_REUSEADDR, so TIME_WAIT leftovers must not count as "in use".
    # On Windows SO_REUSEADDR would let us bind over a live listener.
    if sys.platform != "win32":
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((bind_host, port))
    except OSError as e:
        return e
    finally:
        sock.close()
    return None


def is_port_available(host: str, port: int) -> bool:
    return port_bind_error(host, port) is None


def check_port():
    # Load environment variables
    load_dotenv()

    # Get configuration
    host = os.getenv("HOST") or "0.0.0.0"
    try:
        port = int(os.getenv("PORT") or "8080")
    except ValueError:
        print(f"Error: Invalid PORT value: {os.getenv('PORT')}")
        sys.exit(1)

    print(f"Checking if port {port} is available on {host}...")

    error = port_bind_error(host, port)
    if error is None:
        print(f"Port {port} is available.")
        sys.exit(0)

    # Windows specific error code for EADDRINUSE is 10048
    if error.errno == 10048 or "Address already in use" in str(error):
        print(f"\n[ERROR] Port {port} is already in use!")
        print(f"Something is already listening on port {port}.")
        print(f"Please stop the existing process or change PORT in your .env file.")
    else:
        print(f"Error checking port {port}: {error}")
    sys.exit(1)


if __name__ == "__main__":
    check_port()
