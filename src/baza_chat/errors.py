"""
BazaAI client error types — transport, server and persistence failures.
"""

from typing import Any, Optional


class BazaChatError(Exception):
    def __init__(self, code: str, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.details = details


class TransportError(BazaChatError):
    """Request could not complete: timeout, connection refused, DNS."""

    def __init__(self, message: str):
        super().__init__("transport_error", message)


class ServerError(BazaChatError):
    """Backend answered with a non-success status or an unreadable body."""

    def __init__(self, status: int, message: str):
        super().__init__("server_error", message, {"status": status})
        self.status = status


class OfflineError(BazaChatError):
    def __init__(self, message: str = "Network unreachable"):
        super().__init__("offline", message)


class StorageError(BazaChatError):
    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        super().__init__("storage_error", message, details)
