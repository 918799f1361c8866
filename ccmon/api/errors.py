"""
Metrics client error taxonomy.

Every failure the Prometheus client can report is a ``MetricsClientError``
carrying an ``ErrorKind``, so callers can branch on ``err.kind`` instead of
matching message strings.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    CONNECTION_FAILED = "connection_failed"
    HTTP_STATUS = "http_status"
    DECODING = "decoding"
    QUERY = "query"
    NO_DATA = "no_data"


class MetricsClientError(Exception):
    kind: ErrorKind

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidURLError(MetricsClientError):
    kind = ErrorKind.INVALID_URL

    def __init__(self, url: str):
        super().__init__(f"Invalid Prometheus URL: {url!r}")
        self.url = url


class ConnectionFailedError(MetricsClientError):
    kind = ErrorKind.CONNECTION_FAILED

    def __init__(self, reason: str):
        super().__init__(f"Connection failed: {reason}")
        self.reason = reason


class HTTPStatusError(MetricsClientError):
    kind = ErrorKind.HTTP_STATUS

    def __init__(self, status_code: int, body: Optional[str] = None):
        super().__init__(f"HTTP error: {status_code}")
        self.status_code = status_code
        self.body = body


class DecodingError(MetricsClientError):
    kind = ErrorKind.DECODING

    def __init__(self, message: str):
        super().__init__(f"Failed to decode response: {message}")


class QueryError(MetricsClientError):
    """The backend answered with ``status: error``."""

    kind = ErrorKind.QUERY

    def __init__(self, backend_message: str, error_type: Optional[str] = None):
        super().__init__(f"Query error: {backend_message}")
        self.backend_message = backend_message
        self.error_type = error_type


class NoDataError(MetricsClientError):
    kind = ErrorKind.NO_DATA

    def __init__(self, message: str = "No data returned"):
        super().__init__(message)
