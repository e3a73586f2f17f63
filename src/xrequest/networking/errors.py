"""Error hierarchy surfaced by backend clients."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .status import BackendResponse


class HttpClientError(Exception):
    """Transport level failure of a request.

    HTTP error statuses are not raised or returned as errors; they are
    visible through the response status predicates.
    """

    timeout: bool = False

    def __init__(
        self, message: str, response: BackendResponse | None = None
    ) -> None:
        super().__init__(message)
        self.response = response


class RequestTimeoutError(HttpClientError):
    """The request timed out while connecting or reading."""

    timeout = True


class RetryableHttpError(HttpClientError):
    """Connection failure that a retry policy may recover from."""
