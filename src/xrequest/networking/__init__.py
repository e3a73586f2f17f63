"""Networking layer: backend clients, their configuration and transport."""

from .client import BackendClient, RequestLogRecord, create_client
from .config import BackendConfig, load_config, select_environment
from .errors import HttpClientError, RequestTimeoutError, RetryableHttpError
from .options import RequestOptions
from .retry import RetryPolicy
from .status import BackendResponse, StatusClassification, classify
from .transport import RequestsTransport, TransportResponse
from .types import Err, Ok, Result

__all__ = [
    "BackendClient",
    "BackendConfig",
    "BackendResponse",
    "Err",
    "HttpClientError",
    "Ok",
    "RequestLogRecord",
    "RequestOptions",
    "RequestTimeoutError",
    "RequestsTransport",
    "Result",
    "RetryPolicy",
    "RetryableHttpError",
    "StatusClassification",
    "TransportResponse",
    "classify",
    "create_client",
    "load_config",
    "select_environment",
]
