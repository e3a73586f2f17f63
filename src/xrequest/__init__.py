"""Preconfigured HTTP clients for named backends."""

from .networking import (
    BackendClient,
    BackendConfig,
    BackendResponse,
    HttpClientError,
    RequestOptions,
    RequestTimeoutError,
    RetryableHttpError,
    RetryPolicy,
    create_client,
    load_config,
)

__all__ = [
    "BackendClient",
    "BackendConfig",
    "BackendResponse",
    "HttpClientError",
    "RequestOptions",
    "RequestTimeoutError",
    "RetryPolicy",
    "RetryableHttpError",
    "create_client",
    "load_config",
]
