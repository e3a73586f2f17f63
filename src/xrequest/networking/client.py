"""Preconfigured HTTP clients for named backends.

A ``BackendClient`` decorates every request with the backend defaults:
base URL composition, default headers and options, a correlation id header,
JSON bodies, retries and one structured log line per attempt. Outcomes are
delivered through an optional ``callback(error, response, body)`` and as a
``Result`` whose ``meta`` is the request log record.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Union

from requests.cookies import RequestsCookieJar, create_cookie

from ..log import DEFAULT_LOGGER, log_method
from .codec import decode_response, encode_request
from .config import BackendConfig
from .errors import HttpClientError
from .ids import set_id
from .options import RequestOptions, merge_options, normalize_options, reconcile_headers
from .retry import Outcome, RetryPolicy, run_with_retry
from .status import BackendResponse
from .transport import RequestsTransport, Transport
from .types import Err, Ok, Result
from .urls import set_url

Callback = Callable[[Optional[BaseException], Optional[BackendResponse], Any], Any]
CallOptions = Union[str, Mapping[str, Any], RequestOptions]
ClientResult = Result[BackendResponse, BaseException]


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _has_body(body: Any) -> bool:
    """Empty parsed structures count as a body; empty strings do not."""
    return body is not None and body != "" and body != b""


def _body_snippet(body: Any) -> Any:
    if isinstance(body, (bytes, bytearray)):
        return f"[bytes][length:{len(body)}]"
    return body


def _mark_timeout(error: BaseException) -> None:
    """Flag timeouts raised by foreign transports like the built-in errors."""
    if getattr(error, "timeout", False):
        return
    if isinstance(error, TimeoutError) or getattr(error, "code", None) == "ETIMEDOUT":
        try:
            error.timeout = True  # type: ignore[attr-defined]
        except AttributeError:
            pass  # Exceptions with __slots__ cannot carry the flag


@dataclass
class RequestLogRecord:
    """Structured record logged for one request attempt."""

    id: str
    backend: str
    options: dict[str, Any]
    begin: Optional[int] = None
    end: Optional[int] = None
    duration: Optional[int] = None
    response: Optional[dict[str, Any]] = None
    error: Optional[BaseException] = field(default=None, repr=False)

    def as_dict(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "backend": self.backend,
            "options": self.options,
            "begin": self.begin,
        }
        if self.end is not None:
            record["end"] = self.end
            record["duration"] = self.duration
        if self.response is not None:
            record["response"] = self.response
        if self.error is not None:
            record["error"] = {
                "type": type(self.error).__name__,
                "message": str(self.error),
                "timeout": bool(getattr(self.error, "timeout", False)),
            }
        return record


class BackendClient:
    """HTTP client bound to one backend configuration.

    Calling the client issues a request with the method given in the
    options (GET by default). The verb methods force their method.
    """

    def __init__(
        self,
        config: BackendConfig,
        default_options: CallOptions | None = None,
        *,
        transport: Transport | None = None,
        log: Any = None,
    ) -> None:
        """Create a new BackendClient.

        Args:
            config: Backend settings shared by all requests of this client.
            default_options: Caller defaults applied between the configured
                request defaults and the per-call options.
            transport: Callable issuing the actual request. Defaults to a
                ``requests`` based transport.
            log: Logger used when a call does not bring its own.
        """
        self._config = config
        self._default_options = (
            normalize_options(default_options) if default_options is not None else None
        )
        self._transport = transport or RequestsTransport(
            max_sockets=config.request.max_sockets
        )
        self._log = log

    @property
    def config(self) -> BackendConfig:
        return self._config

    @property
    def name(self) -> str:
        return self._config.name

    def _resolve_log(self, options: RequestOptions) -> Any:
        if options.log is not None:
            return options.log
        if self._default_options is not None and self._default_options.log is not None:
            return self._default_options.log
        return self._log if self._log is not None else DEFAULT_LOGGER

    def _retry_policy(self, options: RequestOptions) -> RetryPolicy | None:
        return RetryPolicy.merge(
            self._config.retry,
            self._config.request.retry,
            self._default_options.retry if self._default_options else None,
            options.retry,
        )

    def _prepare(self, call: RequestOptions, log: Any) -> RequestOptions:
        """Apply header reconciliation, option merge, URL composition."""
        reconcile_headers(call, self._config.request.headers)
        options = merge_options(self._config.request, self._default_options, call)
        options.log = log
        options.retry = None
        set_url(options, self._config.url, self._config.auth, self.name)
        return options

    def _attempt(
        self,
        call: RequestOptions,
        log: Any,
        records: list[RequestLogRecord],
    ) -> Outcome:
        """Run one decorated transport call and log its outcome."""
        backend = self.name
        options = self._prepare(call, log)
        request_id = set_id(options, self._config.id_header)

        # Snapshot before JSON encoding replaces the body.
        record = RequestLogRecord(id=request_id, backend=backend, options=options.snapshot())
        records.append(record)

        json_active = encode_request(options, backend)
        if options.jar is None:
            options.jar = False

        record.begin = _now_ms()
        debug = log_method(log, "debug")
        if debug is not None:
            debug(f"{backend} request begin", internal_request=record.as_dict())

        error, raw = self._transport(options)

        record.end = _now_ms()
        record.duration = record.end - record.begin

        response: BackendResponse | None = None
        if raw is not None:
            response = BackendResponse(
                status_code=raw.status_code,
                headers=raw.headers,
                body=raw.body,
                raw=raw.raw,
            )
            if json_active:
                decode_response(response, log, backend)
            record.response = {"status_code": response.status_code}
            if debug is not None and _has_body(response.body):
                record.response["body"] = _body_snippet(response.body)
            if response.headers:
                record.response["headers"] = dict(response.headers)

        if error is not None or (response is not None and response.status_code >= 400):
            if error is not None:
                _mark_timeout(error)
                record.error = error
            log_error = log_method(log, "error")
            if log_error is not None:
                log_error(f"{backend} request", internal_request=record.as_dict())
        elif debug is not None:
            debug(f"{backend} request end", internal_request=record.as_dict())
        else:
            info = log_method(log, "info")
            if info is not None:
                info(f"{backend} request", internal_request=record.as_dict())

        body = response.body if response is not None and _has_body(response.body) else ""
        return error, response, body

    def request(
        self,
        options: CallOptions | None = None,
        callback: Callback | None = None,
        *,
        method: str | None = None,
    ) -> ClientResult:
        """Issue a request through the decoration pipeline.

        Args:
            options: URL string, mapping of option names or RequestOptions.
            callback: Optional ``callback(error, response, body)`` invoked
                exactly once, after the request was logged.
            method: HTTP method overriding the one in ``options``.

        Returns:
            Result with the decorated response, or the transport error. HTTP
            error statuses are successful results; check ``response.error()``.
        """
        call = normalize_options(options)
        if method is not None:
            call.method = method
        log = self._resolve_log(call)
        policy = self._retry_policy(call)
        records: list[RequestLogRecord] = []

        error, response, body = run_with_retry(
            lambda: self._attempt(call, log, records), policy, log
        )

        meta = records[-1].as_dict() if records else {}
        meta["attempts"] = len(records)
        if callback is not None:
            callback(error, response, body)
        if error is not None:
            if isinstance(error, HttpClientError) and error.response is None:
                error.response = response
            return Err(error, meta=meta)
        return Ok(response, meta=meta)

    __call__ = request

    def get(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP GET request."""
        return self.request(options, callback, method="GET")

    def post(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP POST request."""
        return self.request(options, callback, method="POST")

    def put(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP PUT request."""
        return self.request(options, callback, method="PUT")

    def patch(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP PATCH request."""
        return self.request(options, callback, method="PATCH")

    def head(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP HEAD request."""
        return self.request(options, callback, method="HEAD")

    def delete(self, options: CallOptions, callback: Callback | None = None) -> ClientResult:
        """Perform an HTTP DELETE request."""
        return self.request(options, callback, method="DELETE")

    @staticmethod
    def jar() -> RequestsCookieJar:
        """Return a new cookie jar to pass as the ``jar`` option."""
        return RequestsCookieJar()

    @staticmethod
    def cookie(name: str, value: str, **kwargs: Any) -> Any:
        """Create a cookie for ``jar().set_cookie()``."""
        return create_cookie(name, value, **kwargs)


def create_client(
    config: BackendConfig | Mapping[str, Any] | None = None,
    default_options: CallOptions | None = None,
    *,
    transport: Transport | None = None,
    log: Any = None,
) -> BackendClient:
    """Create a client for the backend described by ``config``."""
    if config is None:
        config = BackendConfig()
    elif not isinstance(config, BackendConfig):
        config = BackendConfig.from_mapping(config)
    return BackendClient(config, default_options, transport=transport, log=log)
