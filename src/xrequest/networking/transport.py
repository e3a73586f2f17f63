"""Default transport issuing requests through a ``requests.Session``.

A transport takes fully prepared ``RequestOptions`` and returns an
``(error, response)`` pair; it never raises for request failures.
"""

from __future__ import annotations

from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Callable, Mapping, NamedTuple, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util import Url

from .errors import HttpClientError, RequestTimeoutError, RetryableHttpError
from .options import RequestOptions

_REDIRECTABLE_METHODS = {"GET", "HEAD", "OPTIONS"}


class TransportResponse(NamedTuple):
    status_code: int
    headers: Mapping[str, Any]
    body: Any
    raw: Any = None


TransportResult = Tuple[Optional[HttpClientError], Optional[TransportResponse]]
Transport = Callable[[RequestOptions], TransportResult]


def map_request_exception(exc: requests.exceptions.RequestException) -> HttpClientError:
    """Map requests exceptions to xrequest errors."""
    if isinstance(exc, requests.exceptions.Timeout):
        error: HttpClientError = RequestTimeoutError(str(exc))
    elif isinstance(exc, requests.exceptions.ConnectionError):
        error = RetryableHttpError(str(exc))
    else:
        # Generic fallback for other request exceptions
        error = HttpClientError(str(exc))
    error.__cause__ = exc
    return error


class RequestsTransport:
    """Transport backed by ``requests``.

    Two persistent sessions share one pooled adapter. With ``jar=True``
    requests go through a session that remembers cookies. Otherwise they go
    through a session whose cookie policy rejects every cookie, optionally
    sending the cookie jar given as ``jar``.
    """

    def __init__(self, max_sockets: int | None = None) -> None:
        self._adapter = HTTPAdapter(pool_maxsize=max_sockets) if max_sockets else HTTPAdapter()
        self._session = self._new_session()
        self._cookieless_session = self._new_session()
        self._cookieless_session.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))

    def _new_session(self) -> requests.Session:
        session = requests.Session()
        session.mount("http://", self._adapter)
        session.mount("https://", self._adapter)
        return session

    @staticmethod
    def _allow_redirects(method: str, options: RequestOptions) -> bool:
        if options.follow_all_redirects:
            return True
        if method in _REDIRECTABLE_METHODS:
            return options.follow_redirect is not False
        return False

    @staticmethod
    def _url(uri: Any) -> str:
        if isinstance(uri, Url):
            return uri.url
        return "" if uri is None else str(uri)

    def __call__(self, options: RequestOptions) -> TransportResult:
        method = (options.method or "GET").upper()
        kwargs: dict[str, Any] = {
            "headers": dict(options.headers or {}),
            "params": options.params,
            "data": options.body,
            "timeout": options.timeout,
            "allow_redirects": self._allow_redirects(method, options),
        }
        if options.jar is True:
            session = self._session
        else:
            session = self._cookieless_session
            if isinstance(options.jar, CookieJar):
                kwargs["cookies"] = options.jar
        try:
            response = session.request(method, self._url(options.uri), **kwargs)
        except requests.exceptions.RequestException as exc:
            return map_request_exception(exc), None

        body = response.content if options.binary else response.text
        return None, TransportResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=body,
            raw=response,
        )

    def close(self) -> None:
        self._session.close()
        self._cookieless_session.close()
