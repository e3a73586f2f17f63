"""Configuration models for backend clients."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, Union

import yaml

from .options import RequestOptions
from .retry import RetryPolicy

ENVIRONMENTS = ("development", "test", "production")
DEFAULT_ENVIRONMENT = "development"


def _default_request() -> RequestOptions:
    """Return empty request defaults."""

    return RequestOptions()


@dataclass(frozen=True)
class BackendConfig:
    """Settings for one backend, shared read-only by all of its requests.

    ``request`` holds the default request options. Its headers are copied
    and frozen at construction.
    """

    name: str = "BACKEND"
    url: Optional[str] = None
    id_header: Optional[str] = None
    request: RequestOptions = field(default_factory=_default_request)
    retry: Optional[RetryPolicy] = None
    auth: Union[str, Sequence[str], None] = None
    example: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("name must not be empty")
        if self.request.timeout is not None and self.request.timeout <= 0:
            raise ValueError("request timeout must be > 0 when provided")
        if self.request.max_sockets is not None and self.request.max_sockets <= 0:
            raise ValueError("request max_sockets must be > 0 when provided")
        if self.auth is not None and not isinstance(self.auth, str):
            if len(self.auth) != 2:
                raise ValueError("auth must be 'user:password' or a (user, password) pair")
            object.__setattr__(self, "auth", tuple(self.auth))

        # Freeze copied headers to avoid post-init mutation side effects.
        object.__setattr__(
            self,
            "request",
            replace(
                self.request,
                headers=MappingProxyType(dict(self.request.headers or {})),
            ),
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> BackendConfig:
        """Build a config from plain data such as a parsed YAML document."""
        unexpected = set(data) - _CONFIG_FIELDS
        if unexpected:
            raise TypeError(f"Unexpected backend option(s): {sorted(unexpected)}")
        values = dict(data)
        request = values.get("request")
        if isinstance(request, Mapping):
            values["request"] = RequestOptions.from_mapping(request)
        elif request is None:
            values.pop("request", None)
        retry = values.get("retry")
        if isinstance(retry, Mapping):
            values["retry"] = RetryPolicy.from_mapping(retry)
        return cls(**values)


_CONFIG_FIELDS = frozenset(f.name for f in fields(BackendConfig))


def select_environment(
    data: Mapping[str, Any], environment: str | None = None
) -> Mapping[str, Any]:
    """Pick the section for ``environment`` from per-environment settings.

    Documents that are not keyed by environment names are returned as is.
    ``environment`` defaults to the ENVIRONMENT variable, then "development".
    """
    if not any(key in ENVIRONMENTS for key in data):
        return data
    if environment is None:
        environment = os.getenv("ENVIRONMENT", DEFAULT_ENVIRONMENT)
    try:
        return data[environment]
    except KeyError:
        raise ValueError(f"no settings for environment {environment!r}") from None


def load_config(path: str | Path, environment: str | None = None) -> BackendConfig:
    """Load a ``BackendConfig`` from a YAML file."""
    with open(path, encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, Mapping):
        raise ValueError(f"{path}: expected a mapping of backend settings")
    return BackendConfig.from_mapping(select_environment(data, environment))
