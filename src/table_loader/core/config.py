# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from requests.structures import CaseInsensitiveDict

from ..common.constants import (
    DEFAULT_CREDENTIALS,
    DEFAULT_HEADERS,
    DEFAULT_METHOD,
    DEFAULT_RETRY_COUNT,
    DEFAULT_RETRY_DELAY_MS,
)

_KNOWN_REQUEST_KEYS = ("method", "headers", "credentials", "timeout")


def _frozen_headers(headers: Optional[Mapping[str, str]] = None) -> Mapping[str, str]:
    merged = CaseInsensitiveDict(DEFAULT_HEADERS)
    if headers:
        merged.update(headers)
    return MappingProxyType(merged)


@dataclass(frozen=True)
class RequestOptions:
    """
    Transport settings applied to every request of a load.

    :param method: HTTP method (default ``GET``).
    :type method: str
    :param headers: Read-only, case-insensitive header mapping. Always contains the
        default ``Accept`` header unless the caller overrides it.
    :type headers: Mapping[str, str]
    :param credentials: Credentials policy: ``omit`` (default), ``same-origin`` or ``include``.
    :type credentials: str
    :param timeout: Request timeout in seconds (default: method-dependent).
    :type timeout: float or None
    :param extra: Additional keyword arguments passed through to ``requests``.
    :type extra: Mapping[str, Any]
    """
    method: str = DEFAULT_METHOD
    headers: Mapping[str, str] = field(default_factory=_frozen_headers)
    credentials: str = DEFAULT_CREDENTIALS
    timeout: Optional[float] = None
    extra: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class LoaderConfig:
    """
    Configuration for a single load call.

    :param retry_count: Retries per page after the first attempt (default: 3).
    :type retry_count: int
    :param retry_delay: Base backoff delay in milliseconds (default: 1000). The n-th
        retry waits ``retry_delay * n``.
    :type retry_delay: float
    :param request_options: Transport settings.
    :type request_options: RequestOptions
    """
    retry_count: int = DEFAULT_RETRY_COUNT
    retry_delay: float = DEFAULT_RETRY_DELAY_MS
    request_options: RequestOptions = field(default_factory=RequestOptions)

    @classmethod
    def defaults(cls) -> "LoaderConfig":
        """
        Create a configuration instance with default settings.

        :return: Configuration instance with default values.
        :rtype: ~table_loader.core.config.LoaderConfig
        """
        return cls(
            retry_count=DEFAULT_RETRY_COUNT,
            retry_delay=DEFAULT_RETRY_DELAY_MS,
            request_options=RequestOptions(),
        )

    @classmethod
    def from_overrides(cls, overrides: Optional[Mapping[str, Any]] = None) -> "LoaderConfig":
        return resolve_config(overrides)


def _is_retry_value(value: Any) -> bool:
    """True for finite, non-negative real numbers usable as a retry count or delay."""
    # bool is an int subclass but never a meaningful count or delay
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


def _finite_or_default(value: Any, default: float) -> float:
    return value if _is_retry_value(value) else default


def resolve_config(overrides: Optional[Mapping[str, Any]] = None) -> LoaderConfig:
    """
    Merge caller overrides with the defaults into a :class:`LoaderConfig`.

    Recognised keys are ``retry_count``, ``retry_delay`` and ``request_options``.
    Retry values are used only when they are finite, non-negative numbers. Request
    options are merged key by key over the defaults; headers are merged over the
    default header set with the caller winning on (case-insensitive) collisions.
    Never raises.

    :param overrides: Partial configuration, or None.
    :type overrides: Mapping[str, Any] or None
    :return: Fully populated configuration.
    :rtype: ~table_loader.core.config.LoaderConfig
    """
    options = overrides or {}
    request = options.get("request_options") or {}

    extra = {k: v for k, v in request.items() if k not in _KNOWN_REQUEST_KEYS}
    request_options = RequestOptions(
        method=request.get("method") or DEFAULT_METHOD,
        headers=_frozen_headers(request.get("headers")),
        credentials=request.get("credentials") or DEFAULT_CREDENTIALS,
        timeout=request.get("timeout"),
        extra=MappingProxyType(extra),
    )
    return LoaderConfig(
        retry_count=int(_finite_or_default(options.get("retry_count"), DEFAULT_RETRY_COUNT)),
        retry_delay=_finite_or_default(options.get("retry_delay"), DEFAULT_RETRY_DELAY_MS),
        request_options=request_options,
    )


__all__ = ["LoaderConfig", "RequestOptions", "resolve_config"]
