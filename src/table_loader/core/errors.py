# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Structured error hierarchy for the Table Loader.

Every error raised by the library derives from :class:`TableLoaderError`,
which carries a stable ``code``/``subcode`` pair alongside the message so
callers can branch on the failure kind without parsing strings.
"""

from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional, Sequence

from ._error_codes import (
    PARSE_INVALID_JSON,
    RETRY_EXHAUSTED_HTTP,
    RETRY_EXHAUSTED_TRANSPORT,
    TRANSPORT_OTHER,
    _http_subcode,
    _is_transient_status,
)


class TableLoaderError(Exception):
    """Base structured error for the Table Loader."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        subcode: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        source: Optional[str] = None,
        is_transient: bool = False,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.subcode = subcode
        self.status_code = status_code
        self.details = details or {}
        self.source = source or "client"
        self.is_transient = is_transient
        self.timestamp = _dt.datetime.now(_dt.timezone.utc).isoformat().replace("+00:00", "Z")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "code": self.code,
            "subcode": self.subcode,
            "status_code": self.status_code,
            "details": self.details,
            "source": self.source,
            "is_transient": self.is_transient,
            "timestamp": self.timestamp,
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"{self.__class__.__name__}(code={self.code!r}, subcode={self.subcode!r}, message={self.message!r})"


class ValidationError(TableLoaderError):
    def __init__(self, message: str, *, subcode: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="validation_error", subcode=subcode, details=details, source="client")


class TransportError(TableLoaderError):
    """The HTTP call could not complete (DNS, refused connection, timeout)."""

    def __init__(self, message: str, *, url: str, subcode: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="transport_error",
            subcode=subcode or TRANSPORT_OTHER,
            details={"url": url},
            source="client",
            is_transient=True,
        )
        self.url = url


class HttpError(TableLoaderError):
    """The server answered with a status outside the 2xx range."""

    def __init__(
        self,
        message: str,
        status_code: int,
        *,
        url: Optional[str] = None,
        request_id: Optional[str] = None,
        body_excerpt: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        d = dict(details or {})
        if url is not None:
            d["url"] = url
        if request_id is not None:
            d["request_id"] = request_id
        if body_excerpt is not None:
            d["body_excerpt"] = body_excerpt
        super().__init__(
            message,
            code="http_error",
            subcode=_http_subcode(status_code),
            status_code=status_code,
            details=d,
            source="server",
            is_transient=_is_transient_status(status_code),
        )


class ResponseParseError(TableLoaderError):
    """A successful response carried a body that is not valid JSON. Never retried."""

    def __init__(self, message: str, *, url: str, status_code: Optional[int] = None) -> None:
        super().__init__(
            message,
            code="parse_error",
            subcode=PARSE_INVALID_JSON,
            status_code=status_code,
            details={"url": url},
            source="server",
        )


class RetryExhaustedError(TableLoaderError):
    """All attempts for a single page failed; ``last_error`` holds the final failure."""

    def __init__(self, message: str, *, last_error: TableLoaderError, attempts: Sequence[Any] = ()) -> None:
        subcode = RETRY_EXHAUSTED_HTTP if isinstance(last_error, HttpError) else RETRY_EXHAUSTED_TRANSPORT
        super().__init__(
            message,
            code="retry_exhausted",
            subcode=subcode,
            status_code=last_error.status_code,
            details={"attempt_count": len(attempts), "last_error": last_error.to_dict()},
            source=last_error.source,
            is_transient=last_error.is_transient,
        )
        self.last_error = last_error
        self.attempts = tuple(attempts)


__all__ = [
    "TableLoaderError",
    "ValidationError",
    "TransportError",
    "HttpError",
    "ResponseParseError",
    "RetryExhaustedError",
]
