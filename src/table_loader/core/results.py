# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Result types for Table Loader operations.

- :class:`RequestAttempt`: one try against a URL and how it ended
- :class:`PagedResult`: one page of records, yielded by ``TableLoader.pages()``
- :class:`LoadResult`: the outcome of a whole load, success or failure

:class:`LoadResult` lets callers handle failures as values instead of
exceptions::

    result = loader.try_load("https://example.table.core.windows.net/items")
    if result.ok:
        print(len(result.records))
    else:
        print(result.error.to_dict())
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .errors import TableLoaderError


class AttemptOutcome(str, Enum):
    """How a single request attempt ended."""

    SUCCESS = "success"
    HTTP_ERROR = "http_error"
    TRANSPORT_ERROR = "transport_error"


@dataclass(frozen=True)
class RequestAttempt:
    """
    Record of one request attempt.

    :param index: 0-based attempt index within a page fetch.
    :type index: :class:`int`
    :param url: Target URL of the attempt.
    :type url: :class:`str`
    :param outcome: How the attempt ended.
    :type outcome: :class:`AttemptOutcome`
    :param status_code: HTTP status, when a response was received.
    :type status_code: :class:`int` | None
    :param error: The failure, for unsuccessful attempts.
    :type error: :class:`~table_loader.core.errors.TableLoaderError` | None
    """

    index: int
    url: str
    outcome: AttemptOutcome
    status_code: Optional[int] = None
    error: Optional[TableLoaderError] = None


@dataclass(frozen=True)
class PagedResult:
    """
    Result for a single page of a paginated load.

    :param records: Records carried by this page's ``value`` array.
    :type records: :class:`list` of :class:`dict`
    :param page_number: 1-based page number (first page is 1).
    :type page_number: :class:`int`
    :param url: The URL the page was fetched from.
    :type url: :class:`str`
    :param has_more: Whether the server signalled another page.
    :type has_more: :class:`bool`
    :param attempts: Attempts it took to fetch this page.
    :type attempts: :class:`tuple` of :class:`RequestAttempt`

    Example:
        Iterate through pages::

            for page in loader.pages("/items"):
                print(f"Page {page.page_number}: {len(page.records)} records")
    """

    records: List[Any] = field(default_factory=list)
    page_number: int = 0
    url: str = ""
    has_more: bool = False
    attempts: Tuple[RequestAttempt, ...] = ()


@dataclass(frozen=True)
class LoadResult:
    """
    Outcome of a full load: either records or an error, never both.

    :param records: Every record fetched, in server order. Empty on failure.
    :type records: :class:`list`
    :param error: The failure that ended the load, if any.
    :type error: :class:`~table_loader.core.errors.TableLoaderError` | None
    :param page_count: Number of pages fetched successfully.
    :type page_count: :class:`int`
    :param timing_ms: Wall-clock duration of the load in milliseconds.
    :type timing_ms: :class:`float` | None
    """

    records: List[Any] = field(default_factory=list)
    error: Optional[TableLoaderError] = None
    page_count: int = 0
    timing_ms: Optional[float] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> List[Any]:
        """Return the records, raising the stored error for a failed load."""
        if self.error is not None:
            raise self.error
        return self.records

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "record_count": len(self.records),
            "page_count": self.page_count,
            "timing_ms": self.timing_ms,
            "error": self.error.to_dict() if self.error is not None else None,
        }


__all__ = [
    "AttemptOutcome",
    "RequestAttempt",
    "PagedResult",
    "LoadResult",
]
