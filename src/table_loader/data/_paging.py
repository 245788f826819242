# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Pagination across OData next-links and table continuation headers.

A page response moves the cursor into one of three states:

- :class:`NextLink`: the body carries ``odata.nextLink`` / ``@odata.nextLink``;
  the next request goes to that URL verbatim.
- :class:`ContinuationToken`: the response carries
  ``x-ms-continuation-NextPartitionKey`` / ``x-ms-continuation-NextRowKey``;
  the next request is the *initial* URL with ``NextPartitionKey`` /
  ``NextRowKey`` query parameters.
- :class:`NoMore`: neither signal is present; paging stops.

A next-link always wins over continuation headers on the same response.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, List, Mapping, Optional, Union
from urllib.parse import parse_qsl, quote, urlencode, urljoin, urlsplit, urlunsplit

from ..common.constants import (
    HEADER_CONTINUATION_PARTITION_KEY,
    HEADER_CONTINUATION_ROW_KEY,
    ODATA_NEXT_LINK_KEYS,
    ODATA_VALUE_KEY,
    PARAM_NEXT_PARTITION_KEY,
    PARAM_NEXT_ROW_KEY,
)
from ..core._error_codes import VALIDATION_MALFORMED_URL, VALIDATION_RELATIVE_URL
from ..core._http import _HttpClient
from ..core.errors import ValidationError
from ..core.results import PagedResult

_LOGGER = logging.getLogger(__name__)

# Characters OData query options commonly contain; left unescaped for readable URLs
_QUERY_SAFE = "$,'():@/"


@dataclass(frozen=True)
class FirstPage:
    """No page fetched yet; request the initial URL."""


@dataclass(frozen=True)
class NextLink:
    url: str


@dataclass(frozen=True)
class ContinuationToken:
    partition_key: Optional[str] = None
    row_key: Optional[str] = None


@dataclass(frozen=True)
class NoMore:
    """Terminal state: the server signalled no further pages."""


PageState = Union[FirstPage, NextLink, ContinuationToken]
Transition = Union[NextLink, ContinuationToken, NoMore]


def _extract_records(body: Any) -> List[Any]:
    """Return the page's ``value`` array, or an empty list when absent or malformed."""
    items = body.get(ODATA_VALUE_KEY) if isinstance(body, dict) else None
    if isinstance(items, list):
        return list(items)
    return []


def _next_link(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    for key in ODATA_NEXT_LINK_KEYS:
        link = body.get(key)
        if isinstance(link, str) and link:
            return link
    return None


def _next_state(body: Any, headers: Mapping[str, str]) -> Transition:
    """
    Decide where the next request resumes from a page's body and headers.

    :param body: Decoded JSON body of the page.
    :param headers: Case-insensitive response headers.
    :return: The next cursor, or :class:`NoMore`.
    """
    link = _next_link(body)
    if link:
        return NextLink(link)
    partition_key = headers.get(HEADER_CONTINUATION_PARTITION_KEY) or None
    row_key = headers.get(HEADER_CONTINUATION_ROW_KEY) or None
    if partition_key or row_key:
        return ContinuationToken(partition_key, row_key)
    return NoMore()


def _with_continuation(url: str, token: ContinuationToken) -> str:
    """
    Set (or remove) the continuation query parameters on ``url``.

    A present token replaces the first existing occurrence of its parameter in
    place and drops any duplicates; an absent token removes the parameter.
    """
    parts = urlsplit(url)
    wanted = {PARAM_NEXT_PARTITION_KEY: token.partition_key, PARAM_NEXT_ROW_KEY: token.row_key}
    pairs = []
    placed = set()
    for key, value in parse_qsl(parts.query, keep_blank_values=True):
        if key in wanted:
            if wanted[key] and key not in placed:
                pairs.append((key, wanted[key]))
                placed.add(key)
            continue
        pairs.append((key, value))
    for key, value in wanted.items():
        if value and key not in placed:
            pairs.append((key, value))
    query = urlencode(pairs, quote_via=quote, safe=_QUERY_SAFE)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def _resolve(url: str, base_url: Optional[str]) -> str:
    try:
        resolved = urljoin(base_url, url) if base_url else url
        parts = urlsplit(resolved)
    except ValueError as exc:
        raise ValidationError(
            f"Malformed URL {url!r}: {exc}",
            subcode=VALIDATION_MALFORMED_URL,
            details={"url": url, "base_url": base_url},
        ) from exc
    if not parts.scheme or not parts.netloc:
        raise ValidationError(
            f"Cannot resolve relative URL {url!r} without a base_url",
            subcode=VALIDATION_RELATIVE_URL,
            details={"url": url, "base_url": base_url},
        )
    return resolved


class _Paginator:
    """
    Sequentially fetches every page reachable from an initial URL.

    :param http: Retrying HTTP client bound to this load's configuration.
    :param url: Initial URL (absolute, or relative to ``base_url``).
    :param base_url: Base for relative initial URLs and relative next-links.
    """

    def __init__(self, http: _HttpClient, url: str, *, base_url: Optional[str] = None) -> None:
        self._http = http
        self._url = url
        self._base_url = base_url

    def _request_url(self, state: PageState, current_url: Optional[str]) -> str:
        initial = _resolve(self._url, self._base_url)
        if isinstance(state, NextLink):
            # Relative links resolve against base_url, or the page that returned them
            return _resolve(state.url, self._base_url or current_url)
        if isinstance(state, ContinuationToken):
            return _with_continuation(initial, state)
        return initial

    def pages(self) -> Iterator[PagedResult]:
        """
        Yield each page in server order until the server stops signalling more.

        :raises ~table_loader.core.errors.RetryExhaustedError: If a page cannot be fetched.
        :raises ~table_loader.core.errors.ResponseParseError: If a page body is not JSON.
        :raises ~table_loader.core.errors.ValidationError: If a URL cannot be made absolute.
        """
        state: PageState = FirstPage()
        current_url: Optional[str] = None
        page_number = 0
        while True:
            current_url = self._request_url(state, current_url)
            response = self._http.fetch(current_url)
            page_number += 1
            records = _extract_records(response.body)
            transition = _next_state(response.body, response.headers)
            _LOGGER.debug(
                "Page %d from %s: %d record(s), next=%s",
                page_number,
                current_url,
                len(records),
                type(transition).__name__,
            )
            yield PagedResult(
                records=records,
                page_number=page_number,
                url=current_url,
                has_more=not isinstance(transition, NoMore),
                attempts=response.attempts,
            )
            if isinstance(transition, NoMore):
                return
            state = transition

    def all_records(self) -> List[Any]:
        """Fetch every page and return all records in one list."""
        records: List[Any] = []
        for page in self.pages():
            records.extend(page.records)
        return records
