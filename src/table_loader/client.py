# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

import logging
import time
from contextlib import closing
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

import pandas as pd

from .core._http import _HttpClient
from .core.config import LoaderConfig, _is_retry_value, resolve_config
from .core.errors import TableLoaderError
from .core.results import LoadResult, PagedResult
from .data._paging import _Paginator
from .utils._pandas import records_to_dataframe

_LOGGER = logging.getLogger(__name__)


class TableLoader:
    """
    High-level client that loads every record of a paged table endpoint.

    Each load fetches pages strictly in sequence, following OData next-links
    (``@odata.nextLink``) or table continuation headers
    (``x-ms-continuation-NextPartitionKey`` / ``x-ms-continuation-NextRowKey``),
    and retries failed requests with linear backoff.

    :param base_url: Optional base for relative URLs, e.g.
        ``"https://<account>.table.core.windows.net/"``.
    :type base_url: :class:`str` | None
    :param retry_count: Default retries per page (falls back to 3).
    :type retry_count: :class:`int` | None
    :param retry_delay: Default base backoff in milliseconds (falls back to 1000).
    :type retry_delay: :class:`float` | None
    :param request_options: Default transport options (``method``, ``headers``,
        ``credentials``, ``timeout`` and any extra ``requests`` keyword arguments).
    :type request_options: :class:`dict` | None

    Example:
        Load every record, with callbacks::

            loader = TableLoader("https://contoso.table.core.windows.net/")
            rows = loader.load(
                "/Customers()?$filter=Country eq 'NZ'",
                retry_count=5,
                request_options={"headers": {"Authorization": f"SharedKey {key}"}},
                on_finally=lambda: print("done"),
            )
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        retry_count: Optional[int] = None,
        retry_delay: Optional[float] = None,
        request_options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._base_url = base_url or None
        self._defaults: Dict[str, Any] = {
            "retry_count": retry_count,
            "retry_delay": retry_delay,
            "request_options": dict(request_options or {}),
        }

    def _config(self, overrides: Mapping[str, Any]) -> LoaderConfig:
        merged = dict(self._defaults)
        for key in ("retry_count", "retry_delay"):
            if _is_retry_value(overrides.get(key)):
                merged[key] = overrides[key]
        call_request = overrides.get("request_options") or {}
        request = {**self._defaults["request_options"], **call_request}
        request["headers"] = {
            **(self._defaults["request_options"].get("headers") or {}),
            **(call_request.get("headers") or {}),
        }
        merged["request_options"] = request
        return resolve_config(merged)

    def _base(self, overrides: Mapping[str, Any]) -> Optional[str]:
        return overrides.get("base_url") or self._base_url

    def try_load(self, url: str, **overrides: Any) -> LoadResult:
        """
        Load every page and report the outcome as a value instead of raising.

        Library errors (:class:`~table_loader.core.errors.TableLoaderError`) are
        returned in :attr:`LoadResult.error`; records fetched before a failure are
        discarded. Any other exception propagates.

        :param url: Initial URL (absolute, or relative to ``base_url``).
        :type url: :class:`str`
        :param overrides: ``retry_count``, ``retry_delay``, ``request_options``, ``base_url``.
        :return: Success with the records, or failure with the error.
        :rtype: :class:`~table_loader.core.results.LoadResult`
        """
        config = self._config(overrides)
        started = time.perf_counter()
        page_count = 0
        records: List[Any] = []
        try:
            with closing(_HttpClient(config)) as http:
                for page in _Paginator(http, url, base_url=self._base(overrides)).pages():
                    page_count += 1
                    records.extend(page.records)
        except TableLoaderError as error:
            return LoadResult(error=error, page_count=page_count, timing_ms=_elapsed_ms(started))
        return LoadResult(records=records, page_count=page_count, timing_ms=_elapsed_ms(started))

    def load(
        self,
        url: str,
        *,
        on_success: Optional[Callable[[List[Any]], Any]] = None,
        on_error: Optional[Callable[[BaseException], Any]] = None,
        on_finally: Optional[Callable[[], Any]] = None,
        **overrides: Any,
    ) -> List[Any]:
        """
        Load every record reachable from ``url``.

        :param url: Initial URL (absolute, or relative to ``base_url``).
        :type url: :class:`str`
        :param on_success: Called with the records after a successful load.
        :param on_error: Called with the error after a failed load, including an
            error raised by ``on_success``. The error is re-raised afterwards either
            way; without this callback it is logged.
        :param on_finally: Called exactly once after either outcome.
        :param overrides: ``retry_count``, ``retry_delay``, ``request_options``, ``base_url``.
        :return: All records in server order.
        :rtype: :class:`list`
        :raises ~table_loader.core.errors.RetryExhaustedError: If a page could not be fetched.
        :raises ~table_loader.core.errors.ResponseParseError: If a page body is not JSON.
        :raises ~table_loader.core.errors.ValidationError: If a relative URL cannot be resolved.
        """
        try:
            records = self.try_load(url, **overrides).unwrap()
            if callable(on_success):
                on_success(records)
            return records
        except Exception as error:
            # Covers on_success failures too; on_error never suppresses the error
            if callable(on_error):
                on_error(error)
            else:
                _LOGGER.error("TableLoader error loading %s: %s", url, error)
            raise
        finally:
            if callable(on_finally):
                on_finally()

    def pages(self, url: str, **overrides: Any) -> Iterator[PagedResult]:
        """
        Yield one :class:`~table_loader.core.results.PagedResult` per page.

        Pages already yielded stay with the caller if a later page fails.

        :param url: Initial URL (absolute, or relative to ``base_url``).
        :type url: :class:`str`
        :param overrides: ``retry_count``, ``retry_delay``, ``request_options``, ``base_url``.
        """
        config = self._config(overrides)
        with closing(_HttpClient(config)) as http:
            yield from _Paginator(http, url, base_url=self._base(overrides)).pages()

    def load_dataframe(self, url: str, columns: Optional[List[str]] = None, **overrides: Any) -> pd.DataFrame:
        """
        Load every record into a pandas DataFrame.

        OData annotation keys are dropped; records missing a column get NaN.

        :param url: Initial URL (absolute, or relative to ``base_url``).
        :type url: :class:`str`
        :param columns: Optional column order.
        :type columns: :class:`list` of :class:`str` | None
        :rtype: :class:`pandas.DataFrame`
        """
        return records_to_dataframe(self.try_load(url, **overrides).unwrap(), columns=columns)


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0


def load(url: str, **options: Any) -> List[Any]:
    """
    Load every record reachable from ``url`` with a one-off :class:`TableLoader`.

    Accepts the same keyword arguments as :meth:`TableLoader.load`, plus ``base_url``.
    """
    return TableLoader().load(url, **options)


__all__ = ["TableLoader", "load"]
