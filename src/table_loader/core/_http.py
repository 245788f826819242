# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
HTTP client with linear-backoff retry, timeout handling, and session ownership.

This module provides :class:`~table_loader.core._http._HttpClient`, a wrapper
around the requests library that fetches a single JSON document, retrying
transport failures and non-2xx responses with a delay that grows linearly
with the attempt number.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

import requests
from requests.structures import CaseInsensitiveDict

from ..common.constants import CREDENTIALS_INCLUDE, CREDENTIALS_SAME_ORIGIN, HEADER_SERVICE_REQUEST_ID
from ._error_codes import TRANSPORT_CONNECTION, TRANSPORT_OTHER, TRANSPORT_TIMEOUT
from .config import LoaderConfig
from .errors import HttpError, ResponseParseError, RetryExhaustedError, TableLoaderError, TransportError
from .results import AttemptOutcome, RequestAttempt

_LOGGER = logging.getLogger(__name__)

_BODY_EXCERPT_LIMIT = 200

# Policies that let requests pick up .netrc and environment settings
_AMBIENT_CREDENTIALS = (CREDENTIALS_INCLUDE, CREDENTIALS_SAME_ORIGIN)


@dataclass(frozen=True)
class FetchResponse:
    """A successfully fetched and decoded page."""

    body: Any
    headers: Mapping[str, str]
    status_code: int
    url: str
    attempts: Tuple[RequestAttempt, ...] = field(default_factory=tuple)


def _transport_error(exc: requests.exceptions.RequestException, url: str) -> TransportError:
    if isinstance(exc, requests.exceptions.Timeout):
        subcode = TRANSPORT_TIMEOUT
    elif isinstance(exc, requests.exceptions.ConnectionError):
        subcode = TRANSPORT_CONNECTION
    else:
        subcode = TRANSPORT_OTHER
    return TransportError(f"Request to {url} failed: {exc}", url=url, subcode=subcode)


def _http_error(response: requests.Response, url: str, headers: Mapping[str, str]) -> HttpError:
    text = getattr(response, "text", None)
    excerpt = text[:_BODY_EXCERPT_LIMIT] if isinstance(text, str) and text else None
    return HttpError(
        f"Request failed with status {response.status_code}",
        response.status_code,
        url=url,
        request_id=headers.get(HEADER_SERVICE_REQUEST_ID),
        body_excerpt=excerpt,
    )


class _HttpClient:
    """
    HTTP client that fetches one JSON document with retry.

    Failed attempts (transport errors and non-2xx statuses) are retried up to
    ``config.retry_count`` times; the n-th retry waits ``retry_delay * n``
    milliseconds. A body that fails to decode is not retried.

    :param config: Resolved configuration for the current load.
    :type config: :class:`~table_loader.core.config.LoaderConfig`
    :param session: Optional requests.Session to issue requests through. When
        omitted the client creates one and closes it in :meth:`close`.
    :type session: :class:`requests.Session` | None
    """

    def __init__(self, config: LoaderConfig, session: Optional[requests.Session] = None) -> None:
        self._config = config
        self._owns_session = session is None
        if session is None:
            session = requests.Session()
            # Ambient credentials (.netrc, environment) only when the policy allows them
            session.trust_env = config.request_options.credentials in _AMBIENT_CREDENTIALS
        self._session: Optional[requests.Session] = session

    @property
    def config(self) -> LoaderConfig:
        return self._config

    def _request_kwargs(self) -> dict:
        options = self._config.request_options
        kwargs: dict = dict(options.extra)
        kwargs["headers"] = dict(options.headers)
        # Without a configured timeout apply per-method defaults (120s for POST/DELETE, 10s for others).
        if options.timeout is not None:
            kwargs["timeout"] = options.timeout
        elif "timeout" not in kwargs:
            m = (options.method or "").lower()
            kwargs["timeout"] = 120 if m in ("post", "delete") else 10
        return kwargs

    def _send(self, url: str) -> requests.Response:
        if self._session is None:
            raise RuntimeError("HTTP client is closed")
        return self._session.request(self._config.request_options.method, url, **self._request_kwargs())

    def fetch(self, url: str) -> FetchResponse:
        """
        Fetch ``url`` and decode its JSON body, retrying failed attempts.

        :param url: Absolute URL to request.
        :type url: :class:`str`
        :return: Decoded body, case-insensitive headers and the attempt log.
        :rtype: :class:`FetchResponse`
        :raises ~table_loader.core.errors.RetryExhaustedError: If every attempt failed.
        :raises ~table_loader.core.errors.ResponseParseError: If a 2xx body is not valid JSON.
        """
        retry_count = self._config.retry_count
        attempts: List[RequestAttempt] = []
        attempt = 0
        last_error: Optional[TableLoaderError] = None

        while attempt <= retry_count:
            _LOGGER.debug("Request %s %s (attempt %d)", self._config.request_options.method, url, attempt + 1)
            try:
                response = self._send(url)
            except requests.exceptions.RequestException as exc:
                last_error = _transport_error(exc, url)
                attempts.append(RequestAttempt(attempt, url, AttemptOutcome.TRANSPORT_ERROR, error=last_error))
            else:
                headers = CaseInsensitiveDict(response.headers or {})
                if 200 <= response.status_code < 300:
                    # Decoding happens outside the retry handler: requests' JSONDecodeError
                    # is itself a RequestException.
                    body = self._decode(response, url)
                    attempts.append(RequestAttempt(attempt, url, AttemptOutcome.SUCCESS, response.status_code))
                    return FetchResponse(body, headers, response.status_code, url, tuple(attempts))
                last_error = _http_error(response, url, headers)
                attempts.append(
                    RequestAttempt(attempt, url, AttemptOutcome.HTTP_ERROR, response.status_code, last_error)
                )

            attempt += 1
            if attempt > retry_count:
                break
            delay = self._config.retry_delay * attempt
            _LOGGER.warning(
                "Attempt %d for %s failed (%s); retrying in %sms", attempt, url, last_error.message, delay
            )
            time.sleep(delay / 1000.0)

        raise RetryExhaustedError(
            f"Request to {url} failed after {len(attempts)} attempt(s): {last_error.message}",
            last_error=last_error,
            attempts=attempts,
        ) from last_error

    @staticmethod
    def _decode(response: requests.Response, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise ResponseParseError(
                f"Response from {url} is not valid JSON: {exc}", url=url, status_code=response.status_code
            ) from exc

    def close(self) -> None:
        """
        Close the HTTP client and release resources.

        Only sessions created by this client are closed. Safe to call multiple times.
        """
        if self._session is not None and self._owns_session:
            self._session.close()
        self._session = None
