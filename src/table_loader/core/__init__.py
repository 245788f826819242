# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Core infrastructure components for the Table Loader.

This module contains the foundational components including configuration,
the retrying HTTP client, result types and error handling.
"""

from .config import LoaderConfig, RequestOptions, resolve_config
from .errors import (
    TableLoaderError,
    ValidationError,
    TransportError,
    HttpError,
    ResponseParseError,
    RetryExhaustedError,
)
from .results import AttemptOutcome, RequestAttempt, PagedResult, LoadResult

__all__ = [
    "LoaderConfig",
    "RequestOptions",
    "resolve_config",
    "TableLoaderError",
    "ValidationError",
    "TransportError",
    "HttpError",
    "ResponseParseError",
    "RetryExhaustedError",
    "AttemptOutcome",
    "RequestAttempt",
    "PagedResult",
    "LoadResult",
]
