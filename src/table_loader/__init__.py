# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Table Loader: paged, retrying record loader for OData and table-style REST APIs.
"""

from .client import TableLoader, load
from .core.config import LoaderConfig, RequestOptions, resolve_config
from .core.errors import (
    HttpError,
    ResponseParseError,
    RetryExhaustedError,
    TableLoaderError,
    TransportError,
    ValidationError,
)
from .core.results import AttemptOutcome, LoadResult, PagedResult, RequestAttempt

__version__ = "0.1.0"

__all__ = [
    "TableLoader",
    "load",
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
