# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Constants for the table data wire contract.

These constants define the header names, body keys and query parameters used
by OData and Azure Table style services to signal paging, plus the default
request settings applied to every load.
"""

# Credentials policies; any other value is treated as ``omit``
CREDENTIALS_OMIT = "omit"
"""Never send ambient credentials (netrc, environment settings)."""

CREDENTIALS_SAME_ORIGIN = "same-origin"
"""Accepted for compatibility; behaves like ``include``."""

CREDENTIALS_INCLUDE = "include"
"""Allow requests to pick up ambient credentials from the environment."""

# Default request settings
DEFAULT_RETRY_COUNT = 3
DEFAULT_RETRY_DELAY_MS = 1000
DEFAULT_METHOD = "GET"
DEFAULT_CREDENTIALS = CREDENTIALS_OMIT
DEFAULT_HEADERS = {"Accept": "application/json;odata=nometadata"}

# Body keys carrying a link to the next page (legacy first)
ODATA_NEXT_LINK_KEYS = ("odata.nextLink", "@odata.nextLink")

# Body key holding the page records
ODATA_VALUE_KEY = "value"

# Continuation headers returned by table services
HEADER_CONTINUATION_PARTITION_KEY = "x-ms-continuation-NextPartitionKey"
HEADER_CONTINUATION_ROW_KEY = "x-ms-continuation-NextRowKey"
HEADER_SERVICE_REQUEST_ID = "x-ms-request-id"

# Query parameters carrying continuation tokens on the next request
PARAM_NEXT_PARTITION_KEY = "NextPartitionKey"
PARAM_NEXT_ROW_KEY = "NextRowKey"
