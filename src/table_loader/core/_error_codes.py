# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# HTTP subcode constants
HTTP_404 = "http_404"
HTTP_429 = "http_429"

# Status codes a server typically recovers from on its own
TRANSIENT_STATUS_CODES = {408, 429, 500, 502, 503, 504}

# Transport subcodes
TRANSPORT_TIMEOUT = "transport_timeout"
TRANSPORT_CONNECTION = "transport_connection"
TRANSPORT_OTHER = "transport_other"

# Parse subcodes
PARSE_INVALID_JSON = "parse_invalid_json"

# Validation subcodes
VALIDATION_RELATIVE_URL = "validation_relative_url"
VALIDATION_MALFORMED_URL = "validation_malformed_url"

# Retry subcodes
RETRY_EXHAUSTED_TRANSPORT = "retry_exhausted_transport"
RETRY_EXHAUSTED_HTTP = "retry_exhausted_http"


def _http_subcode(status_code: int) -> str:
    return f"http_{status_code}"


def _is_transient_status(status_code: int) -> bool:
    return status_code in TRANSIENT_STATUS_CODES
