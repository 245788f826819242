# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Shared pytest fixtures and configuration for Table Loader tests.

This module provides fake HTTP responses and sessions that can be used
across all test modules.
"""

import json
from unittest.mock import MagicMock, Mock

import pytest

from table_loader.core.config import resolve_config


def make_response(status_code=200, body=None, headers=None, text=None):
    """Build a fake requests.Response with the given status, JSON body and headers."""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    if text is not None:
        response.text = text
        response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
    else:
        response.text = json.dumps(body if body is not None else {})
        response.json.return_value = body if body is not None else {}
    return response


@pytest.fixture
def response_factory():
    """Factory for fake HTTP responses."""
    return make_response


@pytest.fixture
def fake_session():
    """Mock requests.Session whose ``request`` side effects are set per test."""
    return MagicMock()


@pytest.fixture
def fast_config():
    """Configuration with a small retry budget and no real waiting."""
    return resolve_config({"retry_count": 2, "retry_delay": 10})

