# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from unittest.mock import MagicMock, call, patch

import pytest
import requests

from table_loader.core._http import _HttpClient
from table_loader.core.config import resolve_config
from table_loader.core.errors import (
    HttpError,
    ResponseParseError,
    RetryExhaustedError,
    TransportError,
)
from table_loader.core.results import AttemptOutcome

URL = "https://contoso.table.core.windows.net/Customers()"


class TestHttpClientRetryLogic:
    """Retry and backoff behavior of the HTTP client."""

    def test_successful_request_no_retry(self, fake_session, response_factory, fast_config):
        fake_session.request.return_value = response_factory(body={"value": [{"id": 1}]})

        client = _HttpClient(fast_config, session=fake_session)
        result = client.fetch(URL)

        assert result.body == {"value": [{"id": 1}]}
        assert result.status_code == 200
        assert fake_session.request.call_count == 1
        assert [a.outcome for a in result.attempts] == [AttemptOutcome.SUCCESS]

    @patch("time.sleep")
    def test_network_error_retry_with_linear_backoff(self, mock_sleep, fake_session, response_factory):
        fake_session.request.side_effect = [
            requests.exceptions.ConnectionError("Network error"),
            requests.exceptions.ConnectionError("Network error"),
            response_factory(body={"value": []}),
        ]
        config = resolve_config({"retry_count": 3, "retry_delay": 1000})

        result = _HttpClient(config, session=fake_session).fetch(URL)

        assert result.body == {"value": []}
        assert fake_session.request.call_count == 3
        assert mock_sleep.call_args_list == [call(1.0), call(2.0)]
        assert [a.index for a in result.attempts] == [0, 1, 2]
        assert [a.outcome for a in result.attempts] == [
            AttemptOutcome.TRANSPORT_ERROR,
            AttemptOutcome.TRANSPORT_ERROR,
            AttemptOutcome.SUCCESS,
        ]

    @pytest.mark.parametrize("failures", [0, 1, 2, 3])
    @patch("time.sleep")
    def test_k_failures_then_success(self, mock_sleep, failures, fake_session, response_factory):
        fake_session.request.side_effect = [response_factory(status_code=503)] * failures + [
            response_factory(body={"ok": True})
        ]
        config = resolve_config({"retry_count": 3, "retry_delay": 500})

        result = _HttpClient(config, session=fake_session).fetch(URL)

        assert result.body == {"ok": True}
        assert fake_session.request.call_count == failures + 1
        assert [c.args[0] for c in mock_sleep.call_args_list] == [0.5 * n for n in range(1, failures + 1)]

    @patch("time.sleep")
    def test_non_success_status_is_retried(self, mock_sleep, fake_session, response_factory):
        fake_session.request.side_effect = [
            response_factory(status_code=404, body={"error": "missing"}),
            response_factory(body={"value": [1]}),
        ]
        config = resolve_config({"retry_count": 1, "retry_delay": 100})

        result = _HttpClient(config, session=fake_session).fetch(URL)

        assert result.body == {"value": [1]}
        assert result.attempts[0].outcome is AttemptOutcome.HTTP_ERROR
        assert result.attempts[0].status_code == 404
        mock_sleep.assert_called_once_with(0.1)

    @patch("time.sleep")
    def test_always_failing_makes_retry_count_plus_one_attempts(self, mock_sleep, fake_session, response_factory):
        fake_session.request.side_effect = [response_factory(status_code=500, text="boom %d" % i) for i in range(4)]
        config = resolve_config({"retry_count": 3, "retry_delay": 10})

        with pytest.raises(RetryExhaustedError) as ei:
            _HttpClient(config, session=fake_session).fetch(URL)

        err = ei.value
        assert fake_session.request.call_count == 4
        assert mock_sleep.call_count == 3
        assert len(err.attempts) == 4
        assert isinstance(err.last_error, HttpError)
        assert err.last_error.status_code == 500
        assert err.last_error.details["body_excerpt"] == "boom 3"
        assert err.status_code == 500
        assert err.__cause__ is err.last_error

    @patch("time.sleep")
    def test_zero_retries_single_attempt(self, mock_sleep, fake_session):
        fake_session.request.side_effect = requests.exceptions.Timeout("slow")
        config = resolve_config({"retry_count": 0})

        with pytest.raises(RetryExhaustedError) as ei:
            _HttpClient(config, session=fake_session).fetch(URL)

        assert fake_session.request.call_count == 1
        mock_sleep.assert_not_called()
        assert isinstance(ei.value.last_error, TransportError)
        assert ei.value.last_error.subcode == "transport_timeout"

    @patch("time.sleep")
    def test_parse_error_not_retried(self, mock_sleep, fake_session, response_factory):
        fake_session.request.return_value = response_factory(text="<html>oops</html>")

        with pytest.raises(ResponseParseError) as ei:
            _HttpClient(resolve_config({"retry_count": 3}), session=fake_session).fetch(URL)

        assert fake_session.request.call_count == 1
        mock_sleep.assert_not_called()
        assert ei.value.code == "parse_error"

    @patch("time.sleep")
    def test_requests_json_decode_error_not_retried(self, mock_sleep, fake_session, response_factory):
        response = response_factory(body={})
        response.json.side_effect = requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
        fake_session.request.return_value = response

        with pytest.raises(ResponseParseError):
            _HttpClient(resolve_config({"retry_count": 3}), session=fake_session).fetch(URL)

        assert fake_session.request.call_count == 1

    def test_request_uses_configured_method_headers_and_extras(self, fake_session, response_factory):
        fake_session.request.return_value = response_factory(body={})
        config = resolve_config(
            {
                "request_options": {
                    "method": "POST",
                    "headers": {"Authorization": "SharedKey k"},
                    "verify": False,
                }
            }
        )

        _HttpClient(config, session=fake_session).fetch(URL)

        args, kwargs = fake_session.request.call_args
        assert args == ("POST", URL)
        assert kwargs["headers"] == {
            "Accept": "application/json;odata=nometadata",
            "Authorization": "SharedKey k",
        }
        assert kwargs["verify"] is False
        assert kwargs["timeout"] == 120

    def test_method_specific_default_timeouts(self, fake_session, response_factory):
        fake_session.request.return_value = response_factory(body={})

        _HttpClient(resolve_config(), session=fake_session).fetch(URL)
        assert fake_session.request.call_args.kwargs["timeout"] == 10

        _HttpClient(resolve_config({"request_options": {"timeout": 2.5}}), session=fake_session).fetch(URL)
        assert fake_session.request.call_args.kwargs["timeout"] == 2.5

    def test_response_headers_are_case_insensitive(self, fake_session, response_factory):
        fake_session.request.return_value = response_factory(
            body={}, headers={"x-ms-continuation-nextpartitionkey": "p1"}
        )

        result = _HttpClient(resolve_config(), session=fake_session).fetch(URL)

        assert result.headers["X-MS-Continuation-NextPartitionKey"] == "p1"


class TestHttpClientSession:
    """Session ownership and the credentials policy."""

    @patch("requests.Session")
    def test_omit_credentials_disables_ambient_environment(self, mock_session_cls):
        session = MagicMock()
        mock_session_cls.return_value = session

        client = _HttpClient(resolve_config())

        assert session.trust_env is False
        client.close()
        session.close.assert_called_once()

    @patch("requests.Session")
    def test_include_credentials_keeps_ambient_environment(self, mock_session_cls):
        session = MagicMock()
        mock_session_cls.return_value = session

        _HttpClient(resolve_config({"request_options": {"credentials": "include"}}))

        assert session.trust_env is True

    @pytest.mark.parametrize("policy, expected", [("same-origin", True), ("bogus", False)])
    @patch("requests.Session")
    def test_other_credentials_policies(self, mock_session_cls, policy, expected):
        session = MagicMock()
        mock_session_cls.return_value = session

        _HttpClient(resolve_config({"request_options": {"credentials": policy}}))

        assert session.trust_env is expected

    def test_close_leaves_caller_session_open(self, fake_session):
        client = _HttpClient(resolve_config(), session=fake_session)
        client.close()
        client.close()
        fake_session.close.assert_not_called()

    def test_fetch_after_close_raises(self, fake_session):
        client = _HttpClient(resolve_config(), session=fake_session)
        client.close()
        with pytest.raises(RuntimeError):
            client.fetch(URL)
