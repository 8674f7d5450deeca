"""Tests for result delivery."""

from unittest.mock import MagicMock

import pytest

from oidclite.errors import ErrorKind, TokenExchangeError
from oidclite.result import CallbackChannel, ResultChannel, TokenResult, notify_discovery_failure
from oidclite.tokens import TokenResponse


class TestTokenResult:
    """Tests for TokenResult."""

    def test_ok(self):
        result = TokenResult.ok(TokenResponse(access_token="abc"))
        assert result.is_success()
        assert result.error is None

    def test_fail(self):
        error = TokenExchangeError("boom", ErrorKind.TRANSPORT_FAILURE)
        result = TokenResult.fail(error)
        assert not result.is_success()
        assert result.error is error

    def test_requires_exactly_one(self):
        with pytest.raises(ValueError):
            TokenResult()
        with pytest.raises(ValueError):
            TokenResult(
                tokens=TokenResponse(),
                error=TokenExchangeError("boom", ErrorKind.TRANSPORT_FAILURE),
            )

    def test_deliver_success_fires_only_token_response(self):
        channel = MagicMock()
        tokens = TokenResponse(access_token="abc")

        TokenResult.ok(tokens).deliver(channel)

        channel.token_response.assert_called_once_with(tokens)
        channel.auth_failure.assert_not_called()

    def test_deliver_failure_fires_only_auth_failure(self):
        channel = MagicMock()
        error = TokenExchangeError("boom", ErrorKind.NON_SUCCESS_STATUS, status_code=401)

        TokenResult.fail(error).deliver(channel)

        channel.auth_failure.assert_called_once_with(error)
        channel.token_response.assert_not_called()

    def test_deliver_without_channel(self):
        """Test that delivering with no channel registered is a no-op."""
        TokenResult.ok(TokenResponse()).deliver(None)


class TestCallbackChannel:
    """Tests for CallbackChannel."""

    def test_is_result_channel(self):
        channel = CallbackChannel(on_tokens=lambda t: None, on_failure=lambda e: None)
        assert isinstance(channel, ResultChannel)

    def test_routes_calls(self):
        on_tokens, on_failure, on_discovery = MagicMock(), MagicMock(), MagicMock()
        channel = CallbackChannel(on_tokens, on_failure, on_discovery)
        tokens = TokenResponse(access_token="abc")
        error = TokenExchangeError("boom", ErrorKind.TRANSPORT_FAILURE)

        channel.token_response(tokens)
        channel.auth_failure(error)
        notify_discovery_failure(channel, error)

        on_tokens.assert_called_once_with(tokens)
        on_failure.assert_called_once_with(error)
        on_discovery.assert_called_once_with(error)

    def test_discovery_hook_optional(self):
        """Test channels without a discovery hook are left alone."""

        class MinimalChannel:
            def auth_failure(self, error):
                raise AssertionError("should not be called")

            def token_response(self, tokens):
                raise AssertionError("should not be called")

        notify_discovery_failure(MinimalChannel(), TokenExchangeError("x", ErrorKind.TRANSPORT_FAILURE))
        notify_discovery_failure(None, TokenExchangeError("x", ErrorKind.TRANSPORT_FAILURE))
