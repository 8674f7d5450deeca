"""Tests for the authorization code exchange."""

import logging
from unittest.mock import patch

import httpx
import pytest

from oidclite.errors import ErrorKind, TokenExchangeError
from oidclite.exchange import build_token_request, exchange_code_for_tokens

TOKEN_ENDPOINT = "https://idp.example.com/token"


class TestBuildTokenRequest:
    """Tests for the token request form fields."""

    def test_public_client_fields_in_order(self, sample_config):
        """Test field order and that no secret is sent for public clients."""
        fields = build_token_request(sample_config, "the_code", "the_verifier")
        assert list(fields.items()) == [
            ("grant_type", "authorization_code"),
            ("client_id", "test-client"),
            ("redirect_uri", "oidclite://openID"),
            ("code", "the_code"),
            ("code_verifier", "the_verifier"),
        ]

    def test_confidential_client_includes_secret(self, confidential_config):
        """Test that the secret follows client_id for confidential clients."""
        fields = build_token_request(confidential_config, "the_code", "the_verifier")
        assert list(fields) == [
            "grant_type",
            "client_id",
            "client_secret",
            "redirect_uri",
            "code",
            "code_verifier",
        ]
        assert fields["client_secret"] == "s3cret"


class TestExchangeCodeForTokens:
    """Tests for exchange_code_for_tokens."""

    @pytest.mark.asyncio
    async def test_success_access_token_only(self, sample_config, mock_http_factory):
        """Test a 200 response with only an access token."""
        mock_http = mock_http_factory(post=httpx.Response(200, json={"access_token": "abc"}))

        tokens = await exchange_code_for_tokens(
            TOKEN_ENDPOINT, sample_config, "the_code", "the_verifier", http_client=mock_http
        )

        assert tokens.access_token == "abc"
        assert tokens.id_token is None
        assert tokens.refresh_token is None

    @pytest.mark.asyncio
    async def test_request_shape(self, sample_config, mock_http_factory):
        """Test the POST target, form body and headers."""
        mock_http = mock_http_factory(post=httpx.Response(200, json={"access_token": "abc"}))

        await exchange_code_for_tokens(
            TOKEN_ENDPOINT, sample_config, "the_code", "the_verifier", http_client=mock_http
        )

        call_args = mock_http.post.call_args
        assert call_args.args[0] == TOKEN_ENDPOINT
        assert call_args.kwargs["data"]["code"] == "the_code"
        assert call_args.kwargs["data"]["code_verifier"] == "the_verifier"
        assert call_args.kwargs["headers"] == {
            "Accept": "application/json",
            "Content-Type": "application/x-www-form-urlencoded",
        }

    @pytest.mark.asyncio
    async def test_all_tokens(self, sample_config, mock_http_factory):
        body = {"access_token": "a", "id_token": "i", "refresh_token": "r", "expires_in": 60}
        mock_http = mock_http_factory(post=httpx.Response(200, json=body))

        tokens = await exchange_code_for_tokens(
            TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http
        )

        assert (tokens.access_token, tokens.id_token, tokens.refresh_token) == ("a", "i", "r")

    @pytest.mark.asyncio
    async def test_missing_endpoint(self, sample_config, mock_http_factory):
        """Test that no request is made without a token endpoint."""
        mock_http = mock_http_factory()

        with pytest.raises(TokenExchangeError, match="No token endpoint found") as exc_info:
            await exchange_code_for_tokens(None, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.MISSING_TOKEN_ENDPOINT
        mock_http.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_endpoint(self, sample_config, mock_http_factory):
        mock_http = mock_http_factory()

        with pytest.raises(TokenExchangeError) as exc_info:
            await exchange_code_for_tokens("::not a url", sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.INVALID_ENDPOINT_URL
        mock_http.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_numeric_port(self, sample_config, mock_http_factory):
        """Test that an endpoint httpx cannot parse fails before any request."""
        mock_http = mock_http_factory()

        with pytest.raises(TokenExchangeError) as exc_info:
            await exchange_code_for_tokens(
                "https://idp:abc/token", sample_config, "c", "v", http_client=mock_http
            )

        assert exc_info.value.kind == ErrorKind.INVALID_ENDPOINT_URL
        mock_http.post.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalid_url_at_request_time(self, sample_config, mock_http_factory):
        """Test that httpx.InvalidURL is reported as an invalid endpoint, not a transport failure."""
        mock_http = mock_http_factory(post=httpx.InvalidURL("Invalid port: 'abc'"))

        with pytest.raises(TokenExchangeError, match="Unable to make the token endpoint into a URL") as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.INVALID_ENDPOINT_URL
        assert isinstance(exc_info.value.cause, httpx.InvalidURL)

    @pytest.mark.asyncio
    async def test_unauthorized(self, sample_config, mock_http_factory):
        """Test that a 401 is a failure carrying the status."""
        mock_http = mock_http_factory(post=httpx.Response(401, json={"error": "invalid_client"}))

        with pytest.raises(TokenExchangeError, match="HTTP 401") as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.NON_SUCCESS_STATUS
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_error_body_logged_not_surfaced(self, sample_config, mock_http_factory, caplog):
        """Test that the provider's error body is logged but not put in the error."""
        body = {
            "error": "invalid_grant",
            "error_description": "Code expired",
            "leaked": "SECRET_IN_BODY",
        }
        mock_http = mock_http_factory(post=httpx.Response(400, json=body))

        with caplog.at_level(logging.WARNING, logger="oidclite.exchange"):
            with pytest.raises(TokenExchangeError) as exc_info:
                await exchange_code_for_tokens(
                    TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http
                )

        assert "invalid_grant" in caplog.text
        assert "SECRET_IN_BODY" not in caplog.text
        assert "SECRET_IN_BODY" not in str(exc_info.value)
        assert "invalid_grant" not in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_json_error_body(self, sample_config, mock_http_factory):
        """Test that a non-JSON error body does not change the failure."""
        mock_http = mock_http_factory(post=httpx.Response(500, content=b"Internal Server Error"))

        with pytest.raises(TokenExchangeError, match="HTTP 500") as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_undecodable_success_body(self, sample_config, mock_http_factory):
        """Test that a 200 without JSON is a decode failure."""
        mock_http = mock_http_factory(post=httpx.Response(200, content=b"not json"))

        with pytest.raises(TokenExchangeError, match="Unable to decode response") as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.RESPONSE_DECODE_FAILURE

    @pytest.mark.asyncio
    async def test_success_body_not_object(self, sample_config, mock_http_factory):
        mock_http = mock_http_factory(post=httpx.Response(200, json="abc"))

        with pytest.raises(TokenExchangeError) as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.RESPONSE_DECODE_FAILURE

    @pytest.mark.asyncio
    async def test_transport_failure(self, sample_config, mock_http_factory):
        """Test that a connection error carries the transport description."""
        mock_http = mock_http_factory(post=httpx.ConnectError("Connection refused"))

        with pytest.raises(TokenExchangeError, match="Connection refused") as exc_info:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v", http_client=mock_http)

        assert exc_info.value.kind == ErrorKind.TRANSPORT_FAILURE
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_owned_client_is_closed(self, sample_config, mock_http_factory):
        mock_http = mock_http_factory(post=httpx.Response(200, json={"access_token": "abc"}))

        with patch("oidclite.exchange.create_http_client", return_value=mock_http) as factory:
            await exchange_code_for_tokens(TOKEN_ENDPOINT, sample_config, "c", "v")

        factory.assert_called_once_with(sample_config.timeout)
        mock_http.aclose.assert_awaited_once()
