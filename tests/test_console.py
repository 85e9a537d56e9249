"""Tests for AWS console sign-in URLs."""

import json
from urllib.parse import parse_qs, unquote, urlparse

import httpx
import pytest

from vaultutil.config import Config
from vaultutil.console import ConsoleLogin
from vaultutil.errors import ConfigurationError, ConsoleLoginError, MalformedResponseError


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


@pytest.fixture
def config():
    return Config(partition="aws", path="aws-account", role="admin")


class TestSigninToken:
    def test_requests_token_with_session(self, config, aws_credential):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"SigninToken": "tok-123"})

        login = ConsoleLogin(config, client=_client(handler))

        assert login.get_signin_token(aws_credential) == "tok-123"

        request = seen[0]
        assert request.url.host == "signin.aws.amazon.com"
        assert request.url.path == "/federation"
        params = parse_qs(urlparse(str(request.url)).query)
        assert params["Action"] == ["getSigninToken"]
        assert json.loads(params["Session"][0]) == {
            "sessionId": "SOMEACCESSKEYID",
            "sessionKey": "supersecret",
            "sessionToken": "token",
        }

    def test_non_200(self, config, aws_credential):
        login = ConsoleLogin(config, client=_client(lambda request: httpx.Response(403)))

        with pytest.raises(ConsoleLoginError) as exc_info:
            login.get_signin_token(aws_credential)

        assert exc_info.value.status_code == 403

    def test_missing_token(self, config, aws_credential):
        login = ConsoleLogin(config, client=_client(lambda request: httpx.Response(200, json={})))

        with pytest.raises(MalformedResponseError, match="signin token"):
            login.get_signin_token(aws_credential)

    def test_invalid_json(self, config, aws_credential):
        login = ConsoleLogin(
            config, client=_client(lambda request: httpx.Response(200, text="<html>"))
        )

        with pytest.raises(MalformedResponseError) as exc_info:
            login.get_signin_token(aws_credential)

        assert exc_info.value.payload == "<html>"

    def test_retries_transport_errors(self, config, aws_credential):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(200, json={"SigninToken": "tok"})

        login = ConsoleLogin(config, client=_client(handler))

        assert login.get_signin_token(aws_credential) == "tok"
        assert len(attempts) == 2

    def test_rejects_azure_credentials(self, config, azure_credential):
        login = ConsoleLogin(config, client=_client(lambda request: httpx.Response(200)))

        with pytest.raises(ValueError):
            login.get_signin_token(azure_credential)


class TestSigninUrl:
    def test_gov_partition(self):
        config = Config(partition="gov", path="p", role="r")
        login = ConsoleLogin(config, client=_client(lambda request: httpx.Response(200)))

        url = login.build_signin_url("abc")

        assert url.startswith("https://signin.amazonaws-us-gov.com/federation?Action=login")
        assert url.endswith("&SigninToken=abc")
        query = urlparse(url).query
        destination = [part for part in query.split("&") if part.startswith("Destination=")][0]
        assert unquote(destination.split("=", 1)[1]) == "https://console.amazonaws-us-gov.com/"

    def test_build_end_to_end(self, config, aws_credential):
        login = ConsoleLogin(
            config,
            client=_client(lambda request: httpx.Response(200, json={"SigninToken": "xyz"})),
            issuer="https://example.com/login",
        )

        url = login.build(aws_credential)

        assert "Issuer=https%3A%2F%2Fexample.com%2Flogin" in url
        assert url.endswith("SigninToken=xyz")

    def test_unknown_partition(self, aws_credential):
        config = Config(partition="moon", path="p", role="r")
        login = ConsoleLogin(config, client=_client(lambda request: httpx.Response(200)))

        with pytest.raises(ConfigurationError, match="moon"):
            login.build(aws_credential)
