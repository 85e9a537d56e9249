"""AWS console sign-in links built from vault-issued AWS credentials.

The federation endpoint exchanges the temporary credentials for a sign-in
token, which is then embedded in a console login URL.
"""

import json
from typing import Optional
from urllib.parse import quote

import httpx
import structlog
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import Config
from .credentials import AWS, Credential
from .errors import ConfigurationError, ConsoleLoginError, MalformedResponseError

logger = structlog.get_logger(__name__)

DEFAULT_ISSUER = "https://github.com/fairwindsops/vault-util"


class ConsoleLogin:
    """Builds AWS console sign-in URLs for a partition."""

    def __init__(
        self,
        config: Config,
        client: Optional[httpx.Client] = None,
        issuer: str = DEFAULT_ISSUER,
        timeout: float = 30.0,
    ):
        self.config = config
        self.issuer = issuer
        self._client = client or httpx.Client(timeout=timeout)

    @property
    def base_url(self) -> str:
        base = self.config.aws_base_url
        if not base:
            raise ConfigurationError(
                f"no AWS base URL for partition '{self.config.partition}' (use 'aws' or 'gov')"
            )
        return base

    @property
    def federation_url(self) -> str:
        return f"https://signin.{self.base_url}/federation"

    def build(self, credential: Credential) -> str:
        """Return a console sign-in URL for the given AWS credential."""
        token = self.get_signin_token(credential)
        return self.build_signin_url(token)

    def get_signin_token(self, credential: Credential) -> str:
        """Exchange AWS credentials for a federation sign-in token.

        Raises:
            ConsoleLoginError: If the endpoint does not answer 200
            MalformedResponseError: If the answer carries no sign-in token
        """
        if credential.kind is not AWS:
            raise ValueError(f"console login requires aws credentials, got {credential.kind.name}")

        session = json.dumps(
            {
                "sessionId": credential.secrets["access_key_id"],
                "sessionKey": credential.secrets["secret_access_key"],
                "sessionToken": credential.secrets["session_token"],
            }
        )
        response = self._request_token(session)
        if response.status_code != httpx.codes.OK:
            raise ConsoleLoginError(response.status_code)

        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(response.text, str(e))

        token = payload.get("SigninToken") if isinstance(payload, dict) else None
        if not token:
            raise MalformedResponseError(response.text, "could not get signin token from body")
        return token

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
        reraise=True,
    )
    def _request_token(self, session: str) -> httpx.Response:
        logger.debug("requesting signin token", url=self.federation_url)
        return self._client.get(
            self.federation_url,
            params={"Action": "getSigninToken", "Session": session},
        )

    def build_signin_url(self, token: str) -> str:
        destination = quote(f"https://console.{self.base_url}/", safe="")
        issuer = quote(self.issuer, safe="")
        return (
            f"{self.federation_url}"
            f"?Action=login"
            f"&Issuer={issuer}"
            f"&Destination={destination}"
            f"&SigninToken={token}"
        )

    def close(self) -> None:
        self._client.close()
