"""Client for the vault command line binary.

Every call shells out through :mod:`vaultutil.process`; the JSON written by
vault is decoded with pydantic models.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional

import structlog
from pydantic import BaseModel, Field, ValidationError

from .credentials import Credential, CredentialKind
from .errors import ExpiringTokenError, MalformedResponseError
from .expiration import utcnow
from .process import CommandResult, execute, execute_interactive

logger = structlog.get_logger(__name__)

# Minimum remaining lifetime of the vault token, in seconds.
MIN_TOKEN_TTL = 30

Runner = Callable[..., CommandResult]


class LeaseResponse(BaseModel):
    """Envelope vault wraps around leased secrets."""

    request_id: str = ""
    lease_id: str = ""
    lease_duration: int = 0
    renewable: bool = False
    data: Dict[str, Any] = Field(default_factory=dict)
    warnings: Any = None


class TokenData(BaseModel):
    ttl: int


class TokenLookupResponse(BaseModel):
    """Response of ``vault token lookup``."""

    data: TokenData


def _decode(model: type, result: CommandResult) -> Any:
    try:
        return model.model_validate_json(result.data)
    except ValidationError as e:
        raise MalformedResponseError(result.data.decode("utf-8", errors="replace"), str(e))


class VaultClient:
    """Issues, inspects and revokes vault leases via the vault CLI.

    Example:
        client = VaultClient()
        creds = client.issue_credential(AWS, "aws-account", "admin")
        print(creds.to_environment_map()["AWS_ACCESS_KEY_ID"])
    """

    def __init__(
        self,
        binary: str = "vault",
        runner: Optional[Runner] = None,
        interactive_runner: Optional[Runner] = None,
    ):
        """Initialize the client.

        Args:
            binary: Name or path of the vault executable
            runner: Capture-mode command runner (defaults to ``execute``)
            interactive_runner: Terminal-attached runner (defaults to
                ``execute_interactive``)
        """
        self.binary = binary
        self._run = runner or execute
        self._run_interactive = interactive_runner or execute_interactive

    def issue_credential(self, kind: CredentialKind, path: str, role: str) -> Credential:
        """Request a fresh credential of ``kind`` from vault.

        Raises:
            ProcessExecutionError: If vault exits non-zero
            MalformedResponseError: If vault's output is not a lease response
            EmptyRequiredFieldError: If the response lacks a required value
        """
        endpoint = kind.endpoint(path, role)
        logger.info("requesting credentials from vault", kind=kind.name, endpoint=endpoint)

        result = self._run(self.binary, kind.issue_verb, endpoint, "-format=json")
        response = _decode(LeaseResponse, result)

        credential = Credential.from_response(
            kind,
            response.data,
            lease_id=response.lease_id,
            lease_duration=response.lease_duration,
            created=utcnow(),
        )
        credential.to_environment_map()

        logger.info(
            "received credentials",
            kind=kind.name,
            duration_seconds=credential.duration_seconds,
            renewable=response.renewable,
        )
        return credential

    def revoke_lease(self, lease_id: str) -> None:
        logger.info("revoking vault lease")
        self._run(self.binary, "lease", "revoke", lease_id)

    def check_token(self) -> int:
        """Make sure the current vault token is usable.

        Returns:
            The token's remaining TTL in seconds

        Raises:
            ExpiringTokenError: If fewer than 30 seconds remain
            MalformedResponseError: If the lookup output cannot be decoded
        """
        result = self._run(self.binary, "token", "lookup", "-format=json")
        token = _decode(TokenLookupResponse, result)
        ttl = token.data.ttl
        if ttl < MIN_TOKEN_TTL:
            raise ExpiringTokenError(ttl, MIN_TOKEN_TTL)
        logger.debug("vault token valid", ttl=ttl)
        return ttl

    def login(self, method: str) -> None:
        """Start an interactive ``vault login`` using the given auth method."""
        logger.info("starting vault login", method=method)
        self._run_interactive(self.binary, "login", "-method", method)
