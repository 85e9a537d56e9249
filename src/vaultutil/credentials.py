"""Credential entity shared by every supported cloud provider.

A credential is described by a :class:`CredentialKind`, a small fixed
descriptor naming its secret fields, the environment variables they map to
and the vault verb used to issue it. The AWS and Azure kinds are defined at
the bottom of this module.

The environment variables written for a credential are:

    AWS:
        AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, AWS_SESSION_TOKEN,
        AWS_SECURITY_TOKEN (same value as the session token),
        AWS_SESSION_START, AWS_SESSION_DURATION, AWS_SESSION_VAULT_LEASE_ID

    Azure:
        ARM_CLIENT_ID, ARM_CLIENT_SECRET,
        ARM_SESSION_START, ARM_SESSION_DURATION, ARM_SESSION_VAULT_LEASE_ID

The start, duration and lease variables let a later invocation pick the
credential back up instead of asking vault for a new one.
"""

from __future__ import annotations

import re
import shlex
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Tuple

import structlog

from .errors import EmptyRequiredFieldError, EnvironmentReadError
from .expiration import is_expired

if TYPE_CHECKING:
    from .vault import VaultClient

logger = structlog.get_logger(__name__)

EnvGetter = Callable[[str], Optional[str]]

# Signed 64-bit decimal integers, ASCII digits only.
_INTEGER = re.compile(r"[+-]?[0-9]+")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class SecretField:
    """One secret value of a credential kind."""

    name: str
    response_key: str
    env_vars: Tuple[str, ...]
    label: str


@dataclass(frozen=True)
class CredentialKind:
    """Descriptor for a provider's credential shape and vault endpoint."""

    name: str
    env_prefix: str
    issue_verb: str
    endpoint_segment: str
    fields: Tuple[SecretField, ...]

    @property
    def start_var(self) -> str:
        return f"{self.env_prefix}_SESSION_START"

    @property
    def duration_var(self) -> str:
        return f"{self.env_prefix}_SESSION_DURATION"

    @property
    def lease_var(self) -> str:
        return f"{self.env_prefix}_SESSION_VAULT_LEASE_ID"

    @property
    def env_vars(self) -> List[str]:
        """Every environment variable owned by this kind."""
        names = [var for secret in self.fields for var in secret.env_vars]
        names.extend([self.lease_var, self.duration_var, self.start_var])
        return names

    def endpoint(self, path: str, role: str) -> str:
        return f"{path}/{self.endpoint_segment}/{role}"


@dataclass
class Credential:
    """Short-lived cloud credentials issued by vault.

    Attributes:
        kind: Descriptor of the provider the credential belongs to
        secrets: Secret values keyed by ``SecretField.name``
        created: UTC time the credential was issued
        duration_seconds: Validity window reported by vault
        lease_id: Vault lease id, used to revoke the credential
    """

    kind: CredentialKind
    secrets: Dict[str, str]
    created: datetime
    duration_seconds: int
    lease_id: str

    def __post_init__(self) -> None:
        # Keep the secret record fixed to the kind's fields, in declared order.
        self.secrets = {
            secret.name: self.secrets.get(secret.name, "") for secret in self.kind.fields
        }

    def __repr__(self) -> str:
        return (
            f"Credential(kind={self.kind.name!r}, created={self.created.isoformat()}, "
            f"duration_seconds={self.duration_seconds}, lease_id={self.lease_id!r})"
        )

    @classmethod
    def from_environment(cls, kind: CredentialKind, get: EnvGetter) -> "Credential":
        """Rebuild a credential previously exported to the environment.

        Args:
            kind: Credential kind to read
            get: Lookup function returning a variable's value or None

        Raises:
            EnvironmentReadError: If the start or duration variables are
                missing or not integers
            EmptyRequiredFieldError: If a secret or the lease id is empty
        """
        start = _read_int(kind.start_var, get)
        duration = _read_int(kind.duration_var, get)
        try:
            created = datetime.fromtimestamp(start, tz=timezone.utc)
        except (OverflowError, ValueError, OSError) as e:
            raise EnvironmentReadError(kind.start_var, str(start)) from e

        secrets = {
            secret.name: get(secret.env_vars[0]) or "" for secret in kind.fields
        }
        credential = cls(
            kind=kind,
            secrets=secrets,
            created=created,
            duration_seconds=duration,
            lease_id=get(kind.lease_var) or "",
        )
        credential.to_environment_map()
        return credential

    @classmethod
    def from_response(
        cls,
        kind: CredentialKind,
        data: Mapping[str, object],
        lease_id: str,
        lease_duration: int,
        created: datetime,
    ) -> "Credential":
        """Build a credential from the ``data`` block of a vault lease response."""
        secrets = {}
        for secret in kind.fields:
            value = data.get(secret.response_key)
            secrets[secret.name] = "" if value is None else str(value)
        return cls(
            kind=kind,
            secrets=secrets,
            created=created,
            duration_seconds=lease_duration,
            lease_id=lease_id,
        )

    @property
    def environment(self) -> Dict[str, str]:
        return self.to_environment_map()

    def to_environment_map(self) -> Dict[str, str]:
        """Return the environment variables that carry this credential.

        The mapping is recomputed on every call from the credential's fields.

        Raises:
            EmptyRequiredFieldError: If a secret value or the lease id is empty
        """
        env: Dict[str, str] = {}
        for secret in self.kind.fields:
            value = self.secrets.get(secret.name, "")
            if not value:
                raise EmptyRequiredFieldError(secret.label)
            for var in secret.env_vars:
                env[var] = value

        if not self.lease_id:
            raise EmptyRequiredFieldError("vault lease id")
        env[self.kind.lease_var] = self.lease_id
        env[self.kind.duration_var] = str(self.duration_seconds)
        env[self.kind.start_var] = str(int(self.created.timestamp()))

        logger.debug("built credential environment", kind=self.kind.name, variables=sorted(env))
        return env

    def export_lines(self) -> List[str]:
        """Shell ``export`` statements for the credential's environment."""
        return [
            f"export {name}={shlex.quote(value)}"
            for name, value in self.to_environment_map().items()
        ]

    def is_expired(self, buffer_seconds: int, now: Optional[datetime] = None) -> bool:
        return is_expired(self.created, self.duration_seconds, buffer_seconds, now=now)

    def revoke(self, client: "VaultClient") -> None:
        """Revoke the vault lease backing this credential.

        The object itself stays intact; callers should discard it afterwards.
        """
        client.revoke_lease(self.lease_id)


def _read_int(name: str, get: EnvGetter) -> int:
    raw = get(name)
    if raw is None:
        raise EnvironmentReadError(name, None)
    if not _INTEGER.fullmatch(raw):
        raise EnvironmentReadError(name, raw)
    value = int(raw)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise EnvironmentReadError(name, raw)
    return value


AWS = CredentialKind(
    name="aws",
    env_prefix="AWS",
    issue_verb="write",
    endpoint_segment="sts",
    fields=(
        SecretField("access_key_id", "access_key", ("AWS_ACCESS_KEY_ID",), "access key id"),
        SecretField(
            "secret_access_key", "secret_key", ("AWS_SECRET_ACCESS_KEY",), "secret access key"
        ),
        SecretField(
            "session_token",
            "security_token",
            ("AWS_SESSION_TOKEN", "AWS_SECURITY_TOKEN"),
            "session token",
        ),
    ),
)

AZURE = CredentialKind(
    name="azure",
    env_prefix="ARM",
    issue_verb="read",
    endpoint_segment="creds",
    fields=(
        SecretField("client_id", "client_id", ("ARM_CLIENT_ID",), "client id"),
        SecretField("client_secret", "client_secret", ("ARM_CLIENT_SECRET",), "client secret"),
    ),
)

CREDENTIAL_KINDS: Dict[str, CredentialKind] = {kind.name: kind for kind in (AWS, AZURE)}


def get_kind(name: str) -> CredentialKind:
    """Look up a credential kind by name."""
    try:
        return CREDENTIAL_KINDS[name]
    except KeyError:
        raise ValueError(
            f"Unknown credential kind: {name}. "
            f"Choose from: {', '.join(CREDENTIAL_KINDS)}"
        )
