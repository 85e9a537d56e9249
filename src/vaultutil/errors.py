"""Exception hierarchy for vault credential handling.

Every failure raised by this package derives from :class:`VaultUtilError`
and carries the structured details needed to report it.
"""

from typing import Optional, Sequence


class VaultUtilError(Exception):
    """Base exception for vaultutil errors."""
    pass


class ProcessExecutionError(VaultUtilError):
    """Raised when an external command exits non-zero or cannot be run."""

    def __init__(
        self,
        command: Sequence[str],
        exit_code: Optional[int],
        output: str,
    ):
        self.command = tuple(command)
        self.exit_code = exit_code
        self.output = output
        joined = " ".join(self.command)
        if exit_code is None:
            message = f"failed to run command {joined}: {output}"
        else:
            message = f"exit code {exit_code} running command {joined}: {output}"
        super().__init__(message)


class MalformedResponseError(VaultUtilError):
    """Raised when vault output cannot be decoded."""

    def __init__(self, payload: str, reason: str):
        self.payload = payload
        self.reason = reason
        super().__init__(f"error decoding vault response: {reason}")


class EmptyRequiredFieldError(VaultUtilError):
    """Raised when a credential is missing a required value."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"cannot set env: {field} was empty")


class ExpiringTokenError(VaultUtilError):
    """Raised when the vault session token is about to expire."""

    def __init__(self, ttl: int, minimum: int):
        self.ttl = ttl
        self.minimum = minimum
        super().__init__(
            f"vault token will expire in less than {minimum} seconds (ttl={ttl})"
        )


class EnvironmentReadError(VaultUtilError):
    """Raised when cached credentials cannot be read back from the environment."""

    def __init__(self, variable: str, value: Optional[str]):
        self.variable = variable
        self.value = value
        if value is None:
            message = f"environment variable {variable} is not set"
        else:
            message = f"environment variable {variable} is not an integer: {value!r}"
        super().__init__(message)


class ConfigurationError(VaultUtilError):
    """Raised when the configuration cannot support the requested operation."""
    pass


class ConsoleLoginError(VaultUtilError):
    """Raised when the AWS federation endpoint rejects a sign-in request."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        super().__init__(f"get signin token failed with code: {status_code}")
