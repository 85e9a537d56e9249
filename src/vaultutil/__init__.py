"""vaultutil: short-lived cloud credentials from HashiCorp Vault.

Shells out to the vault CLI to issue AWS and Azure credentials, caches them
in environment variables and renews them shortly before they expire.
"""

from .version import __version__

from .config import Config, Settings
from .console import ConsoleLogin
from .credentials import AWS, AZURE, Credential, CredentialKind, SecretField, get_kind
from .environment import EnvironmentCache, EnvironmentStore, InMemoryEnvironment, ProcessEnvironment
from .errors import (
    ConfigurationError,
    ConsoleLoginError,
    EmptyRequiredFieldError,
    EnvironmentReadError,
    ExpiringTokenError,
    MalformedResponseError,
    ProcessExecutionError,
    VaultUtilError,
)
from .expiration import is_expired
from .manager import CredentialManager
from .vault import VaultClient

__all__ = [
    "AWS",
    "AZURE",
    "Config",
    "Settings",
    "ConsoleLogin",
    "Credential",
    "CredentialKind",
    "SecretField",
    "get_kind",
    "EnvironmentCache",
    "EnvironmentStore",
    "InMemoryEnvironment",
    "ProcessEnvironment",
    "ConfigurationError",
    "ConsoleLoginError",
    "EmptyRequiredFieldError",
    "EnvironmentReadError",
    "ExpiringTokenError",
    "MalformedResponseError",
    "ProcessExecutionError",
    "VaultUtilError",
    "is_expired",
    "CredentialManager",
    "VaultClient",
]
