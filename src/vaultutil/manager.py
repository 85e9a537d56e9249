"""Credential lifecycle orchestration.

The manager prefers credentials cached in the environment and only asks
vault for new ones when the cache is empty, unreadable or expired.
"""

from __future__ import annotations

from typing import Optional

import structlog

from .config import Config
from .credentials import AWS, AZURE, Credential, CredentialKind
from .environment import EnvironmentCache
from .errors import VaultUtilError
from .vault import VaultClient

logger = structlog.get_logger(__name__)


class CredentialManager:
    """Returns usable credentials, reusing exported ones while they last.

    Example:
        manager = CredentialManager(Config(path="aws-account", role="admin"))
        creds = manager.aws_credentials()
        manager.export(creds)
    """

    def __init__(
        self,
        config: Config,
        client: Optional[VaultClient] = None,
        cache: Optional[EnvironmentCache] = None,
    ):
        self.config = config
        self.client = client if client is not None else VaultClient(binary=config.vault_binary)
        self.cache = cache if cache is not None else EnvironmentCache()

    def get_credential(self, kind: CredentialKind) -> Credential:
        """Return cached credentials of ``kind`` if still valid, else new ones.

        Errors from vault while issuing new credentials are raised unchanged.
        """
        try:
            cached = self.cache.load(kind)
        except VaultUtilError as e:
            logger.debug("no usable credentials in environment", kind=kind.name, reason=str(e))
            logger.info("no existing credentials found - getting new ones", kind=kind.name)
            return self.issue(kind)

        if cached.is_expired(self.config.buffer_seconds):
            logger.info("credentials were expired - getting new ones", kind=kind.name)
            return self.issue(kind)

        logger.info("credentials were valid - returning them", kind=kind.name)
        return cached

    def issue(self, kind: CredentialKind) -> Credential:
        """Request new credentials from vault without consulting the cache."""
        return self.client.issue_credential(kind, self.config.path, self.config.role)

    def aws_credentials(self) -> Credential:
        return self.get_credential(AWS)

    def azure_credentials(self) -> Credential:
        return self.get_credential(AZURE)

    def export(self, credential: Credential) -> None:
        """Write the credential's variables to the environment store."""
        self.cache.save(credential)

    def revoke(self, credential: Credential) -> None:
        """Revoke the credential's lease and drop it from the environment."""
        credential.revoke(self.client)
        self.cache.clear(credential.kind)
