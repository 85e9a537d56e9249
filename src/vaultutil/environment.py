"""Environment-variable cache for issued credentials."""

from __future__ import annotations

import os
from typing import Dict, MutableMapping, Optional, Protocol

import structlog

from .credentials import Credential, CredentialKind

logger = structlog.get_logger(__name__)


class EnvironmentStore(Protocol):
    """Key/value store holding exported credential variables."""

    def get(self, name: str) -> Optional[str]:
        """Return a variable's value or None if missing."""

    def set(self, name: str, value: str) -> None:
        """Set a variable."""

    def delete(self, name: str) -> None:
        """Remove a variable if present."""


class ProcessEnvironment:
    """Store backed by the process environment."""

    def __init__(self, environ: Optional[MutableMapping[str, str]] = None) -> None:
        self._environ = os.environ if environ is None else environ

    def get(self, name: str) -> Optional[str]:
        return self._environ.get(name)

    def set(self, name: str, value: str) -> None:
        self._environ[name] = value

    def delete(self, name: str) -> None:
        self._environ.pop(name, None)


class InMemoryEnvironment:
    """Dictionary-backed store, mainly for tests."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._store: Dict[str, str] = dict(initial or {})

    def get(self, name: str) -> Optional[str]:
        return self._store.get(name)

    def set(self, name: str, value: str) -> None:
        self._store[name] = value

    def delete(self, name: str) -> None:
        self._store.pop(name, None)

    def as_dict(self) -> Dict[str, str]:
        return dict(self._store)


class EnvironmentCache:
    """Reads and writes credentials through an :class:`EnvironmentStore`."""

    def __init__(self, store: Optional[EnvironmentStore] = None) -> None:
        self._store = store if store is not None else ProcessEnvironment()

    @property
    def store(self) -> EnvironmentStore:
        return self._store

    def load(self, kind: CredentialKind) -> Credential:
        """Rebuild a cached credential.

        Raises:
            EnvironmentReadError: If the start or duration variables are unusable
            EmptyRequiredFieldError: If a cached secret or the lease id is empty
        """
        return Credential.from_environment(kind, self._store.get)

    def save(self, credential: Credential) -> Dict[str, str]:
        env = credential.to_environment_map()
        for name, value in env.items():
            self._store.set(name, value)
        logger.debug("cached credentials", kind=credential.kind.name)
        return env

    def clear(self, kind: CredentialKind) -> None:
        for name in kind.env_vars:
            self._store.delete(name)
        logger.debug("cleared cached credentials", kind=kind.name)
