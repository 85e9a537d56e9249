"""Shared fixtures for vaultutil tests."""

import json
from datetime import datetime, timezone
from typing import Any, List, Tuple, Union

import pytest

from vaultutil.credentials import AWS, AZURE, Credential
from vaultutil.logging_config import configure_logging
from vaultutil.process import CommandResult


@pytest.fixture(autouse=True, scope="session")
def _logging():
    configure_logging("DEBUG")


class FakeRunner:
    """Stands in for the process runner, replaying canned outputs."""

    def __init__(self, *responses: Union[str, bytes, dict, Exception]):
        self.responses: List[Any] = list(responses)
        self.calls: List[Tuple[str, ...]] = []

    def __call__(self, *args: str) -> CommandResult:
        self.calls.append(args)
        response = self.responses.pop(0) if self.responses else ""
        if isinstance(response, Exception):
            raise response
        if isinstance(response, dict):
            response = json.dumps(response)
        if isinstance(response, str):
            response = response.encode("utf-8")
        return CommandResult(command=args, data=response)


@pytest.fixture
def fixed_time():
    return datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def aws_credential(fixed_time):
    return Credential(
        kind=AWS,
        secrets={
            "access_key_id": "SOMEACCESSKEYID",
            "secret_access_key": "supersecret",
            "session_token": "token",
        },
        created=fixed_time,
        duration_seconds=3600,
        lease_id="aws/sts/admin/abc123",
    )


@pytest.fixture
def azure_credential(fixed_time):
    return Credential(
        kind=AZURE,
        secrets={"client_id": "client-1", "client_secret": "hunter2"},
        created=fixed_time,
        duration_seconds=3600,
        lease_id="azure/creds/reader/xyz",
    )


@pytest.fixture
def aws_lease_response():
    return {
        "request_id": "req-1",
        "lease_id": "aws/sts/admin/L1",
        "lease_duration": 900,
        "renewable": False,
        "data": {
            "access_key": "AKIAEXAMPLE",
            "secret_key": "SECRETEXAMPLE",
            "security_token": "TOKENEXAMPLE",
        },
        "warnings": None,
    }


@pytest.fixture
def azure_lease_response():
    return {
        "request_id": "req-2",
        "lease_id": "azure/creds/reader/L2",
        "lease_duration": 3600,
        "renewable": True,
        "data": {"client_id": "app-id", "client_secret": "app-secret"},
        "warnings": ["role has no scopes"],
    }


@pytest.fixture
def fake_runner():
    """Factory for FakeRunner instances."""
    return FakeRunner
