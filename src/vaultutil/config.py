"""Configuration for vaultutil.

``Config`` is the immutable object handed to the core. ``Settings`` reads
defaults for the command line from ``VAULTUTIL_*`` environment variables or
a ``.env`` file.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Base URL for the AWS commercial partition
BASE_URL_DEFAULT = "aws.amazon.com"
# Base URL for AWS GovCloud
BASE_URL_GOV_CLOUD = "amazonaws-us-gov.com"

PARTITION_BASE_URLS = {
    "aws": BASE_URL_DEFAULT,
    "gov": BASE_URL_GOV_CLOUD,
}


class Config(BaseModel):
    """Settings shared by every credential operation."""

    model_config = ConfigDict(frozen=True)

    partition: str = "aws"
    path: str
    role: str
    # Seconds before expiration at which credentials are renewed
    buffer_seconds: int = 120
    vault_binary: str = "vault"

    @property
    def aws_base_url(self) -> Optional[str]:
        """Base endpoint for console URLs, or None for an unknown partition."""
        return PARTITION_BASE_URLS.get(self.partition)


class Settings(BaseSettings):
    """Command line defaults from the environment."""

    model_config = SettingsConfigDict(env_prefix="VAULTUTIL_", env_file=".env", extra="ignore")

    path: str = Field(default="")
    role: str = Field(default="")
    partition: str = Field(default="aws")
    buffer_seconds: int = Field(default=120)
    vault_binary: str = Field(default="vault")
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)

    def to_config(self) -> Config:
        return Config(
            partition=self.partition,
            path=self.path,
            role=self.role,
            buffer_seconds=self.buffer_seconds,
            vault_binary=self.vault_binary,
        )
