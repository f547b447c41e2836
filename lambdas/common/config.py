"""Environment configuration for the Google sign-in functions."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from lambdas.common.errors import ConfigurationError

logger = logging.getLogger(__name__)


def _env(name: str) -> str:
    value = os.environ.get(name)
    if not value:
        logger.error("Missing required environment variable %s", name)
        raise ConfigurationError(f"Missing required environment variable {name}")
    return value


def google_client_id() -> str:
    """Return the OAuth client id Google ID tokens must be issued for."""

    return _env("GOOGLE_CLIENT_ID")


@dataclass(frozen=True)
class StorageSettings:
    table_name: str
    gsi_google_sub_name: str
    stage: str
    region: str | None = None
    endpoint_url: str | None = None

    @classmethod
    def from_env(cls) -> StorageSettings:
        return cls(
            table_name=_env("TABLE_NAME"),
            gsi_google_sub_name=_env("GSI_GOOGLE_SUB_NAME"),
            stage=_env("STAGE"),
            region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
            endpoint_url=os.environ.get("DYNAMODB_ENDPOINT_URL")
            or os.environ.get("AWS_ENDPOINT_URL"),
        )
