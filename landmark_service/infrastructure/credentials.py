"""
Database credential resolution.

Credentials come from one of two sources:

- a named secret in AWS Secrets Manager (``DB_SECRET_NAME``), read at its
  current version and decoded as JSON with keys
  ``host, username, password, database, port``;
- a fully-specified static configuration (``DB_HOST``, ``DB_USER``,
  ``DB_PASSWORD``, ``DB_NAME``, ``DB_PORT``).

The secret name takes precedence. The resolved set is cached for the process
lifetime; a failed resolution caches nothing and the next call starts over.
Credential fields are never logged.
"""

from __future__ import annotations

import asyncio
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from landmark_service.config import get_settings
from landmark_service.domain.models import CredentialSet
from landmark_service.errors import CredentialResolutionError
from landmark_service.infrastructure.aws import create_client
from landmark_service.utils.lazy import AsyncLazy
from landmark_service.utils.logging import get_logger

log = get_logger(__name__)

CURRENT_VERSION_STAGE = "AWSCURRENT"


def create_secrets_client() -> Any:
    return create_client("secretsmanager")


def _fetch_secret_string(secret_name: str) -> str:
    client = create_secrets_client()
    response = client.get_secret_value(SecretId=secret_name, VersionStage=CURRENT_VERSION_STAGE)
    secret = response.get("SecretString")
    if secret is None:
        raise CredentialResolutionError(
            f"Secret '{secret_name}' has no SecretString; binary secrets are not supported."
        )
    return secret


async def _resolve_from_secret(secret_name: str) -> CredentialSet:
    try:
        secret = await asyncio.to_thread(_fetch_secret_string, secret_name)
    except ClientError as error:
        code = error.response.get("Error", {}).get("Code", "Unknown")
        raise CredentialResolutionError(
            f"Secret store lookup for '{secret_name}' failed ({code})."
        ) from error
    except BotoCoreError as error:
        raise CredentialResolutionError(
            f"Secret store unreachable while reading '{secret_name}': {error}"
        ) from error

    try:
        return CredentialSet.model_validate_json(secret)
    except PydanticValidationError as error:
        # Field names only; the validation message would echo secret values.
        fields = sorted({str(item["loc"][0]) for item in error.errors() if item.get("loc")})
        raise CredentialResolutionError(
            f"Secret '{secret_name}' is not a valid credential document "
            f"(problem fields: {', '.join(fields) or 'document'})."
        ) from None


def _resolve_from_settings() -> CredentialSet:
    settings = get_settings()
    if not settings.has_static_credentials():
        raise CredentialResolutionError(
            "No database credentials configured. Set DB_SECRET_NAME or all of "
            "DB_HOST, DB_USER, DB_PASSWORD and DB_NAME."
        )
    return CredentialSet(
        host=settings.db_host,
        username=settings.db_user,
        password=settings.db_password,
        database=settings.db_name,
        port=settings.db_port,
    )


async def _resolve_credentials() -> CredentialSet:
    settings = get_settings()
    if settings.db_secret_name:
        credentials = await _resolve_from_secret(settings.db_secret_name)
        source = "secret"
    else:
        credentials = _resolve_from_settings()
        source = "static"
    log.info("[CREDENTIALS] Resolved database credentials", extra={"source": source})
    return credentials


_credentials: AsyncLazy[CredentialSet] = AsyncLazy(_resolve_credentials, name="credentials")


async def get_credentials() -> CredentialSet:
    """
    Return the process-wide credential set, resolving it on first use.

    Raises
    ------
    CredentialResolutionError
        If the secret store is unreachable, the secret is missing, or the
        payload is not a credential document.
    """
    return await _credentials.get()


def reset_credentials() -> None:
    """Forget cached credentials; the next call resolves them again."""
    _credentials.reset()


__all__ = ["get_credentials", "reset_credentials", "create_secrets_client"]
