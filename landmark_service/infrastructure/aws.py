"""
boto3 client construction shared by the secret-store and object-store layers.
"""

from __future__ import annotations

from typing import Any, Optional

import boto3
from botocore.config import Config

from landmark_service.config import get_settings


def create_client(service: str, config: Optional[Config] = None, **client_kwargs: Any) -> Any:
    """Create a boto3 client in the configured region.

    Args:
        service: AWS service name, e.g. ``"s3"`` or ``"secretsmanager"``.
        config: Optional botocore config (retries, timeouts).
        client_kwargs: Extra keyword arguments such as ``endpoint_url``.

    Returns:
        Boto3 client.
    """
    settings = get_settings()
    session = boto3.session.Session(region_name=settings.aws_region)
    if config is not None:
        client_kwargs["config"] = config
    return session.client(service, **client_kwargs)


__all__ = ["create_client"]
