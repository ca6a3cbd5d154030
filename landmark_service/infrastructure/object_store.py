"""
Object retrieval pipeline for landmark files.

Fetching one object goes through three steps:

1. DNS preflight: the S3 endpoint host name is resolved first, so a network or
   DNS outage is reported as `DnsResolutionError` rather than as an opaque
   object-store failure. No request is issued when resolution fails.
2. Fetch: ``get_object`` on a boto3 client configured with 5 attempts and
   60-second timeouts. Transient failures are retried inside botocore.
3. Materialize: the body is read chunk by chunk, joined once the stream ends
   and decoded as UTF-8. A stream failure raises `ObjectStreamError`; partial
   text is never returned.

boto3 is blocking, so each call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import socket
from typing import Any, List
from urllib.parse import urlsplit

from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from landmark_service.config import get_settings
from landmark_service.errors import DnsResolutionError, ObjectStoreError, ObjectStreamError
from landmark_service.infrastructure.aws import create_client
from landmark_service.utils.logging import get_logger
from landmark_service.utils.profiler import profile_block

log = get_logger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


def create_s3_client() -> Any:
    """Create the retry- and timeout-configured S3 client."""
    settings = get_settings()
    config = Config(
        retries={"max_attempts": settings.s3_max_attempts, "mode": "standard"},
        connect_timeout=settings.s3_timeout_seconds,
        read_timeout=settings.s3_timeout_seconds,
    )
    client_kwargs = {}
    if settings.s3_endpoint_url:
        client_kwargs["endpoint_url"] = settings.s3_endpoint_url
    return create_client("s3", config=config, **client_kwargs)


def endpoint_host(s3_client: Any) -> str:
    """Host name of the endpoint the client sends requests to."""
    host = urlsplit(s3_client.meta.endpoint_url).hostname
    if not host:
        raise DnsResolutionError(f"S3 endpoint has no host name: {s3_client.meta.endpoint_url}")
    return host


async def preflight_dns(host: str) -> None:
    """
    Resolve ``host`` on the event loop's resolver.

    Raises
    ------
    DnsResolutionError
        If the name does not resolve.
    """
    loop = asyncio.get_running_loop()
    try:
        await loop.getaddrinfo(host, 443, type=socket.SOCK_STREAM)
    except (socket.gaierror, UnicodeError) as error:
        log.error("[S3] DNS resolution failed", extra={"endpoint": host, "error": str(error)})
        raise DnsResolutionError(f"Cannot resolve object store endpoint {host}: {error}") from error


def read_body(body: Any, chunk_size: int = STREAM_CHUNK_SIZE) -> str:
    """
    Drain a streaming body into one UTF-8 string.

    Raises
    ------
    ObjectStreamError
        If reading fails before the stream ends or the bytes are not UTF-8.
    """
    chunks: List[bytes] = []
    try:
        for chunk in body.iter_chunks(chunk_size=chunk_size):
            chunks.append(chunk)
    except (BotoCoreError, OSError) as error:
        raise ObjectStreamError(f"Object stream failed after {len(chunks)} chunks: {error}") from error
    finally:
        body.close()
    try:
        return b"".join(chunks).decode("utf-8")
    except UnicodeDecodeError as error:
        raise ObjectStreamError(f"Object body is not valid UTF-8: {error}") from error


def _get_object(s3_client: Any, bucket: str, key: str) -> Any:
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
    except ClientError as error:
        code = error.response.get("Error", {}).get("Code")
        raise ObjectStoreError(
            f"Failed to fetch s3://{bucket}/{key}: {error}", code=code
        ) from error
    except BotoCoreError as error:
        raise ObjectStoreError(f"Failed to fetch s3://{bucket}/{key}: {error}") from error
    return response["Body"]


async def fetch_object_as_text(bucket: str, key: str) -> str:
    """
    Fetch ``s3://bucket/key`` and return its body as text.

    Parameters
    ----------
    bucket : str
        Bucket name.
    key : str
        Decoded object key.

    Returns
    -------
    str
        The complete object body decoded as UTF-8. JSON is not parsed here.

    Raises
    ------
    DnsResolutionError
        If the endpoint does not resolve; no request is sent.
    ObjectStoreError
        If the get-object request fails after client retries.
    ObjectStreamError
        If the body stream fails mid-transfer.
    """
    s3_client = create_s3_client()
    await preflight_dns(endpoint_host(s3_client))

    with profile_block("s3-get") as stats:
        body = await asyncio.to_thread(_get_object, s3_client, bucket, key)
        text = await asyncio.to_thread(read_body, body)

    log.info(
        "[S3] Fetched object",
        extra={
            "bucket": bucket,
            "key": key,
            "chars": len(text),
            "duration_ms": stats.duration_ms,
        },
    )
    return text


__all__ = [
    "create_s3_client",
    "endpoint_host",
    "fetch_object_as_text",
    "preflight_dns",
    "read_body",
]
