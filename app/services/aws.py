"""Shared AWS helpers for service clients."""

from __future__ import annotations

from typing import Any

import boto3

from app.config.settings import settings


def create_boto3_client(
    service_name: str,
    *,
    region_name: str | None = None,
    endpoint_url: str | None = None,
    aws_access_key_id: str | None = None,
    aws_secret_access_key: str | None = None,
) -> boto3.client:
    """Instantiate a boto3 client using configured credentials if available."""

    region = region_name or settings.aws.region
    client_kwargs: dict[str, Any] = {"region_name": region}
    if endpoint_url:
        client_kwargs["endpoint_url"] = endpoint_url
    if aws_access_key_id and aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = aws_access_key_id
        client_kwargs["aws_secret_access_key"] = aws_secret_access_key
    elif settings.aws.access_key_id and settings.aws.secret_access_key:
        client_kwargs["aws_access_key_id"] = settings.aws.access_key_id
        client_kwargs["aws_secret_access_key"] = (
            settings.aws.secret_access_key.get_secret_value()
        )
    return boto3.client(service_name, **client_kwargs)


def response_status(response: dict[str, Any]) -> int | None:
    """Return the HTTP status code boto3 recorded for a call, if any."""

    metadata = response.get("ResponseMetadata") or {}
    return metadata.get("HTTPStatusCode")


__all__ = ["create_boto3_client", "response_status"]
