"""boto3 client construction for S3 and CloudFront."""

import logging
from typing import Any, Optional

import boto3
from botocore.config import Config

from .utils import DEFAULT_MAX_ATTEMPTS

logger = logging.getLogger(__name__)


def _retry_config(max_attempts: int, **kwargs: Any) -> Config:
    return Config(retries={"max_attempts": max_attempts, "mode": "standard"}, **kwargs)


def create_s3_client(
    region: str,
    endpoint: Optional[str] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Any:
    """Create an S3 client.

    Credentials come from boto3's default provider chain. An endpoint
    override (e.g. a local S3-compatible server) switches to path-style
    addressing.

    Args:
        region: AWS region of the bucket
        endpoint: Optional endpoint URL override
        max_attempts: Total attempts per request for transient errors

    Returns:
        boto3 S3 client
    """
    if endpoint:
        logger.debug("Using S3 endpoint %s (path-style addressing)", endpoint)
        config = _retry_config(max_attempts, s3={"addressing_style": "path"})
    else:
        config = _retry_config(max_attempts)
    return boto3.client(
        "s3", region_name=region, endpoint_url=endpoint or None, config=config
    )


def create_cloudfront_client(
    region: str,
    endpoint: Optional[str] = None,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Any:
    """Create a CloudFront client."""
    return boto3.client(
        "cloudfront",
        region_name=region,
        endpoint_url=endpoint or None,
        config=_retry_config(max_attempts),
    )
