"""Shared fixtures for spadeploy tests."""

from pathlib import Path

import boto3
import pytest
from moto import mock_aws

REGION = "eu-west-1"
BUCKET = "deploy-bucket"


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)


@pytest.fixture
def s3_client(aws_credentials):
    """Create a mocked S3 client with an empty deploy bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name=REGION)
        client.create_bucket(
            Bucket=BUCKET,
            CreateBucketConfiguration={"LocationConstraint": REGION},
        )
        yield client


@pytest.fixture
def build_dir(tmp_path) -> Path:
    """Create a small SPA build directory."""
    root = tmp_path / "dist"
    (root / "static" / "js").mkdir(parents=True)
    (root / "index.html").write_text(
        '<html><head><script id="env-data"></script></head><body></body></html>'
    )
    (root / "static" / "js" / "main.abc123.js").write_text("console.log('hi');")
    (root / "manifest.json").write_text('{"name": "app"}')
    return root
