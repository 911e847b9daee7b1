"""Shared pytest fixtures."""

import os
import tempfile
from pathlib import Path

import boto3
import pytest
from moto import mock_aws

# Set fake credentials and region before any boto3 client is created
os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-2")

from logstorm.core.config import LogstormConfig  # noqa: E402
from logstorm.core.synthesizer import SourceTemplate  # noqa: E402

TEST_BUCKET = "test-bucket"
TEST_REGION = "us-east-2"

SOURCE_LINES = [
    ":::time::: INFO request_id=:::replace::: status=200",
    ":::time::: WARN cache miss key=:::replace:::",
    "plain line without placeholders",
]


@pytest.fixture
def tmp_output_dir():
    """Create a temporary directory for test outputs."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def source_file(tmp_output_dir):
    """Write a small source corpus to disk."""
    path = tmp_output_dir / "source.log"
    path.write_text("\n".join(SOURCE_LINES) + "\n")
    return path


@pytest.fixture
def template():
    """In-memory source template."""
    return SourceTemplate(SOURCE_LINES)


@pytest.fixture
def settings(source_file):
    """Settings pointing at the test corpus and bucket, with no retry delay."""
    return LogstormConfig(
        _env_file=None,
        bucket=TEST_BUCKET,
        key_prefix="multipart-test",
        aws_region=TEST_REGION,
        source_path=str(source_file),
        retry_base_delay=0,
        retry_max_delay=0,
    )


@pytest.fixture
def s3_client():
    """In-memory S3 with the test bucket already created."""
    with mock_aws():
        client = boto3.client("s3", region_name=TEST_REGION)
        client.create_bucket(
            Bucket=TEST_BUCKET,
            CreateBucketConfiguration={"LocationConstraint": TEST_REGION},
        )
        yield client


@pytest.fixture
def no_sleep():
    """Recording replacement for time.sleep."""
    delays = []
    return delays, delays.append


@pytest.fixture(autouse=True)
def reset_env():
    """Reset environment variables after each test."""
    original_env = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_env)
