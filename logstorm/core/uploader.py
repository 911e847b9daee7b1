"""S3 upload operations.

Single-shot uploads let boto3 exceptions bubble up. Multipart requests are
retried under a RetryPolicy and raise TransportError once it gives up.
"""

import logging
import math
import time
from dataclasses import dataclass, field
from typing import Callable, Iterator

import boto3
from botocore.exceptions import ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as BotoConnectionError

from logstorm.core.config import MIN_PART_SIZE, LogstormConfig
from logstorm.core.exceptions import TransportError
from logstorm.core.models import MultipartSession, UploadMode, UploadTarget

logger = logging.getLogger(__name__)

# Connection failures and timeouts below the HTTP layer
NETWORK_ERRORS = (BotoConnectionError, HTTPClientError)

THROTTLING_CODES = {
    "SlowDown",
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "RequestTimeout",
    "InternalError",
    "ServiceUnavailable",
}


def is_retryable(error: Exception) -> bool:
    """Transient errors only: network failures, throttling and HTTP 5xx."""
    if isinstance(error, NETWORK_ERRORS):
        return True
    if isinstance(error, ClientError):
        code = error.response.get("Error", {}).get("Code")
        status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)
        return code in THROTTLING_CODES or status >= 500
    return False


def create_s3_client(settings: LogstormConfig):
    """Build the one S3 client shared by every pipeline (boto3 clients are thread-safe)."""
    session = boto3.Session(profile_name=settings.aws_profile, region_name=settings.aws_region)
    return session.client("s3", endpoint_url=settings.endpoint_url)


def iter_parts(payload: bytes, part_size: int) -> Iterator[tuple[int, bytes]]:
    """
    Split a payload into 1-indexed parts of ``part_size`` bytes.

    The last part holds the remainder. An empty payload yields a single empty
    part, since a multipart upload needs at least one.

    Yields:
        (part_number, chunk) in increasing part-number order
    """
    if part_size <= 0:
        raise ValueError(f"part_size must be positive, got {part_size}")

    total = max(1, math.ceil(len(payload) / part_size))
    for index in range(total):
        start = index * part_size
        yield index + 1, payload[start : start + part_size]


@dataclass
class RetryPolicy:
    """
    Bounded retry with exponential backoff.

    ``max_attempts=None`` retries forever. ``sleep`` is injectable so tests
    do not wait.
    """

    max_attempts: int | None = 5
    base_delay: float = 0.5
    max_delay: float = 30.0
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    @classmethod
    def from_config(cls, settings: LogstormConfig) -> "RetryPolicy":
        max_attempts = settings.max_part_attempts if settings.max_part_attempts > 0 else None
        return cls(
            max_attempts=max_attempts,
            base_delay=settings.retry_base_delay,
            max_delay=settings.retry_max_delay,
        )

    def delay(self, attempt: int) -> float:
        """Delay after the given failed attempt (1-indexed)."""
        return min(self.base_delay * 2 ** (attempt - 1), self.max_delay)

    def call(self, operation: str, fn: Callable, *args, **kwargs):
        """
        Call ``fn`` until it succeeds or the attempts run out.

        Raises:
            TransportError: If every attempt failed with a transient error
            ClientError: At once, for permanent errors such as AccessDenied or NoSuchBucket
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return fn(*args, **kwargs)
            except (ClientError, *NETWORK_ERRORS) as e:
                if not is_retryable(e):
                    logger.error(f"{operation}: permanent error, not retrying: {e}")
                    raise
                if self.max_attempts is not None and attempt >= self.max_attempts:
                    logger.error(f"{operation}: giving up after {attempt} attempt(s): {e}")
                    raise TransportError(operation, attempt) from e
                delay = self.delay(attempt)
                logger.warning(f"{operation}: attempt {attempt} failed, retrying in {delay:.2f}s: {e}")
                self.sleep(delay)


class S3Uploader:
    """Delivers archive bytes to S3 as one request or as a multipart upload."""

    def __init__(self, client, part_size: int = MIN_PART_SIZE, retry_policy: RetryPolicy | None = None):
        self.s3 = client
        self.part_size = part_size
        self.retry_policy = retry_policy or RetryPolicy()

    def deliver(self, payload: bytes, target: UploadTarget, mode: UploadMode = UploadMode.MULTIPART) -> str:
        """
        Upload a payload using the requested mode.

        Args:
            payload: Archive bytes
            target: Bucket, key and content type
            mode: single-request or multipart

        Returns:
            S3 URI of the uploaded object

        Raises:
            ClientError: If a single-shot upload fails
            TransportError: If a multipart request runs out of retries
        """
        if mode is UploadMode.SINGLE:
            self.put_object(payload, target)
        else:
            self.upload_multipart(payload, target)

        s3_uri = f"s3://{target.bucket}/{target.key}"
        logger.info(f"Uploaded {len(payload):,} bytes to {s3_uri}")
        return s3_uri

    def put_object(self, payload: bytes, target: UploadTarget) -> None:
        """Upload the whole payload in one request. Not retried."""
        self.s3.put_object(
            Bucket=target.bucket,
            Key=target.key,
            ContentType=target.content_type,
            ContentLength=len(payload),
            Body=payload,
        )

    def upload_multipart(self, payload: bytes, target: UploadTarget) -> MultipartSession:
        """
        Upload a payload as sequential, individually retried parts.

        Returns:
            The completed session with its ordered part list
        """
        session = self.initiate(target)
        total = max(1, math.ceil(len(payload) / self.part_size))

        for part_number, chunk in iter_parts(payload, self.part_size):
            etag = self.upload_part(session, target, part_number, chunk)
            session.record(part_number, etag)
            logger.info(f"Uploaded part {part_number}/{total} ({len(chunk):,} bytes) of {target.key}")

        self.complete(session, target)
        return session

    def initiate(self, target: UploadTarget) -> MultipartSession:
        response = self.retry_policy.call(
            f"create_multipart_upload {target.key}",
            self.s3.create_multipart_upload,
            Bucket=target.bucket,
            Key=target.key,
            ContentType=target.content_type,
        )
        logger.debug(f"Started multipart upload {response['UploadId']} for {target.key}")
        return MultipartSession(upload_id=response["UploadId"])

    def upload_part(self, session: MultipartSession, target: UploadTarget, part_number: int, chunk: bytes) -> str:
        response = self.retry_policy.call(
            f"upload_part {part_number} of {target.key}",
            self.s3.upload_part,
            Bucket=target.bucket,
            Key=target.key,
            UploadId=session.upload_id,
            PartNumber=part_number,
            Body=chunk,
        )
        return response["ETag"]

    def complete(self, session: MultipartSession, target: UploadTarget) -> None:
        parts = sorted(session.parts, key=lambda p: p["PartNumber"])
        self.retry_policy.call(
            f"complete_multipart_upload {target.key}",
            self.s3.complete_multipart_upload,
            Bucket=target.bucket,
            Key=target.key,
            UploadId=session.upload_id,
            MultipartUpload={"Parts": parts},
        )
