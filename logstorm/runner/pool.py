"""Worker pool and per-worker run loop.

Each pipeline builds and delivers archives sequentially. Pipelines share only
read-only state: the run options, the source template and the S3 client.
"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, wait
from pathlib import Path

from logstorm.core.archive import ArchiveBuilder
from logstorm.core.config import LogstormConfig, config
from logstorm.core.exceptions import ConfigurationError, LocalOutputError
from logstorm.core.models import Archive, PipelineResult, RunConfig, RunResult, UploadTarget
from logstorm.core.synthesizer import SourceTemplate
from logstorm.core.uploader import RetryPolicy, S3Uploader, create_s3_client

logger = logging.getLogger(__name__)


def object_key(key_prefix: str, object_name: str) -> str:
    prefix = key_prefix.strip("/")
    return f"{prefix}/{object_name}" if prefix else object_name


def prepare_output_dir(output: str | Path) -> Path:
    """
    Make sure the local output directory exists.

    Raises:
        LocalOutputError: If the path exists and is not a directory
    """
    output_dir = Path(output)
    if output_dir.exists() and not output_dir.is_dir():
        raise LocalOutputError(f"Output path is not a directory: {output_dir}")
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir


def write_local(archive: Archive, output: str | Path) -> Path:
    """Write archive bytes to ``<output>/<archive_id>``."""
    file_path = prepare_output_dir(output) / archive.archive_id
    file_path.write_bytes(archive.payload)
    logger.info(f"Wrote {archive.size:,} bytes to {file_path}")
    return file_path


class Pipeline:
    """One worker's loop: build an archive, deliver it, repeat."""

    def __init__(
        self,
        worker_id: int,
        run_config: RunConfig,
        builder: ArchiveBuilder,
        uploader: S3Uploader | None,
        bucket: str | None,
        key_prefix: str,
        stop_event: threading.Event | None = None,
    ):
        self.worker_id = worker_id
        self.run_config = run_config
        self.builder = builder
        self.uploader = uploader
        self.bucket = bucket
        self.key_prefix = key_prefix
        self.stop_event = stop_event or threading.Event()
        self.completed = 0

    def should_continue(self) -> bool:
        if self.stop_event.is_set():
            return False
        return self.run_config.repeat < 0 or self.completed < self.run_config.repeat

    def run_once(self) -> str:
        """
        Build and deliver a single archive.

        Returns:
            Local file path or S3 URI of the delivered archive
        """
        start = time.monotonic()
        logger.info(f"Worker {self.worker_id}: creating archive")
        archive = self.builder.build(self.run_config.generation_spec)

        if self.run_config.output:
            destination = str(write_local(archive, self.run_config.output))
        else:
            target = UploadTarget(
                bucket=self.bucket,
                key=object_key(self.key_prefix, archive.object_name),
                content_type=archive.content_type,
            )
            logger.info(f"Worker {self.worker_id}: uploading archive ({self.run_config.upload_type.value})")
            destination = self.uploader.deliver(archive.payload, target, self.run_config.upload_type)

        logger.info(f"Worker {self.worker_id}: archive done in {time.monotonic() - start:.2f}s")
        return destination

    def run(self) -> int:
        """
        Loop until ``repeat`` archives are delivered or a stop is requested.

        Returns:
            Number of archives delivered

        Raises:
            Whatever the failing iteration raised; remaining iterations are skipped
        """
        while self.should_continue():
            self.run_once()
            self.completed += 1
        return self.completed


class WorkerPool:
    """Runs ``workers`` independent pipelines and gathers their results."""

    def __init__(self, run_config: RunConfig, settings: LogstormConfig = config, client=None):
        self.run_config = run_config
        self.settings = settings
        self.stop_event = threading.Event()

        # Fail fast before any pipeline starts
        self.template = SourceTemplate.load(settings.source_path)
        self.uploader = None
        if not run_config.output:
            if not settings.bucket:
                raise ConfigurationError("No bucket configured; set LOGSTORM_BUCKET or pass --bucket")
            self.uploader = S3Uploader(
                client or create_s3_client(settings),
                part_size=settings.part_size,
                retry_policy=RetryPolicy.from_config(settings),
            )

    def create_pipeline(self, worker_id: int) -> Pipeline:
        return Pipeline(
            worker_id=worker_id,
            run_config=self.run_config,
            builder=ArchiveBuilder(self.template),
            uploader=self.uploader,
            bucket=self.settings.bucket,
            key_prefix=self.settings.key_prefix,
            stop_event=self.stop_event,
        )

    def stop(self) -> None:
        """Ask every pipeline to stop before its next iteration."""
        self.stop_event.set()

    def run(self) -> RunResult:
        """
        Run every pipeline to completion.

        Returns:
            RunResult with one PipelineResult per worker
        """
        pipelines = [self.create_pipeline(i) for i in range(self.run_config.workers)]
        logger.info(f"Starting {len(pipelines)} worker(s), repeat={self.run_config.repeat}")

        with ThreadPoolExecutor(max_workers=len(pipelines), thread_name_prefix="pipeline") as executor:
            futures = [executor.submit(p.run) for p in pipelines]
            try:
                wait(futures)
            except KeyboardInterrupt:
                logger.warning("Interrupted, stopping after in-flight archives")
                self.stop()
                wait(futures)

        results = [self._result(p, f) for p, f in zip(pipelines, futures)]
        return RunResult(pipelines=results)

    def _result(self, pipeline: Pipeline, future) -> PipelineResult:
        error = future.exception()
        if error is None:
            logger.info(f"Worker {pipeline.worker_id}: finished {pipeline.completed} archive(s)")
            return PipelineResult(worker_id=pipeline.worker_id, iterations=pipeline.completed, succeeded=True)

        logger.error(
            f"Worker {pipeline.worker_id}: failed after {pipeline.completed} archive(s): {error}",
            exc_info=error,
        )
        return PipelineResult(
            worker_id=pipeline.worker_id,
            iterations=pipeline.completed,
            succeeded=False,
            error=f"{type(error).__name__}: {error}",
        )


def run(run_config: RunConfig, settings: LogstormConfig = config, client=None) -> RunResult:
    """Run the worker pool once with the given options."""
    return WorkerPool(run_config, settings=settings, client=client).run()
