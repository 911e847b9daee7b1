#!/usr/bin/env python3
"""Generate synthetic log archives and upload them to S3.

Example:
    logstorm --format zip --lines 10000 --file-count 25 --bucket my-bucket
    logstorm -f gzip -l 500000 -u single -w 4 -r -1
    logstorm -f zip -c 3 -l 10 --output ./archives
"""

import argparse
import logging
import sys

from pydantic import ValidationError

from logstorm.core.config import LogstormConfig
from logstorm.core.exceptions import ConfigurationError
from logstorm.core.models import ArchiveFormat, RunConfig, UploadMode
from logstorm.runner.pool import WorkerPool

logger = logging.getLogger("logstorm")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate synthetic log archives and upload them to S3")
    parser.add_argument(
        "--format", "-f", choices=[f.value for f in ArchiveFormat], default="zip", help="Compression format"
    )
    parser.add_argument("--lines", "-l", type=int, default=10000, help="Number of lines per file (default: 10000)")
    parser.add_argument(
        "--file-count", "-c", type=int, default=25, help="Number of files per archive, zip only (default: 25)"
    )
    parser.add_argument(
        "--upload-type",
        "-u",
        choices=[m.value for m in UploadMode],
        default="multipart",
        help="Method of uploading to S3",
    )
    parser.add_argument("--output", "-o", help="Write archives to this directory instead of uploading")
    parser.add_argument(
        "--repeat", "-r", type=int, default=1, help="Archives per worker, -1 to generate indefinitely (default: 1)"
    )
    parser.add_argument("--workers", "-w", type=int, default=1, help="Concurrent workers (default: 1)")

    # Settings overrides (otherwise read from LOGSTORM_* / .env)
    parser.add_argument("--bucket", help="Destination S3 bucket")
    parser.add_argument("--key-prefix", help="Key prefix for uploaded archives")
    parser.add_argument("--part-size", type=int, help="Multipart chunk size in bytes (min 5 MiB)")
    parser.add_argument("--source", help="Source line template file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def load_settings(args: argparse.Namespace) -> LogstormConfig:
    overrides = {
        "bucket": args.bucket,
        "key_prefix": args.key_prefix,
        "part_size": args.part_size,
        "source_path": args.source,
    }
    return LogstormConfig(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(threadName)s - %(levelname)s - %(message)s",
    )

    try:
        settings = load_settings(args)
        run_config = RunConfig(
            format=args.format,
            lines=args.lines,
            file_count=args.file_count,
            upload_type=args.upload_type,
            output=args.output,
            repeat=args.repeat,
            workers=args.workers,
        )
        pool = WorkerPool(run_config, settings=settings)
    except (ValidationError, ConfigurationError) as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CONFIG

    result = pool.run()
    if not result.succeeded:
        failed = [p for p in result.pipelines if not p.succeeded]
        logger.error(f"Failed! {len(failed)}/{len(result.pipelines)} worker(s) failed")
        return EXIT_FAILED

    logger.info(f"Completed! {result.iterations} archive(s) delivered")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
