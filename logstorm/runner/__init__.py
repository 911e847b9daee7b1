"""Worker pool for logstorm."""

from logstorm.runner.pool import Pipeline, WorkerPool, run

__all__ = ["Pipeline", "WorkerPool", "run"]
