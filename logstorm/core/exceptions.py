"""Exceptions raised by logstorm."""


class LogstormError(Exception):
    """Base class for all logstorm errors."""


class ConfigurationError(LogstormError):
    """Invalid options or an unusable source corpus. Raised before any pipeline starts."""


class TransportError(LogstormError):
    """An object store request kept failing after every allowed attempt."""

    def __init__(self, operation: str, attempts: int):
        self.operation = operation
        self.attempts = attempts
        super().__init__(f"{operation} failed after {attempts} attempt(s)")


class LocalOutputError(LogstormError):
    """The local output path cannot be used as a directory."""
