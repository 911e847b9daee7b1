"""logstorm - Synthetic log archive generator and S3 upload load tool."""

__version__ = "1.0.0"

from logstorm.core.config import config
from logstorm.core.models import ArchiveFormat, RunConfig, RunResult, UploadMode

__all__ = ["config", "ArchiveFormat", "RunConfig", "RunResult", "UploadMode", "__version__"]
