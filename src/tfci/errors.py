"""
Exception hierarchy for tfci.

Output sink errors are raised by the CI environment when closing output;
cloud errors are raised by the HCP Terraform client.
"""

from typing import Any, Optional


class TfciError(Exception):
    """Base class for every error raised by tfci."""


class ConfigError(TfciError):
    """Invalid or incomplete configuration."""


class OutputSinkError(TfciError):
    """Failure delivering outputs to the CI platform."""

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class SinkUnavailable(OutputSinkError):
    """No output destination is configured but output was requested."""


class SinkWriteError(OutputSinkError):
    """Opening, writing or flushing the output destination failed."""


class SinkCloseError(OutputSinkError):
    """Releasing the output destination handle failed."""


class CloudError(TfciError):
    """HCP Terraform API request failed."""

    def __init__(
        self, message: str, status_code: Optional[int] = None, resource: Any = None
    ):
        super().__init__(message)
        self.status_code = status_code
        # last known state of the resource involved, when there is one
        self.resource = resource


class CloudTimeout(CloudError):
    """An API request or a status poll exceeded its deadline."""
