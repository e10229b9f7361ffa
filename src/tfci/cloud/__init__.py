"""HCP Terraform API access."""

from .client import TfeClient, pack_directory
from .service import CloudService, CreateRunOptions, UploadOptions

__all__ = [
    "TfeClient",
    "pack_directory",
    "CloudService",
    "CreateRunOptions",
    "UploadOptions",
]
