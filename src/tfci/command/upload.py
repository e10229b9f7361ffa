"""``tfci upload``: create and upload a configuration version."""

from pathlib import Path
from typing import Any, Optional

from ..cloud import UploadOptions
from ..contracts.models import ConfigurationVersion
from .base import BaseCommand, Meta


class UploadConfigurationCommand(BaseCommand):
    name = "upload"
    failure_message = "error uploading configuration version to HCP Terraform"

    def __init__(
        self,
        meta: Meta,
        workspace: str,
        directory: Path,
        speculative: bool = False,
        provisional: bool = False,
    ):
        super().__init__(meta)
        self.workspace = workspace
        self.directory = directory
        self.speculative = speculative
        self.provisional = provisional

    def execute(self) -> None:
        dir_path = Path(self.directory).resolve()
        if not dir_path.is_dir():
            raise NotADirectoryError(f"configuration directory not found: {dir_path}")

        self.logger.debug(
            "Uploading configuration",
            extra={
                "workspace": self.workspace,
                "directory": str(dir_path),
                "speculative": self.speculative,
                "provisional": self.provisional,
            },
        )
        config_version = self.cloud.upload_config(
            UploadOptions(
                workspace=self.workspace,
                organization=self.organization,
                directory=dir_path,
                speculative=self.speculative,
                provisional=self.provisional,
            )
        )
        self.add_configuration_details(config_version)

    def add_resource_details(self, resource: Any) -> None:
        if isinstance(resource, ConfigurationVersion):
            self.add_configuration_details(resource)

    def add_configuration_details(self, config: Optional[ConfigurationVersion]) -> None:
        if config is None:
            self.logger.warning("Configuration version is nil, only payload will be set")
            self.add_payload(None)
            return

        self.logger.debug(
            "Configuration version details",
            extra={"cv_id": config.id, "cv_status": config.status},
        )
        self.add_output("configuration_version_id", config.id)
        self.add_output("configuration_version_status", config.status)
        self.add_payload(config)
