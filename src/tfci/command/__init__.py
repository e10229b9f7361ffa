"""tfci commands."""

from .base import BaseCommand, Meta
from .plan import OutputPlanCommand
from .run import (
    ApplyRunCommand,
    CancelRunCommand,
    CreateRunCommand,
    DiscardRunCommand,
    ShowRunCommand,
)
from .upload import UploadConfigurationCommand
from .workspace import WorkspaceOutputCommand

__all__ = [
    "BaseCommand",
    "Meta",
    "UploadConfigurationCommand",
    "CreateRunCommand",
    "ApplyRunCommand",
    "ShowRunCommand",
    "DiscardRunCommand",
    "CancelRunCommand",
    "OutputPlanCommand",
    "WorkspaceOutputCommand",
]
