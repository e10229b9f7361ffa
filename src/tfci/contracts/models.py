from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class Resource(BaseModel):
    """A JSON:API resource flattened to ``id`` plus its attributes."""

    model_config = ConfigDict(
        alias_generator=_kebab, populate_by_name=True, extra="ignore"
    )

    id: str

    @classmethod
    def from_jsonapi(cls, data: Dict[str, Any]):
        fields: Dict[str, Any] = {"id": data.get("id", "")}
        fields.update(data.get("attributes") or {})
        for name, rel in (data.get("relationships") or {}).items():
            rel_data = (rel or {}).get("data")
            if isinstance(rel_data, dict) and rel_data.get("id"):
                fields.setdefault(f"{name}-id", rel_data["id"])
        return cls.model_validate(fields)


class Status(str, Enum):
    """Terminal result of a tfci command."""

    SUCCESS = "Success"
    ERROR = "Error"
    TIMEOUT = "Timeout"


class Workspace(Resource):
    name: str = ""


class ConfigurationVersion(Resource):
    status: str = ""
    source: Optional[str] = None
    speculative: bool = False
    provisional: bool = False
    # signed, short-lived url; kept out of serialized payloads
    upload_url: Optional[str] = Field(default=None, exclude=True)
    error: Optional[str] = None
    error_message: Optional[str] = None


class Run(Resource):
    status: str = ""
    message: str = ""
    plan_only: bool = False
    is_destroy: bool = False
    has_changes: bool = False
    created_at: Optional[datetime] = None
    plan_id: Optional[str] = None
    apply_id: Optional[str] = None
    workspace_id: Optional[str] = None
    configuration_version_id: Optional[str] = None
    cost_estimate_id: Optional[str] = None
    actions: Dict[str, bool] = Field(default_factory=dict)


class Plan(Resource):
    status: str = ""
    has_changes: bool = False
    resource_additions: int = 0
    resource_changes: int = 0
    resource_destructions: int = 0
    resource_imports: int = 0


class CostEstimate(Resource):
    status: str = ""


class StateVersionOutput(Resource):
    name: str = ""
    sensitive: bool = False
    type: Optional[str] = None
    value: Any = None
    detailed_type: Any = None

    def redacted(self) -> Dict[str, Any]:
        """Output as exposed to the pipeline, sensitive values hidden."""
        return {
            "name": self.name,
            "sensitive": self.sensitive,
            "type": self.type,
            "value": None if self.sensitive else self.value,
        }


__all__ = [
    "Resource",
    "Status",
    "Workspace",
    "ConfigurationVersion",
    "Run",
    "Plan",
    "CostEstimate",
    "StateVersionOutput",
]
