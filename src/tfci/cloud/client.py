"""
Thin HCP Terraform / Terraform Enterprise API client.

Only the handful of endpoints tfci commands need are wrapped. Responses are
parsed into the models in ``tfci.contracts.models``.
"""

from __future__ import annotations

import io
import logging
import tarfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

from ..config import TfciConfig
from ..contracts.models import (
    ConfigurationVersion,
    CostEstimate,
    Plan,
    Run,
    StateVersionOutput,
    Workspace,
)
from ..errors import CloudError, CloudTimeout

logger = logging.getLogger(__name__)

JSONAPI = "application/vnd.api+json"

# excluded from configuration uploads
IGNORED_DIRS = {".git", ".terraform"}


def pack_directory(directory: Path) -> bytes:
    """Return a gzipped tarball of ``directory``'s contents."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for path in sorted(directory.rglob("*")):
            rel = path.relative_to(directory)
            if rel.parts and rel.parts[0] in IGNORED_DIRS:
                continue
            tar.add(path, arcname=rel.as_posix(), recursive=False)
    return buf.getvalue()


class TfeClient:
    """HTTP client for the ``/api/v2`` endpoints."""

    def __init__(
        self,
        config: TfciConfig,
        platform: str = "",
        session: Optional[requests.Session] = None,
    ):
        self.config = config
        self.base_url = config.base_url
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Content-Type": JSONAPI,
                "Accept": JSONAPI,
                "User-Agent": f"tfci/{platform or 'generic'}",
            }
        )

    def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        logger.debug("API request", extra={"method": method, "url": url})
        try:
            response = self.session.request(
                method, url, json=payload, timeout=self.config.request_timeout
            )
        except requests.Timeout as e:
            raise CloudTimeout(f"{method} {url} timed out: {e}") from e
        except requests.RequestException as e:
            raise CloudError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            detail = self._error_detail(response)
            raise CloudError(
                f"{method} {url} returned {response.status_code}: {detail}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_detail(response: requests.Response) -> str:
        try:
            errors = response.json().get("errors") or []
        except ValueError:
            return response.text[:200]
        details = []
        for err in errors:
            if isinstance(err, dict):
                details.append(err.get("detail") or err.get("title") or str(err))
            else:
                details.append(str(err))
        return "; ".join(details) or response.reason or ""

    def run_link(self, organization: str, workspace: str, run_id: str) -> str:
        host = self.base_url[: -len("/api/v2")]
        return f"{host}/app/{organization}/workspaces/{workspace}/runs/{run_id}"

    # Workspaces

    def read_workspace(self, organization: str, name: str) -> Workspace:
        body = self._request("GET", f"/organizations/{organization}/workspaces/{name}")
        return Workspace.from_jsonapi(body.get("data") or {})

    def read_workspace_by_id(self, workspace_id: str) -> Workspace:
        body = self._request("GET", f"/workspaces/{workspace_id}")
        return Workspace.from_jsonapi(body.get("data") or {})

    # Configuration versions

    def create_configuration_version(
        self, workspace_id: str, speculative: bool = False, provisional: bool = False
    ) -> ConfigurationVersion:
        payload = {
            "data": {
                "type": "configuration-versions",
                "attributes": {
                    "auto-queue-runs": False,
                    "speculative": speculative,
                    "provisional": provisional,
                },
            }
        }
        body = self._request(
            "POST", f"/workspaces/{workspace_id}/configuration-versions", payload
        )
        return ConfigurationVersion.from_jsonapi(body.get("data") or {})

    def upload_configuration(self, upload_url: str, directory: Path) -> None:
        archive = pack_directory(directory)
        logger.debug("Uploading configuration archive", extra={"bytes": len(archive)})
        try:
            response = requests.put(
                upload_url,
                data=archive,
                headers={"Content-Type": "application/octet-stream"},
                timeout=self.config.request_timeout,
            )
        except requests.Timeout as e:
            raise CloudTimeout(f"configuration upload timed out: {e}") from e
        except requests.RequestException as e:
            raise CloudError(f"configuration upload failed: {e}") from e
        if response.status_code >= 400:
            raise CloudError(
                f"configuration upload returned {response.status_code}",
                status_code=response.status_code,
            )

    def read_configuration_version(self, cv_id: str) -> ConfigurationVersion:
        body = self._request("GET", f"/configuration-versions/{cv_id}")
        return ConfigurationVersion.from_jsonapi(body.get("data") or {})

    # Runs

    def create_run(
        self,
        workspace_id: str,
        configuration_version_id: str,
        message: str = "",
        plan_only: bool = False,
        save_plan: bool = False,
    ) -> Run:
        attributes: Dict[str, Any] = {"plan-only": plan_only, "save-plan": save_plan}
        if message:
            attributes["message"] = message
        payload = {
            "data": {
                "type": "runs",
                "attributes": attributes,
                "relationships": {
                    "workspace": {"data": {"type": "workspaces", "id": workspace_id}},
                    "configuration-version": {
                        "data": {
                            "type": "configuration-versions",
                            "id": configuration_version_id,
                        }
                    },
                },
            }
        }
        body = self._request("POST", "/runs", payload)
        return Run.from_jsonapi(body.get("data") or {})

    def read_run(self, run_id: str) -> Run:
        body = self._request("GET", f"/runs/{run_id}")
        return Run.from_jsonapi(body.get("data") or {})

    def run_action(self, run_id: str, action: str, comment: str = "") -> None:
        """POST one of ``apply``, ``discard`` or ``cancel`` for a run."""
        payload = {"comment": comment} if comment else None
        self._request("POST", f"/runs/{run_id}/actions/{action}", payload)

    # Plans

    def read_plan(self, plan_id: str) -> Plan:
        body = self._request("GET", f"/plans/{plan_id}")
        return Plan.from_jsonapi(body.get("data") or {})

    def read_cost_estimate(self, cost_estimate_id: str) -> CostEstimate:
        body = self._request("GET", f"/cost-estimates/{cost_estimate_id}")
        return CostEstimate.from_jsonapi(body.get("data") or {})

    # State

    def current_state_outputs(self, workspace_id: str) -> List[StateVersionOutput]:
        body = self._request(
            "GET", f"/workspaces/{workspace_id}/current-state-version-outputs"
        )
        items = body.get("data") or []
        return [StateVersionOutput.from_jsonapi(item) for item in items]
