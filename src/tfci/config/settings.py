#!/usr/bin/env python3
"""
tfci Config Loader

Resolves connection settings for HCP Terraform. Precedence, highest first:
command-line options, environment variables, an optional YAML file, defaults.

The YAML file is read from ``$TFCI_CONFIG`` or ``.tfci.yaml`` in the working
directory:

    tfci:
      hostname: tfe.example.com
      organization: my-org
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..errors import ConfigError

DEFAULT_HOSTNAME = "app.terraform.io"

ENV_HOSTNAME = "TF_HOSTNAME"
ENV_TOKEN = "TF_API_TOKEN"
ENV_ORGANIZATION = "TF_CLOUD_ORGANIZATION"
ENV_CONFIG_FILE = "TFCI_CONFIG"
DEFAULT_CONFIG_FILE = ".tfci.yaml"


@dataclass
class TfciConfig:
    hostname: str = DEFAULT_HOSTNAME
    token: str = ""
    organization: str = ""

    # HTTP and polling behaviour of the API client
    request_timeout: float = 30.0
    poll_interval: float = 5.0
    poll_timeout: float = 3600.0

    @property
    def base_url(self) -> str:
        host = self.hostname.rstrip("/")
        if not host.startswith(("http://", "https://")):
            host = f"https://{host}"
        return f"{host}/api/v2"

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []
        if not self.token:
            errors.append(
                f"No API token provided, set --token or {ENV_TOKEN}"
            )
        if not self.organization:
            errors.append(
                f"No organization provided, set --organization or {ENV_ORGANIZATION}"
            )
        if self.poll_interval <= 0:
            errors.append("poll_interval must be positive")
        return errors


def _read_yaml(path: Path, required: bool = False) -> Dict[str, Any]:
    try:
        if not path.exists():
            if required:
                raise ConfigError(f"config file not found: {path}")
            return {}
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        if required:
            raise ConfigError(f"could not read config file {path}: {e}") from e
        return {}
    return data if isinstance(data, dict) else {}


def _config_path(environ: Mapping[str, str], cwd: Optional[Path]) -> Tuple[Path, bool]:
    """Return the YAML path and whether it was named explicitly."""
    explicit = environ.get(ENV_CONFIG_FILE)
    if explicit:
        return Path(explicit), True
    base = Path.cwd() if cwd is None else cwd
    return base / DEFAULT_CONFIG_FILE, False


def load_config(
    hostname: Optional[str] = None,
    token: Optional[str] = None,
    organization: Optional[str] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
) -> TfciConfig:
    """Resolve settings; a file named by TFCI_CONFIG must exist and parse."""
    environ = os.environ if environ is None else environ
    path, required = _config_path(environ, cwd)
    data = _read_yaml(path, required).get("tfci") or {}
    if not isinstance(data, dict):
        data = {}

    cfg = TfciConfig()
    known = {f.name for f in fields(TfciConfig)}
    for key, value in data.items():
        if key not in known or value is None:
            continue
        default = getattr(cfg, key)
        try:
            setattr(cfg, key, type(default)(value))
        except (TypeError, ValueError):
            continue

    cfg.hostname = hostname or environ.get(ENV_HOSTNAME) or cfg.hostname
    cfg.token = token or environ.get(ENV_TOKEN) or cfg.token
    cfg.organization = organization or environ.get(ENV_ORGANIZATION) or cfg.organization
    return cfg
