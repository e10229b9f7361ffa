"""Configuration management for tfci."""

from .settings import TfciConfig, load_config

__all__ = ["TfciConfig", "load_config"]
