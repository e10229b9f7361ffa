"""
tfci: HCP Terraform CI tooling

Runs a single HCP Terraform operation per invocation from a CI pipeline step
and reports the results as step outputs that later steps can consume.
"""

__version__ = "1.0.0"
__author__ = "tfci Team"
__description__ = "HCP Terraform CI tooling"
