"""Immutable run identity captured from the CI environment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

GetEnv = Callable[[str], Optional[str]]

SHORT_SHA_LENGTH = 7


class RefType(str, Enum):
    """Kind of git ref that triggered the pipeline."""

    BRANCH = "branch"
    TAG = "tag"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["RefType"]:
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


@dataclass(frozen=True)
class RunIdentity:
    """Snapshot of CI-provided metadata for the current invocation."""

    run_id: str = ""
    run_number: str = ""
    commit_sha: str = ""
    actor: str = ""
    repository: str = ""
    ref_name: str = ""
    ref_type: Optional[RefType] = None
    scratch_dir: Optional[Path] = None

    @property
    def short_sha(self) -> str:
        return self.commit_sha[:SHORT_SHA_LENGTH]

    def composite_id(self, prefix: str) -> str:
        return f"{prefix}-{self.run_id}-{self.run_number}"

    @classmethod
    def from_env(
        cls,
        getenv: GetEnv,
        run_id: str,
        run_number: str,
        commit_sha: str,
        actor: str,
        repository: str,
        ref_name: str,
        ref_type: str,
        scratch_dir: str,
    ) -> "RunIdentity":
        """Build an identity, reading each named variable exactly once."""

        def read(name: str) -> str:
            return getenv(name) or ""

        scratch = read(scratch_dir)
        return cls(
            run_id=read(run_id),
            run_number=read(run_number),
            commit_sha=read(commit_sha),
            actor=read(actor),
            repository=read(repository),
            ref_name=read(ref_name),
            ref_type=RefType.parse(read(ref_type)),
            scratch_dir=Path(scratch) if scratch else None,
        )
