"""
Output values and the per-invocation output set.

An output is a named result that a command hands back to the CI platform.
The payload is opaque text; only the flags decide how and where it is written.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional

from pydantic import BaseModel


def stringify(value: Any) -> str:
    """Render an arbitrary command result as output payload text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump_json(indent=2, by_alias=True)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, indent=2, default=str)
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class OutputValue:
    """A single output payload plus its encoding and visibility flags."""

    value: str
    multiline: bool = False
    stdout: bool = True
    platform_out: bool = True

    @classmethod
    def of(
        cls,
        value: Any,
        multiline: bool = False,
        stdout: bool = True,
        platform_out: bool = True,
    ) -> "OutputValue":
        return cls(
            value=stringify(value),
            multiline=multiline,
            stdout=stdout,
            platform_out=platform_out,
        )

    def needs_delimiter(self) -> bool:
        return self.multiline or "\n" in self.value or "\r" in self.value

    def __str__(self) -> str:
        return self.value


class OutputSet:
    """Insertion-ordered, last-write-wins mapping of output name to value.

    Re-setting a key replaces the value in place, so the key keeps the
    position of its first insertion and the encoded file is reproducible.
    """

    def __init__(self, values: Optional[Mapping[str, OutputValue]] = None):
        self._values: Dict[str, OutputValue] = {}
        if values:
            self.merge(values)

    def set(self, name: str, value: OutputValue) -> None:
        self._values[name] = value

    def merge(self, values: Mapping[str, OutputValue]) -> None:
        for name, value in values.items():
            self.set(name, value)

    def get(self, name: str) -> Optional[OutputValue]:
        return self._values.get(name)

    def items(self):
        return self._values.items()

    def stdout_values(self) -> Dict[str, str]:
        return {k: v.value for k, v in self._values.items() if v.stdout}

    def platform_values(self) -> Dict[str, OutputValue]:
        return {k: v for k, v in self._values.items() if v.platform_out}

    def clear(self) -> None:
        self._values = {}

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __bool__(self) -> bool:
        return bool(self._values)

    def __repr__(self) -> str:
        return f"OutputSet({list(self._values)!r})"
