"""
Output sink writer.

Serializes outputs into the line-oriented file format read by the CI platform:

    key=value
    key<<DELIMITER
    multi
    line value
    DELIMITER

The destination is opened in append mode since every step of a pipeline run
shares the same file.
"""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Callable, IO, Mapping, Optional, Union

from ..errors import SinkCloseError, SinkWriteError
from .outputs import OutputValue

EOL = "\n"

Opener = Callable[..., IO[str]]


class OutputSinkWriter:
    """Encodes outputs and appends them to a platform output file."""

    def __init__(
        self,
        delimiter: str,
        logger: Optional[logging.Logger] = None,
        opener: Opener = open,
    ):
        self.delimiter = delimiter
        self.logger = logger or logging.getLogger(__name__)
        self._open = opener

    def delimiter_for(self, key: str, payload: str) -> str:
        """Return a delimiter that does not occur as a line of the payload."""
        lines = set(payload.splitlines())
        delimiter = self.delimiter
        while delimiter in lines:
            delimiter = f"{self.delimiter}_{secrets.token_hex(4)}"
        if delimiter != self.delimiter:
            self.logger.warning(
                "Output '%s' contains the run delimiter, using %s",
                key,
                delimiter,
                extra={"output": key},
            )
        return delimiter

    def encode(self, key: str, value: OutputValue) -> str:
        payload = value.value
        if not value.needs_delimiter():
            return f"{key}={payload}{EOL}"

        delimiter = self.delimiter_for(key, payload)
        return f"{key}<<{delimiter}{EOL}{payload}{EOL}{delimiter}{EOL}"

    def write(
        self, path: Union[str, Path], values: Mapping[str, OutputValue]
    ) -> int:
        """Append every value to ``path`` and return the number written.

        Raises:
            SinkWriteError: the file could not be opened, written or synced.
                Entries after the failing one are not written.
            SinkCloseError: the handle could not be released after a
                successful write.
        """
        self.logger.debug(
            "Writing %d outputs to %s", len(values), path, extra={"path": str(path)}
        )
        try:
            handle = self._open(path, "a", encoding="utf-8", newline="")
        except OSError as exc:
            self.logger.error("Failed to open output file %s: %s", path, exc)
            raise SinkWriteError(
                f"failed to open output file: {exc}", path=str(path)
            ) from exc

        written = 0
        write_error: Optional[SinkWriteError] = None
        try:
            for key, value in values.items():
                self.logger.debug("Output value for '%s': '%s'", key, value.value)
                handle.write(self.encode(key, value))
                written += 1
                self.logger.debug("Wrote output: %s", key)

            # reached only when every entry was written
            handle.flush()
            os.fsync(handle.fileno())
        except (OSError, ValueError) as exc:
            self.logger.error("Failed to write output file %s: %s", path, exc)
            write_error = SinkWriteError(
                f"failed to write output file after {written} entries: {exc}",
                path=str(path),
            )
            write_error.__cause__ = exc
        finally:
            try:
                handle.close()
            except OSError as exc:
                self.logger.error("Failed to close output file %s: %s", path, exc)
                if write_error is None:
                    raise SinkCloseError(
                        f"failed to close output file: {exc}", path=str(path)
                    ) from exc

        if write_error is not None:
            raise write_error
        return written
