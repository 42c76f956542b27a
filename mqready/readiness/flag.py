"""
Readiness signal readers.

The configuration process marks completion by creating a file. Reading is
abstracted behind ``ReadinessSignalReader`` so the probe can be exercised
without a filesystem.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Protocol, runtime_checkable

from mqready.core.exceptions import SignalReadError


@runtime_checkable
class ReadinessSignalReader(Protocol):
    """Anything that can report whether configuration has completed."""

    def is_set(self) -> bool:
        """Return True once the signal is set, False while it is absent.

        Raises SignalReadError when the signal cannot be read.
        """
        ...


class FileReadinessSignal:
    """Signal backed by the existence of a file.

    Existence means set, not-found means unset, any other OS error is raised
    as SignalReadError.
    """

    def __init__(self, path: str | os.PathLike[str]):
        self.path = Path(path)

    def is_set(self) -> bool:
        try:
            os.stat(self.path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise SignalReadError(
                f"Unable to stat {self.path}: {e}",
                details={"path": str(self.path), "errno": e.errno},
            ) from e
        return True

    def __repr__(self) -> str:
        return f"FileReadinessSignal({str(self.path)!r})"
