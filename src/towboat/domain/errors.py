"""Error taxonomy for classification and deployment.

Every error carries the offending ``path`` and the ``phase`` it was raised
in (``classify``, ``process`` or ``write``). The service layer converts
them into a failed :class:`~towboat.services.result.ServiceResult` using
``code`` as the stable machine-readable identifier.

INVARIANT: ConfigParseError is recoverable (the directory is treated as
configuration-less). Every other subclass is fatal to the run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

Phase = Literal["classify", "process", "write"]


class TowboatError(Exception):
    """Base class for all towboat failures."""

    code = "TOWBOAT_ERROR"

    def __init__(self, message: str, *, path: Path | str | None = None, phase: Phase) -> None:
        super().__init__(message)
        self.message = message
        self.path = Path(path) if path is not None else None
        self.phase = phase

    def detail(self) -> dict[str, str]:
        """Diagnostic context for ``ServiceError.detail``."""
        info = {"phase": self.phase}
        if self.path is not None:
            info["path"] = str(self.path)
        return info


class ConfigParseError(TowboatError):
    """A ``boat.toml`` could not be read, decoded, or validated."""

    code = "CONFIG_PARSE"

    def __init__(self, message: str, *, path: Path | str) -> None:
        super().__init__(message, path=path, phase="classify")


class MissingSourceError(TowboatError):
    """The package directory does not exist."""

    code = "MISSING_SOURCE"

    def __init__(self, path: Path | str) -> None:
        super().__init__(f"Source directory does not exist: {path}", path=path, phase="classify")


class ModifiedTargetError(TowboatError):
    """A deployed target was edited outside towboat since the last run."""

    code = "MODIFIED_TARGET"

    def __init__(self, path: Path | str, *, phase: Phase = "write") -> None:
        super().__init__(
            f"Target was modified since it was last deployed: {path} (use --force to overwrite)",
            path=path,
            phase=phase,
        )


class LinkCollisionError(TowboatError):
    """A link target is occupied by something towboat did not put there."""

    code = "LINK_COLLISION"

    def __init__(self, path: Path | str, *, reason: str | None = None) -> None:
        message = f"Target already exists and is not a link: {path}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message, path=path, phase="write")


class DeployIOError(TowboatError):
    """A filesystem read, write, walk, or link call failed."""

    code = "IO_ERROR"

    @classmethod
    def wrap(cls, exc: OSError, *, path: Path | str, phase: Phase) -> DeployIOError:
        """Wrap an ``OSError`` from the filesystem adapter."""
        reason = exc.strerror or str(exc)
        return cls(f"I/O failure on {path}: {reason}", path=path, phase=phase)
