"""Checksum cache — hashes of processed deployments, persisted between runs.

Layout of ``<stow dir>/.towboat/checksums.json``::

    {
      "version": 1,
      "entries": {
        "/home/me/.bashrc": {"hash": "<sha256>", "build_tag": "linux"}
      }
    }

Lifecycle: loaded once at run start, mutated in memory as writes succeed,
saved once at run end. A run that aborts never reaches :meth:`save`, so
the file on disk is left exactly as it was.

INVARIANT: only processed deployments have records. Link deployments
mirror their source by construction and are never tracked.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from towboat.domain.errors import DeployIOError

logger = logging.getLogger(__name__)

CACHE_DIRNAME = ".towboat"
CACHE_FILENAME = "checksums.json"
CACHE_VERSION = 1


class ChecksumRecord(BaseModel):
    """Last deployed content hash for one target."""

    model_config = {"frozen": True}

    hash: str
    build_tag: str


class _CacheDocument(BaseModel):
    version: int = CACHE_VERSION
    entries: dict[str, ChecksumRecord] = Field(default_factory=dict)


def default_cache_path(stow_dir: Path) -> Path:
    """Fixed cache location under the stow root."""
    return stow_dir / CACHE_DIRNAME / CACHE_FILENAME


class ChecksumCache:
    """In-memory view of the persisted checksum records.

    Keys are absolute target paths, so one cache can serve every package
    in a stow directory.
    """

    def __init__(self, path: Path, entries: dict[str, ChecksumRecord] | None = None) -> None:
        self.path = path
        self._entries: dict[str, ChecksumRecord] = dict(entries or {})
        self._dirty = False

    @classmethod
    def load(cls, path: Path) -> ChecksumCache:
        """Read the cache at *path*; a missing file is an empty cache.

        Raises:
            DeployIOError: the file exists but cannot be read or parsed.
        """
        if not path.exists():
            return cls(path)
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DeployIOError.wrap(exc, path=path, phase="classify") from exc
        try:
            doc = _CacheDocument.model_validate(json.loads(raw) if raw.strip() else {})
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Corrupt checksum cache {path}: {exc}"
            raise DeployIOError(msg, path=path, phase="classify") from exc
        logger.debug("Loaded %d checksum record(s) from %s", len(doc.entries), path)
        return cls(path, doc.entries)

    # ------------------------------------------------------------------
    # Record access
    # ------------------------------------------------------------------

    @staticmethod
    def key(target: Path) -> str:
        return str(target.absolute())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, target: object) -> bool:
        return isinstance(target, Path) and self.key(target) in self._entries

    @property
    def dirty(self) -> bool:
        """True once any record changed since load."""
        return self._dirty

    def get(self, target: Path) -> ChecksumRecord | None:
        return self._entries.get(self.key(target))

    def record(self, target: Path, digest: str, build_tag: str) -> None:
        """Remember *digest* as the content last written to *target*."""
        new = ChecksumRecord(hash=digest, build_tag=build_tag)
        if self._entries.get(self.key(target)) != new:
            self._entries[self.key(target)] = new
            self._dirty = True

    def forget(self, target: Path) -> bool:
        """Drop the record for *target*; returns whether one existed."""
        if self._entries.pop(self.key(target), None) is None:
            return False
        self._dirty = True
        return True

    def as_dict(self) -> dict[str, dict[str, str]]:
        return {k: v.model_dump() for k, v in sorted(self._entries.items())}

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Write the cache atomically via a tmp file + ``os.replace()``.

        Raises:
            DeployIOError: the cache directory or file cannot be written.
        """
        doc = {"version": CACHE_VERSION, "entries": self.as_dict()}
        tmp = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(doc, indent=2) + "\n", encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as exc:
            raise DeployIOError.wrap(exc, path=self.path, phase="write") from exc
        self._dirty = False
        logger.debug("Saved %d checksum record(s) to %s", len(self._entries), self.path)
