"""Filesystem adapter — the only place towboat touches the disk.

Classification and deployment consume this narrow interface; tests and
dry-runs rely on every mutation passing through it. Failures surface as
ordinary ``OSError`` subclasses (``FileNotFoundError``, ``FileExistsError``
...); the service layer wraps them with path and phase context.

Text is read and written as raw UTF-8 bytes with no newline translation,
so ``content_hash(path)`` of a written file always equals
``hash_text(text)`` of what was written.
"""

from __future__ import annotations

import hashlib
import os
import shutil
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

_HASH_CHUNK = 1 << 16


@dataclass(frozen=True)
class WalkEntry:
    """One node yielded by :meth:`Filesystem.walk`."""

    path: Path
    is_dir: bool


def hash_text(text: str) -> str:
    """SHA-256 hex digest of *text* encoded as UTF-8."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class Filesystem:
    """Synchronous local-disk implementation of the adapter interface."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def read_text(self, path: Path) -> str:
        """Read *path* as UTF-8. Raises ``UnicodeDecodeError`` for binary files."""
        return path.read_bytes().decode("utf-8")

    def read_text_or_none(self, path: Path) -> str | None:
        """Like :meth:`read_text`, but None when the file is not valid UTF-8."""
        try:
            return self.read_text(path)
        except UnicodeDecodeError:
            return None

    def exists(self, path: Path) -> bool:
        """True if anything occupies *path*, including a dangling symlink."""
        return os.path.lexists(path)

    def is_link(self, path: Path) -> bool:
        return path.is_symlink()

    def is_dir(self, path: Path) -> bool:
        """True for a real directory (a symlink to a directory is not one)."""
        return path.is_dir() and not path.is_symlink()

    def resolves_to_dir(self, path: Path) -> bool:
        """True for a directory or a symlink whose destination is one."""
        return path.is_dir()

    def read_link(self, path: Path) -> Path:
        return Path(os.readlink(path))

    def links_to(self, link: Path, source: Path) -> bool:
        """True if *link* is a symlink whose destination is *source*."""
        if not link.is_symlink():
            return False
        dest = self.read_link(link)
        if not dest.is_absolute():
            dest = link.parent / dest
        return os.path.normpath(dest) == os.path.normpath(source.absolute())

    def content_hash(self, path: Path) -> str:
        """SHA-256 hex digest of the bytes at *path* (symlinks are followed)."""
        digest = hashlib.sha256()
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(_HASH_CHUNK), b""):
                digest.update(chunk)
        return digest.hexdigest()

    def walk(self, root: Path) -> Iterator[WalkEntry]:
        """Depth-first, top-down traversal below *root* (root itself excluded).

        Each directory is yielded before its contents, entries in name
        order. Symlinked directories are reported but not descended into.
        Single-pass: call again to restart.
        """
        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=False):
            dirnames.sort()
            base = Path(dirpath)
            for name in sorted(filenames):
                yield WalkEntry(base / name, is_dir=False)
            for name in dirnames:
                yield WalkEntry(base / name, is_dir=True)
            # Symlinked dirs stay in the listing but are not walked.
            dirnames[:] = [d for d in dirnames if not (base / d).is_symlink()]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def write_text(self, path: Path, text: str) -> None:
        path.write_bytes(text.encode("utf-8"))

    def create_dir_all(self, path: Path) -> None:
        path.mkdir(parents=True, exist_ok=True)

    def create_link(self, target: Path, source: Path) -> None:
        """Create a symlink at *target* pointing to *source*.

        Raises ``FileExistsError`` if *target* is occupied.
        """
        target.symlink_to(source.absolute())

    def remove(self, path: Path) -> None:
        """Unlink a file or symlink (never a directory)."""
        path.unlink()

    def copy_file(self, src: Path, dst: Path) -> None:
        """Copy the bytes of *src* over *dst*, following symlinks at *src*."""
        shutil.copyfile(src, dst)


def _raise(exc: OSError) -> None:
    raise exc
