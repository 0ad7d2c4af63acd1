"""Deployment planner — link or process each entry, guard edited targets.

Per entry the source is read once. A tag-bearing source is a *processed*
deployment: the section-stripped text is written to the target. Anything
else is a *link* deployment: a symlink at the target points at the source.

Processed writes are guarded by the checksum cache: a target whose
current hash differs from the last recorded one was edited outside
towboat, and overwriting it needs ``force``. Links are never tracked; a
regular file in a link's way needs ``force`` or ``adopt``.

Dry-run performs every read and every conflict check, and records the
same actions, but never mutates the disk or the cache.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

import structlog

from towboat.domain import sections
from towboat.domain.errors import (
    DeployIOError,
    LinkCollisionError,
    ModifiedTargetError,
    Phase,
)
from towboat.infrastructure.checksums import ChecksumCache
from towboat.infrastructure.filesystem import Filesystem, hash_text
from towboat.services.classify import DeployEntry

log = structlog.get_logger(__name__)

Mode = Literal["processed", "link"]
ActionKind = Literal["mkdir", "write", "link", "adopt", "unchanged", "remove", "skip"]


@dataclass(frozen=True)
class PlannedAction:
    """One planned (dry-run) or applied step."""

    action: ActionKind
    target: Path
    source: Path | None = None
    mode: Mode | None = None
    note: str | None = None

    def to_dict(self) -> dict[str, str | None]:
        return {
            "action": self.action,
            "source": str(self.source) if self.source is not None else None,
            "target": str(self.target),
            "mode": self.mode,
            "note": self.note,
        }


class DeploymentPlanner:
    """Apply (or simulate) deployments for one run.

    Owns the checksum cache for the run's duration; the caller persists
    it once every entry has been handled.
    """

    def __init__(
        self,
        fs: Filesystem,
        cache: ChecksumCache,
        *,
        build_tag: str,
        dry_run: bool = False,
        force: bool = False,
        adopt: bool = False,
    ) -> None:
        self._fs = fs
        self.cache = cache
        self.build_tag = build_tag
        self.dry_run = dry_run
        self.force = force
        self.adopt = adopt
        self.actions: list[PlannedAction] = []
        self.warnings: list[str] = []
        self._planned_dirs: set[Path] = set()

    # ------------------------------------------------------------------
    # Deploy
    # ------------------------------------------------------------------

    def deploy(self, entry: DeployEntry) -> None:
        """Deploy one classified entry.

        Raises:
            ModifiedTargetError: processed target edited since last deploy.
            LinkCollisionError: link target occupied by a regular file.
            DeployIOError: any filesystem failure.
        """
        try:
            content = self._fs.read_text_or_none(entry.source)
        except OSError as exc:
            raise DeployIOError.wrap(exc, path=entry.source, phase="process") from exc

        if content is not None and sections.has_any_section(content):
            self._deploy_processed(entry, sections.process(content, self.build_tag))
        else:
            self._deploy_link(entry)

    def _deploy_processed(self, entry: DeployEntry, text: str) -> None:
        target = entry.target
        new_hash = hash_text(text)
        note: str | None = None
        replace_link = False

        with _io(target, "write"):
            occupied = self._fs.exists(target)
            if occupied and self._fs.is_dir(target):
                msg = f"Cannot write processed file, a directory occupies {target}"
                raise DeployIOError(msg, path=target, phase="write")

            if occupied and self._fs.links_to(target, entry.source):
                replace_link = True
                note = "replaces link to source"
            elif occupied:
                self._check_unmodified(target)
                if self._fs.is_link(target):
                    replace_link = True
                    note = f"replaces link to {self._fs.read_link(target)}"
                elif self._current_hash(target) == new_hash:
                    self._record(PlannedAction("unchanged", target, entry.source, "processed"))
                    if not self.dry_run:
                        self.cache.record(target, new_hash, self.build_tag)
                    return

            self._ensure_parent(target)
            self._record(PlannedAction("write", target, entry.source, "processed", note))
            if self.dry_run:
                return
            if replace_link:
                self._fs.remove(target)
            self._fs.write_text(target, text)
            self.cache.record(target, new_hash, self.build_tag)

    def _deploy_link(self, entry: DeployEntry) -> None:
        target, source = entry.target, entry.source
        note: str | None = None
        action: ActionKind = "link"

        with _io(target, "write"):
            occupied = self._fs.exists(target)
            if occupied and self._fs.links_to(target, source):
                self._record(PlannedAction("unchanged", target, source, "link"))
                if not self.dry_run:
                    self.cache.forget(target)
                return

            if occupied and self._fs.is_link(target):
                note = f"replaces link to {self._fs.read_link(target)}"
            elif occupied and self._fs.is_dir(target):
                raise LinkCollisionError(target, reason="a directory occupies the target")
            elif occupied:
                record = self.cache.get(target)
                if record is not None and self._current_hash(target) == record.hash:
                    note = "replaces previously processed file"
                elif self.adopt:
                    action = "adopt"
                    note = "existing content copied back to the package"
                elif self.force:
                    note = "overwrites existing file"
                else:
                    raise LinkCollisionError(target)

            self._ensure_parent(target)
            self._record(PlannedAction(action, target, source, "link", note))
            if self.dry_run:
                return
            if action == "adopt":
                self._fs.copy_file(target, source)
            if occupied:
                self._fs.remove(target)
            self._fs.create_link(target, source)
            self.cache.forget(target)

    # ------------------------------------------------------------------
    # Remove
    # ------------------------------------------------------------------

    def remove(self, entry: DeployEntry) -> None:
        """Undo the deployment of one entry, if towboat owns the target.

        Raises:
            ModifiedTargetError: processed target edited since last deploy.
            DeployIOError: any filesystem failure.
        """
        target, source = entry.target, entry.source
        with _io(target, "write"):
            if not self._fs.exists(target):
                self._record(PlannedAction("skip", target, source, None, "not deployed"))
                return

            if self._fs.links_to(target, source):
                mode: Mode = "link"
            elif self._fs.is_link(target) or self._fs.is_dir(target):
                self._skip(target, source, "not managed by towboat")
                return
            elif self.cache.get(target) is None:
                self._skip(target, source, "no deployment record")
                return
            else:
                self._check_unmodified(target)
                mode = "processed"

            self._record(PlannedAction("remove", target, source, mode))
            if self.dry_run:
                return
            self._fs.remove(target)
            self.cache.forget(target)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_unmodified(self, target: Path) -> None:
        """Raise unless *target* still matches its checksum record (or force)."""
        record = self.cache.get(target)
        if record is None or self.force:
            return
        if self._current_hash(target) != record.hash:
            log.warning("deploy.modified_target", target=str(target))
            raise ModifiedTargetError(target)

    def _current_hash(self, target: Path) -> str | None:
        """Hash of what *target* holds now; None for a dangling symlink."""
        try:
            return self._fs.content_hash(target)
        except FileNotFoundError:
            return None

    def _ensure_parent(self, target: Path) -> None:
        parent = target.parent
        if parent in self._planned_dirs or self._fs.exists(parent):
            return
        self._planned_dirs.add(parent)
        self._record(PlannedAction("mkdir", parent))
        if not self.dry_run:
            self._fs.create_dir_all(parent)

    def _skip(self, target: Path, source: Path, reason: str) -> None:
        self._record(PlannedAction("skip", target, source, None, reason))
        self.warnings.append(f"Skipped {target}: {reason}")

    def _record(self, action: PlannedAction) -> None:
        self.actions.append(action)
        log.info(
            f"deploy.{action.action}",
            target=str(action.target),
            source=str(action.source) if action.source else None,
            mode=action.mode,
            dry_run=self.dry_run,
        )


@contextmanager
def _io(path: Path, phase: Phase) -> Iterator[None]:
    """Wrap ``OSError`` from the adapter into :class:`DeployIOError`."""
    try:
        yield
    except OSError as exc:
        raise DeployIOError.wrap(exc, path=path, phase=phase) from exc
