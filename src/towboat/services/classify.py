"""Path classification — one walk over a package, one decision per file.

The walk is top-down, so a directory's ``boat.toml`` is registered before
any path beneath it is resolved. Directories are visited only to seed
that state; they are never deployable entries themselves.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from towboat.config.discovery import CONFIG_FILENAME
from towboat.config.resolver import ConfigIndex, ConfigResolver, RuleKind
from towboat.domain.errors import DeployIOError
from towboat.infrastructure.filesystem import Filesystem

logger = logging.getLogger(__name__)

_ROOT = PurePosixPath(".")


@dataclass(frozen=True)
class ResolvedEntry:
    """Per-path decision, recomputed every run and never persisted."""

    source: Path
    target: PurePosixPath
    included: bool
    is_dir: bool
    rule: RuleKind


@dataclass(frozen=True)
class DeployEntry:
    """An included file: absolute source and absolute target."""

    source: Path
    target: Path


@dataclass
class Classification:
    """Everything one walk produced."""

    entries: list[DeployEntry] = field(default_factory=list)
    resolved: list[ResolvedEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    config_dirs: list[str] = field(default_factory=list)


class PathClassifier:
    """Walk a package and resolve every file against its configuration."""

    def __init__(self, fs: Filesystem, package_root: Path, build_tag: str) -> None:
        self._fs = fs
        self.package_root = package_root.absolute()
        self.index = ConfigIndex()
        self.resolver = ConfigResolver(self.index, build_tag)

    def classify(self, target_dir: Path) -> Classification:
        """Return the ordered-by-discovery deployment list for *target_dir*.

        Raises:
            DeployIOError: the walk or a content read failed.
        """
        result = Classification()
        try:
            self._load_config(_ROOT, self.package_root)
            if _ROOT in self.index:
                result.config_dirs.append(_ROOT.as_posix())
            for node in self._fs.walk(self.package_root):
                rel = PurePosixPath(node.path.relative_to(self.package_root).as_posix())
                if node.is_dir:
                    self._load_config(rel, node.path)
                    self._visit_dir(node.path, rel, result)
                elif node.path.name != CONFIG_FILENAME:
                    self._visit_file(node.path, rel, target_dir, result)
        except OSError as exc:
            path = getattr(exc, "filename", None) or self.package_root
            raise DeployIOError.wrap(exc, path=path, phase="classify") from exc

        for err in self.index.errors:
            result.warnings.append(f"Ignored invalid configuration: {err.message}")
        self._warn_duplicate_targets(result)
        return result

    # ------------------------------------------------------------------

    def _load_config(self, rel: PurePosixPath, directory: Path) -> None:
        config_path = directory / CONFIG_FILENAME
        if config_path.is_file() and self.index.load_into(rel, config_path) is not None:
            logger.debug("Registered configuration for %s", rel)

    def _visit_dir(self, path: Path, rel: PurePosixPath, result: Classification) -> None:
        resolution = self.resolver.resolve(rel)
        result.resolved.append(
            ResolvedEntry(path, resolution.target, resolution.include, True, resolution.rule)
        )
        if rel in self.index:
            result.config_dirs.append(rel.as_posix())

    def _visit_file(
        self,
        path: Path,
        rel: PurePosixPath,
        target_dir: Path,
        result: Classification,
    ) -> None:
        content = functools.cache(functools.partial(self._fs.read_text_or_none, path))
        resolution = self.resolver.resolve(rel, content=content)
        result.resolved.append(
            ResolvedEntry(path, resolution.target, resolution.include, False, resolution.rule)
        )
        logger.debug(
            "Resolved %s -> %s (include=%s, rule=%s)",
            rel,
            resolution.target,
            resolution.include,
            resolution.rule,
        )
        if resolution.include:
            result.entries.append(DeployEntry(path, target_dir / resolution.target))

    @staticmethod
    def _warn_duplicate_targets(result: Classification) -> None:
        seen: dict[Path, Path] = {}
        for entry in result.entries:
            previous = seen.get(entry.target)
            if previous is not None:
                result.warnings.append(
                    f"{previous} and {entry.source} both deploy to {entry.target}; "
                    "the later one wins"
                )
            seen[entry.target] = entry.source
