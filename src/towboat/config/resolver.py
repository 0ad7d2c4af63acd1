"""Configuration resolution — include this path under this tag, and where?

Configurations are keyed by the package-relative directory that declares
them. For any candidate path only the *nearest* declaring ancestor is
consulted; a configuration further up never contributes once a nearer one
exists (override, not merge). Within that one configuration:

1. an explicit ``[targets]`` entry for the path wins,
2. then the nearest ancestor directory with an explicit entry, whose tags
   the path inherits and under whose target it is rebased,
3. then the ``[default]`` policy.

With no configuration anywhere up to the package root, legacy rules apply:
a ``.<tag>`` filename suffix, or a section for the tag in the file body.
A ``boat.toml`` that fails to parse counts as the nearest configuration
for its subtree but declares nothing, so paths below it resolve in legacy
mode too; an ancestor configuration never fills in for it.

File content is never read here. Callers pass a zero-argument callable
that returns the file's text (or None for binary files); it is invoked
only when a rule actually needs content.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Literal

from towboat.config.discovery import load_config
from towboat.config.models import PackageConfig, TargetRule
from towboat.domain.errors import ConfigParseError
from towboat.domain.sections import has_any_section, has_section

logger = logging.getLogger(__name__)

ContentLoader = Callable[[], str | None]

RuleKind = Literal[
    "explicit",
    "inherited",
    "default",
    "unconfigured",
    "legacy-filename",
    "legacy-content",
    "legacy-none",
]

_ROOT = PurePosixPath(".")


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one path.

    Attributes:
        include: Whether the path is deployed under the active tag.
        target: Destination relative to the target directory.
        rule: Which resolution step decided.
        config_dir: Package-relative directory of the deciding
            configuration, or None in legacy mode.
    """

    include: bool
    target: PurePosixPath
    rule: RuleKind
    config_dir: PurePosixPath | None = None


def _no_content() -> str | None:
    return None


# ---------------------------------------------------------------------------
# ConfigIndex — declaring directory -> PackageConfig, with memoized lookup
# ---------------------------------------------------------------------------


class ConfigIndex:
    """Discovered configurations of one package, keyed by declaring directory.

    Directories are package-relative :class:`PurePosixPath` values; the
    package root is ``PurePosixPath(".")``. :meth:`nearest` memoizes per
    directory, so resolving every file of a deep tree stays linear.
    """

    def __init__(self) -> None:
        self._configs: dict[PurePosixPath, PackageConfig] = {}
        self._broken: set[PurePosixPath] = set()
        self._nearest: dict[PurePosixPath, PurePosixPath | None] = {}
        self.errors: list[ConfigParseError] = []

    def __len__(self) -> int:
        return len(self._configs)

    def __contains__(self, directory: object) -> bool:
        return directory in self._configs

    def get(self, directory: PurePosixPath) -> PackageConfig | None:
        return self._configs.get(directory)

    def register(self, directory: PurePosixPath, config: PackageConfig) -> None:
        """Record *config* as declared by *directory*."""
        self._configs[directory] = config
        self._forget_below(directory)

    def mark_broken(self, directory: PurePosixPath) -> None:
        """Record that *directory* declares a configuration that failed to parse."""
        self._broken.add(directory)
        self._forget_below(directory)

    def _forget_below(self, directory: PurePosixPath) -> None:
        # Drop memoized answers a new declaration could shadow.
        stale = [d for d in self._nearest if d == directory or directory in d.parents]
        for d in stale:
            del self._nearest[d]

    def load_into(self, directory: PurePosixPath, config_path: Path) -> PackageConfig | None:
        """Parse *config_path* and register it; parse failures are recorded, not raised."""
        try:
            config = load_config(config_path)
        except ConfigParseError as exc:
            logger.warning("Ignoring unparseable %s: %s", config_path, exc.message)
            self.errors.append(exc)
            self.mark_broken(directory)
            return None
        self.register(directory, config)
        return config

    def nearest(self, directory: PurePosixPath) -> tuple[PurePosixPath, PackageConfig] | None:
        """The nearest declaring directory at or above *directory*, with its config.

        None when no directory up to the root declares one, or when the
        nearest declaration is unparseable.
        """
        declaring = self._nearest_dir(directory)
        if declaring is None or declaring in self._broken:
            return None
        return declaring, self._configs[declaring]

    def _nearest_dir(self, directory: PurePosixPath) -> PurePosixPath | None:
        if directory in self._nearest:
            return self._nearest[directory]
        if directory in self._configs or directory in self._broken:
            found: PurePosixPath | None = directory
        elif directory == _ROOT:
            found = None
        else:
            found = self._nearest_dir(directory.parent)
        self._nearest[directory] = found
        return found


# ---------------------------------------------------------------------------
# ConfigResolver
# ---------------------------------------------------------------------------


class ConfigResolver:
    """Answer ``(include, target)`` for package-relative paths under one tag."""

    def __init__(self, index: ConfigIndex, build_tag: str) -> None:
        if not build_tag:
            msg = "build_tag must be a non-empty string"
            raise ValueError(msg)
        self.index = index
        self.build_tag = build_tag

    def resolve(
        self,
        path: PurePosixPath,
        *,
        content: ContentLoader = _no_content,
    ) -> Resolution:
        """Resolve one package-relative *path*.

        Directory entries live in their parent's configuration, so the
        lookup always starts from ``path.parent``.
        """
        found = self.index.nearest(path.parent)
        if found is None:
            return self._resolve_legacy(path, content)

        config_dir, config = found
        local = path.relative_to(config_dir)

        rule = config.targets.get(local.as_posix())
        if rule is not None:
            return self._from_rule(rule, config_dir, "explicit")

        inherited = self._inherited(config, local)
        if inherited is not None:
            ancestor, ancestor_rule = inherited
            remainder = local.relative_to(ancestor)
            return Resolution(
                include=ancestor_rule.matches(self.build_tag),
                target=config_dir / ancestor_rule.target_path / remainder,
                rule="inherited",
                config_dir=config_dir,
            )

        return self._resolve_default(config, config_dir, local, content)

    # -- steps ---------------------------------------------------------

    def _from_rule(self, rule: TargetRule, config_dir: PurePosixPath, kind: RuleKind) -> Resolution:
        return Resolution(
            include=rule.matches(self.build_tag),
            target=_clean(config_dir / rule.target_path),
            rule=kind,
            config_dir=config_dir,
        )

    @staticmethod
    def _inherited(
        config: PackageConfig, local: PurePosixPath
    ) -> tuple[PurePosixPath, TargetRule] | None:
        """Nearest ancestor of *local* (within the config's scope) with an entry."""
        for ancestor in local.parents:
            if ancestor == _ROOT:
                break
            rule = config.targets.get(ancestor.as_posix())
            if rule is not None:
                return ancestor, rule
        return None

    def _resolve_default(
        self,
        config: PackageConfig,
        config_dir: PurePosixPath,
        local: PurePosixPath,
        content: ContentLoader,
    ) -> Resolution:
        target = _clean(config_dir / local)
        policy = config.default
        if policy is None or not policy.include_all:
            return Resolution(False, target, "unconfigured", config_dir)

        if policy.default_tag is None or policy.default_tag == self.build_tag:
            return Resolution(True, target, "default", config_dir)

        text = content()
        include = text is not None and has_any_section(text) and has_section(text, self.build_tag)
        return Resolution(include, target, "default", config_dir)

    def _resolve_legacy(self, path: PurePosixPath, content: ContentLoader) -> Resolution:
        suffix = f".{self.build_tag}"
        if suffix in path.name:
            stripped = path.name.replace(suffix, "")
            if stripped:
                return Resolution(True, path.parent / stripped, "legacy-filename")

        text = content()
        if text is not None and has_section(text, self.build_tag):
            return Resolution(True, path, "legacy-content")
        return Resolution(False, path, "legacy-none")


def _clean(path: PurePosixPath) -> PurePosixPath:
    """Drop a leading ``.`` component left by joining onto the package root."""
    return PurePosixPath(*path.parts) if path.parts else path
