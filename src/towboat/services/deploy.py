"""DeployService — the run boundary for deploy and remove.

One call is one run: check the source, classify the package, load the
checksum cache, hand every entry to the planner, persist the cache.
The first fatal error stops the run; whatever was applied before it stays
on disk and the cache file is left untouched.
"""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from towboat.domain.errors import MissingSourceError, TowboatError
from towboat.infrastructure.checksums import ChecksumCache, default_cache_path
from towboat.services.base import BaseService
from towboat.services.classify import DeployEntry, PathClassifier
from towboat.services.planner import DeploymentPlanner
from towboat.services.result import ServiceError, ServiceResult
from towboat.services.telemetry import trace_span, traced

logger = logging.getLogger(__name__)


class DeployRequest(BaseModel):
    """Everything the core needs for one run, supplied by the CLI."""

    model_config = {"frozen": True}

    source_dir: Path
    target_dir: Path
    build_tag: str = Field(min_length=1)
    dry_run: bool = False
    force: bool = False
    adopt: bool = False
    cache_path: Path | None = None

    @property
    def checksum_path(self) -> Path:
        """Explicit cache path, or the fixed location under the stow root."""
        if self.cache_path is not None:
            return self.cache_path
        return default_cache_path(self.source_dir.absolute().parent)


_Step = Callable[[DeploymentPlanner, DeployEntry], None]


class DeployService(BaseService):
    """Deploy or remove one package."""

    @traced
    def deploy(self, request: DeployRequest) -> ServiceResult:
        """Deploy the package in *request* into its target directory."""
        return self._run("deploy", request, DeploymentPlanner.deploy)

    @traced
    def remove(self, request: DeployRequest) -> ServiceResult:
        """Remove whatever this package deployed into its target directory."""
        return self._run("remove", request, DeploymentPlanner.remove)

    # ------------------------------------------------------------------

    def _run(self, op: str, request: DeployRequest, step: _Step) -> ServiceResult:
        source = request.source_dir.absolute()
        target_dir = request.target_dir.absolute()
        warnings: list[str] = []
        planner: DeploymentPlanner | None = None
        data: dict[str, Any] = {
            "package": source.name,
            "source_dir": str(source),
            "target_dir": str(target_dir),
            "build_tag": request.build_tag,
            "dry_run": request.dry_run,
        }

        try:
            if not self._fs.resolves_to_dir(source):
                raise MissingSourceError(source)

            with trace_span("classify") as span:
                classifier = PathClassifier(self._fs, source, request.build_tag)
                classification = classifier.classify(target_dir)
                if span:
                    span.annotate("entries", len(classification.entries))
            warnings.extend(classification.warnings)
            data["count"] = len(classification.entries)
            data["configs"] = classification.config_dirs

            cache = ChecksumCache.load(request.checksum_path)
            planner = DeploymentPlanner(
                self._fs,
                cache,
                build_tag=request.build_tag,
                dry_run=request.dry_run,
                force=request.force,
                adopt=request.adopt,
            )

            if not classification.entries:
                warnings.append(f"No files found matching build tag '{request.build_tag}'")

            with trace_span(op):
                for entry in classification.entries:
                    step(planner, entry)
            warnings.extend(planner.warnings)

            if not request.dry_run and cache.dirty:
                with trace_span("persist"):
                    cache.save()
        except TowboatError as exc:
            logger.debug("%s failed during %s: %s", op, exc.phase, exc.message)
            if planner is not None:
                data.update(_summarize(planner))
            return ServiceResult(
                ok=False,
                op=op,
                data=data,
                warnings=warnings,
                error=ServiceError(code=exc.code, message=exc.message, detail=exc.detail()),
            )

        data.update(_summarize(planner))
        return ServiceResult(ok=True, op=op, data=data, warnings=warnings)


def _summarize(planner: DeploymentPlanner) -> dict[str, Any]:
    counts = Counter(a.action for a in planner.actions)
    return {
        "summary": dict(sorted(counts.items())),
        "actions": [a.to_dict() for a in planner.actions],
    }
