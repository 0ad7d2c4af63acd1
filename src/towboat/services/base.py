"""BaseService — shared foundation for towboat services.

Every service receives the :class:`Filesystem` adapter at construction
time; nothing below the service layer reaches the disk any other way.
"""

from __future__ import annotations

from towboat.infrastructure.filesystem import Filesystem


class BaseService:
    """Base for service-layer classes.

    Usage::

        class DeployService(BaseService):
            def deploy(self, request: DeployRequest) -> ServiceResult:
                entries = PathClassifier(self._fs, ...).classify(...)
                ...
    """

    def __init__(self, fs: Filesystem | None = None) -> None:
        self._fs = fs if fs is not None else Filesystem()
