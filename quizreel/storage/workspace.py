from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional
from uuid import UUID


class JobWorkspace:
    """Scratch directory for one job run.

    Files are named by kind and question index, so two questions never share
    a path and the concatenation order follows the index.
    """

    def __init__(self, root: str | Path, logger: Optional[logging.Logger] = None) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.log = logger or logging.getLogger(__name__)

    @classmethod
    def for_job(cls, base_dir: str | Path, job_id: UUID, logger: Optional[logging.Logger] = None) -> "JobWorkspace":
        return cls(Path(base_dir) / str(job_id), logger=logger)

    def path(self, kind: str, index: int | None = None, suffix: str = "") -> str:
        name = kind if index is None else f"{kind}_{index}"
        return str(self.root / f"{name}{suffix}")

    def discard(self, path: str | None) -> None:
        if not path:
            return
        try:
            Path(path).unlink(missing_ok=True)
        except OSError:
            self.log.warning("failed to remove scratch file", extra={"path": path}, exc_info=True)

    def cleanup(self) -> None:
        if not self.root.exists():
            return
        try:
            shutil.rmtree(self.root)
        except OSError:
            self.log.warning("failed to remove job workspace", extra={"path": str(self.root)}, exc_info=True)
