"""
Render request model and per-request workspace.
"""

import logging
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger(__name__)


class WorkspaceError(Exception):
    """Temporary workspace could not be allocated."""


class Workspace:
    """
    Temporary directory owned by a single request.

    Usable as a context manager; remove() is idempotent so it can be called
    from every exit path without coordination.
    """

    def __init__(self, prefix: str = "kwk", base_dir: Optional[str] = None):
        try:
            self.path = Path(tempfile.mkdtemp(prefix=prefix, dir=base_dir))
        except OSError as e:
            raise WorkspaceError(f"cannot create temporary workspace: {e}") from e
        self._removed = False

    def remove(self) -> None:
        if self._removed:
            return
        self._removed = True
        shutil.rmtree(self.path, ignore_errors=True)
        if self.path.exists():
            logger.warning(f"Workspace not fully removed: {self.path}")

    @property
    def removed(self) -> bool:
        return self._removed

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.remove()


@dataclass
class RenderRequest:
    """One HTTP call's unit of work."""

    workspace: Workspace
    args: List[str] = field(default_factory=list)
    doc_output: bool = False
