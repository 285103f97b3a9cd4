# fedora_installer/worker/backup.py
"""Backup store: pre-mutation snapshots, mirrored under a timestamped run directory.

``/home/u/.config/x`` is kept at ``<state>/<run_id>/home/u/.config/x``. A second
snapshot of the same path in one run (or one that would land inside an earlier
snapshot's tree) goes to the next layer, ``<run_id>.1``, then ``<run_id>.2``, so
layers read oldest first and no snapshot ever overwrites or nests in another.
"""
from __future__ import annotations
import os
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel

from ..orchestrator.context import RunContext
from ..orchestrator.errors import BackupFailed
from ..orchestrator.metrics import BACKUPS_TOTAL
from .fs import fs_copy, fs_delete, fs_exists, fs_is_dir


class BackupResult(BaseModel):
    existed: bool
    is_dir: bool = False
    backup_path: Optional[str] = None
    synthetic: bool = False


class BackupStore:
    def __init__(self, ctx: RunContext):
        self.ctx = ctx
        self.root = Path(ctx.backup_dir)
        self._taken: List[str] = []
        # dry-run only: paths a simulated mutation would have created (path -> is_dir)
        self._simulated: Dict[str, bool] = {}

    def simulate_present(self, path: str, is_dir: bool) -> None:
        self._simulated[os.path.abspath(path)] = is_dir

    def present(self, path: str) -> Tuple[bool, bool]:
        """(exists, is_dir), counting paths created earlier in this dry run."""
        path = os.path.abspath(path)
        if fs_exists(path):
            return True, fs_is_dir(path)
        if self.ctx.dry_run and path in self._simulated:
            return True, self._simulated[path]
        return False, False

    def _layer(self, n: int) -> Path:
        return self.root if n == 0 else self.root.with_name(f"{self.root.name}.{n}")

    def _conflicts(self, candidate: str) -> bool:
        if os.path.lexists(candidate):
            return True
        for t in self._taken:
            if candidate == t or candidate.startswith(t + os.sep) or t.startswith(candidate + os.sep):
                return True
        return False

    def location_for(self, path: str) -> str:
        rel = os.path.abspath(path).lstrip(os.sep)
        n = 0
        while True:
            candidate = str(self._layer(n) / rel)
            if not self._conflicts(candidate):
                return candidate
            n += 1

    def snapshot(self, path: str) -> BackupResult:
        path = os.path.abspath(path)
        existed, is_dir = self.present(path)
        if not existed:
            logger.log("VERBOSE", f"No existing file to back up: {path}")
            return BackupResult(existed=False)

        dest = self.location_for(path)
        what = "directory" if is_dir else "file"

        if self.ctx.dry_run:
            self._taken.append(dest)
            logger.log("BACKUP", f"[DRY-RUN] Would back up {what}: {path} -> {dest}")
            return BackupResult(existed=True, is_dir=is_dir, backup_path=dest, synthetic=True)

        try:
            fs_copy(path, dest)
        except OSError as e:
            BACKUPS_TOTAL.labels(outcome="failed").inc()
            self._discard_partial(dest)
            raise BackupFailed(path, f"{type(e).__name__}: {e}") from e
        if not fs_exists(dest):
            BACKUPS_TOTAL.labels(outcome="failed").inc()
            raise BackupFailed(path, f"snapshot missing after copy: {dest}")

        self._taken.append(dest)
        BACKUPS_TOTAL.labels(outcome="ok").inc()
        logger.log("BACKUP", f"Backed up {what}: {path}")
        logger.log("VERBOSE", f"  -> {dest}")
        return BackupResult(existed=True, is_dir=is_dir, backup_path=dest)

    @staticmethod
    def _discard_partial(dest: str) -> None:
        try:
            fs_delete(dest)
        except OSError as e:
            logger.warning(f"Could not remove partial backup {dest}: {e}")
