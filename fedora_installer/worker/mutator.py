# fedora_installer/worker/mutator.py
"""The only sanctioned way for installer phases to change the filesystem.

Every call: snapshot -> journal -> mutate. The record is on disk before the
mutation starts and is never retracted if the mutation fails, so the manifest
may over-report intent but never under-reports a change.
"""
from __future__ import annotations
import os
from typing import Callable, List, Optional

from loguru import logger
from pydantic import ValidationError

from ..orchestrator.context import RunContext
from ..orchestrator.errors import InstallerError, MutationFailed
from ..orchestrator.journal import Journal, MutationKind, MutationRecord
from ..orchestrator.metrics import MUTATIONS_TOTAL
from .backup import BackupStore
from .privilege import DirectExecutor, PrivilegeStrategy

# (executor, target_path) -> None
Writer = Callable[[DirectExecutor, str], None]


class DryRunExecutor:
    """Takes the place of the real executor inside dry-run writers and builders.

    Nothing touches the disk; whatever would now exist is reported to the backup
    store so later presence checks in the same dry run see it.
    """

    def __init__(self, backups: BackupStore, inner: DirectExecutor):
        self.backups = backups
        self.elevated = inner.elevated
        self.label = inner.label

    def _mark(self, path: str, is_dir: bool) -> None:
        parent = os.path.dirname(os.path.abspath(path))
        while parent != os.path.dirname(parent) and not self.backups.present(parent)[0]:
            self.backups.simulate_present(parent, True)
            parent = os.path.dirname(parent)
        self.backups.simulate_present(path, is_dir)
        logger.log("VERBOSE", f"[DRY-RUN]   {'dir ' if is_dir else 'file'}{self.label}: {path}")

    def exists(self, path: str) -> bool:
        return self.backups.present(path)[0]

    def remove(self, path: str) -> bool:
        if self.exists(path):
            logger.log("VERBOSE", f"[DRY-RUN]   would remove{self.label}: {path}")
        return False

    def copy(self, src: str, dst: str) -> None:
        self._mark(dst, self.backups.present(src)[1])

    def makedirs(self, path: str, mode: Optional[int] = None) -> None:
        self._mark(path, True)

    def write_text(self, path: str, content: str, mode: Optional[int] = None) -> None:
        self._mark(path, False)

    def symlink(self, target: str, link: str) -> None:
        self._mark(link, False)

    def chmod(self, path: str, mode: int) -> None:
        pass


class GuardedMutator:
    def __init__(self, ctx: RunContext, journal: Journal, backups: BackupStore, privilege: PrivilegeStrategy):
        self.ctx = ctx
        self.journal = journal
        self.backups = backups
        self.privilege = privilege

    # ---------- primitives ----------
    def mutate_file(self, path: str, writer: Writer, action: str = "write", source: Optional[str] = None) -> MutationRecord:
        return self._mutate(path, writer, is_dir=False, action=action, source=source)

    def mutate_directory(self, path: str, builder: Writer, action: str = "build", source: Optional[str] = None) -> MutationRecord:
        return self._mutate(path, builder, is_dir=True, action=action, source=source)

    def _mutate(self, path: str, fn: Writer, is_dir: bool, action: str, source: Optional[str]) -> MutationRecord:
        path = os.path.abspath(path)
        logger.log("VERBOSE", f"Mutating ({action}): {source or '-'} -> {path}")
        try:
            MutationRecord(kind=MutationKind.of(is_dir, existed=False), target_path=path)
        except ValidationError as e:
            raise MutationFailed(path, action, f"path cannot be journaled: {e.errors()[0]['msg']}") from e

        snap = self.backups.snapshot(path)
        kind = MutationKind.of(snap.is_dir if snap.existed else is_dir, existed=snap.existed)
        record = MutationRecord(kind=kind, target_path=path, backup_path=snap.backup_path)
        self.journal.append(record)

        executor = self.privilege.for_path(path)
        if self.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would {action}{executor.label}: {path}")
            self.backups.simulate_present(path, is_dir)
            executor = DryRunExecutor(self.backups, executor)

        try:
            fn(executor, path)
        except (OSError, InstallerError) as e:
            MUTATIONS_TOTAL.labels(kind=kind.value, outcome="failed").inc()
            logger.error(f"Failed to {action}{executor.label}: {path} ({e})")
            raise MutationFailed(path, action, str(e)) from e

        if self.ctx.dry_run:
            MUTATIONS_TOTAL.labels(kind=kind.value, outcome="dry_run").inc()
            return record
        MUTATIONS_TOTAL.labels(kind=kind.value, outcome="ok").inc()
        logger.log("VERBOSE", f"  Completed ({kind.value}){executor.label}: {path}")
        return record

    # ---------- conveniences used by the phases ----------
    def ensure_directory(self, path: str, mode: Optional[int] = None) -> List[MutationRecord]:
        """mkdir -p, journaling each level that did not exist, outermost first."""
        path = os.path.abspath(path)
        missing: List[str] = []
        cur = path
        while True:
            exists, is_dir = self.backups.present(cur)
            if exists:
                if not is_dir:
                    raise MutationFailed(cur, "mkdir", "exists and is not a directory")
                break
            missing.append(cur)
            parent = os.path.dirname(cur)
            if parent == cur:
                break
            cur = parent
        if not missing:
            logger.log("VERBOSE", f"  Exists:  {path}")
            return []
        records = []
        for d in reversed(missing):
            leaf_mode = mode if d == path else None
            records.append(self.mutate_directory(
                d, lambda ex, p, m=leaf_mode: ex.makedirs(p, m), action="mkdir"))
        return records

    def write_file(self, path: str, content: str, mode: Optional[int] = None) -> MutationRecord:
        self.ensure_directory(os.path.dirname(os.path.abspath(path)))
        return self.mutate_file(path, lambda ex, p: ex.write_text(p, content, mode), action="write")

    def copy_file(self, src: str, dst: str, mode: Optional[int] = None) -> MutationRecord:
        self.ensure_directory(os.path.dirname(os.path.abspath(dst)))

        def _copy(ex: DirectExecutor, p: str) -> None:
            ex.remove(p)
            ex.copy(src, p)
            if mode is not None:
                ex.chmod(p, mode)
        return self.mutate_file(dst, _copy, action="copy", source=src)

    def symlink(self, target: str, link_path: str) -> MutationRecord:
        self.ensure_directory(os.path.dirname(os.path.abspath(link_path)))
        return self.mutate_file(link_path, lambda ex, p: ex.symlink(target, p), action="symlink", source=target)

    def replace_directory(self, path: str, builder: Writer) -> MutationRecord:
        """Drop whatever is at ``path`` and let ``builder`` populate a fresh tree."""
        self.ensure_directory(os.path.dirname(os.path.abspath(path)))

        def _replace(ex: DirectExecutor, p: str) -> None:
            if ex.remove(p):
                logger.log("VERBOSE", f"Removed previous tree{ex.label}: {p}")
            ex.makedirs(p)
            builder(ex, p)
        return self.mutate_directory(path, _replace, action="replace")
