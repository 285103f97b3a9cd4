# fedora_installer/orchestrator/reversal.py
"""Replays the manifest backwards: LOADED -> PREVIEWED -> CONFIRMED -> EXECUTING -> DONE.

Every record is undone literally, newest first; records for the same path are
never merged. A path written N times is restored N times and ends at its oldest
backup. One failed record is reported and skipped, the rest still run.
"""
from __future__ import annotations
import os
from enum import Enum
from pathlib import Path
from typing import List

from loguru import logger
from pydantic import BaseModel

from ..worker.fs import fs_exists
from ..worker.privilege import PrivilegeStrategy
from .approval import Approval, ApprovalGate
from .context import RunContext
from .errors import BackupNotFound, InstallerError
from .journal import Journal, MutationKind, MutationRecord
from .logs import header
from .metrics import REVERSAL_STEPS_TOTAL
from .policy import InstallerConfig


class ReversalState(str, Enum):
    LOADED = "loaded"
    PREVIEWED = "previewed"
    CONFIRMED = "confirmed"
    EXECUTING = "executing"
    DONE = "done"
    ABORTED = "aborted"


class StepOutcome(str, Enum):
    REMOVED = "removed"
    RESTORED = "restored"
    ABSENT = "already_absent"
    SIMULATED = "dry_run"
    FAILED = "failed"


_PLAN_TAGS = {
    MutationKind.FILE_CREATED: ("[DELETE] ", "was newly created"),
    MutationKind.DIR_CREATED: ("[RMDIR]  ", "was newly created"),
    MutationKind.FILE_MODIFIED: ("[RESTORE]", "from {backup}"),
    MutationKind.DIR_MODIFIED: ("[RESTORE]", "from {backup}"),
}


class ReversalReport(BaseModel):
    state: ReversalState
    processed: int = 0
    failed: int = 0
    already_absent: int = 0
    symlink_removed: bool = False
    backup_locations: List[str] = []
    failures: List[str] = []

    @property
    def ok(self) -> bool:
        return self.failed == 0


class ReversalEngine:
    def __init__(self, ctx: RunContext, config: InstallerConfig, journal: Journal, gate: ApprovalGate,
                 privilege: PrivilegeStrategy):
        self.ctx = ctx
        self.config = config
        self.journal = journal
        self.gate = gate
        self.privilege = privilege
        self.records: List[MutationRecord] = []
        self.state: ReversalState | None = None

    # ---------- LOADED ----------
    def load(self) -> List[MutationRecord]:
        header("REVERSE MODE: Undoing Installation Changes")
        logger.info(f"Manifest file: {self.journal.path}")
        self.records = self.journal.read_all()
        self.state = ReversalState.LOADED
        return self.records

    # ---------- PREVIEWED ----------
    def preview(self) -> List[str]:
        lines = []
        for r in self.records:
            tag, note = _PLAN_TAGS[r.kind]
            lines.append(f"  {tag} {r.target_path}  ({note.format(backup=r.backup_path)})")
        if lines:
            logger.info("The following operations will be reversed:")
            for line in lines:
                logger.info(line)
        self.state = ReversalState.PREVIEWED
        return lines

    # ---------- CONFIRMED ----------
    def confirm(self) -> bool:
        n = len(self.records)
        if self.gate.confirm("Reversal", f"This will undo {n} recorded operations.") is Approval.DECLINED:
            logger.info("Reversal cancelled.")
            self.state = ReversalState.ABORTED
            return False
        self.state = ReversalState.CONFIRMED
        logger.warning("FINAL CONFIRMATION: All changes listed above will be reversed.")
        phrase = self.config.confirmation_phrase
        if self.gate.confirm_phrase(f"Type '{phrase}' to confirm", phrase) is Approval.DECLINED:
            logger.info("Reversal cancelled (confirmation text did not match).")
            self.state = ReversalState.ABORTED
            return False
        return True

    # ---------- EXECUTING -> DONE ----------
    def execute(self) -> ReversalReport:
        self.state = ReversalState.EXECUTING
        report = ReversalReport(state=self.state, backup_locations=self._backup_locations())
        logger.log("STEP", "Reversing changes...")

        for record in reversed(self.records):
            try:
                outcome = self._reverse_one(record)
            except BackupNotFound as e:
                logger.error(f"Backup not found: {e.backup_path} (cannot restore {record.target_path})")
                outcome = StepOutcome.FAILED
                report.failures.append(str(e))
            except (OSError, InstallerError) as e:
                verb = "remove" if record.kind.created else "restore"
                logger.error(f"Failed to {verb}: {record.target_path} ({e})")
                outcome = StepOutcome.FAILED
                report.failures.append(f"{verb} {record.target_path}: {e}")
            REVERSAL_STEPS_TOTAL.labels(kind=record.kind.value, outcome=outcome.value).inc()
            report.processed += 1
            if outcome is StepOutcome.FAILED:
                report.failed += 1
            elif outcome is StepOutcome.ABSENT:
                report.already_absent += 1

        report.symlink_removed = self._remove_launcher_symlink()
        self.state = report.state = ReversalState.DONE
        self._summarise(report)
        return report

    def _reverse_one(self, record: MutationRecord) -> StepOutcome:
        target = record.target_path
        ex = self.privilege.for_path(target)
        what = "directory" if record.kind.is_dir else "file"

        if record.kind.created:
            if not ex.exists(target):
                logger.log("VERBOSE", f"Already absent: {target}")
                return StepOutcome.ABSENT
            if self.ctx.dry_run:
                logger.info(f"[DRY-RUN] Would remove {what}{ex.label}: {target}")
                return StepOutcome.SIMULATED
            ex.remove(target)
            logger.success(f"Removed {what}{ex.label}: {target}")
            return StepOutcome.REMOVED

        if not fs_exists(record.backup_path):
            raise BackupNotFound(target, record.backup_path)
        if self.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would restore {what}{ex.label}: {target} <- {record.backup_path}")
            return StepOutcome.SIMULATED
        ex.remove(target)
        ex.copy(record.backup_path, target)
        logger.success(f"Restored {what}{ex.label}: {target}")
        return StepOutcome.RESTORED

    def _remove_launcher_symlink(self) -> bool:
        link = self.config.paths.bin_symlink
        if not os.path.islink(link):
            return False
        points_to = os.path.join(os.path.dirname(link), os.readlink(link))
        if os.path.abspath(points_to) != self.config.launcher_path:
            logger.log("VERBOSE", f"Leaving symlink {link}: points at {points_to}, not the launcher")
            return False
        ex = self.privilege.for_path(link)
        if self.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would remove symlink{ex.label}: {link}")
            return False
        try:
            ex.remove(link)
        except (OSError, InstallerError) as e:
            logger.error(f"Failed to remove symlink: {link} ({e})")
            return False
        logger.success(f"Removed symlink{ex.label}: {link}")
        return True

    def _backup_locations(self) -> List[str]:
        state_dir = Path(self.ctx.state_dir).resolve()
        found = set()
        for r in self.records:
            if r.backup_path is None:
                continue
            try:
                found.add(str(state_dir / Path(r.backup_path).resolve().relative_to(state_dir).parts[0]))
            except ValueError:
                found.add(os.path.dirname(r.backup_path))
        return sorted(found)

    def _summarise(self, report: ReversalReport) -> None:
        if report.failed:
            logger.error(f"Reversal finished with {report.failed} failure(s) out of {report.processed} record(s).")
        else:
            logger.success(f"Reversal complete: {report.processed} record(s) processed.")
        if report.backup_locations:
            logger.info("Backups are preserved in:")
            for loc in report.backup_locations:
                logger.info(f"  {loc}")
        else:
            logger.info(f"Backup store: {self.ctx.state_dir}")
        logger.info("You may delete them manually when satisfied.")

    # ---------- driver ----------
    def run(self) -> ReversalReport:
        self.load()
        self.preview()
        if not self.records:
            logger.warning("Manifest is empty, nothing to reverse")
            self.state = ReversalState.DONE
            return ReversalReport(state=self.state)
        if not self.confirm():
            return ReversalReport(state=ReversalState.ABORTED)
        return self.execute()
