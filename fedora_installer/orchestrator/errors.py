# fedora_installer/orchestrator/errors.py
from __future__ import annotations
from typing import Optional


class InstallerError(Exception):
    """Operational failure; carries the path and attempted action when known."""

    def __init__(self, message: str, path: Optional[str] = None, action: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.action = action

    def __str__(self) -> str:
        parts = [self.message]
        if self.action:
            parts.append(f"action={self.action}")
        if self.path:
            parts.append(f"path={self.path}")
        return " | ".join(parts)


class ConfigError(InstallerError):
    pass


class BackupFailed(InstallerError):
    def __init__(self, path: str, reason: str):
        super().__init__(f"backup failed: {reason}", path=path, action="backup")


class MutationFailed(InstallerError):
    def __init__(self, path: str, action: str, reason: str):
        super().__init__(f"mutation failed: {reason}", path=path, action=action)


class NoJournal(InstallerError):
    def __init__(self, path: str):
        super().__init__("no manifest found, nothing to reverse", path=path, action="load")


class JournalCorrupt(InstallerError):
    def __init__(self, path: str, line_no: int, line: str):
        super().__init__(f"unreadable manifest line {line_no}: {line!r}", path=path, action="load")
        self.line_no = line_no


class BackupNotFound(InstallerError):
    def __init__(self, path: str, backup_path: str):
        super().__init__(f"backup not found: {backup_path}", path=path, action="restore")
        self.backup_path = backup_path


class PreflightFailed(InstallerError):
    pass


class CommandFailed(InstallerError):
    def __init__(self, cmd: str, result: dict, path: Optional[str] = None):
        detail = result.get("error") or (result.get("stderr") or "").strip() or f"exit {result.get('code')}"
        super().__init__(f"command failed: {cmd}: {detail}", path=path, action="exec")
        self.result = result


class UserDeclined(Exception):
    """Graceful abort: the operator said no. Not an error."""

    def __init__(self, phase: str):
        super().__init__(f"declined: {phase}")
        self.phase = phase
