# fedora_installer/orchestrator/journal.py
"""Append-only manifest of filesystem mutations.

One record per line, ``KIND|target[|backup]``. Appends are fsynced before
returning so a mutation never runs ahead of its record. There is no locking:
only one installer process may use a state directory at a time.
"""
from __future__ import annotations
import os
from enum import Enum
from pathlib import Path
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from .context import RunContext
from .errors import JournalCorrupt, NoJournal

_SEP = "|"


class MutationKind(str, Enum):
    FILE_CREATED = "CREATED"
    DIR_CREATED = "CREATED_DIR"
    FILE_MODIFIED = "MODIFIED"
    DIR_MODIFIED = "MODIFIED_DIR"

    @property
    def created(self) -> bool:
        return self in (MutationKind.FILE_CREATED, MutationKind.DIR_CREATED)

    @property
    def is_dir(self) -> bool:
        return self in (MutationKind.DIR_CREATED, MutationKind.DIR_MODIFIED)

    @classmethod
    def of(cls, is_dir: bool, existed: bool) -> "MutationKind":
        if is_dir:
            return cls.DIR_MODIFIED if existed else cls.DIR_CREATED
        return cls.FILE_MODIFIED if existed else cls.FILE_CREATED


class MutationRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: MutationKind
    target_path: str
    backup_path: Optional[str] = None

    @field_validator("target_path", "backup_path")
    @classmethod
    def _plain_absolute(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not os.path.isabs(v):
            raise ValueError(f"path must be absolute: {v}")
        if _SEP in v or "\n" in v:
            raise ValueError(f"path cannot be journaled (contains '|' or newline): {v!r}")
        return v

    @model_validator(mode="after")
    def _backup_matches_kind(self) -> "MutationRecord":
        if self.kind.created and self.backup_path is not None:
            raise ValueError(f"{self.kind.value} record cannot carry a backup")
        if not self.kind.created and self.backup_path is None:
            raise ValueError(f"{self.kind.value} record needs a backup path")
        return self

    def to_line(self) -> str:
        fields = [self.kind.value, self.target_path]
        if self.backup_path is not None:
            fields.append(self.backup_path)
        return _SEP.join(fields)

    @classmethod
    def from_line(cls, line: str) -> "MutationRecord":
        parts = line.split(_SEP)
        if len(parts) not in (2, 3):
            raise ValueError(f"expected 2 or 3 fields, got {len(parts)}")
        return cls(kind=MutationKind(parts[0]), target_path=parts[1],
                   backup_path=parts[2] if len(parts) == 3 else None)


class Journal:
    def __init__(self, ctx: RunContext, path: Optional[Path] = None):
        self.ctx = ctx
        self.path = Path(path or ctx.manifest_file)
        # dry-run appends land here instead of on disk
        self.pending: List[MutationRecord] = []

    def exists(self) -> bool:
        return self.path.is_file()

    def append(self, record: MutationRecord) -> None:
        line = record.to_line()
        if self.ctx.dry_run:
            self.pending.append(record)
            logger.log("VERBOSE", f"[DRY-RUN] Would journal: {line}")
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        created = not self.path.exists()
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
            os.fsync(f.fileno())
        if created:
            # the new directory entry must survive a crash too
            fd = os.open(str(self.path.parent), os.O_RDONLY)
            try:
                os.fsync(fd)
            finally:
                os.close(fd)
        logger.debug(f"MANIFEST: {line}")

    def read_all(self) -> List[MutationRecord]:
        if not self.exists():
            raise NoJournal(str(self.path))
        records: List[MutationRecord] = []
        with self.path.open("r", encoding="utf-8") as f:
            for n, raw in enumerate(f, start=1):
                line = raw.rstrip("\n")
                if not line.strip():
                    continue
                try:
                    records.append(MutationRecord.from_line(line))
                except ValueError as e:
                    raise JournalCorrupt(str(self.path), n, line) from e
        return records
