# fedora_installer/orchestrator/context.py
from __future__ import annotations
import time
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


def _run_stamp() -> str:
    return time.strftime("%Y%m%d-%H%M%S")


class RunContext(BaseModel):
    """Mode switches for one invocation. Fixed once built; passed to every component."""
    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    reverse_mode: bool = False
    run_id: str = Field(default_factory=_run_stamp)
    state_dir: Path = Path(".fedora-install-backups")

    @property
    def manifest_file(self) -> Path:
        return self.state_dir / "manifest.txt"

    @property
    def backup_dir(self) -> Path:
        return self.state_dir / self.run_id

    @property
    def log_file(self) -> Path:
        return self.state_dir / "install.log"
