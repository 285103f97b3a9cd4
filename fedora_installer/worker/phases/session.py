# fedora_installer/worker/phases/session.py
from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from string import Template
from typing import List, Optional

from ...orchestrator.approval import ApprovalGate
from ...orchestrator.context import RunContext
from ...orchestrator.errors import CommandFailed
from ...orchestrator.policy import InstallerConfig
from ..mutator import GuardedMutator
from ..terminal import terminal_run

_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"


def render(name: str, **subs: str) -> str:
    text = (_TEMPLATES / name).read_text(encoding="utf-8")
    return Template(text).substitute(**subs) if subs else text


@dataclass
class InstallSession:
    """What the phases share: run mode, config, gate, mutator, and paths found along the way."""
    ctx: RunContext
    config: InstallerConfig
    gate: ApprovalGate
    mutator: GuardedMutator
    extract_dir: Optional[str] = None
    app_extract_dir: Optional[str] = None
    claude_app: Optional[str] = None
    # names under Claude.app/Contents/Resources; None until known
    bundle_resources: Optional[List[str]] = None
    warnings: List[str] = field(default_factory=list)

    def run_tool(self, cmd: List[str], description: str, cwd: Optional[str] = None) -> dict:
        """Unjournaled external tool (7z, asar, ...); CommandFailed on non-zero exit."""
        res = terminal_run(cmd, timeout_sec=self.config.command_timeout_sec, cwd=cwd)
        if not res.get("ok"):
            raise CommandFailed(description, res)
        return res
