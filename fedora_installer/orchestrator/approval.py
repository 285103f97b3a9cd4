# fedora_installer/orchestrator/approval.py
from __future__ import annotations
from enum import Enum
from typing import Callable

from loguru import logger

from .context import RunContext
from .errors import UserDeclined


class Approval(str, Enum):
    APPROVED = "approved"
    DECLINED = "declined"


class ApprovalGate:
    """Blocks on the operator; dry-run always approves without asking."""

    def __init__(self, ctx: RunContext, input_fn: Callable[[str], str] = input):
        self.ctx = ctx
        self.input_fn = input_fn

    def _ask(self, prompt: str) -> str:
        try:
            return self.input_fn(prompt)
        except EOFError:
            return ""

    def confirm(self, title: str, description: str) -> Approval:
        logger.warning(f"APPROVAL REQUIRED: {title}")
        logger.info(f"  {description}")
        if self.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would proceed with: {title}")
            return Approval.APPROVED
        answer = self._ask(f"  Proceed with {title}? [yes/no] > ").strip().lower()
        if answer in ("yes", "y"):
            logger.success(f"Approved: {title}")
            return Approval.APPROVED
        logger.warning(f"Declined: {title}")
        return Approval.DECLINED

    def confirm_phrase(self, prompt: str, phrase: str) -> Approval:
        """Typo-resistant gate: the literal phrase, case-sensitive, nothing else."""
        if self.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would require typing '{phrase}'")
            return Approval.APPROVED
        answer = self._ask(f"  {prompt} > ").strip()
        if answer == phrase:
            return Approval.APPROVED
        logger.info("Confirmation text did not match.")
        return Approval.DECLINED

    def require(self, title: str, description: str) -> None:
        if self.confirm(title, description) is Approval.DECLINED:
            raise UserDeclined(title)
