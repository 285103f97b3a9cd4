# fedora_installer/worker/phases/desktop_entry.py
from __future__ import annotations
import os, shutil

from loguru import logger

from ...orchestrator.logs import header
from ..terminal import terminal_run
from .session import InstallSession, render


def run(session: InstallSession) -> None:
    header("Phase 7/8: Create Desktop Entry")
    session.gate.require("Desktop Entry",
                         "Create a .desktop file so Claude appears in your KDE application menu.")
    cfg = session.config
    desktop_file = cfg.paths.desktop_file

    logger.log("STEP", "Creating .desktop entry...")
    body = render("claude.desktop",
                  exec_path=cfg.paths.bin_symlink,
                  icon_path=os.path.join(cfg.paths.install_dir, "Contents", "Resources", "icon.icns"))
    session.mutator.write_file(desktop_file, body, mode=0o755)
    logger.success(f"Created: {desktop_file}")

    # menu cache refresh is derived state, not journaled
    if shutil.which("update-desktop-database"):
        if session.ctx.dry_run:
            logger.info("[DRY-RUN] Would update desktop database")
        else:
            logger.log("VERBOSE", "Updating desktop database...")
            res = terminal_run(["update-desktop-database", os.path.dirname(desktop_file)], timeout_sec=60)
            if res.get("ok"):
                logger.success("Desktop database updated")
            else:
                logger.warning(f"update-desktop-database failed: {res.get('error') or res.get('stderr', '').strip()}")
    logger.success("Phase 7 complete: Desktop entry created")
