# fedora_installer/worker/phases/launcher.py
from __future__ import annotations

from loguru import logger

from ...orchestrator.logs import header
from .session import InstallSession, render


def run(session: InstallSession) -> None:
    header("Phase 4/8: Create Launcher Script")
    session.gate.require("Launcher Creation",
                         "Create the Claude launch script with Wayland + KDE 6.6 optimizations.")
    launcher = session.config.launcher_path
    link = session.config.paths.bin_symlink

    logger.log("STEP", f"Writing launcher script to {launcher}...")
    session.mutator.write_file(launcher, render("launcher.sh"), mode=0o755)
    logger.success(f"Launcher script created: {launcher}")

    logger.log("STEP", f"Creating symlink {link}...")
    session.mutator.symlink(launcher, link)
    logger.success(f"Symlink created: {link} -> {launcher}")
    logger.success("Phase 4 complete: Launcher created with Wayland + KDE 6.6 support")
