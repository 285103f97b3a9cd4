# fedora_installer/worker/phases/wayland.py
from __future__ import annotations
import os

from loguru import logger

from ...orchestrator.logs import header
from .session import InstallSession, render


def run(session: InstallSession) -> None:
    header("Phase 5/8: Configure Electron for Wayland")
    paths = session.config.paths
    kde_env_script = os.path.join(paths.kde_env_dir, "electron-wayland.sh")

    logger.info("Electron Wayland configuration files to be created/updated:")
    for p in (paths.electron_flags_file, paths.electron25_flags_file, kde_env_script):
        logger.info(f"  • {p}")
    session.gate.require("Wayland Configuration",
                         "Create Electron flags files and a KDE Plasma env script for Wayland.")

    for target, template in ((paths.electron_flags_file, "electron-flags.conf"),
                             (paths.electron25_flags_file, "electron25-flags.conf")):
        logger.log("STEP", f"Configuring {target}...")
        session.mutator.write_file(target, render(template))
        logger.success(f"Created: {target}")

    logger.log("STEP", "Configuring KDE Plasma Wayland environment...")
    session.mutator.write_file(kde_env_script, render("electron-wayland.sh"), mode=0o755)
    logger.success(f"Created: {kde_env_script}")
    logger.success("Phase 5 complete: Electron configured for Wayland")
