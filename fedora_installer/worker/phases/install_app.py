# fedora_installer/worker/phases/install_app.py
from __future__ import annotations
import glob, os
from typing import List, Optional

from loguru import logger

from ...orchestrator.logs import header
from ..privilege import DirectExecutor
from .preflight import NATIVE_STUB, SWIFT_STUB
from .session import InstallSession


def _bundled_module(stub: str) -> str:
    # stubs/@ant/x/index.js -> app/node_modules/@ant/x/index.js
    return os.path.join("app", "node_modules", os.path.relpath(stub, "stubs"))


def _resource_names(session: InstallSession) -> Optional[List[str]]:
    """Entries of the bundle's Contents/Resources; in a dry run, whatever the DMG listing reported."""
    if session.ctx.dry_run:
        return session.bundle_resources
    return sorted(os.listdir(os.path.join(session.claude_app, "Contents", "Resources")))


def _builder(session: InstallSession):
    cfg = session.config
    src_resources = os.path.join(session.claude_app, "Contents", "Resources")

    def build(ex: DirectExecutor, root: str) -> None:
        logger.log("STEP", "Creating application directory structure...")
        for sub in ("MacOS", "Resources", "Frameworks"):
            ex.makedirs(os.path.join(root, "Contents", sub))
            logger.log("VERBOSE", f"  Created: {os.path.join(root, 'Contents', sub)}")
        res = os.path.join(root, "Contents", "Resources")

        logger.log("STEP", "Copying app code...")
        ex.copy(session.app_extract_dir, os.path.join(res, "app"))
        logger.success("App code installed")

        logger.log("STEP", "Copying original resources (icons, locales, etc.)...")
        for name in _resource_names(session) or []:
            dst = os.path.join(res, name)
            if ex.exists(dst):
                logger.log("VERBOSE", f"  Kept installed: {name}")
                continue
            ex.copy(os.path.join(src_resources, name), dst)
        logger.success("Resources copied")

        for stub, label in ((SWIFT_STUB, "Swift"), (NATIVE_STUB, "Native")):
            logger.log("STEP", f"Installing {label} Linux stub...")
            src = os.path.join(cfg.source_dir, stub)
            ex.copy(src, os.path.join(res, stub))
            bundled = os.path.join(res, _bundled_module(stub))
            ex.remove(bundled)
            ex.copy(src, bundled)
            logger.success(f"{label} stub installed and original module replaced")

        vite = os.path.join(session.app_extract_dir, ".vite")
        if os.path.isdir(vite):
            logger.log("STEP", "Copying .vite build directory...")
            ex.copy(vite, os.path.join(res, ".vite"))
            logger.success(".vite build copied")

        logger.log("STEP", "Installing linux-loader.js...")
        loader = os.path.join(res, "linux-loader.js")
        ex.copy(os.path.join(cfg.source_dir, "linux-loader.js"), loader)
        ex.chmod(loader, 0o755)
        logger.success("Linux loader installed")

    return build


def _install_locales(session: InstallSession) -> None:
    logger.log("STEP", "Installing locale files to Electron resource directories...")
    targets = [d for d in sorted(glob.glob(session.config.electron_resource_glob)) if os.path.isdir(d)]
    if not targets:
        logger.log("VERBOSE", "No system Electron resource directories found (npm-installed Electron used)")
        return
    names = _resource_names(session)
    if names is None:
        for d in targets:
            logger.warning(f"[DRY-RUN] Would install locale files to: {d} (locale list unavailable)")
        return
    src_resources = os.path.join(session.claude_app, "Contents", "Resources")
    locales = [n for n in names if n.endswith(".json") and not n.startswith(".")]
    for d in targets:
        for name in locales:
            session.mutator.copy_file(os.path.join(src_resources, name), os.path.join(d, name))
        logger.log("VERBOSE", f"  Installed locales to: {d}")
    logger.success(f"Locale files installed to {len(targets)} Electron installation(s)")


def run(session: InstallSession) -> None:
    header("Phase 3/8: Install Application Structure")
    install_dir = session.config.paths.install_dir
    logger.info("The following will be created (elevated where required):")
    for sub in ("Contents/MacOS/       (launcher script)",
                "Contents/Resources/   (app code, stubs, loader)",
                "Contents/Frameworks/  (empty, for compatibility)"):
        logger.info(f"  • {install_dir}/{sub}")
    logger.info(f"  • {session.config.paths.bin_symlink}  (symlink to launcher)")

    session.gate.require("Application Installation",
                         f"Create {install_dir} and install application files.")

    session.mutator.replace_directory(install_dir, _builder(session))
    _install_locales(session)
    logger.success("Phase 3 complete: Application structure created")
