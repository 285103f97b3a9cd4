# fedora_installer/worker/phases/verify.py
from __future__ import annotations
import os, shutil, stat

from loguru import logger

from ...orchestrator.logs import header
from .session import InstallSession


def _check(session: InstallSession, path: str, missing_level: str = "WARNING") -> None:
    if os.path.lexists(path):
        logger.success(f"Verified: {path}")
    else:
        logger.log(missing_level, f"Missing:  {path}")
        session.warnings.append(path)


def _verify(session: InstallSession) -> None:
    cfg = session.config
    install = cfg.paths.install_dir
    res = os.path.join(install, "Contents", "Resources")

    logger.log("STEP", "Verifying application structure...")
    for p in (cfg.launcher_path,
              os.path.join(res, "linux-loader.js"),
              os.path.join(res, "app", ".vite", "build", "index.js"),
              os.path.join(res, "stubs", "@ant", "claude-swift", "js", "index.js"),
              os.path.join(res, "stubs", "@ant", "claude-native", "index.js")):
        _check(session, p, "ERROR")

    logger.log("STEP", f"Verifying {cfg.paths.bin_symlink} symlink...")
    if os.path.islink(cfg.paths.bin_symlink):
        logger.success(f"Symlink OK: {os.readlink(cfg.paths.bin_symlink)}")
    else:
        logger.warning(f"Symlink not found at {cfg.paths.bin_symlink}")
        session.warnings.append(cfg.paths.bin_symlink)

    logger.log("STEP", "Verifying Wayland configuration files...")
    for p in (cfg.paths.electron_flags_file, cfg.paths.electron25_flags_file):
        _check(session, p)

    logger.log("STEP", "Verifying user directories...")
    for d in (cfg.paths.user_data_dir, cfg.paths.user_log_dir, cfg.paths.user_cache_dir):
        if os.path.isdir(d):
            logger.success(f"Verified: {d} (permissions: {oct(stat.S_IMODE(os.stat(d).st_mode))[2:]})")
        else:
            logger.warning(f"Missing: {d}")
            session.warnings.append(d)

    logger.log("STEP", "Verifying desktop entry...")
    _check(session, cfg.paths.desktop_file)


def _cleanup(session: InstallSession) -> None:
    logger.log("STEP", "Cleaning up temporary files...")
    for d in (session.extract_dir, session.app_extract_dir):
        if not d:
            continue
        if session.ctx.dry_run:
            logger.info(f"[DRY-RUN] Would remove temporary directory: {d}")
        elif os.path.isdir(d):
            shutil.rmtree(d)
            logger.success(f"Removed temporary directory: {d}")


def _summary(session: InstallSession) -> None:
    cfg = session.config
    if session.warnings and not session.ctx.dry_run:
        logger.warning(f"Installation completed with warnings ({len(session.warnings)} item(s), see above)")
    else:
        logger.success("Installation complete!")
    logger.info("Installation summary:")
    for label, value in (("Application", cfg.paths.install_dir), ("Data", cfg.paths.user_data_dir),
                         ("Logs", cfg.paths.user_log_dir), ("Cache", cfg.paths.user_cache_dir),
                         ("Electron flags", cfg.paths.electron_flags_file),
                         ("Desktop entry", cfg.paths.desktop_file),
                         ("Backups", str(session.ctx.backup_dir)),
                         ("Manifest", str(session.ctx.manifest_file))):
        logger.info(f"  {label + ':':<16}{value}")
    logger.info("Launch Claude:")
    logger.info(f"  Command:   {os.path.basename(cfg.paths.bin_symlink)}")
    logger.info("  Desktop:   Search for 'Claude' in the KDE application launcher")
    logger.info("Launch options: --debug (trace logging), --devtools (Chrome DevTools), --x11 (force XWayland)")
    logger.info("To undo this installation:  install-fedora --reverse")


def run(session: InstallSession) -> None:
    header("Phase 8/8: Verification & Cleanup")
    session.gate.require("Final Verification",
                         "Verify installation integrity, clean up temporary files, and show summary.")
    if session.ctx.dry_run:
        logger.info("[DRY-RUN] Would verify installed files")
    else:
        _verify(session)
    _cleanup(session)
    _summary(session)
