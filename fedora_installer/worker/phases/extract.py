# fedora_installer/worker/phases/extract.py
# Scratch extraction only; nothing here is journaled. verify.py removes the scratch dirs.
from __future__ import annotations
import os, shutil, time
from typing import List, Optional, Tuple

from loguru import logger

from ...orchestrator.errors import CommandFailed, InstallerError
from ...orchestrator.logs import header
from .session import InstallSession

_RESOURCES = ("Contents", "Resources")


def _find_app(root: str) -> str | None:
    for dirpath, dirnames, _files in os.walk(root):
        if "Claude.app" in dirnames:
            return os.path.join(dirpath, "Claude.app")
    return None


def _parse_listing(stdout: str) -> Tuple[Optional[str], List[str]]:
    """(Claude.app path inside the archive, names directly under its Contents/Resources) from `7z l -slt`."""
    app, names = None, set()
    for line in stdout.splitlines():
        if not line.startswith("Path = "):
            continue
        parts = line[len("Path = "):].strip().split("/")
        if "Claude.app" not in parts:
            continue
        i = parts.index("Claude.app")
        app = app or "/".join(parts[:i + 1])
        rest = parts[i + 1:]
        if len(rest) >= 3 and tuple(rest[:2]) == _RESOURCES:
            names.add(rest[2])
    return app, sorted(names)


def _list_bundle(session: InstallSession, extract_dir: str) -> None:
    """Dry run: read the DMG's member list (no extraction) so later phases know what it holds."""
    try:
        res = session.run_tool(["7z", "l", "-slt", session.config.dmg_file], "7z list DMG")
    except CommandFailed as e:
        logger.warning(f"[DRY-RUN] Cannot list DMG contents, bundle resources unknown ({e})")
        return
    app, names = _parse_listing(res.get("stdout") or "")
    if app is None:
        logger.warning("[DRY-RUN] Claude.app not found in DMG listing")
        return
    session.claude_app = os.path.join(extract_dir, *app.split("/"))
    session.bundle_resources = names
    logger.info(f"[DRY-RUN] DMG holds {app} with {len(names)} resource entries")


def run(session: InstallSession) -> None:
    header("Phase 2/8: Extract Claude.dmg")
    session.gate.require("DMG Extraction",
                         "Extract Claude.dmg and app.asar to a temporary working directory.")
    cfg = session.config
    extract_dir = os.path.join(cfg.source_dir, f".fedora-extract-{int(time.time())}")
    app_extract_dir = os.path.join(cfg.source_dir, ".fedora-app-extracted")

    logger.log("STEP", "Extracting DMG with 7z...")
    logger.log("VERBOSE", f"  Source: {cfg.dmg_file}")
    logger.log("VERBOSE", f"  Target: {extract_dir}")
    if session.ctx.dry_run:
        logger.info("[DRY-RUN] Would extract the DMG and locate Claude.app")
        session.extract_dir = extract_dir
        session.claude_app = os.path.join(extract_dir, "Claude.app")
        session.app_extract_dir = app_extract_dir
        _list_bundle(session, extract_dir)
        logger.info("[DRY-RUN] Would extract app.asar")
        return

    os.makedirs(extract_dir, exist_ok=True)
    session.extract_dir = extract_dir
    session.run_tool(["7z", "x", "-y", f"-o{extract_dir}", cfg.dmg_file], "7z extract DMG")

    claude_app = _find_app(extract_dir)
    if not claude_app:
        raise InstallerError("Claude.app not found inside DMG", path=extract_dir, action="extract")
    logger.success(f"Found Claude.app in DMG: {claude_app}")

    logger.log("STEP", "Extracting app.asar...")
    asar_file = os.path.join(claude_app, "Contents", "Resources", "app.asar")
    if not os.path.isfile(asar_file):
        raise InstallerError("app.asar not found", path=asar_file, action="extract")
    if os.path.lexists(app_extract_dir):
        shutil.rmtree(app_extract_dir)
    session.run_tool(["asar", "extract", asar_file, app_extract_dir], "asar extract")

    session.claude_app = claude_app
    session.app_extract_dir = app_extract_dir
    session.bundle_resources = sorted(os.listdir(os.path.join(claude_app, *_RESOURCES)))
    logger.success(f"Extracted app code to {app_extract_dir}")
    logger.success("Phase 2 complete: DMG extracted")
