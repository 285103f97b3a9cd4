# fedora_installer/worker/phases/preflight.py
from __future__ import annotations
import os

from loguru import logger

from ...orchestrator.errors import PreflightFailed
from ...orchestrator.logs import header
from .session import InstallSession

SWIFT_STUB = os.path.join("stubs", "@ant", "claude-swift", "js", "index.js")
NATIVE_STUB = os.path.join("stubs", "@ant", "claude-native", "index.js")

_ENV_KEYS = [
    "WAYLAND_DISPLAY", "XDG_SESSION_TYPE", "XDG_CURRENT_DESKTOP", "XDG_SESSION_DESKTOP",
    "DESKTOP_SESSION", "KDE_FULL_SESSION", "KDE_SESSION_VERSION", "ELECTRON_OZONE_PLATFORM_HINT",
]


def _human(n: int) -> str:
    size = float(n)
    for unit in ("B", "K", "M", "G"):
        if size < 1024:
            return f"{size:.1f}{unit}"
        size /= 1024
    return f"{size:.1f}T"


def _require_file(path: str, label: str) -> None:
    if not os.path.isfile(path):
        raise PreflightFailed(f"{label} not found", path=path, action="preflight")
    logger.success(f"Found: {label} ({path})")


def run(session: InstallSession) -> None:
    header("Phase 1/8: Pre-flight Validation")
    cfg = session.config

    logger.log("STEP", "Checking for Claude.dmg...")
    if not os.path.isfile(cfg.dmg_file):
        raise PreflightFailed("Claude.dmg not found; place it in the source directory and re-run",
                              path=cfg.dmg_file, action="preflight")
    logger.success(f"Found: Claude.dmg ({_human(os.path.getsize(cfg.dmg_file))})")

    logger.log("STEP", "Checking for Linux stubs...")
    _require_file(os.path.join(cfg.source_dir, SWIFT_STUB), "Swift Linux stub")
    _require_file(os.path.join(cfg.source_dir, NATIVE_STUB), "Native Linux stub")

    logger.log("STEP", "Checking for linux-loader.js...")
    _require_file(os.path.join(cfg.source_dir, "linux-loader.js"), "linux-loader.js")

    if os.geteuid() == 0:
        raise PreflightFailed("Do not run as root; elevation is used only where needed", action="preflight")
    logger.success("Running as regular user (elevation used where needed)")

    logger.log("STEP", "Environment summary:")
    for key in _ENV_KEYS:
        logger.log("VERBOSE", f"  {key + ':':<30} {os.environ.get(key, '<not set>')}")
    logger.success("Pre-flight validation passed")
