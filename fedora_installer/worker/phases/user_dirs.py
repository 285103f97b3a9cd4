# fedora_installer/worker/phases/user_dirs.py
from __future__ import annotations
import json, os

from loguru import logger

from ...orchestrator.logs import header
from .session import InstallSession

DATA_SUBDIRS = [
    "Projects", "Conversations", "Claude Extensions", "Claude Extensions Settings",
    "claude-code-vm", "vm_bundles", "blob_storage",
]

DEFAULT_CONFIG = {
    "scale": 0,
    "locale": "en-US",
    "userThemeMode": "system",
    "hasTrackedInitialActivation": False,
}

DEFAULT_DESKTOP_CONFIG = {"preferences": {"chromeExtensionEnabled": True}}


def _json_text(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


def _write_if_absent(session: InstallSession, path: str, data: dict) -> None:
    name = os.path.basename(path)
    if session.mutator.backups.present(path)[0]:
        logger.log("VERBOSE", f"{name} already exists (preserved)")
        return
    session.mutator.write_file(path, _json_text(data))
    logger.success(f"Created: {name}")


def run(session: InstallSession) -> None:
    header("Phase 6/8: Setup User Directories")
    session.gate.require("User Directory Setup",
                         "Create macOS-style directories under ~/Library for Claude data, logs, and cache.")
    paths = session.config.paths
    private = (paths.user_data_dir, paths.user_log_dir, paths.user_cache_dir)

    logger.log("STEP", "Creating application data directories...")
    # the data dir itself first, so it gets its mode when this run creates it
    for d in private:
        session.mutator.ensure_directory(d, mode=0o700)
    for sub in DATA_SUBDIRS:
        session.mutator.ensure_directory(os.path.join(paths.user_data_dir, sub))
    session.mutator.ensure_directory(paths.preferences_dir)

    logger.log("STEP", "Creating default configuration files...")
    _write_if_absent(session, os.path.join(paths.user_data_dir, "config.json"), DEFAULT_CONFIG)
    _write_if_absent(session, os.path.join(paths.user_data_dir, "claude_desktop_config.json"),
                     DEFAULT_DESKTOP_CONFIG)
    logger.success("Phase 6 complete: User directories ready")
