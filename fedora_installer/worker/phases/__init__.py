# fedora_installer/worker/phases/__init__.py
from . import preflight, extract, install_app, launcher, wayland, user_dirs, desktop_entry, verify
from .session import InstallSession

# forward-run order
PHASES = [preflight, extract, install_app, launcher, wayland, user_dirs, desktop_entry, verify]

__all__ = ["PHASES", "InstallSession"]
