from __future__ import annotations
import os, yaml
from pathlib import Path
from typing import Dict, Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ConfigError
from .validation import validate_config

DEFAULT_CONFIG_PATH = "config/installer.yaml"


def _expand(p: str) -> str:
    return os.path.abspath(os.path.expanduser(os.path.expandvars(p)))


class InstallerPaths(BaseModel):
    model_config = ConfigDict(validate_default=True)

    install_dir: str = "/Applications/Claude.app"
    user_data_dir: str = "~/Library/Application Support/Claude"
    user_log_dir: str = "~/Library/Logs/Claude"
    user_cache_dir: str = "~/Library/Caches/Claude"
    preferences_dir: str = "~/Library/Preferences"
    electron_flags_file: str = "~/.config/electron-flags.conf"
    electron25_flags_file: str = "~/.config/electron25-flags.conf"
    kde_env_dir: str = "~/.config/plasma-workspace/env"
    desktop_file: str = "~/.local/share/applications/claude.desktop"
    bin_symlink: str = "/usr/local/bin/claude"

    @field_validator("*", mode="after")
    @classmethod
    def _absolute(cls, v: str) -> str:
        return _expand(v)


class InstallerConfig(BaseModel):
    model_config = ConfigDict(validate_default=True)

    state_dir: str = ".fedora-install-backups"
    source_dir: str = "."
    paths: InstallerPaths = Field(default_factory=InstallerPaths)
    privileged_roots: List[str] = ["/Applications", "/usr"]
    elevate_command: List[str] = ["sudo"]
    electron_resource_glob: str = "/usr/lib/electron*/resources"
    confirmation_phrase: str = "REVERSE"
    metrics_textfile: Optional[str] = None
    command_timeout_sec: int = 600

    @field_validator("state_dir", "source_dir", mode="after")
    @classmethod
    def _absolute(cls, v: str) -> str:
        return _expand(v)

    @field_validator("privileged_roots", mode="after")
    @classmethod
    def _absolute_roots(cls, v: List[str]) -> List[str]:
        return [_expand(r) for r in v]

    # ---------- derived locations ----------
    @property
    def launcher_path(self) -> str:
        return os.path.join(self.paths.install_dir, "Contents", "MacOS", "Claude")

    @property
    def dmg_file(self) -> str:
        return os.path.join(self.source_dir, "Claude.dmg")


class Policy:
    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.getenv("FEDORA_INSTALLER_CONFIG", DEFAULT_CONFIG_PATH)
        self.cfg: Dict[str, Any] = self._read(self.config_path)
        validate_config(self.cfg, source=self.config_path)
        self.config = InstallerConfig(**self.cfg)

    @staticmethod
    def _read(config_path: str) -> Dict[str, Any]:
        if not os.path.exists(config_path):
            # only the stock location may be absent; a path the user named must exist
            if config_path != DEFAULT_CONFIG_PATH:
                raise ConfigError("config not found", path=config_path, action="load_config")
            return {}
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"cannot read config: {e}", path=config_path, action="load_config") from e
        if not isinstance(data, dict):
            raise ConfigError("config root must be a mapping", path=config_path, action="load_config")
        return data

    # ---------- privilege gate ----------
    def is_privileged(self, target_path: str) -> bool:
        path = Path(os.path.abspath(target_path))
        for root in self.config.privileged_roots:
            try:
                path.relative_to(root)
                return True
            except ValueError:
                continue
        return False
