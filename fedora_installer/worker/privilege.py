# fedora_installer/worker/privilege.py
"""Per-path choice between in-process file operations and an elevated helper.

The forward mutator and the reversal engine both ask ``PrivilegeStrategy.for_path``
for every single operation; nothing is decided once per run.
"""
from __future__ import annotations
import os
from typing import List, Optional

from loguru import logger

from ..orchestrator.errors import CommandFailed
from ..orchestrator.policy import Policy
from . import fs
from .terminal import terminal_run


class DirectExecutor:
    elevated = False
    label = ""

    def exists(self, path: str) -> bool:
        return fs.fs_exists(path)

    def remove(self, path: str) -> bool:
        return fs.fs_delete(path)["deleted"] > 0

    def copy(self, src: str, dst: str) -> None:
        fs.fs_copy(src, dst)

    def makedirs(self, path: str, mode: Optional[int] = None) -> None:
        fs.fs_mkdir(path, mode)

    def write_text(self, path: str, content: str, mode: Optional[int] = None) -> None:
        fs.fs_write(path, content, mode)

    def symlink(self, target: str, link: str) -> None:
        fs.fs_symlink(target, link)

    def chmod(self, path: str, mode: int) -> None:
        fs.fs_chmod(path, mode)


class ElevatedExecutor(DirectExecutor):
    """Same operations, run as coreutils commands behind ``elevate_command`` (sudo)."""
    elevated = True
    label = " (sudo)"

    def __init__(self, elevate_command: List[str], timeout_sec: int = 600):
        self.elevate_command = list(elevate_command)
        self.timeout_sec = timeout_sec

    def _run(self, *args: str, path: Optional[str] = None, input_text: Optional[str] = None) -> None:
        cmd = [*self.elevate_command, *args]
        res = terminal_run(cmd, timeout_sec=self.timeout_sec, input_text=input_text)
        if not res.get("ok"):
            raise CommandFailed(" ".join(cmd), res, path=path)

    def exists(self, path: str) -> bool:
        """lexists, asked as root when the caller cannot see the path itself."""
        if fs.fs_exists(path):
            return True
        cmd = [*self.elevate_command, "sh", "-c",
               'if test -e "$1" || test -L "$1"; then exit 0; else exit 3; fi', "sh", path]
        res = terminal_run(cmd, timeout_sec=self.timeout_sec)
        if res.get("code") == 0:
            return True
        if res.get("code") == 3:
            return False
        raise CommandFailed(" ".join(cmd), res, path=path)

    def remove(self, path: str) -> bool:
        if not self.exists(path):
            return False
        self._run("rm", "-rf", "--", path, path=path)
        return True

    def copy(self, src: str, dst: str) -> None:
        self._run("mkdir", "-p", "--", os.path.dirname(dst), path=dst)
        self._run("cp", "-a", "--", src, dst, path=dst)

    def makedirs(self, path: str, mode: Optional[int] = None) -> None:
        self._run("mkdir", "-p", "--", path, path=path)
        if mode is not None:
            self.chmod(path, mode)

    def write_text(self, path: str, content: str, mode: Optional[int] = None) -> None:
        self._run("mkdir", "-p", "--", os.path.dirname(path), path=path)
        if os.path.islink(path):
            self._run("rm", "-f", "--", path, path=path)
        self._run("tee", "--", path, path=path, input_text=content)
        if mode is not None:
            self.chmod(path, mode)

    def symlink(self, target: str, link: str) -> None:
        self._run("ln", "-sfn", "--", target, link, path=link)

    def chmod(self, path: str, mode: int) -> None:
        self._run("chmod", format(mode, "o"), "--", path, path=path)


class PrivilegeStrategy:
    def __init__(self, policy: Policy):
        self.policy = policy
        self.direct = DirectExecutor()
        self.elevated = ElevatedExecutor(policy.config.elevate_command, policy.config.command_timeout_sec)

    def for_path(self, path: str) -> DirectExecutor:
        if self.policy.is_privileged(path):
            logger.debug(f"elevated path: {path}")
            return self.elevated
        return self.direct
