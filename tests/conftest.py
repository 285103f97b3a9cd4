# tests/conftest.py
import os, stat, sys
from pathlib import Path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pytest
import yaml

from fedora_installer.orchestrator.context import RunContext
from fedora_installer.orchestrator.journal import Journal
from fedora_installer.orchestrator.logs import setup_logging
from fedora_installer.orchestrator.policy import Policy
from fedora_installer.worker.backup import BackupStore
from fedora_installer.worker.mutator import GuardedMutator
from fedora_installer.worker.phases import desktop_entry, preflight
from fedora_installer.worker.phases.preflight import NATIVE_STUB, SWIFT_STUB
from fedora_installer.worker.phases.session import InstallSession
from fedora_installer.worker.privilege import PrivilegeStrategy


class ScriptedInput:
    """Stands in for input(): hands out canned answers, EOF when they run out."""
    def __init__(self, *answers):
        self.answers = list(answers)
        self.prompts = []

    def __call__(self, prompt=""):
        self.prompts.append(prompt)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


def never_prompt(prompt=""):
    raise AssertionError(f"unexpected prompt: {prompt}")


def tree_state(root):
    """Everything observable about a tree except timestamps: type, content/link target, mode."""
    out = {}
    root = str(root)
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames + filenames:
            p = os.path.join(dirpath, name)
            rel = os.path.relpath(p, root)
            st = os.lstat(p)
            if stat.S_ISLNK(st.st_mode):
                out[rel] = ("link", os.readlink(p))
            elif stat.S_ISDIR(st.st_mode):
                out[rel] = ("dir", stat.S_IMODE(st.st_mode))
            else:
                out[rel] = ("file", Path(p).read_bytes(), stat.S_IMODE(st.st_mode))
    return out


@pytest.fixture()
def log_lines():
    lines = []
    setup_logging(None, level="DEBUG", sink=lambda m: lines.append(str(m).rstrip("\n")))
    yield lines
    setup_logging(None, level="WARNING")


@pytest.fixture()
def world(tmp_path):
    """The filesystem the installer touches; ``sys`` inside it is the privileged root."""
    w = tmp_path / "world"
    (w / "home").mkdir(parents=True)
    (w / "sys").mkdir()
    return w


@pytest.fixture()
def write_config(tmp_path, world):
    def _write(**overrides):
        home, sysroot = world / "home", world / "sys"
        cfg = {
            "state_dir": str(tmp_path / "state"),
            "source_dir": str(tmp_path / "src"),
            "paths": {
                "install_dir": str(sysroot / "Applications" / "Claude.app"),
                "user_data_dir": str(home / "Library" / "Application Support" / "Claude"),
                "user_log_dir": str(home / "Library" / "Logs" / "Claude"),
                "user_cache_dir": str(home / "Library" / "Caches" / "Claude"),
                "preferences_dir": str(home / "Library" / "Preferences"),
                "electron_flags_file": str(home / ".config" / "electron-flags.conf"),
                "electron25_flags_file": str(home / ".config" / "electron25-flags.conf"),
                "kde_env_dir": str(home / ".config" / "plasma-workspace" / "env"),
                "desktop_file": str(home / ".local" / "share" / "applications" / "claude.desktop"),
                "bin_symlink": str(sysroot / "local" / "bin" / "claude"),
            },
            "privileged_roots": [str(sysroot)],
            # `env CMD...` just runs CMD, so the elevated path is exercised without sudo
            "elevate_command": ["env"],
            "electron_resource_glob": str(sysroot / "lib" / "electron*" / "resources"),
            "confirmation_phrase": "REVERSE",
            "command_timeout_sec": 30,
        }
        for k, v in overrides.items():
            if k == "paths":
                cfg["paths"].update(v)
            else:
                cfg[k] = v
        path = tmp_path / "installer.yaml"
        path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture()
def policy(write_config):
    return Policy(write_config())


@pytest.fixture()
def make_ctx(policy):
    def _ctx(dry_run=False, reverse_mode=False, run_id="20260101-000000"):
        return RunContext(dry_run=dry_run, reverse_mode=reverse_mode, run_id=run_id,
                          state_dir=Path(policy.config.state_dir))
    return _ctx


@pytest.fixture()
def make_mutator(policy):
    def _mutator(ctx):
        return GuardedMutator(ctx, Journal(ctx), BackupStore(ctx), PrivilegeStrategy(policy))
    return _mutator


def write_text(path, text):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "w") as f:
        f.write(text)


BUNDLE_RESOURCES = ("app.asar", "icon.icns", "en-US.json", "de-DE.json")


def dmg_listing(dmg):
    """What `7z l -slt` prints for the fake DMG."""
    app = "Claude/Claude.app"
    entries = ["Claude", app, f"{app}/Contents", f"{app}/Contents/Resources"]
    entries += [f"{app}/Contents/Resources/{n}" for n in BUNDLE_RESOURCES]
    head = f"Path = {dmg}\nType = Dmg\n\n----------\n"
    return head + "\n".join(f"Path = {e}\nSize = 0\n" for e in entries)


def fake_tool(self, cmd, description, cwd=None):
    """Stands in for 7z and asar: lays out what each would have extracted."""
    if cmd[:2] == ["7z", "l"]:
        return {"ok": True, "code": 0, "stdout": dmg_listing(cmd[-1]), "stderr": ""}
    if cmd[0] == "7z":
        out = cmd[3][len("-o"):]
        res = os.path.join(out, "Claude", "Claude.app", "Contents", "Resources")
        for name in BUNDLE_RESOURCES:
            write_text(os.path.join(res, name), name)
    elif cmd[0] == "asar":
        dst = cmd[3]
        write_text(os.path.join(dst, ".vite", "build", "index.js"), "// main\n")
        write_text(os.path.join(dst, "node_modules", "@ant", "claude-swift", "js", "index.js"), "// darwin\n")
        write_text(os.path.join(dst, "node_modules", "@ant", "claude-native", "index.js"), "// darwin\n")
        write_text(os.path.join(dst, "package.json"), "{}\n")
    else:
        raise AssertionError(f"unexpected tool: {cmd}")
    return {"ok": True, "code": 0, "stdout": "", "stderr": ""}


@pytest.fixture()
def source_dir(policy):
    """Claude.dmg, both stubs and the loader, as a user would lay them out."""
    src = policy.config.source_dir
    os.makedirs(src)
    with open(os.path.join(src, "Claude.dmg"), "wb") as f:
        f.write(b"\0" * 2048)
    for stub in (SWIFT_STUB, NATIVE_STUB):
        write_text(os.path.join(src, stub), f"// linux stub {stub}\n")
    write_text(os.path.join(src, "linux-loader.js"), "// loader\n")
    return src


@pytest.fixture()
def tools(monkeypatch):
    monkeypatch.setattr(InstallSession, "run_tool", fake_tool)
    monkeypatch.setattr(preflight.os, "geteuid", lambda: 1000)
    monkeypatch.setattr(desktop_entry.shutil, "which", lambda name: None)
