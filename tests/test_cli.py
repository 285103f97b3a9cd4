# tests/test_cli.py
import os
import pytest

from fedora_installer import __version__
from fedora_installer.orchestrator.errors import ConfigError
from fedora_installer.orchestrator.main import main
from fedora_installer.orchestrator.policy import Policy

from conftest import ScriptedInput, never_prompt, tree_state


def test_help_exits_zero(capsys):
    assert main(["--help"]) == 0
    assert "--reverse" in capsys.readouterr().out


def test_version(capsys):
    assert main(["--version"]) == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.parametrize("argv", [["--bogus"], ["--rev"], ["extra"]])
def test_usage_errors_exit_two(argv):
    assert main(argv) == 2


def test_reverse_without_manifest_fails(policy):
    assert main(["--reverse", "--config", policy.config_path], never_prompt) == 1


@pytest.mark.parametrize("override", [{"elevate_command": []}, {"unknown_key": 1}, {"command_timeout_sec": 0}])
def test_invalid_config_fails(write_config, override):
    assert main(["--dry-run", "--config", write_config(**override)], never_prompt) == 1


def test_config_from_environment(policy, source_dir, tools, monkeypatch):
    monkeypatch.setenv("FEDORA_INSTALLER_CONFIG", policy.config_path)
    assert main(["--dry-run"], never_prompt) == 0
    assert not os.path.exists(policy.config.state_dir)


def test_decline_exits_zero_and_logs_to_state_dir(policy, source_dir, tools):
    assert main(["--config", policy.config_path], ScriptedInput("no")) == 0
    log = open(os.path.join(policy.config.state_dir, "install.log"), encoding="utf-8").read()
    assert "Pre-flight validation passed" in log
    assert "Declined: DMG Extraction" in log


def test_preflight_failure_exits_one(policy, tools):
    assert main(["--config", policy.config_path], never_prompt) == 1


def test_undo_alias_reverses_partial_install(policy, source_dir, tools, world):
    s0 = tree_state(world)
    assert main(["--config", policy.config_path], ScriptedInput("yes", "yes", "no")) == 0
    assert tree_state(world) != s0
    assert main(["--undo", "--config", policy.config_path], ScriptedInput("yes", "REVERSE")) == 0
    assert tree_state(world) == s0


def test_metrics_textfile_written_after_real_run(write_config, tmp_path, source_dir, tools):
    prom = tmp_path / "metrics" / "installer.prom"
    cfg = write_config(metrics_textfile=str(prom))
    assert main(["--config", cfg], ScriptedInput("yes", "no")) == 0
    assert "installer_mutations_total" in prom.read_text()


def test_missing_config_flag_path_fails(tmp_path):
    typo = tmp_path / "typo.yaml"
    assert main(["--dry-run", "--config", str(typo)], never_prompt) == 1
    assert not (tmp_path / "state").exists()


def test_missing_config_from_environment_fails(tmp_path, monkeypatch):
    monkeypatch.setenv("FEDORA_INSTALLER_CONFIG", str(tmp_path / "nowhere.yaml"))
    assert main(["--dry-run"], never_prompt) == 1


def test_missing_named_config_raises_config_error(tmp_path):
    with pytest.raises(ConfigError) as ei:
        Policy(str(tmp_path / "absent.yaml"))
    assert ei.value.path == str(tmp_path / "absent.yaml")
    assert ei.value.action == "load_config"
