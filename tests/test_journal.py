# tests/test_journal.py
from __future__ import annotations
import os, stat
import pytest
from pydantic import ValidationError

from fedora_installer.orchestrator.errors import JournalCorrupt, NoJournal
from fedora_installer.orchestrator import journal as journal_mod
from fedora_installer.orchestrator.journal import Journal, MutationKind, MutationRecord


def test_record_line_format():
    created = MutationRecord(kind=MutationKind.DIR_CREATED, target_path="/opt/d")
    modified = MutationRecord(kind=MutationKind.FILE_MODIFIED, target_path="/etc/f", backup_path="/b/etc/f")
    assert created.to_line() == "CREATED_DIR|/opt/d"
    assert modified.to_line() == "MODIFIED|/etc/f|/b/etc/f"
    assert MutationRecord.from_line("MODIFIED|/etc/f|/b/etc/f") == modified


def test_reads_manifest_tokens_from_shell_installer():
    r = MutationRecord.from_line("MODIFIED_DIR|/Applications/Claude.app|/x/20250101-000000/Applications/Claude.app")
    assert r.kind is MutationKind.DIR_MODIFIED
    assert r.kind.is_dir and not r.kind.created


def test_created_record_cannot_carry_backup():
    with pytest.raises(ValidationError):
        MutationRecord(kind=MutationKind.FILE_CREATED, target_path="/a", backup_path="/b/a")


def test_modified_record_needs_backup():
    with pytest.raises(ValidationError):
        MutationRecord(kind=MutationKind.FILE_MODIFIED, target_path="/a")


@pytest.mark.parametrize("bad", ["relative/path", "/has|pipe", "/has\nnewline"])
def test_unjournalable_paths_rejected(bad):
    with pytest.raises(ValidationError):
        MutationRecord(kind=MutationKind.FILE_CREATED, target_path=bad)


def test_append_is_durable_and_ordered(make_ctx):
    ctx = make_ctx()
    j = Journal(ctx)
    recs = [
        MutationRecord(kind=MutationKind.DIR_CREATED, target_path="/w/d"),
        MutationRecord(kind=MutationKind.FILE_MODIFIED, target_path="/w/f", backup_path="/s/w/f"),
        MutationRecord(kind=MutationKind.FILE_MODIFIED, target_path="/w/f", backup_path="/s.1/w/f"),
    ]
    for r in recs:
        j.append(r)
    assert ctx.manifest_file.read_text(encoding="utf-8").splitlines() == [r.to_line() for r in recs]
    # a fresh reader (new process) sees the same order, duplicates included
    assert Journal(ctx).read_all() == recs


def test_missing_manifest_raises_no_journal(make_ctx):
    with pytest.raises(NoJournal):
        Journal(make_ctx()).read_all()


def test_corrupt_line_reports_line_number(make_ctx):
    ctx = make_ctx()
    ctx.state_dir.mkdir(parents=True)
    ctx.manifest_file.write_text("CREATED|/a\n\nRENAMED|/b\n", encoding="utf-8")
    with pytest.raises(JournalCorrupt) as ei:
        Journal(ctx).read_all()
    assert ei.value.line_no == 3


def test_blank_lines_are_ignored(make_ctx):
    ctx = make_ctx()
    ctx.state_dir.mkdir(parents=True)
    ctx.manifest_file.write_text("\nCREATED|/a\n\n", encoding="utf-8")
    assert [r.target_path for r in Journal(ctx).read_all()] == ["/a"]


def test_dry_run_append_stays_in_memory(make_ctx, log_lines):
    ctx = make_ctx(dry_run=True)
    j = Journal(ctx)
    rec = MutationRecord(kind=MutationKind.FILE_CREATED, target_path="/w/f")
    j.append(rec)
    assert j.pending == [rec]
    assert not ctx.state_dir.exists()
    assert any("[DRY-RUN] Would journal: CREATED|/w/f" in l for l in log_lines)


def test_first_append_syncs_the_state_directory(make_ctx, monkeypatch):
    synced = []
    real_fsync = os.fsync

    def recording_fsync(fd):
        synced.append("dir" if stat.S_ISDIR(os.fstat(fd).st_mode) else "file")
        real_fsync(fd)
    monkeypatch.setattr(journal_mod.os, "fsync", recording_fsync)

    j = Journal(make_ctx())
    j.append(MutationRecord(kind=MutationKind.DIR_CREATED, target_path="/w/d"))
    j.append(MutationRecord(kind=MutationKind.FILE_CREATED, target_path="/w/d/f"))
    assert synced == ["file", "dir", "file"]
