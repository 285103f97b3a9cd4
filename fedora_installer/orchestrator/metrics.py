# fedora_installer/orchestrator/metrics.py
from __future__ import annotations
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, write_to_textfile

REGISTRY = CollectorRegistry()

MUTATIONS_TOTAL = Counter("installer_mutations", "Journaled filesystem mutations",
                          ["kind", "outcome"], registry=REGISTRY)
BACKUPS_TOTAL = Counter("installer_backups", "Backup store snapshots", ["outcome"], registry=REGISTRY)
REVERSAL_STEPS_TOTAL = Counter("installer_reversal_steps", "Reversal steps by record kind",
                               ["kind", "outcome"], registry=REGISTRY)


def sample(name: str, **labels) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def dump(textfile: str | Path | None) -> None:
    if not textfile:
        return
    Path(textfile).parent.mkdir(parents=True, exist_ok=True)
    write_to_textfile(str(textfile), REGISTRY)
