# fedora_installer/orchestrator/main.py
from __future__ import annotations
import argparse, getpass, sys, time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from dotenv import load_dotenv
from loguru import logger

from .. import __version__
from ..worker.backup import BackupStore
from ..worker.mutator import GuardedMutator
from ..worker.phases import PHASES, InstallSession
from ..worker.privilege import PrivilegeStrategy
from . import metrics
from .approval import ApprovalGate
from .context import RunContext
from .errors import InstallerError, UserDeclined
from .journal import Journal
from .logs import header, setup_logging
from .policy import Policy
from .reversal import ReversalEngine, ReversalReport

EPILOG = """\
Run one installer process at a time: the manifest and backups under the state
directory are plain files with no locking.
"""


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="install-fedora", allow_abbrev=False, epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="Claude Desktop for Linux: Fedora 43 + Wayland + KDE Plasma 6.6 installer.\n"
                    "With no arguments, runs the installer.",
    )
    p.add_argument("--reverse", "--rollback", "--undo", dest="reverse", action="store_true",
                   help="undo a previous installation using the backup manifest")
    p.add_argument("--dry-run", action="store_true", help="show what would be done without making changes")
    p.add_argument("--config", metavar="PATH", help="installer YAML config (default: config/installer.yaml)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def build_session(ctx: RunContext, policy: Policy, input_fn: Callable[[str], str] = input) -> InstallSession:
    journal = Journal(ctx)
    mutator = GuardedMutator(ctx, journal, BackupStore(ctx), PrivilegeStrategy(policy))
    return InstallSession(ctx=ctx, config=policy.config, gate=ApprovalGate(ctx, input_fn), mutator=mutator)


def show_banner(ctx: RunContext, policy: Policy) -> None:
    header(f"Claude Desktop for Linux: Fedora 43 Installer (Wayland + KDE Plasma 6.6) v{__version__}")
    if ctx.dry_run:
        logger.warning("[DRY-RUN MODE] No changes will be made.")
    logger.info(f"Installer version: {__version__}")
    logger.info(f"Source directory:  {policy.config.source_dir}")
    logger.info(f"State directory:   {ctx.state_dir}")
    logger.info("Target platform:   Fedora 43 / KDE Plasma 6.6 / Wayland")
    logger.info(f"Date:              {time.strftime('%c')}")
    logger.info(f"User:              {getpass.getuser()}")


def run_forward(ctx: RunContext, policy: Policy, input_fn: Callable[[str], str] = input,
                phases: Optional[List] = None) -> InstallSession:
    session = build_session(ctx, policy, input_fn)
    show_banner(ctx, policy)
    logger.log("VERBOSE", f"Backup directory: {ctx.backup_dir}")
    for phase in (PHASES if phases is None else phases):
        phase.run(session)
    return session


def run_reverse(ctx: RunContext, policy: Policy, input_fn: Callable[[str], str] = input) -> ReversalReport:
    engine = ReversalEngine(ctx, policy.config, Journal(ctx), ApprovalGate(ctx, input_fn),
                            PrivilegeStrategy(policy))
    return engine.run()


def main(argv: Optional[Sequence[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    load_dotenv()
    setup_logging()
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as e:
        # --help / --version -> 0, usage errors -> 2
        return e.code if isinstance(e.code, int) else 2

    try:
        policy = Policy(args.config)
    except InstallerError as e:
        logger.error(str(e))
        return 1

    ctx = RunContext(dry_run=args.dry_run, reverse_mode=args.reverse, state_dir=Path(policy.config.state_dir))
    setup_logging(ctx)
    code = 0
    try:
        if ctx.reverse_mode:
            report = run_reverse(ctx, policy, input_fn)
            code = 0 if report.ok else 1
        else:
            run_forward(ctx, policy, input_fn)
    except UserDeclined as e:
        logger.warning(f"Declined: {e.phase}, aborting installer")
        logger.info("Changes from earlier approved phases stay in place; undo them with --reverse.")
    except InstallerError as e:
        logger.error(str(e))
        code = 1
    except Exception:
        logger.exception("installer failed")
        code = 1
    finally:
        if not ctx.dry_run:
            metrics.dump(policy.config.metrics_textfile)
    return code


def cli() -> None:
    sys.exit(main())
