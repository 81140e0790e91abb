from __future__ import annotations
import json
import sys
from typing import List, Optional

from .cli.argument_parser import parse_args_with_config
from .config.settings import Prompter, collect_settings
from .core.exceptions import Esxi2PveError, Fatal, format_exception_for_cli
from .core.sanity_checker import SanityChecker
from .orchestrator.orchestrator import Orchestrator
from .proxmox.qm import QemuManager


def run(argv: Optional[List[str]] = None) -> int:
    logger = None
    verbose = 0
    try:
        args, conf, logger = parse_args_with_config(argv)
        verbose = args.verbose
        prompter = Prompter(logger, conf)
        workdir = args.workdir or prompter.setting("MIGRATION_DIR", "/mnt/vm-migration")

        SanityChecker(logger, workdir).check_all()

        qm = QemuManager(logger)
        settings = collect_settings(logger, prompter, qm.exists, workdir=workdir)
        if args.dump_config:
            print(json.dumps(settings.redacted(), indent=2, sort_keys=True))
            return 0
        return Orchestrator(logger, settings, prompter, qm=qm).run()
    except Fatal as e:
        # U.die already logged it; only print when logging never came up
        if logger is None:
            print(f"💥 ERROR    {e}", file=sys.stderr)
        return e.code
    except Esxi2PveError as e:
        # raised without having been logged (e.g. a tool vanished mid-run)
        message = format_exception_for_cli(e, verbose=verbose)
        if logger is None:
            print(f"💥 ERROR    {message}", file=sys.stderr)
        else:
            logger.error(message)
        return e.code
    except KeyboardInterrupt:
        if logger is None:
            print("Interrupted by user (Ctrl+C).", file=sys.stderr)
        else:
            logger.warning("Interrupted by user (Ctrl+C).")
        return 130


def main() -> None:
    sys.exit(int(run()))


if __name__ == "__main__":
    main()
