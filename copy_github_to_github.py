#!/usr/bin/env python3
"""
Copy GitHub to GitHub - Copy a GitHub repository or a full organization
between accounts.

Every repository of the source organization (or the single source
repository) is cloned and force-pushed, with its tags, into the target
organization, which may live on github.com or on a GitHub Enterprise host.
Target repositories are created when missing. With --every the copy is
repeated on a fixed interval until interrupted.

Licensed under the MIT License.

License: MIT
"""

from __future__ import annotations

import sys
import threading
from typing import NoReturn, Optional, Sequence

from argument_parser import parse_arguments
from sync_orchestrator import SyncOrchestrator, install_interrupt_handler
from systemd_unit import render_unit

# Exit codes
EXIT_SUCCESS = 0
EXIT_EXECUTION_ERROR = 1


def main(argv: Optional[Sequence[str]] = None) -> NoReturn:
    cfg = parse_arguments(argv)

    if cfg.print_systemd_unit:
        sys.stdout.write(
            render_unit(
                None if argv is None else [sys.argv[0], *argv],
                env_vars=cfg.token_env_vars,
            )
        )
        sys.exit(EXIT_SUCCESS)

    cancel_event = threading.Event()
    install_interrupt_handler(cancel_event)
    orchestrator = SyncOrchestrator(cfg, cancel_event=cancel_event)
    sys.exit(orchestrator.run())


if __name__ == "__main__":
    main()
