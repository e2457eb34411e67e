"""
ipwall - Keeps ipset blocklists in sync with IP reputation feeds.

Meant to be run periodically (cron, systemd timer). Each run fetches every
enabled feed, swaps changed content into its set and makes sure the
iptables rules referencing the sets exist. With --uninstall the rules and
sets are removed instead.

Environment Variables:
    IPWALL_CONFIG   Settings file (default: /etc/ipwall/config.yaml)
    IPWALL_STATE    State file (default: /var/lib/ipwall/state.json)

Usage:
    ipwall [--uninstall] [--verbose]
"""

import argparse
import logging
import sys
from typing import Optional

from . import __version__
from .config import RuntimePaths, Settings
from .errors import IpwallError
from .fetcher import ListFetcher
from .firewall import ToolPaths, get_backend
from .state import State
from .sync import SyncOrchestrator


def setup_logging(verbose: bool = False) -> None:
    """Configure logging"""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ipwall",
        description="Sync IP blocklist feeds into ipset/iptables",
    )
    parser.add_argument(
        "-u",
        "--uninstall",
        action="store_true",
        help="Remove all rules and sets instead of installing them",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    paths = RuntimePaths.from_env()

    try:
        settings = Settings.load(paths.config)
        state = State.load(paths.state)
        tools = ToolPaths.discover()
    except IpwallError as e:
        logger.error(f"startup failed: {e}")
        return 1

    logger.debug(f"Settings: {paths.config}, state: {paths.state}")
    logger.debug(f"Using ipset={tools.ipset} iptables={tools.iptables}")

    def factory(source):
        return get_backend(settings.backend, source, settings.target, tools)

    orchestrator = SyncOrchestrator(
        settings, state, ListFetcher(timeout=settings.timeout), factory
    )
    results = orchestrator.run(uninstall=args.uninstall)

    failed = [r for r in results if not r.success]
    if failed:
        logger.warning(
            f"{len(failed)} of {len(results)} source(s) failed: "
            f"{', '.join(r.source for r in failed)}"
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
