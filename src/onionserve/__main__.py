"""
=============================================================================
ONIONSERVE CLI ENTRY POINT
=============================================================================

=============================================================================
USAGE
=============================================================================

    # Publish ./public as a fresh onion service
    onionserve server

    # Same address every run, different directory
    ONIONSERVE_KEY=ed25519-sk:... onionserve server --docroot ./site

    # Fetch from a service
    onionserve get http://xxxx.onion/
    onionserve get --address xxxx.onion / index.txt

    # Make a key for a stable address
    onionserve generate keypair

=============================================================================
EXIT STATUS
=============================================================================

    0     success (or the server was stopped with Ctrl+C / SIGTERM)
    1     any error; "error: <message>" is printed to stderr
    130   interrupted before the server was up, or during a fetch

=============================================================================
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .client.fetch import FetchOrchestrator, resolve_host, resolve_targets
from .config import ClientConfig, ServerConfig, log_level_number
from .errors import OnionServeError
from .server import OnionServer
from .tor.client import TorConnector
from .tor.keys import ServiceKey, address_from_key_text
from .tor.process import launched_tor
from .ui import print_error, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onionserve",
        description="Serve and fetch static files over Tor onion services",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  onionserve server                          # Serve ./public on a new address
  onionserve server --docroot ./site         # Serve another directory
  onionserve get http://xxxx.onion/          # Fetch a page
  onionserve get --address xxxx.onion a b    # Fetch /a and /b from one host
  onionserve generate keypair                # Key for a stable address
        """
    )

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO for server, WARNING for get)"
    )
    parser.add_argument(
        "--tor-cmd",
        default=None,
        help="Tor executable to launch (default: tor)"
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"onionserve {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # ─────────────────────────────────────────────────────────────────────
    # server
    # ─────────────────────────────────────────────────────────────────────
    server = subparsers.add_parser("server", help="Publish a directory as an onion service")
    server.add_argument(
        "--key", "-k",
        default=None,
        help="Private key (ed25519-sk:...) for a stable address; prefer ONIONSERVE_KEY"
    )
    server.add_argument(
        "--docroot", "-d",
        default=None,
        help="Directory holding index.html / index.txt (default: public)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # get
    # ─────────────────────────────────────────────────────────────────────
    get = subparsers.add_parser("get", help="Fetch resources from onion services")
    get.add_argument(
        "urls",
        nargs="+",
        help="Full http://xxxx.onion/ URLs, or paths when --key/--address is given"
    )
    get.add_argument(
        "--key", "-k",
        default=None,
        help="Public key (ed25519-pk:... or xxxx.onion) the host is derived from"
    )
    get.add_argument(
        "--address", "-a",
        default=None,
        help="Host to fetch paths from, e.g. xxxx.onion"
    )

    # ─────────────────────────────────────────────────────────────────────
    # generate
    # ─────────────────────────────────────────────────────────────────────
    generate = subparsers.add_parser("generate", help="Generate key material")
    generate.add_argument("what", choices=["keypair"])

    return parser


def run_server(args: argparse.Namespace) -> int:
    config = ServerConfig.from_env()
    if args.key:
        config.key = args.key
    if args.docroot:
        config.docroot = args.docroot
    if args.tor_cmd:
        config.tor_cmd = args.tor_cmd
    if args.log_level:
        config.log_level = args.log_level

    setup_logging(log_level_number(config.log_level))
    OnionServer(config).run()
    return 0


def run_get(args: argparse.Namespace) -> int:
    config = ClientConfig.from_env()
    if args.key:
        config.key = args.key
    if args.address:
        config.address = args.address
    if args.tor_cmd:
        config.tor_cmd = args.tor_cmd
    if args.log_level:
        config.log_level = args.log_level

    setup_logging(log_level_number(config.log_level))
    config.validate()

    # All targets are checked before tor is even started
    key_address = address_from_key_text(config.key) if config.key else None
    targets = resolve_targets(args.urls, resolve_host(key_address, config.address))

    with launched_tor(config.tor_cmd) as runtime:
        connector = TorConnector(runtime.socks_port, connect_timeout=config.connect_timeout)
        FetchOrchestrator(connector, sys.stdout.buffer).fetch_all(targets)
    return 0


def run_generate(args: argparse.Namespace) -> int:
    key = ServiceKey.generate()
    print(key.to_text())
    print(key.public_text())
    print(key.onion_address)
    return 0


COMMANDS = {
    "server": run_server,
    "get": run_get,
    "generate": run_generate,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one command, translate failures into exit codes."""
    args = build_parser().parse_args(argv)

    try:
        return COMMANDS[args.command](args)
    except KeyboardInterrupt:
        return 130
    except (OnionServeError, ValueError, OSError) as e:
        print_error(e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
