"""Command-line interface for KVM control."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .client import KVMClient
from .config import DeviceConfig, load_config
from .exceptions import InvalidPortError, InvalidValueError, KVMError

logger = logging.getLogger(__name__)

COMMANDS = ("get", "set", "buzzer", "lcd")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="kvmctl",
        usage="%(prog)s [options] {get,set,buzzer,lcd} [value]",
        description="Controls a KVM switch using TCP/IP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  get              Retrieves the active port number.
  set <port>       Switches to the given port (1 to the number of ports).
  buzzer <0|1>     Turns the buzzer off (0) or on (1).
  lcd <0|10|30>    Disables or sets the LCD timeout in seconds.

Configuration:
  Settings can be stored in the [device] table of ~/.config/kvmctl/config.toml
  Use --host, --port, etc. to override config file values.
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        help="KVM IP address (overrides config file)",
    )

    parser.add_argument(
        "--port",
        type=int,
        help="KVM TCP port (overrides config file)",
    )

    parser.add_argument(
        "--timeout",
        type=float,
        help="Socket timeout in seconds (overrides config file)",
    )

    parser.add_argument(
        "--delay",
        type=float,
        help="Delay after each command in seconds (overrides config file)",
    )

    parser.add_argument(
        "--attempts",
        type=int,
        help="Attempts when reading the active port (overrides config file)",
    )

    parser.add_argument(
        "--num-ports",
        type=int,
        choices=[8, 16],
        help="Number of ports on the KVM (overrides config file)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        help="Path to config file (default: ~/.config/kvmctl/config.toml)",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for protocol frames)",
    )

    parser.add_argument("command", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("value", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("extra", nargs="*", help=argparse.SUPPRESS)

    return parser


def configure_logging(verbosity: int) -> None:
    """Send log records to stderr at a level chosen by -v flags."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def parse_port(value: Optional[str], num_ports: int) -> int:
    """Parse a port argument.

    Raises:
        InvalidPortError: If the value is missing, not a number or out of range
    """
    try:
        port = int(value)
    except (TypeError, ValueError):
        raise InvalidPortError(f"Invalid port specified. Range is 1 to {num_ports}.")
    if not 1 <= port <= num_ports:
        raise InvalidPortError(f"Invalid port specified. Range is 1 to {num_ports}.")
    return port


def parse_buzzer(value: Optional[str]) -> int:
    """Parse a buzzer argument (0/1 or off/on).

    Raises:
        InvalidValueError: If the value is not recognised
    """
    states = {"0": 0, "off": 0, "1": 1, "on": 1}
    if value is None or value.lower() not in states:
        raise InvalidValueError("Buzzer only accepts 0 (off) or 1 (on).")
    return states[value.lower()]


def parse_lcd_timeout(value: Optional[str]) -> int:
    """Parse an LCD timeout argument (0/off, 10 or 30).

    Raises:
        InvalidValueError: If the value is not recognised
    """
    timeouts = {"0": 0, "off": 0, "10": 10, "30": 30}
    if value is None or value.lower() not in timeouts:
        raise InvalidValueError("LCD timeout only accepts 0 (off), 10 or 30 seconds.")
    return timeouts[value.lower()]


def handle_get_port(kvm: KVMClient) -> int:
    """Handle the 'get' command.

    Args:
        kvm: KVMClient instance

    Returns:
        Exit code (0 for success)
    """
    try:
        port = kvm.get_port()
    except KVMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"The current port is {port}")
    return 0


def handle_set_port(kvm: KVMClient, value: Optional[str]) -> int:
    """Handle the 'set' command.

    Args:
        kvm: KVMClient instance
        value: Port number as given on the command line

    Returns:
        Exit code (0 for success)
    """
    try:
        port = parse_port(value, kvm.config.num_ports)
        result = kvm.set_port(port)
    except KVMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result["switched"]:
        print(f"Port changed from {result['old_port']} to {result['new_port']}.")
    else:
        print(f"Port {result['old_port']} is already active.")
    return 0


def handle_set_buzzer(kvm: KVMClient, value: Optional[str]) -> int:
    """Handle the 'buzzer' command.

    Args:
        kvm: KVMClient instance
        value: Buzzer state (0/1/off/on)

    Returns:
        Exit code (0 for success)
    """
    try:
        mode = parse_buzzer(value)
        kvm.set_buzzer(mode)
    except KVMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print("Buzzer unmuted." if mode else "Buzzer muted.")
    return 0


def handle_set_lcd(kvm: KVMClient, value: Optional[str]) -> int:
    """Handle the 'lcd' command.

    Args:
        kvm: KVMClient instance
        value: Timeout value (0/off/10/30)

    Returns:
        Exit code (0 for success)
    """
    try:
        timeout = parse_lcd_timeout(value)
        kvm.set_lcd_timeout(timeout)
    except KVMError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    if timeout == 0:
        print("LCD timeout disabled.")
    else:
        print(f"LCD timeout set to {timeout} seconds.")
    return 0


def build_config(args: argparse.Namespace) -> DeviceConfig:
    """Load the config file and apply command-line overrides.

    Raises:
        ValueError: If an override is out of range
    """
    return load_config(args.config).with_overrides(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        delay=args.delay,
        attempts=args.attempts,
        num_ports=args.num_ports,
    )


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (default: sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args, unknown = parser.parse_known_args(argv)

    if unknown or args.command not in COMMANDS:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    try:
        config = build_config(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    kvm = KVMClient(config)
    logger.debug("Using %r", kvm)

    if args.command == "get":
        return handle_get_port(kvm)
    elif args.command == "set":
        return handle_set_port(kvm, args.value)
    elif args.command == "buzzer":
        return handle_set_buzzer(kvm, args.value)
    else:
        return handle_set_lcd(kvm, args.value)


if __name__ == "__main__":
    sys.exit(main())
