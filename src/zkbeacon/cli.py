"""CLI entry point for zkbeacon."""

import argparse
import logging
import sys

from .config import RegistrationConfig, overrides_from_args, resolve_config
from .errors import ConfigurationError, RegistrationError
from .lifecycle import HostLifecycle, hold, run_command
from .registry import DEFAULT_CONNECT_TIMEOUT, RegistrationState


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add config flags shared by all subcommands."""
    parser.add_argument("--config", type=str, help="Path to YAML config file")
    parser.add_argument(
        "--address", type=str,
        help="ZooKeeper connection string, e.g. zk1:2181,zk2:2181 (coordination_address)",
    )
    parser.add_argument(
        "--path", type=str,
        help="Path of the ephemeral node to create (coordination_path)",
    )
    parser.add_argument(
        "--value", type=str,
        help="Payload stored at the node (coordination_value)",
    )
    parser.add_argument(
        "--log-level", type=str, dest="log_level", default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )


def _add_registration_args(parser: argparse.ArgumentParser) -> None:
    """Add flags that only matter when actually registering."""
    parser.add_argument(
        "--connect-timeout", type=float, dest="connect_timeout",
        default=DEFAULT_CONNECT_TIMEOUT,
        help=f"Seconds to wait for the ZooKeeper session (default: {DEFAULT_CONNECT_TIMEOUT:g})",
    )
    parser.add_argument(
        "--fail-fast", action="store_true", dest="fail_fast",
        help="Exit with an error if registration fails instead of carrying on",
    )


def _build_config(args) -> RegistrationConfig:
    """Build a RegistrationConfig from a config file + CLI overrides."""
    try:
        return resolve_config(args.config, overrides_from_args(args))
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _build_lifecycle(args, test_config: bool = False) -> HostLifecycle:
    lifecycle = HostLifecycle(
        test_config=test_config,
        fail_fast=getattr(args, "fail_fast", False),
        connect_timeout=getattr(args, "connect_timeout", DEFAULT_CONNECT_TIMEOUT),
    )
    lifecycle.configure(_build_config(args))
    return lifecycle


def _report_state(lifecycle: HostLifecycle) -> None:
    state = lifecycle.state
    if state is RegistrationState.REGISTERED:
        config = lifecycle.config
        print(
            f"Registered {config.node_path} at {config.coordination_address}",
            file=sys.stderr,
        )
    elif state is RegistrationState.FAILED:
        print(
            f"Warning: registration failed: {lifecycle.manager.last_error}",
            file=sys.stderr,
        )


def cmd_check(args) -> None:
    """Validate the configuration without touching ZooKeeper."""
    lifecycle = _build_lifecycle(args, test_config=True)
    lifecycle.start()
    config = lifecycle.config
    missing = config.missing_fields()
    if missing:
        print(
            "Configuration OK, registration disabled (missing: "
            + ", ".join(missing) + ")",
        )
    else:
        print(
            f"Configuration OK: {config.node_path} at {config.coordination_address} "
            f"({len(config.node_payload)} byte payload)",
        )


def cmd_hold(args) -> None:
    """Register and hold the node until signalled."""
    lifecycle = _build_lifecycle(args)
    try:
        hold(lifecycle, on_started=_report_state)
    except RegistrationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def cmd_run(args) -> None:
    """Register for as long as a child command runs."""
    command = list(args.command)
    # Strip leading '--' separator that REMAINDER captures
    if command and command[0] == "--":
        command = command[1:]
    if not command:
        print("Error: no command given (put it after --).", file=sys.stderr)
        sys.exit(1)

    lifecycle = _build_lifecycle(args)
    try:
        returncode = run_command(lifecycle, command, on_started=_report_state)
    except RegistrationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)
    except OSError as exc:
        print(f"Error: cannot run {command[0]}: {exc}", file=sys.stderr)
        sys.exit(127)
    sys.exit(returncode)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="zkbeacon",
        description="zkbeacon: advertise a process as an ephemeral ZooKeeper node",
    )
    subparsers = parser.add_subparsers(dest="command_name")

    # check
    check_parser = subparsers.add_parser(
        "check", help="Test the configuration without registering",
    )
    _add_common_args(check_parser)
    check_parser.set_defaults(func=cmd_check)

    # hold
    hold_parser = subparsers.add_parser(
        "hold", help="Register and keep the node until SIGTERM/SIGINT",
    )
    _add_common_args(hold_parser)
    _add_registration_args(hold_parser)
    hold_parser.set_defaults(func=cmd_hold)

    # run
    run_parser = subparsers.add_parser(
        "run", help="Register while a child command runs",
    )
    _add_common_args(run_parser)
    _add_registration_args(run_parser)
    run_parser.add_argument(
        "command", nargs=argparse.REMAINDER,
        help="Command to run (put it after --)",
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)

    if not args.command_name:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    args.func(args)
