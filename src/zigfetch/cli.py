# src/zigfetch/cli.py

import argparse
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import List, Optional

import platformdirs

from zigfetch import config as zig_config
from zigfetch import log_utils
from zigfetch.constants import APP_NAME
from zigfetch.exceptions import UserCancelled, ZigfetchError
from zigfetch.installer import InstallCoordinator
from zigfetch.menu import Prompter
from zigfetch.progress import ProgressStyle
from zigfetch.targets import (
    SUPPORTED_ARCHITECTURES,
    Architecture,
    InstallTarget,
    MenuAction,
    OperatingSystem,
    detect_host_target,
)

EXIT_OK = 0
EXIT_ERROR = 1


def get_zigfetch_version() -> str:
    """
    Retrieve the installed zigfetch package version.

    Returns:
        version (str): The installed version string, or "unknown" if it cannot be determined.
    """
    try:
        return version(APP_NAME)
    except PackageNotFoundError:
        return "unknown"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="zigfetch - download and unpack the latest Zig compiler build",
    )
    parser.add_argument(
        "--log-level",
        help="Console log level (DEBUG, INFO, WARNING, ERROR)",
    )
    subparsers = parser.add_subparsers(dest="command")

    install_parser = subparsers.add_parser(
        "install", help="Download and unpack the latest Zig build"
    )
    install_parser.add_argument(
        "--os",
        dest="operating_system",
        choices=[os_.value for os_ in OperatingSystem],
        help="Target operating system (asked interactively when omitted)",
    )
    install_parser.add_argument(
        "--arch",
        dest="architecture",
        choices=[arch.value for arch in Architecture],
        help="Target architecture (macOS only; Linux builds are x86_64)",
    )
    install_parser.add_argument(
        "--channel", help="Release channel to install from (default: master)"
    )
    install_parser.add_argument(
        "--install-dir", help="Directory to unpack into (default: ~/.zig)"
    )
    install_parser.add_argument(
        "--staging-dir", help="Directory the archive is downloaded to"
    )
    install_parser.add_argument(
        "--yes",
        "-y",
        action="store_true",
        help="Unpack to the install directory without asking",
    )
    install_parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip size and SHA-256 verification of the download",
    )
    install_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Always fetch the full release index",
    )

    config_parser = subparsers.add_parser(
        "config", help="Show the configuration file location and effective settings"
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        help="Write a configuration file with default values if none exists",
    )

    subparsers.add_parser("version", help="Display zigfetch version")
    return parser


def _target_from_args(args: argparse.Namespace) -> Optional[InstallTarget]:
    """
    Build an InstallTarget from --os/--arch, or None when --os was not given.

    A missing --arch for macOS falls back to the host architecture, then x86_64.
    """
    if not getattr(args, "operating_system", None):
        return None
    operating_system = OperatingSystem(args.operating_system)
    if args.architecture:
        architecture = Architecture(args.architecture)
    else:
        host = detect_host_target()
        architecture = (
            host.architecture
            if host and host.operating_system is operating_system
            else Architecture.X86_64
        )
    if architecture not in SUPPORTED_ARCHITECTURES[operating_system]:
        log_utils.logger.warning(
            f"{operating_system.value} builds are only published for x86_64; using x86_64"
        )
        architecture = Architecture.X86_64
    return InstallTarget(operating_system, architecture)


def _load_settings(args: argparse.Namespace) -> zig_config.Settings:
    config = zig_config.load_config()
    overrides = {
        "CHANNEL": getattr(args, "channel", None),
        "INSTALL_DIR": getattr(args, "install_dir", None),
        "STAGING_DIR": getattr(args, "staging_dir", None),
    }
    if getattr(args, "no_verify", False):
        overrides["VERIFY_CHECKSUM"] = False
    if getattr(args, "no_cache", False):
        overrides["USE_MANIFEST_CACHE"] = False
    return zig_config.build_settings(config, overrides)


def _configure_logging(settings: zig_config.Settings, cli_level: Optional[str]) -> None:
    level = cli_level or settings.log_level
    if level:
        log_utils.set_log_level(level)
    if settings.log_to_file:
        log_file = log_utils.add_file_logging(
            Path(platformdirs.user_log_dir(APP_NAME)), level or "INFO"
        )
        log_utils.logger.debug(f"Logging to {log_file}")


def _run_install(
    args: argparse.Namespace, settings: zig_config.Settings, prompter: Prompter
) -> int:
    if args.command is None:
        if prompter.select_action() is MenuAction.QUIT:
            return EXIT_OK
        target = None
    else:
        target = _target_from_args(args)

    coordinator = InstallCoordinator(
        settings,
        prompter=prompter,
        style=ProgressStyle(),
        assume_yes=getattr(args, "yes", False),
    )
    coordinator.run(target)
    return EXIT_OK


def _handle_config_command(args: argparse.Namespace) -> int:
    if args.init:
        written = zig_config.write_default_config()
        if written:
            log_utils.logger.info(f"Wrote default configuration to {written}")
        else:
            log_utils.logger.info(
                f"Configuration already exists at {zig_config.CONFIG_FILE}"
            )
    settings = zig_config.build_settings(zig_config.load_config())
    state = "found" if zig_config.config_exists() else "not found, using defaults"
    print(f"Configuration file: {zig_config.CONFIG_FILE} ({state})")
    for name, value in vars(settings).items():
        print(f"  {name}: {value}")
    return EXIT_OK


def run(argv: Optional[List[str]] = None, prompter: Optional[Prompter] = None) -> int:
    """
    Parse arguments, run the requested command and return the process exit status.

    This is the only place where failures become exit codes: a cancelled prompt
    exits 0, any other zigfetch error is logged and exits 1.
    """
    args = _build_parser().parse_args(argv)

    if args.command == "version":
        print(f"zigfetch v{get_zigfetch_version()}")
        return EXIT_OK

    try:
        if args.command == "config":
            return _handle_config_command(args)

        settings = _load_settings(args)
        _configure_logging(settings, args.log_level)
        return _run_install(args, settings, prompter or Prompter())
    except UserCancelled:
        log_utils.logger.info("Cancelled.")
        return EXIT_OK
    except ZigfetchError as e:
        log_utils.logger.error(f"Error: {e}")
        return EXIT_ERROR


def main() -> None:
    """Entry point for the zigfetch command-line interface."""
    sys.exit(run())


if __name__ == "__main__":
    main()
