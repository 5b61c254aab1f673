"""Inspect the settings store from a shell: ``python -m whisperd [show|paths|watch]``."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .codec import serialize
from .config_manager import ConfigManager
from .errors import ConfigError
from .logging_utils import get_logger, log_context, setup_logging

LOGGER = get_logger("whisperd.cli", component="CLI")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="whisperd",
        description="Inspect and follow the whisperd settings file.",
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory holding config.jsonc. Defaults to the per-user config directory.",
    )
    sub = parser.add_subparsers(dest="command")
    sub.add_parser("show", help="Print the effective settings as JSON.")
    sub.add_parser("paths", help="Print resolved model, binary, temp and assets paths.")
    watch = sub.add_parser("watch", help="Print the settings every time the file changes.")
    watch.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Poll interval in seconds.",
    )
    return parser.parse_args(argv)


def _print_paths(manager: ConfigManager) -> None:
    print(f"config:  {manager.config_path}")
    print(f"model:   {manager.get_model_path()}")
    print(f"vad:     {manager.get_vad_model_path() or '<disabled or missing>'}")
    binaries = manager.get_whisper_binary_candidates(include_fallbacks=True)
    print("binaries:")
    for binary in binaries:
        print(f"  {binary}")
    if not binaries:
        print("  <none found>")
    print(f"temp:    {manager.get_temp_dir()}")
    print(f"assets:  {manager.get_assets_dir()}")


def _watch(manager: ConfigManager, interval: float | None) -> None:
    if interval is None:
        manager.start_watching()
    else:
        manager.start_watching(interval)
    subscription = manager.subscribe()
    try:
        for settings in subscription:
            sys.stdout.write(serialize(settings))
            sys.stdout.flush()
    except KeyboardInterrupt:
        pass
    finally:
        manager.stop_watching()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    try:
        manager = ConfigManager.load(args.config_dir)
        command = args.command or "show"
        if command == "show":
            sys.stdout.write(serialize(manager.get()))
        elif command == "paths":
            _print_paths(manager)
        else:
            _watch(manager, args.interval)
    except ConfigError as exc:
        LOGGER.error(
            log_context(
                "whisperd settings command failed.",
                event="cli.failed",
                error=str(exc),
            )
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
