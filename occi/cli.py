from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from occi.core import DEFAULT_CONFIG_PATH, ConfigError, ConfigNotFoundError, SettingsError, load_config, load_settings, settings_to_toml
from occi.diagnostics import DiagnosticLogger
from occi.dispatch import handler_names, run_handlers


HELP_TEXT = """\
occi: configuration file {path} not found.

occi applies settings from a plain text file at boot. Create {path}
with one "key = value" per line, for example:

    hostname = raspberrypi
    wifi_ssid = MyNetwork
    wifi_password = secret

Lines starting with # are ignored."""


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="occi", description="Apply boot-time system configuration.")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Path to the key = value config file.",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Path to the TOML settings file (default: $OCCI_SETTINGS_PATH or /etc/occi.toml).",
    )
    parser.add_argument(
        "--only",
        action="append",
        choices=handler_names(),
        help="Run only the named handler. May be repeated.",
    )
    parser.add_argument("--show-settings", action="store_true", help="Print the effective settings and exit.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every command executed.")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(message)s",
    )

    try:
        settings = load_settings(args.settings)
    except (SettingsError, OSError) as exc:
        print(f"occi: error: {exc}", file=sys.stderr)
        return 1
    settings.config_path = args.config

    if args.show_settings:
        print(settings_to_toml(settings).rstrip())
        return 0

    try:
        config = load_config(args.config)
    except ConfigNotFoundError:
        print(HELP_TEXT.format(path=args.config), file=sys.stderr)
        return 1
    except (ConfigError, OSError) as exc:
        print(f"occi: error: {exc}", file=sys.stderr)
        return 1

    try:
        run_handlers(config, DiagnosticLogger(), settings, only=args.only)
    except OSError as exc:
        print(f"occi: error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
