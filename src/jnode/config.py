"""Editor settings from the command line and environment."""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass
from typing import Mapping

from jnode.sync import DEFAULT_RECONCILE_DELAY

_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class EditorConfig:
    indent: int = 2
    reconcile_delay: float = DEFAULT_RECONCILE_DELAY
    read_only: bool = False
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if self.indent < 0:
            raise ValueError(f"indent must be >= 0, got {self.indent}")
        if self.reconcile_delay < 0:
            raise ValueError(f"delay must be >= 0, got {self.reconcile_delay}")
        self.log_level = self.log_level.upper()
        if self.log_level not in _LEVELS:
            raise ValueError(f"unknown log level: {self.log_level}")

    @property
    def log_level_value(self) -> int:
        return getattr(logging, self.log_level)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EditorConfig:
        env = os.environ if environ is None else environ
        defaults = cls()
        try:
            return cls(
                indent=int(env.get("JNODE_INDENT", defaults.indent)),
                reconcile_delay=float(
                    env.get("JNODE_RECONCILE_DELAY", defaults.reconcile_delay)
                ),
                log_level=env.get("JNODE_LOG_LEVEL", defaults.log_level),
            )
        except (TypeError, ValueError) as e:
            raise ValueError(f"bad environment setting: {e}") from e

    @classmethod
    def from_args(
        cls, args: argparse.Namespace, environ: Mapping[str, str] | None = None
    ) -> EditorConfig:
        """Command-line options override environment settings."""
        base = cls.from_env(environ)
        return cls(
            indent=base.indent if args.indent is None else args.indent,
            reconcile_delay=(
                base.reconcile_delay if args.delay is None else args.delay
            ),
            read_only=args.read_only,
            log_level=base.log_level if args.log_level is None else args.log_level,
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jnode",
        description="Browse and edit JSON nodes in Textual",
    )
    parser.add_argument(
        "file",
        nargs="?",
        default="",
        help="JSON file to open",
    )
    parser.add_argument(
        "-p", "--path",
        default="",
        help='node to open on start, e.g. $["customer"][0]',
    )
    parser.add_argument(
        "--indent",
        type=int,
        default=None,
        help="indent of saved JSON (default 2)",
    )
    parser.add_argument(
        "--delay",
        type=float,
        default=None,
        help="seconds to wait before reconciling an edited node (default 0.5)",
    )
    parser.add_argument(
        "-R", "--read-only",
        action="store_true",
        default=False,
        help="open in read-only mode",
    )
    parser.add_argument(
        "--log-level",
        choices=_LEVELS,
        type=str.upper,
        default=None,
        help="log level for the Textual devtools console",
    )
    return parser
