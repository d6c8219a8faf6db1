# main.py
from __future__ import annotations

import argparse
import sys
from contextlib import ExitStack
from dataclasses import dataclass
from typing import TextIO

from debug import Debug
from errors import EnigmaError
from machine import ConversionTrace
from machine_config import build_machine, load_config
from utilities import process

# ────────────────────────────────────────────────────────────────────────
#  0. Configuration & logging
# ────────────────────────────────────────────────────────────────────────


debug = Debug()


@dataclass(slots=True)
class Config:
    """Runtime switches for a CLI run."""

    block: int = 5                  # output group size
    verbose: bool = False           # trace every key press on stderr
    upper: bool = False             # fold message text to upper case


def trace(step: ConversionTrace) -> None:
    debug.log(
        "machine", "[%s] %s -> %s -> %s",
        step.window, step.symbol_in, step.plugged, step.symbol_out,
    )


# ────────────────────────────────────────────────────────────────────────
#  1. CLI helpers
# ────────────────────────────────────────────────────────────────────────


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Encrypt or decrypt messages with a rotor machine")
    p.add_argument("config", metavar="CONFIG", help="Machine configuration (JSON or plain text).")
    p.add_argument("input", metavar="INPUT", nargs="?", help="Settings and messages. Default: standard input")
    p.add_argument("output", metavar="OUTPUT", nargs="?", help="Converted messages. Default: standard output")
    p.add_argument("--verbose", action="store_true", help="Log rotor windows and signal path for every symbol.")
    p.add_argument("--block", type=int, default=5, help="Output group size. Default: 5")
    p.add_argument("--upper", action="store_true", help="Fold message text to upper case before converting.")
    return p.parse_args(argv)


def run(config_path: str, source: TextIO, sink: TextIO, cfg: Config) -> None:
    machine = build_machine(load_config(config_path))
    observer = trace if cfg.verbose else None
    for line in process(machine, source, block=cfg.block, upper=cfg.upper, observer=observer):
        sink.write(line + "\n")
        sink.flush()


# ────────────────────────────────────────────────────────────────────────
#  2. Main entry point
# ────────────────────────────────────────────────────────────────────────


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    cfg = Config(block=args.block, verbose=args.verbose, upper=args.upper)
    if cfg.block < 1:
        print("Error: --block must be positive", file=sys.stderr)
        return 1
    if cfg.verbose:
        debug.enable("machine")

    try:
        with ExitStack() as stack:
            source = (
                stack.enter_context(open(args.input, encoding="utf-8"))
                if args.input else sys.stdin
            )
            sink = (
                stack.enter_context(open(args.output, "w", encoding="utf-8"))
                if args.output else sys.stdout
            )
            run(args.config, source, sink, cfg)
    except (EnigmaError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
