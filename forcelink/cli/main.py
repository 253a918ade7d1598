# forcelink/cli/main.py
from __future__ import annotations

from typing import Optional

from forcelink.core.errors import ForceLinkError

from forcelink.cli.args import parse_args
from forcelink.cli.commands import (
    cmd_calibrate,
    cmd_ports,
    cmd_stream,
    cmd_tare,
)


def main(argv: Optional[list[str]] = None) -> int:
    try:
        args = parse_args(argv)

        if args.cmd == "ports":
            return cmd_ports(args)
        if args.cmd == "stream":
            return cmd_stream(args)
        if args.cmd == "tare":
            return cmd_tare(args)
        if args.cmd == "calibrate":
            return cmd_calibrate(args)

        return 2
    except ForceLinkError as e:
        print(f"ERROR: {e.message}")
        if e.hint:
            print(f"Hint: {e.hint}")
        return 1

