# forcelink/cli/args.py
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

DEFAULT_LOG_PATH = Path("data") / "forcelink.log"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="forcelink")
    sub = parser.add_subparsers(dest="cmd", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", type=Path, default=None, help="YAML config file (optional).")
    common.add_argument("--driver", default=None, help="Transport driver: serial | sim.")
    common.add_argument("--name", default=None, help="Advertised device name to connect to.")
    common.add_argument("--log-file", type=Path, default=DEFAULT_LOG_PATH)
    common.add_argument("--verbose", "-v", action="store_true", help="Log DEBUG to stderr.")

    sub.add_parser("ports", parents=[common])

    session = argparse.ArgumentParser(add_help=False)
    session.add_argument(
        "--connect-timeout",
        type=float,
        default=10.0,
        help="Seconds to wait for the link to reach Connected.",
    )

    ps = sub.add_parser("stream", parents=[common, session])
    ps.add_argument("--secs", type=float, default=None)

    pt = sub.add_parser("tare", parents=[common, session])
    pt.add_argument("--ack-timeout", type=float, default=2.0)

    pc = sub.add_parser("calibrate", parents=[common, session])
    pc.add_argument("channel", choices=["a", "b"])
    pc.add_argument("factor", type=float)
    pc.add_argument("--ack-timeout", type=float, default=2.0)

    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)
