from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from gateway_inspector.app.run import OUTPUT_FORMATS, run_once
from gateway_inspector.config.paths import LOGS_DIR, WORKERS, default_output_path
from gateway_inspector.errors import ProcessError

logger = logging.getLogger("gateway_inspector")


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logfile = logging.FileHandler(LOGS_DIR / "analyze.log", encoding="utf-8")
    logfile.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(console)
    root.addHandler(logfile)


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Analyze a gateway configuration backup."
    )
    parser.add_argument(
        "-b",
        "--backup-file",
        dest="backup_file",
        type=Path,
        required=True,
        help="Gateway backup archive (zip).",
    )
    parser.add_argument(
        "-o",
        "--output-file",
        dest="output_file",
        type=Path,
        default=None,
        help="Where to write the inspection result (default: OUTPUT_DIR/backup_info.<format>).",
    )
    parser.add_argument(
        "--format",
        dest="fmt",
        choices=OUTPUT_FORMATS,
        default="yaml",
        help="Output format.",
    )
    parser.add_argument(
        "--workers",
        dest="workers",
        type=int,
        default=WORKERS,
        help="Number of domains inspected in parallel.",
    )
    parser.add_argument(
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Log debug output.",
    )
    args = parser.parse_args()

    configure_logging(args.verbose)

    output_path = args.output_file or default_output_path(args.fmt)
    try:
        result = run_once(
            backup_file=args.backup_file,
            output_path=output_path,
            fmt=args.fmt,
            workers=max(1, args.workers),
        )
    except ProcessError as exc:
        logger.error(str(exc))
        return 1

    summary = result["summary"]
    logger.info(
        "Inspected %s domains, %s gateways, %s rules, %s actions -> %s",
        summary["domains"],
        summary["gateways"],
        summary["rules"],
        summary["actions"],
        summary["output_path"],
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
