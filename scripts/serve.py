from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

# backend/ is not an installed package; uvicorn imports it from here.
REPO_ROOT = Path(__file__).resolve().parents[1]

APP = "backend.app.main:app"


def main() -> int:
    load_dotenv()

    parser = argparse.ArgumentParser(
        description="Serve the gateway inspector HTTP API."
    )
    parser.add_argument(
        "--host",
        dest="host",
        default=os.getenv("GATEWAY_INSPECTOR_HOST", "127.0.0.1"),
        help="Interface to bind.",
    )
    parser.add_argument(
        "--port",
        dest="port",
        type=int,
        default=int(os.getenv("GATEWAY_INSPECTOR_PORT", "8000")),
        help="Port to listen on.",
    )
    parser.add_argument(
        "--reload",
        dest="reload",
        action="store_true",
        help="Restart on code changes (development).",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="info",
        choices=["critical", "error", "warning", "info", "debug"],
        help="Server log level.",
    )
    args = parser.parse_args()

    uvicorn.run(
        APP,
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level=args.log_level,
        app_dir=str(REPO_ROOT),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
