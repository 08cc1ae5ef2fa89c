#!/usr/bin/env python3
"""
Start the LeadRadar HTTP API.

Usage:
    python scripts/run_server.py
    python scripts/run_server.py --port 8080 --reload
"""

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import uvicorn

from leadradar.config import load_config, validate_config
from leadradar.logging_setup import setup_logging


def main():
    parser = argparse.ArgumentParser(description="LeadRadar API server")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8000, help="Port (default: 8000)")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    args = parser.parse_args()

    setup_logging()
    errors = validate_config(load_config())
    if errors:
        for error in errors:
            print(f"Config error: {error}", file=sys.stderr)
        return 1

    uvicorn.run("leadradar.api:app", host=args.host, port=args.port, reload=args.reload)
    return 0


if __name__ == "__main__":
    sys.exit(main())
