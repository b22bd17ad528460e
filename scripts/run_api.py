#!/usr/bin/env python
"""
Run the Instant Quote API with uvicorn.

Usage:
    python scripts/run_api.py [--port 8000] [--no-reload] [--log-level DEBUG]
"""
import argparse
import os
import subprocess
import sys
from pathlib import Path


def main():
    parser = argparse.ArgumentParser(description="Run the Instant Quote API")
    parser.add_argument('--host', default='0.0.0.0')
    parser.add_argument('--port', type=int, default=8000)
    parser.add_argument('--no-reload', action='store_true', help="Disable auto-reload")
    parser.add_argument('--log-level', default=None, help="Package log level (e.g. DEBUG)")
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    os.chdir(project_root)

    # Ensure src is in python path
    env = os.environ.copy()
    src_path = str(project_root / "src")
    if "PYTHONPATH" in env:
        env["PYTHONPATH"] = f"{src_path}{os.pathsep}{env['PYTHONPATH']}"
    else:
        env["PYTHONPATH"] = src_path
    if args.log_level:
        env["INSTANT_QUOTE_LOG_LEVEL"] = args.log_level.upper()

    cmd = [
        sys.executable, "-m", "uvicorn",
        "instant_quote.api.main:app",
        "--host", args.host,
        "--port", str(args.port),
    ]
    if not args.no_reload:
        cmd.append("--reload")

    print(f"Starting Instant Quote API on port {args.port}...")
    try:
        subprocess.run(cmd, env=env)
    except KeyboardInterrupt:
        print("\nAPI stopped.")


if __name__ == "__main__":
    main()
