#!/usr/bin/env python
"""
Run the Streamlit instant quote application.

Builds the materials catalog from the seed list first if it does not exist.

Usage:
    python scripts/run_app.py [--port 8501]
"""
import argparse
import subprocess
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from instant_quote.config.settings import configure_logging, get_settings
from instant_quote.data.build_catalog import build_materials_catalog


def main():
    parser = argparse.ArgumentParser(description="Run the Instant Quote UI")
    parser.add_argument('--port', type=int, default=8501)
    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    ui_path = src_path / 'instant_quote' / 'ui' / 'app_streamlit.py'

    if not ui_path.exists():
        print(f"ERROR: UI module not found at {ui_path}")
        sys.exit(1)

    settings = get_settings()
    if not settings.materials_catalog.exists():
        configure_logging()
        print("Materials catalog not found, building it from the seed list...")
        report = build_materials_catalog(settings)
        if report["status"] != "success":
            print("WARNING: catalog build failed; the app will use seed data")

    cmd = [sys.executable, '-m', 'streamlit', 'run', str(ui_path), '--server.port', str(args.port)]
    print(f"Starting Streamlit: {' '.join(cmd)}")

    try:
        subprocess.run(cmd, cwd=str(project_root))
    except KeyboardInterrupt:
        print("\nApplication stopped.")


if __name__ == "__main__":
    main()
