#!/usr/bin/env python
"""
Build pipeline - imports materials into the catalog and runs the test suite.

Usage:
    python scripts/build_all.py [--source materials.csv] [--reset]
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
    parser = argparse.ArgumentParser(description="Build the materials catalog")
    parser.add_argument('--source', type=Path, default=None, help="Import file (defaults to the seed list)")
    parser.add_argument('--reset', action='store_true', help="Replace the catalog instead of upserting")
    parser.add_argument('--skip-tests', action='store_true')
    args = parser.parse_args()

    configure_logging()
    settings = get_settings()

    print("=" * 60)
    print("INSTANT QUOTE BUILD PIPELINE")
    print("=" * 60)
    print()

    print("[1/2] Importing materials...")
    report = build_materials_catalog(settings, source=args.source, replace=args.reset)

    if report["status"] != "success":
        print("\n❌ BUILD FAILED")
        for error in report["errors"]:
            print(f"  ERROR: {error}")
        sys.exit(1)

    print()
    if args.skip_tests:
        print("[2/2] Skipping tests")
    else:
        print("[2/2] Running tests...")
        test_result = subprocess.run(
            [sys.executable, '-m', 'pytest', 'tests', '-q', '--tb=short'],
            cwd=Path(__file__).parent.parent
        )
        if test_result.returncode != 0:
            print("\n❌ TESTS FAILED")
            sys.exit(1)

    metrics = report['metrics']
    print()
    print("=" * 60)
    print("✅ BUILD COMPLETE")
    print("=" * 60)
    print()
    print("Summary:")
    print(f"  Rows read: {metrics['rows_read']}")
    print(f"  Added: {metrics['materials_added']}  Updated: {metrics['materials_updated']}")
    print(f"  Skipped rows: {metrics['rows_skipped']}")
    print(f"  Materials in catalog: {metrics['final_material_count']}")
    if metrics['low_stock']:
        print(f"  Low stock: {', '.join(metrics['low_stock'])}")
    for warning in report['warnings']:
        print(f"  WARNING: {warning}")


if __name__ == "__main__":
    main()
