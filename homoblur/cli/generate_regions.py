"""CLI for evaluating a transform scene frame by frame."""

import argparse
import logging
import sys
from pathlib import Path

from homoblur.core import HomoblurError
from homoblur.generators import RegionGenerator


def main():
    parser = argparse.ArgumentParser(description="Compute per-frame regions and transforms of a transform scene")
    parser.add_argument("config", type=Path, help="Path to YAML scene file")
    parser.add_argument("-o", "--output", type=Path, required=True, help="Output CSV path")
    parser.add_argument("--packages-dir", type=Path, default=None, help="Save per-frame render packages (.npy) here")
    parser.add_argument("--no-progress", action="store_true", help="Disable progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        gen = RegionGenerator(args.config)
        results = gen.generate(args.output, packages_dir=args.packages_dir, progress=not args.no_progress)
    except HomoblurError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"\nGeneration complete:")
    print(f"  Frames: {results['total']}")
    print(f"  Written: {results['written']} -> {args.output}")
    print(f"  Errors: {len(results['errors'])}")

    if results["errors"]:
        print("\nFailed frames:")
        for err in results["errors"][:10]:
            print(f"  {err['frame']} (t={err['time']}): {err['error']}")
        sys.exit(1)


if __name__ == "__main__":
    main()
