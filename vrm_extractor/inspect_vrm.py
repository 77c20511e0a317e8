#!/usr/bin/env python3
"""Parse VRM avatar files and report their metadata.

Usage:
    python -m vrm_extractor.inspect_vrm <input> [-o <output>] [--attributes] [-v]

Examples:
    # Inspect a single file
    python -m vrm_extractor.inspect_vrm avatar.vrm

    # Write metadata JSON for every VRM file in a directory
    python -m vrm_extractor.inspect_vrm ./avatars/ -o ./metadata

    # Write the vrm:* export attributes instead of plain metadata
    python -m vrm_extractor.inspect_vrm avatar.vrm -o ./out --attributes
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

from .vrm_attributes import to_vrm_attributes
from .vrm_errors import VrmError
from .vrm_parser import VrmParser

VRM_SUFFIXES = (".vrm", ".glb")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def collect_files(input_path: Path):
    if input_path.is_file():
        return [input_path]
    return sorted(
        p for p in input_path.glob("**/*") if p.is_file() and p.suffix.lower() in VRM_SUFFIXES
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Parse VRM avatar files and report their metadata"
    )
    parser.add_argument(
        "input",
        help="Input VRM file or directory containing VRM files",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output directory for metadata JSON files",
    )
    parser.add_argument(
        "--attributes",
        action="store_true",
        help="Write vrm:* export attributes instead of metadata",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )

    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Input not found: {args.input}", file=sys.stderr)
        return 1

    files = collect_files(input_path)
    if not files:
        print(f"No VRM files found in {input_path}", file=sys.stderr)
        return 1

    if args.output:
        os.makedirs(args.output, exist_ok=True)

    vrm_parser = VrmParser()
    success_count = 0
    fail_count = 0

    for vrm_file in files:
        try:
            result = vrm_parser.parse_vrm(vrm_file)
        except VrmError as e:
            print(f"Failed: {vrm_file} - {e}", file=sys.stderr)
            fail_count += 1
            continue

        metadata = result.metadata
        mode = "degraded" if result.gltf.degraded else result.gltf.profile
        print(
            f"{vrm_file}: VRM {result.version}, title={metadata.title!r}, "
            f"author={metadata.author!r}, bones={len(metadata.humanoid_bones)} [{mode}]"
        )

        if args.output:
            payload = to_vrm_attributes(result) if args.attributes else metadata.to_dict()
            output_file = Path(args.output) / f"{vrm_file.stem}.json"
            with open(output_file, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, sort_keys=True, ensure_ascii=False)

        success_count += 1

    total = success_count + fail_count
    print(f"\nParsed {success_count}/{total} files")

    return 0 if fail_count == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
