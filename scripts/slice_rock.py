#!/usr/bin/env python3
"""Slice a rock volume into blocks along a list of joints."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rock_slicing import SlicerConfig, run_slicing_pipeline
from run_protocol import open_run_folder, write_slice_run


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cut a rock volume by joints into convex blocks"
    )
    parser.add_argument(
        "--input", required=True, help="Rock volume + joint description file"
    )
    parser.add_argument("--name", default="rock_slicing", help="Run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--workers",
        type=int,
        default=1,
        help="Worker processes for cutting (1 = serial)",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=16,
        help="Blocks per task sent to a worker",
    )
    parser.add_argument(
        "--keep-redundant",
        action="store_true",
        help="Skip removal of non-binding faces",
    )
    parser.add_argument(
        "--recenter",
        action="store_true",
        help="Move each bounded block's center to its centroid",
    )
    parser.add_argument(
        "--no-geometry",
        action="store_true",
        help="Omit volume/centroid from the block document",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.input).is_file():
        print(f"Input file not found: {args.input}", file=sys.stderr)
        return 2

    config = SlicerConfig(
        input_path=args.input,
        run_name=args.name,
        max_workers=max(1, int(args.workers)),
        chunk_size=max(1, int(args.chunk_size)),
        remove_redundant_faces=not args.keep_redundant,
        recenter_blocks=args.recenter,
        include_geometry=not args.no_geometry,
    )
    result = run_slicing_pipeline(config=config)
    if result.status != "ok":
        print(str(result.parse_error), file=sys.stderr)
        return 2

    folder = open_run_folder(args.runs_dir, args.name, args.input)
    metrics = write_slice_run(folder, result, config)

    print(f"Run ID: {folder.run_id}")
    print(f"Blocks: {metrics['block_count']}")
    print(f"Block JSON: {folder.blocks_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
