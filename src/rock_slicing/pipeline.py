"""End-to-end run: input file -> sliced blocks -> JSON payload."""

from __future__ import annotations

import logging
import time
from pathlib import Path

from rock_slicing.block_json import blocks_to_payload
from rock_slicing.contracts import SliceRunResult, SliceTrace, SlicerConfig
from rock_slicing.input_processor import read_input
from rock_slicing.slicer import slice_rock_volume

logger = logging.getLogger(__name__)


def run_slicing_pipeline(*, config: SlicerConfig) -> SliceRunResult:
    started = time.perf_counter()
    input_path = Path(config.input_path)
    if not input_path.is_file():
        raise FileNotFoundError(f"Input file not found: {input_path}")

    parsed = read_input(input_path)
    if not parsed.ok:
        return SliceRunResult(
            run_name=config.run_name,
            status="input_error",
            origin=None,
            blocks=(),
            joint_count=0,
            step_block_counts=[],
            elapsed_s=time.perf_counter() - started,
            payload={},
            parse_error=parsed.error,
        )

    data = parsed.value
    trace = SliceTrace()
    blocks = slice_rock_volume(
        data.origin, data.rock_volume, data.joints, config=config, trace=trace
    )
    payload = blocks_to_payload(blocks, include_geometry=config.include_geometry)
    elapsed = time.perf_counter() - started
    logger.info(
        "Sliced %s into %d blocks in %.2fs (%s)",
        input_path.name, len(blocks), elapsed, trace.executor,
    )
    return SliceRunResult(
        run_name=config.run_name,
        status="ok",
        origin=data.origin,
        blocks=blocks,
        joint_count=len(data.joints),
        step_block_counts=list(trace.step_block_counts),
        elapsed_s=elapsed,
        payload=payload,
        executor=trace.executor,
    )
