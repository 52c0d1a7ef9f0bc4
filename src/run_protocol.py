"""Run folders for slice_rock.py.

A run lives in ``<runs_root>/<utc stamp>_<run name>/``::

    input/<file>           copy of the rock volume + joint file that was sliced
    artifacts/blocks.json  the block document
    metrics.json           block counts per joint, volumes, timing
    summary.md             the same numbers for humans
    manifest.json          slicer options and artifact paths

Nothing is written for a run whose input fails to parse.
"""

from __future__ import annotations

import json
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from rock_slicing.contracts import SliceRunResult, SlicerConfig


@dataclass(frozen=True)
class SliceRunFolder:
    run_id: str
    run_dir: Path
    input_path: Path
    blocks_path: Path
    metrics_path: Path
    summary_path: Path
    manifest_path: Path


def run_id_for(run_name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", run_name.lower()).strip("-") or "slice"
    return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S_") + slug


def open_run_folder(runs_root: str, run_name: str, input_file: str) -> SliceRunFolder:
    """Create the run folder and copy *input_file* into it."""
    run_id = run_id_for(run_name)
    run_dir = Path(runs_root) / run_id
    (run_dir / "input").mkdir(parents=True, exist_ok=True)
    (run_dir / "artifacts").mkdir(exist_ok=True)

    source = Path(input_file)
    input_path = run_dir / "input" / source.name
    shutil.copy2(source, input_path)
    return SliceRunFolder(
        run_id=run_id,
        run_dir=run_dir,
        input_path=input_path,
        blocks_path=run_dir / "artifacts" / "blocks.json",
        metrics_path=run_dir / "metrics.json",
        summary_path=run_dir / "summary.md",
        manifest_path=run_dir / "manifest.json",
    )


def _block_volumes(payload: Dict[str, Any]) -> List[float]:
    return [record["volume"] for record in payload.get("blocks", []) if "volume" in record]


def slice_metrics(run_id: str, result: SliceRunResult) -> Dict[str, Any]:
    """Block counts and volume totals of a finished run.

    Volumes are only known when the block document carries geometry; without
    it ``total_volume`` and ``smallest_block_volume`` are ``None``.
    """
    volumes = _block_volumes(result.payload)
    records = result.payload.get("blocks", [])
    return {
        "run_id": run_id,
        "status": result.status,
        "elapsed_s": round(result.elapsed_s, 3),
        "executor": result.executor,
        "joint_count": result.joint_count,
        "block_count": len(result.blocks),
        "step_block_counts": list(result.step_block_counts),
        "unbounded_block_count": sum(1 for r in records if r.get("bounded") is False),
        "total_volume": sum(volumes) if volumes else None,
        "smallest_block_volume": min(volumes) if volumes else None,
    }


def slice_summary(metrics: Dict[str, Any]) -> str:
    lines = [
        f"# Slicing run {metrics['run_id']}",
        "",
        f"- Joints: {metrics['joint_count']}",
        f"- Blocks: {metrics['block_count']} ({metrics['unbounded_block_count']} unbounded)",
        f"- Executor: {metrics['executor']}",
        f"- Duration: {metrics['elapsed_s']:.2f}s",
    ]
    if metrics["total_volume"] is not None:
        lines.append(f"- Total volume: {metrics['total_volume']:.6g}")
        lines.append(f"- Smallest block: {metrics['smallest_block_volume']:.6g}")
    if metrics["step_block_counts"]:
        lines += ["", "| Joint | Blocks |", "|---:|---:|"]
        lines += [
            f"| {index} | {count} |"
            for index, count in enumerate(metrics["step_block_counts"], start=1)
        ]
    return "\n".join(lines) + "\n"


def _write_json(path: Path, payload: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_slice_run(
    folder: SliceRunFolder, result: SliceRunResult, config: SlicerConfig
) -> Dict[str, Any]:
    """Write every artifact of a successful run; returns its metrics."""
    metrics = slice_metrics(folder.run_id, result)
    _write_json(folder.blocks_path, result.payload)
    _write_json(folder.metrics_path, metrics)
    folder.summary_path.write_text(slice_summary(metrics), encoding="utf-8")
    _write_json(
        folder.manifest_path,
        {
            "run_id": folder.run_id,
            "run_name": config.run_name,
            "created_utc": datetime.now(timezone.utc).strftime(
                "%Y-%m-%dT%H:%M:%SZ"
            ),
            "input": str(folder.input_path),
            "slicer": {
                "max_workers": config.max_workers,
                "chunk_size": config.chunk_size,
                "remove_redundant_faces": config.remove_redundant_faces,
                "recenter_blocks": config.recenter_blocks,
                "include_geometry": config.include_geometry,
            },
            "artifacts": {
                "blocks": str(folder.blocks_path),
                "metrics": str(folder.metrics_path),
                "summary": str(folder.summary_path),
            },
        },
    )
    return metrics
