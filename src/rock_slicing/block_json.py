"""JSON rendering of sliced blocks."""

from __future__ import annotations

import json
import logging
from typing import Dict, List, Sequence

from rock_slicing.block import Block
from rock_slicing.geometry import Face

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "rock_slicing.blocks.v1"


def face_to_dict(face: Face) -> Dict[str, object]:
    return {
        "normal": [float(v) for v in face.normal],
        "offset": float(face.offset),
        "phi": float(face.phi),
        "cohesion": float(face.cohesion),
        "artificial": bool(face.is_artificial),
    }


def block_to_dict(block: Block, include_geometry: bool = True) -> Dict[str, object]:
    record: Dict[str, object] = {
        "center": [float(v) for v in block.center],
        "faces": [face_to_dict(face) for face in block.faces],
    }
    if include_geometry:
        record["bounded"] = bool(block.is_bounded)
        if block.is_bounded:
            record["volume"] = block.volume
            record["centroid"] = [float(v) for v in block.centroid]
    return record


def blocks_to_payload(
    blocks: Sequence[Block], include_geometry: bool = True
) -> Dict[str, object]:
    records: List[Dict[str, object]] = [
        block_to_dict(block, include_geometry=include_geometry) for block in blocks
    ]
    return {
        "schema_version": SCHEMA_VERSION,
        "block_count": len(records),
        "blocks": records,
    }


def blocks_to_json(
    blocks: Sequence[Block], include_geometry: bool = True, indent: int = 2
) -> str:
    payload = blocks_to_payload(blocks, include_geometry=include_geometry)
    logger.debug("Rendered %d blocks to JSON", payload["block_count"])
    return json.dumps(payload, indent=indent)
