"""Removal of faces that do not bound a block.

A face is redundant when the remaining faces already keep every point on its
inner side: maximizing along its normal without it never passes its offset.
Faces are tested in order against a shrinking set, so of two faces that imply
each other only one survives.
"""
from __future__ import annotations

import logging
from typing import List, Sequence, Tuple

from rock_slicing.contracts import EPSILON
from rock_slicing.geometry import Face
from rock_slicing.linear_program import maximize

logger = logging.getLogger(__name__)

_RELAXATION = 1.0  # keeps the tested direction bounded


def _drop_coincident(faces: Sequence[Face]) -> List[Face]:
    unique: List[Face] = []
    for face in faces:
        if not any(face.is_coincident(kept) for kept in unique):
            unique.append(face)
    return unique


def is_binding(face: Face, others: Sequence[Face]) -> bool:
    """True when removing *face* from ``others + [face]`` enlarges the region."""
    relaxed = Face(face.normal, face.offset + _RELAXATION)
    reach = maximize(face.normal, list(others) + [relaxed])
    return reach > face.offset + EPSILON


def non_redundant_faces(block) -> Tuple[Face, ...]:
    """Minimal face list describing the same region as ``block.faces``."""
    remaining = _drop_coincident(block.faces)
    index = 0
    while index < len(remaining):
        face = remaining[index]
        others = remaining[:index] + remaining[index + 1:]
        if is_binding(face, others):
            index += 1
        else:
            del remaining[index]

    logger.debug(
        "Block at %s: %d faces -> %d binding",
        block.center, len(block.faces), len(remaining),
    )
    return tuple(remaining)
