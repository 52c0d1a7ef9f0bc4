"""Linear programs over face systems in a block's local frame.

Every query is a three-variable LP (a point relative to the block center)
with one inequality per face, solved with scipy's HiGHS backend.
"""
from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import linprog

from rock_slicing.contracts import InfeasibleBlockError, LinearProgramError
from rock_slicing.geometry import Face

_MARGIN_CAP = 1.0  # largest inscribed radius worth resolving

_STATUS_OK = 0
_STATUS_INFEASIBLE = 2
_STATUS_UNBOUNDED = 3

_AXES = (
    (1.0, 0.0, 0.0), (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0), (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0), (0.0, 0.0, -1.0),
)


def _face_system(faces: Sequence[Face]) -> Tuple[np.ndarray, np.ndarray]:
    if not faces:
        return np.zeros((0, 3)), np.zeros(0)
    A = np.array([face.normal for face in faces], dtype=float)
    b = np.array([face.offset for face in faces], dtype=float)
    return A, b


def interior_margin(
    faces: Sequence[Face],
    plane: Optional[Tuple[Sequence[float], float]] = None,
) -> float:
    """Radius of the largest ball centred inside all *faces*.

    With *plane* ``(normal, offset)`` the ball center is restricted to that
    plane. The radius is capped at ``_MARGIN_CAP`` so unbounded regions stay
    finite; a negative value means the system has no solution at all.
    """
    A, b = _face_system(faces)
    norms = np.linalg.norm(A, axis=1) if len(A) else np.zeros(0)
    c = np.array([0.0, 0.0, 0.0, -1.0])
    A_ub = np.hstack([A, norms[:, None]]) if len(A) else None
    b_ub = b if len(A) else None
    A_eq = b_eq = None
    if plane is not None:
        normal, offset = plane
        A_eq = np.array([[normal[0], normal[1], normal[2], 0.0]], dtype=float)
        b_eq = np.array([float(offset)])
    bounds = [(None, None)] * 3 + [(None, _MARGIN_CAP)]
    res = linprog(c, A_ub=A_ub, b_ub=b_ub, A_eq=A_eq, b_eq=b_eq,
                  bounds=bounds, method="highs")
    if res.status == _STATUS_OK:
        return float(-res.fun)
    if res.status == _STATUS_INFEASIBLE:
        return -math.inf
    raise LinearProgramError(f"Interior margin LP failed: {res.message}")


def maximize(objective: Sequence[float], faces: Sequence[Face]) -> float:
    """Maximum of ``objective . x`` over the region; ``inf`` when unbounded."""
    A, b = _face_system(faces)
    c = -np.asarray(objective, dtype=float)
    res = linprog(
        c,
        A_ub=A if len(A) else None,
        b_ub=b if len(A) else None,
        bounds=[(None, None)] * 3,
        method="highs",
    )
    if res.status == _STATUS_OK:
        return float(-res.fun)
    if res.status == _STATUS_UNBOUNDED:
        return math.inf
    if res.status == _STATUS_INFEASIBLE:
        raise InfeasibleBlockError("Face system has no feasible point")
    raise LinearProgramError(f"Maximization LP failed: {res.message}")


def is_bounded(faces: Sequence[Face]) -> bool:
    """True when the region has finite extent along every axis."""
    return all(math.isfinite(maximize(axis, faces)) for axis in _AXES)
