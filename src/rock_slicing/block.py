"""
Convex rock blocks and the joint cut.

A Block is the intersection of its faces, each measured from the block's
center. Blocks are immutable: cutting, pruning and recentering all return new
blocks and leave the input untouched, so any block can be processed on any
worker and re-run safely.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import cached_property
from itertools import combinations
from typing import Sequence, Tuple

import numpy as np
import trimesh

from rock_slicing.contracts import (
    EPSILON,
    InfeasibleBlockError,
    UnboundedBlockError,
    Vec3,
    to_vec3,
)
from rock_slicing.geometry import BoundingSphere, Face, Joint
from rock_slicing.linear_program import interior_margin, is_bounded
from rock_slicing.redundancy import non_redundant_faces

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Block:
    """Convex region ``{x : f.normal . (x - center) <= f.offset for f in faces}``."""

    center: Vec3
    faces: Tuple[Face, ...]

    @classmethod
    def seed(cls, origin: Sequence[float], faces: Sequence[Face]) -> "Block":
        """Initial block holding the whole rock volume."""
        return cls(center=to_vec3(origin), faces=tuple(faces))

    @property
    def center_array(self) -> np.ndarray:
        return np.asarray(self.center, dtype=float)

    # ------------------------------------------------------------------
    # Cutting
    # ------------------------------------------------------------------

    def cut(self, joint: Joint) -> Tuple["Block", ...]:
        """Split this block along *joint*.

        Returns both pieces when the joint passes through the interior, the
        block itself when the joint misses it or only touches its boundary.
        """
        if joint.is_bounded and not self.intersects(joint):
            logger.debug("Bounded joint at %s misses block at %s", joint.center, self.center)
            return (self,)

        offset = joint.offset_from(self.center)
        if abs(offset) < EPSILON:
            offset = 0.0
        normal = joint.normal
        kept = Face(normal, offset, joint.phi, joint.cohesion, joint.is_artificial)
        excluded = Face(
            (-normal[0], -normal[1], -normal[2]),
            -offset,
            joint.phi,
            joint.cohesion,
            joint.is_artificial,
        )

        kept_faces = self.faces + (kept,)
        excluded_faces = self.faces + (excluded,)
        kept_margin = interior_margin(kept_faces)
        excluded_margin = interior_margin(excluded_faces)
        has_kept = kept_margin > EPSILON
        has_excluded = excluded_margin > EPSILON

        if has_kept and has_excluded:
            return (Block(self.center, kept_faces), Block(self.center, excluded_faces))
        if has_kept or has_excluded:
            return (self,)
        if max(kept_margin, excluded_margin) >= -EPSILON:
            # Non-empty but flat: nothing to split.
            logger.debug("Block at %s has no interior; left uncut", self.center)
            return (self,)
        raise InfeasibleBlockError(
            f"Block at {self.center} with {len(self.faces)} faces is empty "
            f"on both sides of joint at {joint.center} "
            f"(margins {kept_margin:.3e}, {excluded_margin:.3e})"
        )

    def intersects(self, joint: Joint) -> bool:
        """True when the joint's extent passes through the block interior."""
        plane = (joint.normal, joint.offset_from(self.center))
        constraints = self.faces
        if joint.is_bounded:
            if not self.bounding_sphere.intersects(joint.bounding_sphere):
                return False
            constraints = constraints + joint.bounding_faces_from(self.center)
        return interior_margin(constraints, plane=plane) > EPSILON

    # ------------------------------------------------------------------
    # Redundancy
    # ------------------------------------------------------------------

    @cached_property
    def non_redundant_faces(self) -> Tuple[Face, ...]:
        return non_redundant_faces(self)

    def without_redundant_faces(self) -> "Block":
        return Block(self.center, self.non_redundant_faces)

    # ------------------------------------------------------------------
    # Derived geometry
    # ------------------------------------------------------------------

    @cached_property
    def is_bounded(self) -> bool:
        return is_bounded(self.faces)

    @cached_property
    def vertices(self) -> np.ndarray:
        """(k, 3) corner points in global coordinates."""
        faces = self.non_redundant_faces
        A = np.array([f.normal for f in faces], dtype=float).reshape(-1, 3)
        b = np.array([f.offset for f in faces], dtype=float)
        points = []
        for i, j, k in combinations(range(len(faces)), 3):
            M = A[[i, j, k]]
            if abs(np.linalg.det(M)) < EPSILON:
                continue
            p = np.linalg.solve(M, b[[i, j, k]])
            if np.any(A @ p > b + EPSILON):
                continue
            if any(np.linalg.norm(p - q) < EPSILON for q in points):
                continue
            points.append(p)
        if not points:
            return np.zeros((0, 3))
        return np.array(points) + self.center_array

    @cached_property
    def _hull(self) -> trimesh.Trimesh:
        if not self.is_bounded:
            raise UnboundedBlockError(f"Block at {self.center} is unbounded")
        verts = self.vertices
        if len(verts) < 4:
            raise InfeasibleBlockError(f"Block at {self.center} has no volume")
        return trimesh.convex.convex_hull(verts)

    @property
    def volume(self) -> float:
        return float(self._hull.volume)

    @property
    def centroid(self) -> Vec3:
        return to_vec3(self._hull.center_mass)

    @cached_property
    def bounding_sphere(self) -> BoundingSphere:
        if not self.is_bounded:
            return BoundingSphere(self.center, float("inf"))
        verts = self.vertices
        if len(verts) == 0:
            return BoundingSphere(self.center, 0.0)
        middle = verts.mean(axis=0)
        radius = float(np.max(np.linalg.norm(verts - middle, axis=1)))
        return BoundingSphere(to_vec3(middle), radius)

    def recentered(self) -> "Block":
        """Same region with the center moved to its centroid."""
        centroid = self.centroid
        delta = np.asarray(centroid) - self.center_array
        return Block(centroid, tuple(face.translated(delta) for face in self.faces))
