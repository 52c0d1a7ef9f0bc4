"""
Geometric primitives for rock slicing.

A Face is an oriented half-space ``normal . (x - center) <= offset`` measured
from the center of the block that owns it. A Joint is a planar discontinuity,
either unbounded or limited to a convex polygon in its own plane. Joint
geometry that is not part of the input (dip, extent polygon, bounding sphere)
is derived lazily.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from functools import cached_property
from typing import Optional, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon, box

from rock_slicing.contracts import EPSILON, Vec3, to_vec3

BoundingFace = Tuple[Vec3, float]

_HALF_PLANE_SIZE = 1e6  # large box extent for half-plane clipping


def _unit_vector(vector) -> Tuple[Optional[np.ndarray], float]:
    vec = np.asarray(vector, dtype=float)
    norm = float(np.linalg.norm(vec))
    if norm < EPSILON:
        return None, norm
    return vec / norm, norm


def _basis_from_normal(normal) -> Tuple[np.ndarray, np.ndarray]:
    """Build an orthonormal (u, v) basis perpendicular to normal."""
    n, _ = _unit_vector(normal)
    if n is None:
        raise ValueError("Normal cannot be zero.")
    if abs(n[2]) < 0.9:
        ref = np.array([0.0, 0.0, 1.0])
    else:
        ref = np.array([1.0, 0.0, 0.0])
    u = np.cross(n, ref)
    u /= np.linalg.norm(u)
    v = np.cross(n, u)
    v /= np.linalg.norm(v)
    return u, v


def _clip_polygon_half_plane(poly: Polygon, a: float, b: float, c: float) -> Polygon:
    """Clip *poly* to the half-plane ``a*u + b*v <= c``.

    A degenerate (a, b) keeps everything when ``c >= 0`` and nothing otherwise.
    """
    norm = math.hypot(a, b)
    if norm < EPSILON:
        return poly if c >= -EPSILON else Polygon()
    an, bn = a / norm, b / norm
    cn = c / norm

    # Quad spanning the kept side; tangent direction is (-bn, an).
    tx, ty = -bn, an
    # Must reach past the corners of any polygon built from the seed box.
    S = 4.0 * _HALF_PLANE_SIZE
    corners = [
        (an * cn - tx * S, bn * cn - ty * S),
        (an * cn + tx * S, bn * cn + ty * S),
        (an * (cn - S) + tx * S, bn * (cn - S) + ty * S),
        (an * (cn - S) - tx * S, bn * (cn - S) - ty * S),
    ]
    result = poly.intersection(Polygon(corners))
    if result.is_empty or not isinstance(result, Polygon):
        return Polygon()
    return result


@dataclass(frozen=True)
class Face:
    """Half-space bounding a block, with the strength parameters of its surface."""

    normal: Vec3
    offset: float
    phi: float = 0.0
    cohesion: float = 0.0
    is_artificial: bool = False

    @classmethod
    def from_coefficients(
        cls,
        a: float,
        b: float,
        c: float,
        d: float,
        phi: float,
        cohesion: float,
        is_artificial: bool = False,
    ) -> "Face":
        """Build a face from raw plane coefficients ``a*x + b*y + c*z <= d``.

        The normal is scaled to unit length (and ``d`` with it). Negative
        distances flip the face so the outward normal points away from the
        origin; distances within EPSILON of zero snap to exactly zero.
        """
        unit, norm = _unit_vector((a, b, c))
        if unit is None:
            raise ValueError(f"Face normal ({a}, {b}, {c}) has zero length")
        distance = float(d) / norm
        if distance < -EPSILON:
            unit = -unit
            distance = -distance
        elif abs(distance) < EPSILON:
            distance = 0.0
        return cls(
            normal=to_vec3(unit),
            offset=distance,
            phi=float(phi),
            cohesion=float(cohesion),
            is_artificial=is_artificial,
        )

    @property
    def normal_array(self) -> np.ndarray:
        return np.asarray(self.normal, dtype=float)

    def translated(self, delta: Sequence[float]) -> "Face":
        """Express the same half-space relative to a center moved by *delta*."""
        shift = float(np.dot(self.normal_array, np.asarray(delta, dtype=float)))
        offset = self.offset - shift
        if abs(offset) < EPSILON:
            offset = 0.0
        return Face(self.normal, offset, self.phi, self.cohesion, self.is_artificial)

    def is_coincident(self, other: "Face") -> bool:
        """True when both faces describe the same half-space within EPSILON."""
        if abs(self.offset - other.offset) > EPSILON:
            return False
        return bool(np.allclose(self.normal_array, other.normal_array, atol=EPSILON, rtol=0.0))


@dataclass(frozen=True)
class BoundingSphere:
    center: Vec3
    radius: float

    def intersects(self, other: "BoundingSphere") -> bool:
        if math.isinf(self.radius) or math.isinf(other.radius):
            return True
        gap = float(np.linalg.norm(np.subtract(self.center, other.center)))
        return gap <= self.radius + other.radius + EPSILON


@dataclass(frozen=True)
class Joint:
    """Planar discontinuity used to cut blocks.

    ``center`` is a point on the joint plane in global coordinates. Each entry
    of ``shape`` is a bounding half-plane ``(m, e)`` meaning
    ``m . (x - center) <= e`` for points ``x`` of the joint plane; an empty
    shape is an unbounded joint.
    """

    normal: Vec3
    local_origin: Vec3
    center: Vec3
    phi: float = 0.0
    cohesion: float = 0.0
    shape: Tuple[BoundingFace, ...] = ()
    is_artificial: bool = False

    @classmethod
    def from_coefficients(
        cls,
        normal: Sequence[float],
        local_origin: Sequence[float],
        center: Sequence[float],
        phi: float,
        cohesion: float,
        bounding_faces: Sequence[Sequence[float]] = (),
        is_artificial: bool = False,
    ) -> "Joint":
        """Build a joint with a unit normal and normalized bounding half-planes.

        Each bounding face is ``(mx, my, mz, e)``; its normal is scaled to unit
        length and ``e`` by the same factor.
        """
        unit, _ = _unit_vector(normal)
        if unit is None:
            raise ValueError(f"Joint normal {tuple(normal)} has zero length")
        shape = []
        for group in bounding_faces:
            m_unit, m_norm = _unit_vector(group[:3])
            if m_unit is None:
                raise ValueError(f"Bounding face normal {tuple(group[:3])} has zero length")
            shape.append((to_vec3(m_unit), float(group[3]) / m_norm))
        return cls(
            normal=to_vec3(unit),
            local_origin=to_vec3(local_origin),
            center=to_vec3(center),
            phi=float(phi),
            cohesion=float(cohesion),
            shape=tuple(shape),
            is_artificial=is_artificial,
        )

    @property
    def normal_array(self) -> np.ndarray:
        return np.asarray(self.normal, dtype=float)

    @property
    def is_bounded(self) -> bool:
        return len(self.shape) > 0

    @property
    def offset(self) -> float:
        """Distance of the joint plane from its local origin along the normal."""
        return self.offset_from(self.local_origin)

    def offset_from(self, point: Sequence[float]) -> float:
        delta = np.asarray(self.center, dtype=float) - np.asarray(point, dtype=float)
        return float(np.dot(self.normal_array, delta))

    def bounding_faces_from(self, point: Sequence[float]) -> Tuple[Face, ...]:
        """Bounding half-planes as faces relative to *point*."""
        delta = np.asarray(self.center, dtype=float) - np.asarray(point, dtype=float)
        return tuple(
            Face(m, e + float(np.dot(m, delta)), self.phi, self.cohesion, self.is_artificial)
            for m, e in self.shape
        )

    @cached_property
    def dip_angle(self) -> float:
        """Dip angle in degrees, 0 for a horizontal joint."""
        nz = min(1.0, abs(self.normal[2]))
        return math.degrees(math.acos(nz))

    @cached_property
    def dip_direction(self) -> float:
        """Azimuth of the dip, degrees clockwise from +y."""
        n = self.normal_array
        if n[2] < 0.0:
            n = -n
        if math.hypot(n[0], n[1]) < EPSILON:
            return 0.0
        return math.degrees(math.atan2(n[0], n[1])) % 360.0

    @cached_property
    def basis(self) -> Tuple[np.ndarray, np.ndarray]:
        return _basis_from_normal(self.normal)

    @cached_property
    def shape_polygon(self) -> Polygon:
        """Joint extent in the (u, v) frame of the plane, origin at ``center``."""
        if not self.is_bounded:
            return Polygon()
        u, v = self.basis
        poly = box(-_HALF_PLANE_SIZE, -_HALF_PLANE_SIZE, _HALF_PLANE_SIZE, _HALF_PLANE_SIZE)
        for m, e in self.shape:
            m = np.asarray(m, dtype=float)
            poly = _clip_polygon_half_plane(poly, float(m @ u), float(m @ v), e)
            if poly.is_empty:
                break
        return poly

    @cached_property
    def bounding_sphere(self) -> BoundingSphere:
        if not self.is_bounded:
            return BoundingSphere(self.center, math.inf)
        poly = self.shape_polygon
        if poly.is_empty:
            return BoundingSphere(self.center, 0.0)
        u, v = self.basis
        cu, cv = poly.centroid.x, poly.centroid.y
        coords = np.asarray(poly.exterior.coords, dtype=float)
        radius = float(np.max(np.hypot(coords[:, 0] - cu, coords[:, 1] - cv)))
        center = np.asarray(self.center, dtype=float) + cu * u + cv * v
        return BoundingSphere(to_vec3(center), radius)
