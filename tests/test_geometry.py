"""Tests for geometry.py - faces, joints and derived joint geometry."""
import math

import numpy as np
import pytest

from rock_slicing.contracts import EPSILON
from rock_slicing.geometry import BoundingSphere, Face, Joint


class TestFaceNormalization:
    def test_normal_scaled_to_unit_length(self):
        face = Face.from_coefficients(3.0, 0.0, 4.0, 10.0, 30.0, 5.0)
        assert np.linalg.norm(face.normal) == pytest.approx(1.0, abs=EPSILON)
        assert face.normal == pytest.approx((0.6, 0.0, 0.8))
        assert face.offset == pytest.approx(2.0)
        assert face.phi == 30.0
        assert face.cohesion == 5.0
        assert face.is_artificial is False

    def test_negative_distance_flips_face(self):
        face = Face.from_coefficients(0.0, 2.0, 0.0, -4.0, 30.0, 0.0)
        assert face.normal == pytest.approx((0.0, -1.0, 0.0))
        assert face.offset == pytest.approx(2.0)

    def test_tiny_distance_snaps_to_zero(self):
        face = Face.from_coefficients(1.0, 1.0, 0.0, -1e-9, 30.0, 0.0)
        assert face.offset == 0.0
        assert face.normal == pytest.approx((math.sqrt(0.5), math.sqrt(0.5), 0.0))

    @pytest.mark.parametrize("coeffs", [
        (1.0, 2.0, 3.0, 4.0),
        (-1.0, 0.5, 0.0, -7.0),
        (0.0, 0.0, -2.0, 0.3),
    ])
    def test_offset_never_negative(self, coeffs):
        face = Face.from_coefficients(*coeffs, 30.0, 0.0)
        assert face.offset >= 0.0
        assert np.linalg.norm(face.normal) == pytest.approx(1.0, abs=EPSILON)

    def test_zero_normal_rejected(self):
        with pytest.raises(ValueError, match="zero length"):
            Face.from_coefficients(0.0, 0.0, 0.0, 1.0, 30.0, 0.0)


class TestFaceOperations:
    def test_translated_keeps_half_space(self):
        face = Face((1.0, 0.0, 0.0), 0.5)
        moved = face.translated((0.25, 3.0, -1.0))
        assert moved.normal == face.normal
        assert moved.offset == pytest.approx(0.25)

    def test_translated_past_plane_goes_negative(self):
        moved = Face((0.0, 0.0, 1.0), 0.5).translated((0.0, 0.0, 2.0))
        assert moved.offset == pytest.approx(-1.5)

    def test_coincident_faces(self):
        a = Face((1.0, 0.0, 0.0), 0.5, phi=30.0)
        b = Face((1.0, 0.0, 0.0), 0.5 + EPSILON / 10, phi=10.0)
        c = Face((-1.0, 0.0, 0.0), 0.5)
        assert a.is_coincident(b)
        assert not a.is_coincident(c)


class TestJoint:
    def test_normalizes_normal_and_bounding_faces(self):
        joint = Joint.from_coefficients(
            normal=(0.0, 0.0, 2.0),
            local_origin=(0.0, 0.0, 0.0),
            center=(0.0, 0.0, 1.0),
            phi=35.0,
            cohesion=0.0,
            bounding_faces=[(2.0, 0.0, 0.0, 4.0)],
        )
        assert joint.normal == pytest.approx((0.0, 0.0, 1.0))
        assert joint.shape[0][0] == pytest.approx((1.0, 0.0, 0.0))
        assert joint.shape[0][1] == pytest.approx(2.0)
        assert joint.is_bounded

    def test_offset_from_local_origin(self):
        joint = Joint.from_coefficients(
            normal=(1.0, 0.0, 0.0),
            local_origin=(1.0, 5.0, 5.0),
            center=(3.0, 0.0, 0.0),
            phi=30.0,
            cohesion=0.0,
        )
        assert joint.offset == pytest.approx(2.0)
        assert joint.offset_from((4.0, 0.0, 0.0)) == pytest.approx(-1.0)
        assert not joint.is_bounded

    def test_zero_normal_rejected(self, plane_joint):
        with pytest.raises(ValueError):
            plane_joint((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_bounding_faces_from_point(self, plane_joint):
        joint = plane_joint(
            (0.0, 0.0, 1.0), (1.0, 0.0, 0.0),
            bounding_faces=[(1.0, 0.0, 0.0, 0.5)],
        )
        (face,) = joint.bounding_faces_from((0.0, 0.0, 0.0))
        # x - 1 <= 0.5  ->  x <= 1.5 measured from the origin
        assert face.normal == pytest.approx((1.0, 0.0, 0.0))
        assert face.offset == pytest.approx(1.5)


class TestJointDerivedGeometry:
    def test_horizontal_joint_has_no_dip(self, plane_joint):
        joint = plane_joint((0.0, 0.0, 1.0), (0.0, 0.0, 0.0))
        assert joint.dip_angle == pytest.approx(0.0)
        assert joint.dip_direction == pytest.approx(0.0)

    @pytest.mark.parametrize("normal, dip, direction", [
        ((1.0, 0.0, 1.0), 45.0, 90.0),
        ((0.0, 1.0, 1.0), 45.0, 0.0),
        ((0.0, -1.0, -1.0), 45.0, 0.0),
        ((0.0, -1.0, 1.0), 45.0, 180.0),
        ((-1.0, 0.0, 0.0), 90.0, 270.0),
    ])
    def test_dip_angle_and_direction(self, normal, dip, direction, plane_joint):
        joint = plane_joint(normal, (0.0, 0.0, 0.0))
        assert joint.dip_angle == pytest.approx(dip)
        assert joint.dip_direction == pytest.approx(direction)

    def test_square_shape_polygon(self, plane_joint):
        joint = plane_joint(
            (1.0, 0.0, 0.0), (0.0, 0.0, 0.0),
            bounding_faces=[
                (0.0, 1.0, 0.0, 0.1), (0.0, -1.0, 0.0, 0.1),
                (0.0, 0.0, 1.0, 0.1), (0.0, 0.0, -1.0, 0.1),
            ],
        )
        assert joint.shape_polygon.area == pytest.approx(0.04, abs=1e-6)
        sphere = joint.bounding_sphere
        assert sphere.center == pytest.approx((0.0, 0.0, 0.0), abs=1e-6)
        assert sphere.radius == pytest.approx(math.sqrt(0.02), abs=1e-6)

    def test_unbounded_joint_sphere_is_infinite(self, plane_joint):
        joint = plane_joint((1.0, 0.0, 0.0), (0.0, 0.0, 0.0))
        assert joint.shape_polygon.is_empty
        assert math.isinf(joint.bounding_sphere.radius)

    def test_contradictory_shape_is_empty(self, plane_joint):
        joint = plane_joint(
            (0.0, 0.0, 1.0), (0.0, 0.0, 0.0),
            bounding_faces=[(1.0, 0.0, 0.0, -1.0), (-1.0, 0.0, 0.0, -1.0)],
        )
        assert joint.shape_polygon.is_empty
        assert joint.bounding_sphere.radius == 0.0


class TestBoundingSphere:
    def test_disjoint_and_touching(self):
        a = BoundingSphere((0.0, 0.0, 0.0), 1.0)
        assert not a.intersects(BoundingSphere((3.0, 0.0, 0.0), 1.0))
        assert a.intersects(BoundingSphere((2.0, 0.0, 0.0), 1.0))

    def test_infinite_sphere_always_intersects(self):
        a = BoundingSphere((0.0, 0.0, 0.0), math.inf)
        assert a.intersects(BoundingSphere((1e9, 0.0, 0.0), 1.0))
