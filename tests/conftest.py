"""
Shared test fixtures for rock slicing tests.
"""
import sys
from pathlib import Path

import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rock_slicing.block import Block
from rock_slicing.geometry import Face, Joint

CUBE_INPUT = """0 0 0
1 0 0 0.5 30 0
-1 0 0 0.5 30 0
0 1 0 0.5 30 0
0 -1 0 0.5 30 0
0 0 1 0.5 30 0
0 0 -1 0.5 30 0
%
1 0 0 0 0 0 0 0 0 35 10
"""


@pytest.fixture
def cube_faces():
    """Unit cube faces, d = 0.5 on every side, in +x, -x, +y, -y, +z, -z order."""
    faces = []
    for axis in range(3):
        for sign in (1.0, -1.0):
            normal = [0.0, 0.0, 0.0]
            normal[axis] = sign
            faces.append(Face.from_coefficients(*normal, 0.5, 30.0, 0.0))
    return faces


@pytest.fixture
def unit_cube(cube_faces):
    """Unit cube block centred at the origin."""
    return Block.seed((0.0, 0.0, 0.0), cube_faces)


@pytest.fixture
def plane_joint():
    """Builds a joint whose plane has *normal* and passes through *point*."""

    def _make(normal, point, phi=35.0, cohesion=0.0, bounding_faces=()):
        return Joint.from_coefficients(
            normal=normal,
            local_origin=(0.0, 0.0, 0.0),
            center=point,
            phi=phi,
            cohesion=cohesion,
            bounding_faces=bounding_faces,
        )

    return _make


@pytest.fixture
def cube_input_text():
    """Unit cube rock volume with one joint through x = 0."""
    return CUBE_INPUT


@pytest.fixture
def cube_input_file(tmp_path, cube_input_text):
    path = tmp_path / "cube.txt"
    path.write_text(cube_input_text, encoding="utf-8")
    return path
