"""Contracts for the rock slicing pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional, Sequence, Tuple

if TYPE_CHECKING:
    from rock_slicing.block import Block
    from rock_slicing.input_processor import ParseError

Vec3 = Tuple[float, float, float]

# Single tolerance shared by every feasibility, binding and snapping test.
EPSILON = 1e-6


class InputFormatError(ValueError):
    """Raised when a malformed input file is unwrapped."""


class InfeasibleBlockError(RuntimeError):
    """A block that must have volume has none. Always a bug, never expected."""


class LinearProgramError(RuntimeError):
    """The LP solver stopped without a usable answer."""


class UnboundedBlockError(ValueError):
    """Volume or centroid requested for a block that extends to infinity."""


@dataclass(frozen=True)
class SlicerConfig:
    """Configuration for a rock slicing run."""

    input_path: str = ""
    run_name: str = "rock_slicing"
    max_workers: int = 1
    chunk_size: int = 16
    remove_redundant_faces: bool = True
    recenter_blocks: bool = False
    include_geometry: bool = True


@dataclass
class SliceTrace:
    """Block counts observed after each joint of the fold."""

    initial_block_count: int = 1
    step_block_counts: List[int] = field(default_factory=list)
    executor: str = "serial"

    @property
    def final_block_count(self) -> int:
        if not self.step_block_counts:
            return self.initial_block_count
        return self.step_block_counts[-1]


@dataclass
class SliceRunResult:
    """In-memory result of a slicing run."""

    run_name: str
    status: str  # "ok" | "input_error"
    origin: Optional[Vec3]
    blocks: Tuple[Block, ...]
    joint_count: int
    step_block_counts: List[int]
    elapsed_s: float
    payload: Dict[str, object]
    parse_error: Optional[ParseError] = None
    executor: str = "serial"


def to_vec3(values: Sequence[float]) -> Vec3:
    return (float(values[0]), float(values[1]), float(values[2]))
