"""Public API for the rock slicing pipeline."""

from rock_slicing.block import Block
from rock_slicing.contracts import EPSILON, SliceRunResult, SlicerConfig
from rock_slicing.geometry import Face, Joint
from rock_slicing.input_processor import ParseResult, parse_input, read_input
from rock_slicing.pipeline import run_slicing_pipeline
from rock_slicing.slicer import slice_rock_volume

__all__ = [
    "Block",
    "EPSILON",
    "Face",
    "Joint",
    "ParseResult",
    "SliceRunResult",
    "SlicerConfig",
    "parse_input",
    "read_input",
    "run_slicing_pipeline",
    "slice_rock_volume",
]
