"""
Reader for rock volume + joint input files.

Format::

    gx gy gz                                          global origin
    a b c d phi cohesion                              one line per rock face
    %                                                 end of rock volume
    nx ny nz lox loy loz cx cy cz phi cohesion [mx my mz e]*

Parsing stops at the first problem and reports it as a ParseError with the
1-based line and token position; nothing is returned for a bad file.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from rock_slicing.contracts import InputFormatError, Vec3, to_vec3
from rock_slicing.geometry import Face, Joint

logger = logging.getLogger(__name__)

SENTINEL = "%"
FACE_TOKENS = 6
JOINT_MANDATORY_TOKENS = 11
BOUNDING_GROUP_TOKENS = 4


@dataclass(frozen=True)
class ParseError:
    line: int
    token: Optional[int]
    message: str

    def __str__(self) -> str:
        if self.token is None:
            return f"Error, line {self.line}: {self.message}"
        return f"Error, line {self.line}, token {self.token}: {self.message}"


@dataclass(frozen=True)
class RockSlicingInput:
    origin: Vec3
    rock_volume: Tuple[Face, ...]
    joints: Tuple[Joint, ...]


@dataclass(frozen=True)
class ParseResult:
    """Either a parsed input or the first error found."""

    value: Optional[RockSlicingInput] = None
    error: Optional[ParseError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> RockSlicingInput:
        if self.error is not None:
            raise InputFormatError(str(self.error))
        return self.value


class _LineError(Exception):
    def __init__(self, error: ParseError):
        super().__init__(str(error))
        self.error = error


def _parse_doubles(line: str, line_no: int, what: str) -> List[float]:
    values = []
    for index, token in enumerate(line.split(), start=1):
        try:
            value = float(token)
        except ValueError:
            raise _LineError(
                ParseError(line_no, index, f"Invalid double {token!r} in {what}")
            ) from None
        if not math.isfinite(value):
            raise _LineError(
                ParseError(line_no, index, f"Non-finite value {token!r} in {what}")
            )
        values.append(value)
    return values


def _parse_face(line: str, line_no: int) -> Face:
    values = _parse_doubles(line, line_no, "rock volume face")
    if len(values) != FACE_TOKENS:
        raise _LineError(ParseError(
            line_no, None,
            f"Rock volume faces need {FACE_TOKENS} values (a, b, c, d, phi, cohesion), "
            f"found {len(values)}",
        ))
    try:
        return Face.from_coefficients(*values)
    except ValueError as exc:
        raise _LineError(ParseError(line_no, None, str(exc))) from exc


def _parse_joint(line: str, line_no: int) -> Joint:
    values = _parse_doubles(line, line_no, "joint")
    if len(values) < JOINT_MANDATORY_TOKENS:
        raise _LineError(ParseError(
            line_no, None,
            f"Joints need at least {JOINT_MANDATORY_TOKENS} values (normal, local origin, "
            f"center, phi, cohesion), found {len(values)}",
        ))
    mandatory = values[:JOINT_MANDATORY_TOKENS]
    optional = values[JOINT_MANDATORY_TOKENS:]
    if len(optional) % BOUNDING_GROUP_TOKENS != 0:
        raise _LineError(ParseError(
            line_no, None,
            f"Bounding faces need {BOUNDING_GROUP_TOKENS} values each, "
            f"found {len(optional)} optional values",
        ))
    groups = [
        optional[i:i + BOUNDING_GROUP_TOKENS]
        for i in range(0, len(optional), BOUNDING_GROUP_TOKENS)
    ]
    try:
        return Joint.from_coefficients(
            normal=mandatory[0:3],
            local_origin=mandatory[3:6],
            center=mandatory[6:9],
            phi=mandatory[9],
            cohesion=mandatory[10],
            bounding_faces=groups,
        )
    except ValueError as exc:
        raise _LineError(ParseError(line_no, None, str(exc))) from exc


def parse_input(text: str) -> ParseResult:
    """Parse the contents of an input file."""
    lines = [
        (line_no, raw.strip())
        for line_no, raw in enumerate(text.splitlines(), start=1)
        if raw.strip()
    ]
    if not lines:
        return ParseResult(error=ParseError(1, None, "Input is empty"))

    try:
        origin_line_no, origin_line = lines[0]
        origin_values = _parse_doubles(origin_line, origin_line_no, "global origin")
        if len(origin_values) != 3:
            raise _LineError(ParseError(
                origin_line_no, None,
                "Input must begin with the global origin as 3 double values",
            ))

        body = lines[1:]
        sentinel_index = next(
            (i for i, (_, line) in enumerate(body) if line == SENTINEL), None
        )
        if sentinel_index is None:
            raise _LineError(ParseError(
                body[-1][0] if body else origin_line_no, None,
                f"Missing {SENTINEL!r} separating rock volume faces from joints",
            ))

        rock_volume = tuple(_parse_face(line, no) for no, line in body[:sentinel_index])
        joints = tuple(_parse_joint(line, no) for no, line in body[sentinel_index + 1:])
    except _LineError as exc:
        logger.error("%s", exc.error)
        return ParseResult(error=exc.error)

    logger.info("Parsed %d rock volume faces and %d joints", len(rock_volume), len(joints))
    return ParseResult(value=RockSlicingInput(
        origin=to_vec3(origin_values),
        rock_volume=rock_volume,
        joints=joints,
    ))


def read_input(path: Union[str, Path]) -> ParseResult:
    """Read and parse an input file from disk."""
    with Path(path).open("r", encoding="utf-8") as handle:
        return parse_input(handle.read())
