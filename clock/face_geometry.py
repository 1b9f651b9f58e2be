"""
Face Geometry.

Turns hand angles into drawable primitives (segments, circles, numerals)
for a dial of a given pixel size. Proportions are fractions of the face
radius so the face scales with the canvas.
"""

import math
from dataclasses import dataclass, field

from clock.angle_mapper import (
    SCREEN_THREE_O_CLOCK,
    TAU,
    AngularHandPosition,
    normalize_angle,
)

FACE_RADIUS = 0.92
FACE_STROKE = 0.02

MAJOR_TICK_INNER = 0.86
MINOR_TICK_INNER = 0.93
MAJOR_TICK_STROKE = 0.02
MINOR_TICK_STROKE = 0.008

NUMERAL_RADIUS = 0.74
NUMERAL_TEXT_SIZE = 0.18  # of the numeral radius

HOUR_HAND = (0.55, 0.04)  # (length, stroke)
MINUTE_HAND = (0.75, 0.03)
SECOND_HAND = (0.85, 0.012)
SECOND_TAIL = 0.22
SECOND_TAIL_DOT = 0.028
SECOND_TIP_DOT = 0.010

HUB = 0.035
ACCENT_HUB = 0.018


@dataclass(frozen=True)
class Segment:
    start: tuple[float, float]
    end: tuple[float, float]
    width: float
    role: str


@dataclass(frozen=True)
class Circle:
    center: tuple[float, float]
    radius: float
    role: str
    filled: bool = True
    width: float = 0.0


@dataclass(frozen=True)
class Numeral:
    text: str
    position: tuple[float, float]
    size: float


@dataclass
class FaceGeometry:
    width: float
    height: float
    radius: float
    segments: list[Segment] = field(default_factory=list)
    circles: list[Circle] = field(default_factory=list)
    numerals: list[Numeral] = field(default_factory=list)


def screen_angle(angle: float) -> float:
    """Converts a 12-o'clock-based angle to the screen (3-o'clock) convention."""
    return normalize_angle(angle + SCREEN_THREE_O_CLOCK)


def angle_for(unit: float, units_per_turn: float) -> float:
    """Screen angle of a dial position, e.g. angle_for(15, 60) is 3 o'clock."""
    return screen_angle(unit / units_per_turn * TAU)


def point_on_circle(cx: float, cy: float, r: float, angle: float) -> tuple[float, float]:
    return (cx + r * math.cos(angle), cy + r * math.sin(angle))


def build_face(
    width: float,
    height: float,
    angles: AngularHandPosition,
    show_numerals: bool = True,
    ambient: bool = False,
) -> FaceGeometry:
    """
    Builds the full dial for the given hand angles.

    The angles must use the twelve-o'clock zero reference. In ambient mode
    the second hand is left out.
    """
    cx = width / 2.0
    cy = height / 2.0
    radius = min(cx, cy) * FACE_RADIUS
    face = FaceGeometry(width=width, height=height, radius=radius)

    face.circles.append(
        Circle((cx, cy), radius, "face", filled=False, width=radius * FACE_STROKE)
    )

    for i in range(60):
        a = angle_for(i, 60)
        major = i % 5 == 0
        inner_r = radius * (MAJOR_TICK_INNER if major else MINOR_TICK_INNER)
        face.segments.append(
            Segment(
                start=point_on_circle(cx, cy, inner_r, a),
                end=point_on_circle(cx, cy, radius, a),
                width=radius * (MAJOR_TICK_STROKE if major else MINOR_TICK_STROKE),
                role="major_tick" if major else "minor_tick",
            )
        )

    if show_numerals:
        numeral_r = radius * NUMERAL_RADIUS
        size = numeral_r * NUMERAL_TEXT_SIZE
        for i in range(1, 13):
            face.numerals.append(
                Numeral(str(i), point_on_circle(cx, cy, numeral_r, angle_for(i, 12)), size)
            )

    for role, (length, stroke), angle in (
        ("hour_hand", HOUR_HAND, angles.hour),
        ("minute_hand", MINUTE_HAND, angles.minute),
    ):
        face.segments.append(
            Segment(
                start=(cx, cy),
                end=point_on_circle(cx, cy, radius * length, screen_angle(angle)),
                width=radius * stroke,
                role=role,
            )
        )

    if not ambient:
        sec_len, sec_stroke = SECOND_HAND
        a = screen_angle(angles.second)
        tip = point_on_circle(cx, cy, radius * sec_len, a)
        tail = point_on_circle(cx, cy, radius * SECOND_TAIL, a + math.pi)
        face.segments.append(Segment(tail, tip, radius * sec_stroke, "second_hand"))
        face.circles.append(Circle(tail, radius * SECOND_TAIL_DOT, "second_tail"))
        face.circles.append(Circle(tip, radius * SECOND_TIP_DOT, "second_tip"))

    face.circles.append(Circle((cx, cy), radius * HUB, "hub"))
    face.circles.append(Circle((cx, cy), radius * ACCENT_HUB, "accent_hub"))
    return face
