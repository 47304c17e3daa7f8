"""
Honeycomb (jeu de tracé, manche 2).

Le joueur reçoit une forme aléatoire et doit en suivre le contour avant la fin du compte à
rebours. Seul le dernier trait compte : `begin_stroke` repart de zéro.

Notation : au moins MIN_POINTS points, dont plus de PASS_RATIO à moins de
TOLERANCE + LINE_WIDTH / 2 pixels du contour.
"""
from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Tuple

from .base import (
    PHASE_FINISHED,
    PHASE_PLAYING,
    PHASE_WAITING,
    GameActionError,
    evolve,
    require_phase,
)

GAME_ID = "honeycomb"
REWARD = 150

SHAPES = ("circle", "triangle", "star", "umbrella")
TICK_SECONDS = 1.0
ROUND_TICKS = 60
CANVAS_WIDTH = 300
CANVAS_HEIGHT = 300
SHAPE_SIZE = 60
LINE_WIDTH = 3.0
TOLERANCE = 15.0
MIN_POINTS = 10
PASS_RATIO = 0.6
ARC_SEGMENTS = 48

Point = Tuple[float, float]
Segment = Tuple[Point, Point]


@dataclass
class HoneycombState:
    phase: str = PHASE_WAITING
    shape: Optional[str] = None
    ticks_left: int = ROUND_TICKS
    points: List[List[float]] = field(default_factory=list)
    accuracy: Optional[float] = None
    survived: Optional[bool] = None


# ---------------------------------------------------------------------------
# Géométrie
# ---------------------------------------------------------------------------
def _arc(cx: float, cy: float, radius: float, start: float, end: float) -> List[Point]:
    points = []
    for i in range(ARC_SEGMENTS + 1):
        angle = start + (end - start) * i / ARC_SEGMENTS
        points.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
    return points


def _polyline(points: Sequence[Point], closed: bool = False) -> List[Segment]:
    segments = [(points[i], points[i + 1]) for i in range(len(points) - 1)]
    if closed and len(points) > 2:
        segments.append((points[-1], points[0]))
    return segments


def shape_outline(
    shape: str,
    cx: float = CANVAS_WIDTH / 2,
    cy: float = CANVAS_HEIGHT / 2,
    size: float = SHAPE_SIZE,
) -> List[Segment]:
    """Contour d'une forme en segments (coordonnées canvas, y vers le bas)."""
    if shape == "circle":
        return _polyline(_arc(cx, cy, size, 0.0, 2 * math.pi))
    if shape == "triangle":
        half_base = size * math.sqrt(3) / 2
        corners = [(cx, cy - size), (cx + half_base, cy + size / 2), (cx - half_base, cy + size / 2)]
        return _polyline(corners, closed=True)
    if shape == "star":
        outer, inner, spikes = size, size / 2.5, 5
        corners = []
        for i in range(spikes * 2):
            radius = outer if i % 2 == 0 else inner
            angle = (math.pi / spikes) * i - math.pi / 2
            corners.append((cx + radius * math.cos(angle), cy + radius * math.sin(angle)))
        return _polyline(corners, closed=True)
    if shape == "umbrella":
        canopy = _arc(cx, cy - size / 4, size, 0.0, math.pi)
        handle = [(cx, cy - size / 4), (cx, cy + size)]
        hook = _arc(cx + size / 4, cy + size, size / 4, math.pi, 2 * math.pi)
        return _polyline(canopy) + _polyline(handle) + _polyline(hook)
    raise ValueError(f"unknown shape: {shape}")


def _distance_to_segment(point: Point, segment: Segment) -> float:
    (px, py), ((ax, ay), (bx, by)) = point, segment
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return math.hypot(px - ax, py - ay)
    t = max(0.0, min(1.0, ((px - ax) * dx + (py - ay) * dy) / length_sq))
    return math.hypot(px - (ax + t * dx), py - (ay + t * dy))


def trace_accuracy(shape: str, points: Iterable[Sequence[float]]) -> float:
    """Part des points situés sur le contour (tolérance comprise)."""
    pts = [(float(p[0]), float(p[1])) for p in points]
    if not pts:
        return 0.0
    outline = shape_outline(shape)
    limit = TOLERANCE + LINE_WIDTH / 2
    near = sum(1 for p in pts if min(_distance_to_segment(p, seg) for seg in outline) <= limit)
    return near / len(pts)


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------
def _valid_point(point: Sequence[float]) -> List[float]:
    if len(point) != 2:
        raise GameActionError("invalid_point")
    x, y = float(point[0]), float(point[1])
    if not (math.isfinite(x) and math.isfinite(y)):
        raise GameActionError("invalid_point")
    return [x, y]


def start(state: HoneycombState, rng: random.Random) -> HoneycombState:
    require_phase(state, PHASE_WAITING)
    nxt = evolve(state)
    nxt.phase = PHASE_PLAYING
    nxt.shape = rng.choice(SHAPES)
    nxt.ticks_left = ROUND_TICKS
    nxt.points = []
    return nxt


def begin_stroke(state: HoneycombState, point: Sequence[float]) -> HoneycombState:
    require_phase(state, PHASE_PLAYING)
    nxt = evolve(state)
    nxt.points = [_valid_point(point)]
    return nxt


def extend_stroke(state: HoneycombState, points: Iterable[Sequence[float]]) -> HoneycombState:
    require_phase(state, PHASE_PLAYING)
    if not state.points:
        raise GameActionError("no_active_stroke")
    nxt = evolve(state)
    nxt.points.extend(_valid_point(p) for p in points)
    return nxt


def evaluate(state: HoneycombState) -> HoneycombState:
    require_phase(state, PHASE_PLAYING)
    nxt = evolve(state)
    if len(nxt.points) < MIN_POINTS:
        nxt.accuracy = 0.0
        nxt.survived = False
    else:
        nxt.accuracy = trace_accuracy(nxt.shape, nxt.points)
        nxt.survived = nxt.accuracy > PASS_RATIO
    nxt.phase = PHASE_FINISHED
    return nxt


submit = evaluate


def tick(state: HoneycombState) -> HoneycombState:
    if state.phase != PHASE_PLAYING:
        return state
    nxt = evolve(state)
    nxt.ticks_left -= 1
    if nxt.ticks_left <= 0:
        nxt.ticks_left = 0
        return evaluate(nxt)
    return nxt


def public_view(state: HoneycombState) -> dict:
    return {
        "game": GAME_ID,
        "phase": state.phase,
        "shape": state.shape,
        "secondsLeft": int(state.ticks_left * TICK_SECONDS),
        "pointCount": len(state.points),
        "accuracy": state.accuracy,
        "survived": state.survived,
        "canvas": {"width": CANVAS_WIDTH, "height": CANVAS_HEIGHT, "shapeSize": SHAPE_SIZE},
    }
