"""
Plan geometry.

Pure functions over image-pixel coordinates. ``scale`` is always pixels per
real-world unit, so dividing by it converts pixels to units.
"""
from __future__ import annotations
import math
from typing import Sequence, Tuple

from .models import Point, FurnitureItem
from .utils import normalize_rotation


def distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def polygon_area(points: Sequence[Point], scale: float) -> float:
    """Shoelace area of ``points`` in square units. Fewer than 3 points is 0."""
    n = len(points)
    if n < 3:
        return 0.0
    acc = 0.0
    for i in range(n):
        a = points[i]; b = points[(i + 1) % n]
        acc += a.x * b.y - b.x * a.y
    return (abs(acc) / 2.0) / (scale * scale)


def pixels_to_unit(pixels: float, scale: float) -> float:
    if scale == 0:
        return 0.0
    return pixels / scale


def nice_scale_value(raw: float) -> float:
    """Round a length to 1, 2 or 5 times a power of ten for a scale bar.

    Breakpoints sit at 1.5, 3.5 and 7.5 of the normalised value, so 7.3 maps
    to 5 and 7.6 maps to 10.
    """
    if raw <= 0:
        return 0.0
    magnitude = 10 ** math.floor(math.log10(raw))
    normalized = raw / magnitude
    if normalized < 1.5:
        digit = 1
    elif normalized < 3.5:
        digit = 2
    elif normalized < 7.5:
        digit = 5
    else:
        digit = 10
    return digit * magnitude


def axis_snap(start: Point, p: Point) -> Point:
    """Lock ``p`` to the horizontal or vertical through ``start``."""
    dx = abs(p.x - start.x); dy = abs(p.y - start.y)
    if dx > dy:
        return Point(p.x, start.y)
    return Point(start.x, p.y)


def line_length(start: Point, end: Point, scale: float) -> float:
    return pixels_to_unit(distance(start, end), scale)


def polygon_centroid(points: Sequence[Point]) -> Point:
    """Area centroid, falling back to the vertex mean for degenerate input."""
    n = len(points)
    if n == 0:
        return Point(0.0, 0.0)
    a2 = cx = cy = 0.0
    for i in range(n):
        p = points[i]; q = points[(i + 1) % n]
        cross = p.x * q.y - q.x * p.y
        a2 += cross
        cx += (p.x + q.x) * cross
        cy += (p.y + q.y) * cross
    if n < 3 or abs(a2) < 1e-12:
        return Point(sum(p.x for p in points) / n, sum(p.y for p in points) / n)
    return Point(cx / (3.0 * a2), cy / (3.0 * a2))


def furniture_footprint(item: FurnitureItem, scale: float) -> Tuple[float, float]:
    """Pixel bounding box (w, h) of a placed item.

    Width and depth swap when the item is turned a quarter: rotations within
    one degree of 90 or 270.
    """
    w = item.width * scale
    h = item.depth * scale
    rot = normalize_rotation(item.rotation)
    if abs(rot - 90) < 1 or abs(rot - 270) < 1:
        return h, w
    return w, h
