"""Host CAM engine seam.

The encoder asks the host three things: where the tool currently is,
how to break an arc into straight segments, and where to report
non-fatal warnings.  :class:`Host` is that contract;
:class:`ToolpathHost` is the reference implementation used by the
generator and the CLI.

Arc bounds
----------
The host rejects arcs it would never hand to a controller before they
reach the encoder (values in mm, scaled for inch jobs):

    chord length      >= 0.01
    radius            0.01 .. 1000
    angular sweep     0.01 deg .. 180 deg
"""

from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass

from grbl_laser_post.job_ir.operations import CircularMove, CircularPlane, Point3

logger = logging.getLogger(__name__)

MIN_CHORD_MM = 0.01
MIN_RADIUS_MM = 0.01
MAX_RADIUS_MM = 1000.0
MIN_SWEEP_DEG = 0.01
MAX_SWEEP_DEG = 180.0

MM_PER_INCH = 25.4

# (first in-plane axis, second in-plane axis, normal axis); right-handed
_PLANE_AXES = {
    CircularPlane.XY: (0, 1, 2),
    CircularPlane.ZX: (2, 0, 1),
    CircularPlane.YZ: (1, 2, 0),
}


class ArcBoundsError(ValueError):
    """Raised when an arc falls outside the host's geometric bounds."""

    pass


class Host(ABC):
    """What the encoder may ask of the CAM host."""

    @abstractmethod
    def current_position(self) -> Point3:
        """Absolute position before the event being encoded."""

    @abstractmethod
    def linearize(
        self, arc: CircularMove, start: Point3, tolerance: float,
    ) -> list[Point3]:
        """Break *arc* into line segment end points.

        The start point is excluded; the last point is ``arc.end``.
        """

    @abstractmethod
    def warning(self, message: str) -> None:
        """Surface a non-fatal problem to the operator."""


# ---------------------------------------------------------------------------
# Arc geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArcGeometry:
    """An arc resolved into a 2-D frame around its centre.

    Points on the arc are
    ``center + r(t) * (cos(a0 + t*sweep) * u + sin(a0 + t*sweep) * v) + t*rise * n``
    for ``t`` in ``[0, 1]``.
    """

    center: Point3
    u: Point3
    v: Point3
    normal: Point3
    start_radius: float
    end_radius: float
    start_angle: float
    sweep: float
    rise: float

    @property
    def radius(self) -> float:
        return max(self.start_radius, self.end_radius)

    def point_at(self, t: float) -> Point3:
        r = self.start_radius + (self.end_radius - self.start_radius) * t
        ang = self.start_angle + self.sweep * t
        c, s = math.cos(ang), math.sin(ang)
        return tuple(
            self.center[k]
            + r * (c * self.u[k] + s * self.v[k])
            + self.rise * t * self.normal[k]
            for k in range(3)
        )


def _sub(a: Point3, b: Point3) -> Point3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _dot(a: Point3, b: Point3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def _unit(axis: int) -> Point3:
    return tuple(1.0 if k == axis else 0.0 for k in range(3))


def arc_geometry(arc: CircularMove, start: Point3) -> ArcGeometry:
    """Resolve *arc*, starting at *start*, into an :class:`ArcGeometry`.

    Principal-plane arcs honour ``arc.clockwise`` (viewed from the
    positive normal axis) and may rise along the normal (helix).  Arcs
    in any other plane take the shorter way from start to end, in the
    plane the two radius vectors span.

    Raises
    ------
    ArcBoundsError
        If a radius is zero or the plane cannot be resolved.
    """
    if arc.plane in _PLANE_AXES:
        a, b, n = _PLANE_AXES[arc.plane]
        u, v, normal = _unit(a), _unit(b), _unit(n)
        center = tuple(
            start[n] if k == n else arc.center[k] for k in range(3)
        )
        rs = math.hypot(start[a] - center[a], start[b] - center[b])
        re = math.hypot(arc.end[a] - center[a], arc.end[b] - center[b])
        if rs == 0 or re == 0:
            raise ArcBoundsError("Arc radius is zero")
        start_ang = math.atan2(start[b] - center[b], start[a] - center[a])
        end_ang = math.atan2(arc.end[b] - center[b], arc.end[a] - center[a])
        sweep = end_ang - start_ang
        if arc.clockwise and sweep > 0:
            sweep -= 2 * math.pi
        elif not arc.clockwise and sweep < 0:
            sweep += 2 * math.pi
        if sweep == 0:
            # start == end: full revolution
            sweep = -2 * math.pi if arc.clockwise else 2 * math.pi
        return ArcGeometry(
            center=center, u=u, v=v, normal=normal,
            start_radius=rs, end_radius=re,
            start_angle=start_ang, sweep=sweep,
            rise=arc.end[n] - start[n],
        )

    ds = _sub(start, arc.center)
    de = _sub(arc.end, arc.center)
    rs = math.sqrt(_dot(ds, ds))
    re = math.sqrt(_dot(de, de))
    if rs == 0 or re == 0:
        raise ArcBoundsError("Arc radius is zero")
    u = tuple(c / rs for c in ds)
    w = tuple(c - _dot(de, u) * uc for c, uc in zip(de, u))
    w_len = math.sqrt(_dot(w, w))
    if w_len == 0:
        raise ArcBoundsError(
            "Arc plane is undefined: start and end are collinear with the centre"
        )
    v = tuple(c / w_len for c in w)
    sweep = math.atan2(_dot(de, v), _dot(de, u))
    normal = (
        u[1] * v[2] - u[2] * v[1],
        u[2] * v[0] - u[0] * v[2],
        u[0] * v[1] - u[1] * v[0],
    )
    return ArcGeometry(
        center=arc.center, u=u, v=v, normal=normal,
        start_radius=rs, end_radius=re,
        start_angle=0.0, sweep=sweep, rise=0.0,
    )


def segment_count(geometry: ArcGeometry, tolerance: float) -> int:
    """Number of chords keeping the chordal deviation within *tolerance*."""
    r = geometry.radius
    max_seg_angle = 2 * math.acos(max(0.0, 1 - tolerance / r))
    if max_seg_angle == 0:
        return 1
    return max(1, math.ceil(abs(geometry.sweep) / max_seg_angle))


def linearize_arc(
    arc: CircularMove, start: Point3, tolerance: float,
) -> list[Point3]:
    """Approximate *arc* by chords within *tolerance*.

    Returns the chord end points, excluding *start* and ending exactly
    on ``arc.end``.
    """
    geometry = arc_geometry(arc, start)
    segments = segment_count(geometry, tolerance)
    points = [geometry.point_at(i / segments) for i in range(1, segments)]
    points.append(tuple(float(c) for c in arc.end))
    return points


# ---------------------------------------------------------------------------
# Reference host
# ---------------------------------------------------------------------------


class ToolpathHost(Host):
    """Host that follows the toolpath it is fed.

    Parameters
    ----------
    start : Point3
        Position before the first move.
    metric : bool
        ``False`` when coordinates are inches; arc bounds are scaled.
    """

    def __init__(
        self, start: Point3 = (0.0, 0.0, 0.0), metric: bool = True,
    ) -> None:
        self._position: Point3 = tuple(float(c) for c in start)
        self._scale = 1.0 if metric else 1.0 / MM_PER_INCH
        self.warnings: list[str] = []

    def current_position(self) -> Point3:
        return self._position

    def move_to(self, point: Point3) -> None:
        """Record that the tool is now at *point*."""
        self._position = tuple(float(c) for c in point)

    def validate_arc(self, arc: CircularMove, start: Point3 | None = None) -> None:
        """Reject arcs outside the host's geometric bounds.

        Raises
        ------
        ArcBoundsError
            On a short chord, a radius out of range, or a sweep out of
            range.
        """
        start = self._position if start is None else start
        chord = math.dist(start, arc.end)
        if chord < MIN_CHORD_MM * self._scale:
            raise ArcBoundsError(
                f"Arc chord {chord:.4f} below minimum "
                f"{MIN_CHORD_MM * self._scale:.4f}"
            )
        geometry = arc_geometry(arc, start)
        r = geometry.radius
        if not MIN_RADIUS_MM * self._scale <= r <= MAX_RADIUS_MM * self._scale:
            raise ArcBoundsError(
                f"Arc radius {r:.4f} outside "
                f"[{MIN_RADIUS_MM * self._scale:.4f}, "
                f"{MAX_RADIUS_MM * self._scale:.4f}]"
            )
        sweep_deg = math.degrees(abs(geometry.sweep))
        if not MIN_SWEEP_DEG <= sweep_deg <= MAX_SWEEP_DEG + 1e-9:
            raise ArcBoundsError(
                f"Arc sweep {sweep_deg:.3f} deg outside "
                f"[{MIN_SWEEP_DEG}, {MAX_SWEEP_DEG}]"
            )

    def linearize(
        self, arc: CircularMove, start: Point3, tolerance: float,
    ) -> list[Point3]:
        return linearize_arc(arc, start, tolerance)

    def warning(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
