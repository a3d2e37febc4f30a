"""Circular-move dispatch by interpolation plane.

XY arcs become native ``G2``/``G3`` blocks with I/J centre offsets.
Arcs in any non-principal plane are handed to the host's linearization
and emitted as ``G1`` segments.  ZX and YZ arcs have no native command
on a two-axis cutter: by default they are an error, or they are
linearized when ``arcs.unsupported_plane`` is ``"linearize"``.
"""

from __future__ import annotations

import logging
from typing import Callable

from grbl_laser_post.configs.loader import ArcsConfig
from grbl_laser_post.gcode.errors import UnsupportedPlaneError
from grbl_laser_post.gcode.formatting import ModalRegisterSet
from grbl_laser_post.gcode.host import Host
from grbl_laser_post.gcode.line_builder import CommandLine
from grbl_laser_post.job_ir.operations import CircularMove, CircularPlane, Point3

logger = logging.getLogger(__name__)

PLANE_XY_CODE = 17

LinearPath = Callable[[float, float, float, float], None]
LineWriter = Callable[[CommandLine], None]


class PlaneDispatcher:
    """Emit one circular move natively or as line segments.

    Parameters
    ----------
    registers : ModalRegisterSet
        The encoder's modal registers (shared, not copied).
    host : Host
        Supplies the start position and the linearization.
    arcs : ArcsConfig
        Tolerance and the ZX / YZ policy.
    linear : LinearPath
        The encoder's linear-move path, ``linear(x, y, z, feed)``.
    write : LineWriter
        Sink for finished lines.
    """

    def __init__(
        self,
        registers: ModalRegisterSet,
        host: Host,
        arcs: ArcsConfig,
        linear: LinearPath,
        write: LineWriter,
    ) -> None:
        self._registers = registers
        self._host = host
        self._arcs = arcs
        self._linear = linear
        self._write = write

    def dispatch(self, arc: CircularMove) -> None:
        start = self._host.current_position()

        if arc.plane is CircularPlane.XY:
            self._native_xy(arc, start)
        elif arc.plane in (CircularPlane.ZX, CircularPlane.YZ):
            if self._arcs.unsupported_plane != "linearize":
                raise UnsupportedPlaneError(
                    f"{arc.plane.name} arcs are not supported on a two-axis "
                    f"laser; set arcs.unsupported_plane to 'linearize' to "
                    f"approximate them"
                )
            logger.debug("Linearizing %s arc", arc.plane.name)
            self._linearize(arc, start)
        else:
            self._linearize(arc, start)

    def _native_xy(self, arc: CircularMove, start: Point3) -> None:
        r = self._registers
        cx, cy, _ = arc.center
        ex, ey, ez = arc.end
        self._write(CommandLine.of(
            r.plane.format(PLANE_XY_CODE),
            "G2" if arc.clockwise else "G3",
            r.x.format(ex),
            r.y.format(ey),
            r.z.format(ez),
            r.i.format_reference_point(cx - start[0], 0.0),
            r.j.format_reference_point(cy - start[1], 0.0),
            r.feed.format(arc.feed),
        ))

    def _linearize(self, arc: CircularMove, start: Point3) -> None:
        points = self._host.linearize(arc, start, self._arcs.tolerance_mm)
        logger.debug("Arc linearized into %d segments", len(points))
        for x, y, z in points:
            self._linear(x, y, z, arc.feed)
