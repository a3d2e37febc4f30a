"""G-code generator -- Job IR operations to a complete G-code program.

Plays the CAM host for a flat operation list: opens the job, feeds each
operation to a :class:`LaserPostProcessor`, keeps a
:class:`ToolpathHost` in step with the commanded position, and closes
the job.

Arc validation:
    Circular moves are checked against the host bounds (chord, radius,
    sweep) **before** they reach the encoder, the same way a CAM host
    rejects them.  A rejected arc raises :class:`ArcBoundsError`.
"""

from __future__ import annotations

import logging
from io import StringIO

from grbl_laser_post.configs.loader import PostConfig
from grbl_laser_post.gcode.encoder import JobState, LaserPostProcessor
from grbl_laser_post.gcode.host import ToolpathHost
from grbl_laser_post.job_ir.operations import (
    CircularMove,
    Dwell,
    LinearMove,
    Operation,
    Power,
    RapidMove,
    SectionEnd,
    SectionStart,
)

logger = logging.getLogger(__name__)


class GCodeGenerator:
    """Convert Job IR operations to G-code.

    Parameters
    ----------
    config : PostConfig
        Validated post-processor configuration.

    Attributes
    ----------
    warnings : list[str]
        Non-fatal warnings raised during the last :meth:`generate`.
    """

    def __init__(self, config: PostConfig) -> None:
        self._cfg = config
        self.warnings: list[str] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, operations: list[Operation]) -> str:
        """Generate a complete G-code program.

        Parameters
        ----------
        operations : list[Operation]
            Job IR operations in execution order.

        Returns
        -------
        str
            Complete G-code program including banner and shutdown block.

        Raises
        ------
        GCodeError
            If operations arrive out of lifecycle order or an arc lies
            in an unsupported plane.
        ArcBoundsError
            If an arc falls outside the host's geometric bounds.
        """
        buf = StringIO()
        host = ToolpathHost(metric=self._cfg.metric)
        encoder = LaserPostProcessor(self._cfg, host, buf)
        self.warnings = host.warnings

        encoder.open()
        for op in operations:
            self._generate_op(op, encoder, host)

        if encoder.state is JobState.SECTION_ACTIVE:
            logger.warning("Last section was not ended; ending it before close")
            encoder.end_section()
        encoder.close()
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Internal: per-operation dispatch
    # ------------------------------------------------------------------

    def _generate_op(
        self, op: Operation, encoder: LaserPostProcessor, host: ToolpathHost,
    ) -> None:
        if isinstance(op, SectionStart):
            encoder.start_section(op)
        elif isinstance(op, SectionEnd):
            encoder.end_section()
        elif isinstance(op, RapidMove):
            encoder.rapid(op.x, op.y, op.z)
            host.move_to((op.x, op.y, op.z))
        elif isinstance(op, LinearMove):
            encoder.linear(op.x, op.y, op.z, op.feed)
            host.move_to((op.x, op.y, op.z))
        elif isinstance(op, CircularMove):
            host.validate_arc(op)
            encoder.circular(op)
            host.move_to(op.end)
        elif isinstance(op, Dwell):
            encoder.dwell(op.seconds)
        elif isinstance(op, Power):
            encoder.power(op.on)
        else:
            logger.warning("Unsupported operation: %s", type(op).__name__)
