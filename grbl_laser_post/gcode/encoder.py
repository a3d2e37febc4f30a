"""Modal G-code encoder for a Grbl 1.1 two-axis laser cutter.

One :class:`LaserPostProcessor` encodes one job.  It owns the modal
registers, the laser power state and the configuration for that job;
nothing is shared between jobs.

Lifecycle::

    UNOPENED --open()--> JOB_OPEN --start_section()--> SECTION_ACTIVE
                            ^                               |
                            +--------end_section()----------+
    JOB_OPEN --close()--> JOB_CLOSED   (terminal)

Motion, dwell and power events are only accepted while a section is
active.  Anything out of order raises :class:`LifecycleError`.

Section boundaries:
    Every section end re-asserts ``G17`` and force-resets all modal
    registers, because the host does not guarantee that the next
    section starts where this one stopped.
"""

from __future__ import annotations

import logging
import math
from enum import Enum, auto
from io import StringIO
from typing import TextIO

from grbl_laser_post import __version__
from grbl_laser_post.configs.loader import PostConfig
from grbl_laser_post.gcode.arcs import PLANE_XY_CODE, PlaneDispatcher
from grbl_laser_post.gcode.errors import LifecycleError
from grbl_laser_post.gcode.formatting import ModalRegisterSet, NumericFormatter
from grbl_laser_post.gcode.host import Host
from grbl_laser_post.gcode.line_builder import CommandLine, comment_line
from grbl_laser_post.gcode.power import LaserPowerResolver
from grbl_laser_post.job_ir.operations import (
    CircularMove,
    CuttingMode,
    SectionStart,
    jet_mode_to_cutting_mode,
)

logger = logging.getLogger(__name__)

DWELL_MIN_S = 0.001
DWELL_MAX_S = 99999.999

HOME_COMMAND = "$H"
END_COMMENT = "End of job"
END_COMMAND = "M30"


class JobState(Enum):
    """Where the encoder is in the job lifecycle."""

    UNOPENED = auto()
    JOB_OPEN = auto()
    SECTION_ACTIVE = auto()
    JOB_CLOSED = auto()


class LaserPostProcessor:
    """Encode host events into G-code lines.

    Parameters
    ----------
    config : PostConfig
        Validated configuration, fixed for the whole job.
    host : Host
        CAM host queried for positions, linearization and warnings.
    sink : TextIO | None
        Where finished lines are written.  ``None`` uses an internal
        ``StringIO`` readable through :meth:`getvalue`.
    """

    def __init__(
        self,
        config: PostConfig,
        host: Host,
        sink: TextIO | None = None,
    ) -> None:
        self._cfg = config
        self._host = host
        self._sink = sink if sink is not None else StringIO()
        self._registers = ModalRegisterSet()
        self._power = LaserPowerResolver(config.laser)
        self._dispatcher = PlaneDispatcher(
            self._registers, host, config.arcs, self.linear, self._write,
        )
        self._state = JobState.UNOPENED
        self._section_count = 0

    @property
    def state(self) -> JobState:
        return self._state

    @property
    def registers(self) -> ModalRegisterSet:
        return self._registers

    @property
    def section_count(self) -> int:
        """Number of sections started so far."""
        return self._section_count

    def getvalue(self) -> str:
        """Program text written so far, when the sink is a ``StringIO``."""
        if not isinstance(self._sink, StringIO):
            raise TypeError("getvalue() requires the default StringIO sink")
        return self._sink.getvalue()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Write the identifying banner."""
        self._require(JobState.UNOPENED, "open")
        self._comment(f"grbl_laser_post {__version__}")
        self._comment("Grbl 1.1 two-axis laser cutter")
        self._state = JobState.JOB_OPEN

    def start_section(self, section: SectionStart) -> None:
        """Begin a toolpath section.

        The first section also writes the machine setup block.
        """
        self._require(JobState.JOB_OPEN, "start a section")

        if self._section_count == 0:
            self._write_setup()
        self._section_count += 1

        mode = jet_mode_to_cutting_mode(section.jet_mode)
        if section.jet_mode is not None and mode is CuttingMode.UNKNOWN:
            logger.warning("Unrecognized jet mode %r", section.jet_mode)
        self._power.start_section(mode)
        logger.info("Section %d: cutting mode %s", self._section_count, mode.name)

        comment = comment_line(section.comment or "")
        if comment:
            self._blank()
            self._emit(comment)

        self._state = JobState.SECTION_ACTIVE

    def end_section(self) -> None:
        """Re-assert the XY plane and force every register to re-emit."""
        self._require(JobState.SECTION_ACTIVE, "end a section")
        self._registers.plane.reset()
        self._write(CommandLine.of(self._registers.plane.format(PLANE_XY_CODE)))
        self._registers.reset()
        self._state = JobState.JOB_OPEN

    def close(self) -> None:
        """Write the shutdown block.  No output is possible afterwards."""
        self._require(JobState.JOB_OPEN, "close the job")
        self._write(self._power.off_command())
        if self._cfg.home_on_end:
            self._write(CommandLine.of(HOME_COMMAND))

        finish = self._cfg.finish_position
        if finish.x is not None:
            self._write(CommandLine.of("G0", NumericFormatter("X").format(finish.x)))
        if finish.y is not None:
            self._write(CommandLine.of("G0", NumericFormatter("Y").format(finish.y)))

        self._comment(END_COMMENT)
        self._write(CommandLine.of(END_COMMAND))
        self._state = JobState.JOB_CLOSED
        logger.info("Job closed after %d section(s)", self._section_count)

    def _write_setup(self) -> None:
        r = self._registers
        self._write(self._power.off_command())
        self._write(CommandLine.of("G21" if self._cfg.metric else "G20"))
        self._write(CommandLine.of(r.plane.format(PLANE_XY_CODE)))
        self._write(CommandLine.of("G90"))
        if self._cfg.set_position_on_start:
            self._write(CommandLine.of(
                "G92", r.x.format(0.0), r.y.format(0.0), r.z.format(0.0),
            ))
        if self._cfg.home_on_start:
            self._write(CommandLine.of(HOME_COMMAND))
            # Homing moves the head; the G92 zero no longer describes it
            r.x.reset()
            r.y.reset()
            r.z.reset()

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def rapid(self, x: float, y: float, z: float) -> None:
        """Rapid XY move and, separately, rapid Z move.

        Each line carries its own rapid feed.  Grbl keeps ``F`` modal
        across ``G0``, so the feed register is reset and the next cut
        states its feed again.
        """
        self._require(JobState.SECTION_ACTIVE, "move")
        r = self._registers
        feeds = self._cfg.feeds

        x_token = r.x.format(x)
        y_token = r.y.format(y)
        if x_token or y_token:
            self._write(CommandLine.of(
                "G0", x_token, y_token, NumericFormatter("F").format(feeds.rapid_xy),
            ))
            r.feed.reset()

        z_token = r.z.format(z)
        if z_token:
            self._write(CommandLine.of(
                "G0", z_token, NumericFormatter("F").format(feeds.rapid_z),
            ))
            r.feed.reset()

    def linear(self, x: float, y: float, z: float, feed: float) -> None:
        """Cutting move; emits nothing when no word changed."""
        self._require(JobState.SECTION_ACTIVE, "move")
        r = self._registers
        x_token = r.x.format(x)
        y_token = r.y.format(y)
        z_token = r.z.format(z)
        f_token = r.feed.format(feed)

        if x_token or y_token or z_token:
            self._write(CommandLine.of("G1", x_token, y_token, z_token, f_token))
        elif f_token:
            self._write(CommandLine.of("G1", f_token))

    def circular(self, arc: CircularMove) -> None:
        self._require(JobState.SECTION_ACTIVE, "move")
        self._dispatcher.dispatch(arc)

    # ------------------------------------------------------------------
    # Auxiliary
    # ------------------------------------------------------------------

    def dwell(self, seconds: float) -> None:
        """``G4 P<seconds>`` clamped to [0.001, 99999.999]."""
        self._require(JobState.SECTION_ACTIVE, "dwell")
        if math.isnan(seconds):
            self._host.warning(
                f"Dwell is not a number; using the minimum of {DWELL_MIN_S} s"
            )
            seconds = DWELL_MIN_S
        elif seconds > DWELL_MAX_S:
            self._host.warning(
                f"Dwell of {seconds:g} s exceeds the maximum of "
                f"{DWELL_MAX_S} s and was clamped"
            )
        clamped = min(max(seconds, DWELL_MIN_S), DWELL_MAX_S)
        self._write(CommandLine.of("G4", NumericFormatter("P").format(clamped)))

    def power(self, on: bool) -> None:
        self._require(JobState.SECTION_ACTIVE, "switch the laser")
        self._write(self._power.power(on))

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _require(self, state: JobState, action: str) -> None:
        if self._state is not state:
            raise LifecycleError(
                f"Cannot {action} in state {self._state.name} "
                f"(requires {state.name})"
            )

    def _write(self, line: CommandLine) -> None:
        text = line.render()
        if text:
            self._emit(text)

    def _comment(self, text: str) -> None:
        line = comment_line(text)
        if line:
            self._emit(line)

    def _blank(self) -> None:
        self._sink.write("\n")

    def _emit(self, text: str) -> None:
        logger.debug("> %s", text)
        self._sink.write(text + "\n")
