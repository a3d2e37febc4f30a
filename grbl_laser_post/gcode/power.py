"""Laser power resolution.

The beam has two states, Off (initial) and On.  Turning it on resolves
the section's cutting mode to a configured command string; a mode with
no configured command falls back to the laser-off command so the beam
never fires at an undefined level.
"""

from __future__ import annotations

import logging

from grbl_laser_post.configs.loader import LaserConfig
from grbl_laser_post.gcode.line_builder import CommandLine
from grbl_laser_post.job_ir.operations import CuttingMode

logger = logging.getLogger(__name__)

UNKNOWN_MODE_COMMENT = "Unknown cutting mode"


class LaserPowerResolver:
    """Map power events to controller commands.

    Parameters
    ----------
    laser : LaserConfig
        Command strings for each cutting mode and for laser-off.
    """

    def __init__(self, laser: LaserConfig) -> None:
        self._laser = laser
        self._commands = {
            CuttingMode.THROUGH: laser.through,
            CuttingMode.ETCH: laser.etch,
            CuttingMode.VAPORIZE: laser.vaporize,
        }
        self.mode: CuttingMode = CuttingMode.UNKNOWN
        self.is_on: bool = False

    def start_section(self, mode: CuttingMode) -> None:
        """Fix the cutting mode for a new section and reset to Off."""
        self.mode = mode
        self.is_on = False

    def power(self, on: bool) -> CommandLine:
        """Transition to On or Off and return the command to emit."""
        self.is_on = on
        if not on:
            return self.off_command()

        command = self._commands.get(self.mode)
        if command is None:
            logger.warning(
                "Cutting mode %s has no power command; emitting laser off",
                getattr(self.mode, "name", self.mode),
            )
            return CommandLine.of(self._laser.off, comment=UNKNOWN_MODE_COMMENT)
        return CommandLine.of(command)

    def off_command(self) -> CommandLine:
        return CommandLine.of(self._laser.off)
