"""
G-code generation module.

Encodes Job IR operations to Grbl laser G-code with modal suppression,
laser power resolution and per-plane arc dispatch.
"""

from grbl_laser_post.gcode.encoder import JobState, LaserPostProcessor
from grbl_laser_post.gcode.errors import (
    GCodeError,
    LifecycleError,
    UnsupportedPlaneError,
)
from grbl_laser_post.gcode.generator import GCodeGenerator
from grbl_laser_post.gcode.host import ArcBoundsError, Host, ToolpathHost

__all__ = [
    "ArcBoundsError",
    "GCodeError",
    "GCodeGenerator",
    "Host",
    "JobState",
    "LaserPostProcessor",
    "LifecycleError",
    "ToolpathHost",
    "UnsupportedPlaneError",
]
