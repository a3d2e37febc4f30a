"""
Grbl Laser Post-Processor Package.

Encodes CAM toolpath events into modally-minimal G-code for a two-axis
laser cutter running a Grbl 1.1 compatible controller.

Subpackages:
    job_ir: Toolpath event vocabulary (sections, moves, power, dwell)
    gcode: Modal encoder, plane dispatch, power resolution, host seam
    configs: Post-processor configuration loading and validation
    utils: YAML / atomic file helpers and logging setup
    scripts: Command-line entrypoint
"""

__version__ = "1.0.0"

__all__ = ["job_ir", "gcode", "configs", "utils", "scripts"]
