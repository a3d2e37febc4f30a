"""
Job Intermediate Representation module.

Defines every toolpath event as an immutable dataclass. This vocabulary
is the contract between the CAM host and G-code generation.

All coordinates are absolute, in the job's configured units.
"""

from grbl_laser_post.job_ir.operations import (
    CircularMove,
    CircularPlane,
    CuttingMode,
    Dwell,
    Job,
    LinearMove,
    Operation,
    Point3,
    Power,
    RapidMove,
    SectionEnd,
    SectionStart,
    jet_mode_to_cutting_mode,
    operations_from_dicts,
)

__all__ = [
    "CircularMove",
    "CircularPlane",
    "CuttingMode",
    "Dwell",
    "Job",
    "LinearMove",
    "Operation",
    "Point3",
    "Power",
    "RapidMove",
    "SectionEnd",
    "SectionStart",
    "jet_mode_to_cutting_mode",
    "operations_from_dicts",
]
