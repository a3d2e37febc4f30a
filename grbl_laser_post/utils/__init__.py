"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - YAML loading and atomic program writes (fs)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (configs, gcode, scripts).
"""

from . import fs
from . import logging_config

__all__ = ["fs", "logging_config"]
