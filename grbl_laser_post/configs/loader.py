"""Configuration loader for the laser post-processor.

Loads and validates ``post.yaml`` into typed, frozen dataclasses.  Every
user-selectable option (units, homing, finish position, rapid feeds,
laser command strings, arc handling) comes from the config -- nothing
is hardcoded in the encoder.

The config is resolved once per job and never mutated afterwards.

Usage::

    from grbl_laser_post.configs.loader import load_config
    cfg = load_config()                    # default path
    cfg = load_config("/custom/post.yaml") # explicit path
    cfg = PostConfig()                     # built-in defaults
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from grbl_laser_post.utils.fs import load_yaml

logger = logging.getLogger(__name__)

UNITS = ("mm", "inch")
UNSUPPORTED_PLANE_POLICIES = ("error", "linearize")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Dataclasses -- mirror the YAML structure
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FinishPositionConfig:
    """Absolute XY the head returns to at job close.

    ``None`` on an axis skips that axis' repositioning move.
    """

    x: float | None = None
    y: float | None = None


@dataclass(frozen=True)
class FeedsConfig:
    """Rapid feed rates in units per minute."""

    rapid_xy: float = 3000.0
    rapid_z: float = 500.0


@dataclass(frozen=True)
class LaserConfig:
    """Controller command strings for each laser power state.

    Parameters
    ----------
    through : str
        Command for through-cutting power.
    etch : str
        Command for etching power.
    vaporize : str
        Command for vaporize-engraving power.
    off : str
        Command that turns the beam off.
    """

    through: str = "M3 S1000"
    etch: str = "M3 S300"
    vaporize: str = "M3 S600"
    off: str = "M5"


@dataclass(frozen=True)
class ArcsConfig:
    """Circular-move handling.

    Parameters
    ----------
    tolerance_mm : float
        Chordal tolerance handed to the host's linearization.
    unsupported_plane : ``"error"`` | ``"linearize"``
        What to do with ZX / YZ arcs, which the two-axis cutter has no
        native command for.
    """

    tolerance_mm: float = 0.01
    unsupported_plane: str = "error"


@dataclass(frozen=True)
class PostConfig:
    """Complete post-processor configuration.

    Linear values are in the configured ``units``; feeds are in units
    per minute.  Validated on construction.
    """

    units: str = "mm"
    set_position_on_start: bool = False
    home_on_start: bool = False
    home_on_end: bool = False
    finish_position: FinishPositionConfig = field(
        default_factory=FinishPositionConfig
    )
    feeds: FeedsConfig = field(default_factory=FeedsConfig)
    laser: LaserConfig = field(default_factory=LaserConfig)
    arcs: ArcsConfig = field(default_factory=ArcsConfig)

    def __post_init__(self) -> None:
        _validate_config(self)

    @property
    def metric(self) -> bool:
        """``True`` when coordinates are millimetres."""
        return self.units == "mm"


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _validate_config(cfg: PostConfig) -> None:
    """Validate option values and cross-field consistency.

    Raises
    ------
    ConfigError
        On any invalid value.
    """
    if cfg.units not in UNITS:
        raise ConfigError(
            f"units must be one of {UNITS}, got {cfg.units!r}"
        )

    for label, value in [
        ("feeds.rapid_xy", cfg.feeds.rapid_xy),
        ("feeds.rapid_z", cfg.feeds.rapid_z),
    ]:
        if value <= 0:
            raise ConfigError(f"{label} must be > 0, got {value}")

    for label in ("through", "etch", "vaporize", "off"):
        command = getattr(cfg.laser, label)
        if not isinstance(command, str) or not command.strip():
            raise ConfigError(f"laser.{label} must be a non-empty command")

    if cfg.arcs.tolerance_mm <= 0:
        raise ConfigError(
            f"arcs.tolerance_mm must be > 0, got {cfg.arcs.tolerance_mm}"
        )
    if cfg.arcs.unsupported_plane not in UNSUPPORTED_PLANE_POLICIES:
        raise ConfigError(
            f"arcs.unsupported_plane must be one of "
            f"{UNSUPPORTED_PLANE_POLICIES}, got {cfg.arcs.unsupported_plane!r}"
        )


# ---------------------------------------------------------------------------
# Internal parsing helpers
# ---------------------------------------------------------------------------


def _optional_float(raw: Any) -> float | None:
    return None if raw is None else float(raw)


def _parse_str(label: str, raw: Any) -> str:
    """Accept YAML strings only; a null or a number is not a command."""
    if not isinstance(raw, str):
        raise ConfigError(f"{label} must be a string, got {raw!r}")
    return raw


def _parse_bool(label: str, raw: Any) -> bool:
    """Accept YAML booleans only; ``"no"`` as a string is a typo."""
    if not isinstance(raw, bool):
        raise ConfigError(f"{label} must be true or false, got {raw!r}")
    return raw


def _section(data: dict[str, Any], key: str) -> dict[str, Any]:
    raw = data.get(key) or {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(raw).__name__}")
    return raw


def _parse_finish_position(data: dict[str, Any]) -> FinishPositionConfig:
    return FinishPositionConfig(
        x=_optional_float(data.get("x")),
        y=_optional_float(data.get("y")),
    )


def _parse_feeds(data: dict[str, Any]) -> FeedsConfig:
    defaults = FeedsConfig()
    return FeedsConfig(
        rapid_xy=float(data.get("rapid_xy", defaults.rapid_xy)),
        rapid_z=float(data.get("rapid_z", defaults.rapid_z)),
    )


def _parse_laser(data: dict[str, Any]) -> LaserConfig:
    defaults = LaserConfig()
    return LaserConfig(
        through=_parse_str("laser.through", data.get("through", defaults.through)),
        etch=_parse_str("laser.etch", data.get("etch", defaults.etch)),
        vaporize=_parse_str(
            "laser.vaporize", data.get("vaporize", defaults.vaporize),
        ),
        off=_parse_str("laser.off", data.get("off", defaults.off)),
    )


def _parse_arcs(data: dict[str, Any]) -> ArcsConfig:
    defaults = ArcsConfig()
    return ArcsConfig(
        tolerance_mm=float(data.get("tolerance_mm", defaults.tolerance_mm)),
        unsupported_plane=_parse_str(
            "arcs.unsupported_plane",
            data.get("unsupported_plane", defaults.unsupported_plane),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def config_from_dict(data: dict[str, Any]) -> PostConfig:
    """Build a validated :class:`PostConfig` from a raw mapping.

    Missing keys take their defaults.

    Raises
    ------
    ConfigError
        If any value is of the wrong type or fails validation.
    """
    try:
        return PostConfig(
            units=_parse_str("units", data.get("units", "mm")),
            set_position_on_start=_parse_bool(
                "set_position_on_start",
                data.get("set_position_on_start", False),
            ),
            home_on_start=_parse_bool(
                "home_on_start", data.get("home_on_start", False),
            ),
            home_on_end=_parse_bool(
                "home_on_end", data.get("home_on_end", False),
            ),
            finish_position=_parse_finish_position(
                _section(data, "finish_position")
            ),
            feeds=_parse_feeds(_section(data, "feeds")),
            laser=_parse_laser(_section(data, "laser")),
            arcs=_parse_arcs(_section(data, "arcs")),
        )
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid configuration value: {exc}") from exc


def load_config(path: str | Path | None = None) -> PostConfig:
    """Load and validate post-processor configuration from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to ``post.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    PostConfig
        Fully validated, frozen configuration object.

    Raises
    ------
    ConfigError
        If the file is empty or any field fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "post.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading configuration from %s", path)

    data = load_yaml(path)
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration root must be a mapping: {path}")

    config = config_from_dict(data)
    logger.info("Configuration loaded successfully")
    return config
