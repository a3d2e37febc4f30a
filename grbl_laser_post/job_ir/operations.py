"""Job IR operations -- the vocabulary between the CAM host and G-code.

Every toolpath event is an immutable, slotted dataclass.  Operations use
**semantic** names (``Power``, not ``M3 S1000``) and carry coordinates in
the job's configured units (mm or inch), already absolute.

Grouping
--------
A *Section* is one contiguous toolpath operation (one cutting pass)
bounded by ``SectionStart`` and ``SectionEnd``.  A *Job* is the flat list
of operations for every section; the generator wraps it in job open and
close.

Plain-dict form
---------------
Job files on disk store each operation as a mapping with an ``op`` key
(``{"op": "rapid", "x": 0, "y": 0, "z": 0}``).
:func:`operations_from_dicts` converts them to dataclasses.
"""

from __future__ import annotations

from abc import ABC
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

# ---------------------------------------------------------------------------
# Type aliases and enumerations
# ---------------------------------------------------------------------------

Point3 = tuple[float, float, float]
"""Absolute ``(x, y, z)`` position."""

Job = list["Operation"]
"""A complete job is a flat sequence of operations."""


class CuttingMode(Enum):
    """Laser cutting mode selected by the section's jet-mode tag."""

    THROUGH = "through"
    ETCH = "etch"
    VAPORIZE = "vaporize"
    UNKNOWN = "unknown"


class CircularPlane(Enum):
    """Plane a circular move lies in."""

    XY = "xy"
    ZX = "zx"
    YZ = "yz"
    OTHER = "other"


def jet_mode_to_cutting_mode(tag: str | None) -> CuttingMode:
    """Map a host jet-mode tag to a :class:`CuttingMode`.

    Accepts ``"through"``, ``"etch"``, ``"vaporize"`` in any case, with or
    without the ``JET_MODE_`` prefix used by CAM hosts.  Anything else,
    including ``None`` and non-string tags, maps to
    ``CuttingMode.UNKNOWN``.
    """
    if not isinstance(tag, str) or not tag:
        return CuttingMode.UNKNOWN
    key = tag.strip().lower()
    if key.startswith("jet_mode_"):
        key = key[len("jet_mode_"):]
    try:
        mode = CuttingMode(key)
    except ValueError:
        return CuttingMode.UNKNOWN
    return mode


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Operation(ABC):
    """Base class for all job operations."""

    pass


# ---------------------------------------------------------------------------
# Section boundaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SectionStart(Operation):
    """Begin a toolpath section.

    Parameters
    ----------
    jet_mode : str | None
        Host jet-mode tag (``"through"``, ``"etch"``, ``"vaporize"``).
        ``None`` when the host supplies no jet-mode metadata.
    comment : str | None
        Operation comment, written as a comment line when non-empty.
    """

    jet_mode: str | None = None
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class SectionEnd(Operation):
    """End the current toolpath section."""

    pass


# ---------------------------------------------------------------------------
# Motion operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RapidMove(Operation):
    """Positioning move at rapid feed.

    Parameters
    ----------
    x, y, z : float
        Absolute target position.
    """

    x: float
    y: float
    z: float


@dataclass(frozen=True, slots=True)
class LinearMove(Operation):
    """Straight cutting move.

    Parameters
    ----------
    x, y, z : float
        Absolute end point.
    feed : float
        Feed rate in units per minute.
    """

    x: float
    y: float
    z: float
    feed: float


@dataclass(frozen=True, slots=True)
class CircularMove(Operation):
    """Circular cutting move from the current position.

    Parameters
    ----------
    clockwise : bool
        ``True`` for G2, ``False`` for G3.
    center : Point3
        Absolute arc centre.
    end : Point3
        Absolute end point.
    feed : float
        Feed rate in units per minute.
    plane : CircularPlane
        Plane the arc lies in.  ``OTHER`` forces linearization.
    """

    clockwise: bool
    center: Point3
    end: Point3
    feed: float
    plane: CircularPlane = CircularPlane.XY


# ---------------------------------------------------------------------------
# Auxiliary operations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Dwell(Operation):
    """Pause motion.

    Parameters
    ----------
    seconds : float
        Requested dwell.  Clamped by the encoder, not here.
    """

    seconds: float


@dataclass(frozen=True, slots=True)
class Power(Operation):
    """Switch the laser on or off.

    Parameters
    ----------
    on : bool
        ``True`` fires the laser at the section's cutting-mode power.
    """

    on: bool


# ---------------------------------------------------------------------------
# Plain-dict conversion
# ---------------------------------------------------------------------------


def _point(raw: Any, label: str) -> Point3:
    if not isinstance(raw, (list, tuple)) or len(raw) not in (2, 3):
        raise ValueError(f"{label} must be a 2- or 3-element list, got {raw!r}")
    z = float(raw[2]) if len(raw) == 3 else 0.0
    return (float(raw[0]), float(raw[1]), z)


def _circular(data: dict[str, Any]) -> CircularMove:
    plane = data.get("plane", "xy")
    try:
        plane_enum = CircularPlane(str(plane).lower())
    except ValueError:
        raise ValueError(f"Unknown circular plane {plane!r}") from None
    return CircularMove(
        clockwise=bool(data["clockwise"]),
        center=_point(data["center"], "center"),
        end=_point(data["end"], "end"),
        feed=float(data["feed"]),
        plane=plane_enum,
    )


def _power(data: dict[str, Any]) -> Power:
    # YAML 1.1 reads a bare `on:` key as the boolean True
    if "on" not in data and True in data:
        return Power(on=bool(data[True]))
    return Power(on=bool(data["on"]))


_BUILDERS = {
    "section_start": lambda d: SectionStart(
        jet_mode=d.get("jet_mode"), comment=d.get("comment"),
    ),
    "section_end": lambda d: SectionEnd(),
    "rapid": lambda d: RapidMove(
        x=float(d["x"]), y=float(d["y"]), z=float(d.get("z", 0.0)),
    ),
    "linear": lambda d: LinearMove(
        x=float(d["x"]),
        y=float(d["y"]),
        z=float(d.get("z", 0.0)),
        feed=float(d["feed"]),
    ),
    "circular": _circular,
    "dwell": lambda d: Dwell(seconds=float(d["seconds"])),
    "power": _power,
}


def operations_from_dicts(items: Iterable[dict[str, Any]]) -> Job:
    """Build operations from their plain-dict form.

    Parameters
    ----------
    items : Iterable[dict[str, Any]]
        Mappings with an ``op`` key naming the operation.

    Returns
    -------
    Job
        Operations in input order.

    Raises
    ------
    ValueError
        On an unknown ``op`` or a missing / malformed field.
    """
    ops: Job = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ValueError(f"Operation #{index} must be a mapping, got {item!r}")
        name = item.get("op")
        builder = _BUILDERS.get(name)
        if builder is None:
            raise ValueError(
                f"Operation #{index}: unknown op {name!r}. "
                f"Expected one of {sorted(_BUILDERS)}"
            )
        try:
            ops.append(builder(item))
        except KeyError as exc:
            raise ValueError(
                f"Operation #{index} ({name}) is missing field {exc}"
            ) from exc
        except TypeError as exc:
            raise ValueError(
                f"Operation #{index} ({name}) has an invalid value: {exc}"
            ) from exc
    return ops
