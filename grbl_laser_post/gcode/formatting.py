"""Numeric tokens and modal output registers.

Grbl keeps every axis word, the feed rate and the arc plane in effect
until they are changed, so a value identical to the previous one is
omitted from the output.  Two values are "identical" when they render to
the same text, e.g. ``10.0001`` and ``10`` at three decimals.

Token format::

    X10      (trailing zeros dropped)
    Y-0.125  (sign only when negative)
    Z0       (never -0)
    G17      (plane codes: zero decimals)
"""

from __future__ import annotations

from dataclasses import dataclass, field

COORDINATE_DECIMALS = 3


class NumericFormatter:
    """Render a float as ``<prefix><fixed-decimal number>``.

    Parameters
    ----------
    prefix : str
        Address letter (``"X"``, ``"F"``, ``"G"``...).  May be empty.
    decimals : int
        Digits after the decimal point before trailing zeros are dropped.
    """

    def __init__(self, prefix: str, decimals: int = COORDINATE_DECIMALS) -> None:
        self.prefix = prefix
        self.decimals = decimals

    def render(self, value: float) -> str:
        """Return the rounded number without the prefix."""
        text = f"{value:.{self.decimals}f}"
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        if text == "-0":
            text = "0"
        return text

    def format(self, value: float) -> str:
        return f"{self.prefix}{self.render(value)}"

    def __repr__(self) -> str:
        return f"NumericFormatter({self.prefix!r}, decimals={self.decimals})"


class ModalRegister:
    """A formatter that remembers the last value it emitted.

    ``format`` returns an empty string for a value that renders the same
    as the last emitted one.  ``reset`` forgets the history so the next
    ``format`` always emits.
    """

    def __init__(self, prefix: str, decimals: int = COORDINATE_DECIMALS) -> None:
        self._formatter = NumericFormatter(prefix, decimals)
        self._last: str | None = None

    @property
    def last(self) -> str | None:
        """Last emitted number (without prefix), ``None`` after a reset."""
        return self._last

    def format(self, value: float) -> str:
        text = self._formatter.render(value)
        if text == self._last:
            return ""
        self._last = text
        return f"{self._formatter.prefix}{text}"

    def format_reference_point(
        self, value: float, default_if_zero: float = 0.0,
    ) -> str:
        """Format a relative arc-centre offset.

        Offsets are never suppressed and never touch the history.  An
        offset that rounds to zero is replaced by *default_if_zero*.
        """
        if self._formatter.render(value) == "0":
            value = default_if_zero
        return self._formatter.format(value)

    def reset(self) -> None:
        self._last = None


@dataclass
class ModalRegisterSet:
    """Every modal channel the encoder tracks, reset as one unit."""

    x: ModalRegister = field(default_factory=lambda: ModalRegister("X"))
    y: ModalRegister = field(default_factory=lambda: ModalRegister("Y"))
    z: ModalRegister = field(default_factory=lambda: ModalRegister("Z"))
    i: ModalRegister = field(default_factory=lambda: ModalRegister("I"))
    j: ModalRegister = field(default_factory=lambda: ModalRegister("J"))
    k: ModalRegister = field(default_factory=lambda: ModalRegister("K"))
    feed: ModalRegister = field(default_factory=lambda: ModalRegister("F"))
    plane: ModalRegister = field(
        default_factory=lambda: ModalRegister("G", decimals=0)
    )

    def reset(self) -> None:
        """Force every channel to re-emit on its next ``format``."""
        for register in (
            self.x, self.y, self.z, self.i, self.j, self.k,
            self.feed, self.plane,
        ):
            register.reset()
