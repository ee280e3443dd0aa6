"""Keyframed height remap curves.

The editable :class:`HeightCurve` is not safe to evaluate while another
thread edits it. Worker threads only ever see a :class:`CurveSnapshot`,
an immutable copy taken on the requesting thread.
"""

from dataclasses import dataclass, field
from typing import Iterable

import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.interpolate import PchipInterpolator


@dataclass(frozen=True)
class CurveSnapshot:
    """Immutable, independently owned copy of a curve's keyframes.

    Interpolates with a monotonicity-preserving cubic (PCHIP), so a curve
    whose key values never decrease never decreases between keys either.
    Inputs outside the key range are clamped to the end keys.
    """

    keys: tuple[tuple[float, float], ...]
    _interpolator: PchipInterpolator | None = field(
        init=False, repr=False, compare=False, default=None
    )

    def __post_init__(self) -> None:
        if len(self.keys) >= 2:
            times = np.array([k[0] for k in self.keys], dtype=np.float64)
            values = np.array([k[1] for k in self.keys], dtype=np.float64)
            object.__setattr__(self, "_interpolator", PchipInterpolator(times, values))

    def evaluate(self, t: ArrayLike) -> NDArray[np.float64]:
        """Sample the curve at ``t`` (scalar or array)."""
        t = np.asarray(t, dtype=np.float64)
        if not self.keys:
            return np.zeros_like(t)
        if self._interpolator is None:
            return np.full_like(t, self.keys[0][1])
        clamped = np.clip(t, self.keys[0][0], self.keys[-1][0])
        return self._interpolator(clamped)

    __call__ = evaluate

    def snapshot(self) -> "CurveSnapshot":
        return self


class HeightCurve:
    """Editable keyframed curve mapping normalized height to mesh height.

    Keys are kept sorted by time; adding a key at an existing time
    replaces it.
    """

    def __init__(self, keys: Iterable[tuple[float, float]] = ()):
        self._keys: dict[float, float] = {}
        for time, value in keys:
            self.add_key(time, value)

    @classmethod
    def linear(cls) -> "HeightCurve":
        """Identity remap over [0, 1]."""
        return cls([(0.0, 0.0), (1.0, 1.0)])

    @classmethod
    def flatten_below(cls, level: float) -> "HeightCurve":
        """Curve that is flat (0) up to ``level`` and rises to 1 after it."""
        return cls([(0.0, 0.0), (level, 0.0), (1.0, 1.0)])

    @property
    def keys(self) -> list[tuple[float, float]]:
        return sorted(self._keys.items())

    def add_key(self, time: float, value: float) -> None:
        self._keys[float(time)] = float(value)

    def remove_key(self, time: float) -> None:
        """Remove the key at ``time``.

        Raises:
            KeyError: If there is no key at that time.
        """
        del self._keys[float(time)]

    def snapshot(self) -> CurveSnapshot:
        """Take an immutable copy safe to hand to another thread."""
        return CurveSnapshot(tuple(self.keys))

    def evaluate(self, t: ArrayLike) -> NDArray[np.float64]:
        return self.snapshot().evaluate(t)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"HeightCurve({self.keys!r})"
