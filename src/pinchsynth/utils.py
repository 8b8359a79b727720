from __future__ import annotations

import math
from typing import Tuple


def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))


def clamp_int(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def distance(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def hex_to_bgr(color: str) -> Tuple[int, int, int]:
    """
    Convert a ``#rrggbb`` colour string to an OpenCV BGR tuple.

    >>> hex_to_bgr("#ff0000")
    (0, 0, 255)
    """
    s = color.lstrip("#")
    if len(s) != 6:
        raise ValueError(f"expected a #rrggbb colour, got {color!r}")
    r, g, b = (int(s[i : i + 2], 16) for i in (0, 2, 4))
    return (b, g, r)


def format_signed(v: int) -> str:
    """
    >>> format_signed(1), format_signed(0), format_signed(-2)
    ('+1', '0', '-2')
    """
    return f"+{v}" if v > 0 else str(v)
