from __future__ import annotations

import math
from typing import Optional


def safe(v: Optional[float], default: float = 0.0) -> float:
    return float(v) if v is not None else default


def round_half_up(value: float, digits: int = 1) -> float:
    """Round with ties going up, unlike the built-in banker's rounding."""
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale
