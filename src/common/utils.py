"""Utility & helper functions."""

import logging
import math
from typing import Iterable, List, Optional

_LOGGING_CONFIGURED = False

_ADV_MODE_ALIASES = {
    "normal": "normal",
    "none": "normal",
    "flat": "normal",
    "adv": "adv",
    "advantage": "adv",
    "dis": "dis",
    "disadv": "dis",
    "disadvantage": "dis",
}


def normalize_adv_mode(mode: Optional[str]) -> str:
    """Normalize roll-mode aliases to standard values.

    Args:
        mode: Roll mode string to normalize

    Returns:
        Normalized mode ('normal', 'adv' or 'dis'); unknown values become 'normal'
    """
    if not mode:
        return "normal"
    return _ADV_MODE_ALIASES.get(mode.strip().lower(), "normal")


def clamp(value: float, low: float, high: float) -> float:
    """Clamp a value into [low, high]."""
    return max(low, min(high, value))


def finite_or_zero(value: float) -> float:
    """Replace NaN/Infinity with 0.0 so it never reaches a summary."""
    if isinstance(value, (int, float)) and math.isfinite(value):
        return float(value)
    return 0.0


def unique_in_order(items: Iterable[str]) -> List[str]:
    """Drop duplicates while keeping first-seen order."""
    return list(dict.fromkeys(items))


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once.

    Args:
        level (str): Level name such as 'DEBUG' or 'INFO'.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    _LOGGING_CONFIGURED = True
