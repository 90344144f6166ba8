"""Shared components for the DPR engine."""

from src.common.context import Context
from src.common.utils import (
    clamp,
    finite_or_zero,
    normalize_adv_mode,
    setup_logging,
    unique_in_order,
)

__all__ = [
    "Context",
    "clamp",
    "finite_or_zero",
    "normalize_adv_mode",
    "setup_logging",
    "unique_in_order",
]
