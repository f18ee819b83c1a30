"""Variance adjustment by weighted quantile matching."""

from .adjust import adjust_shift_variance, match_quantile

__all__ = [
    "adjust_shift_variance",
    "match_quantile",
]
