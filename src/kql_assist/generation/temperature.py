"""Sampling temperature schedule across retry attempts."""

from __future__ import annotations

from kql_assist.config import TempAdjustConfig


def attempt_temperature(base: float, attempt: int, config: TempAdjustConfig) -> float:
    """Temperature for a 1-based ``attempt``.

    The first attempt always uses ``base``; later ones add ``increment`` per
    retry up to ``max`` when adjustment is enabled.
    """
    if attempt <= 1 or not config.adjust:
        return base
    return min(base + (attempt - 1) * config.increment, config.max)
