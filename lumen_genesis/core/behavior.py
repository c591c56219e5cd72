"""
Soil behavior profile.

Condenses the user's soil settings and the generated point field into four
multipliers that steer how many creatures grow, how tall and thick they are,
and how fast they reach full size.
"""

from dataclasses import dataclass
from typing import Sequence

import structlog

logger = structlog.get_logger()


def lerp(start: float, stop: float, amt: float) -> float:
    """Linear interpolation from ``start`` to ``stop``."""
    return amt * (stop - start) + start


def clamp(value: float, low: float, high: float) -> float:
    """Limit ``value`` to ``[low, high]``."""
    return max(low, min(high, value))


def remap(
    value: float,
    in_low: float,
    in_high: float,
    out_low: float,
    out_high: float,
    within_bounds: bool = False,
) -> float:
    """
    Map ``value`` linearly from one range onto another.

    Values outside the input range extrapolate unless ``within_bounds`` is
    set. A degenerate input range maps everything to ``out_low``.
    """
    if in_high == in_low:
        return out_low
    result = out_low + (out_high - out_low) * ((value - in_low) / (in_high - in_low))
    if within_bounds:
        return clamp(result, min(out_low, out_high), max(out_low, out_high))
    return result


@dataclass(frozen=True)
class SoilBehavior:
    """Population multipliers derived from one soil generation."""

    density_factor: float = 1.0
    height_factor: float = 1.0
    thickness_factor: float = 1.0
    growth_speed: float = 1.0
    avg_brightness: float = 0.0


def calculate_behavior(settings, points: Sequence) -> SoilBehavior:
    """
    Derive the behavior profile for a generated soil field.

    Args:
        settings: SoilSettings used for the generation
        points: Retained soil points

    Returns:
        SoilBehavior
    """
    size_factor = remap(settings.dot_size, 2, 20, 0.7, 1.6)
    threshold_factor = remap(settings.threshold, 0, 255, 0.8, 1.25)

    if points:
        avg_brightness = sum(pt.n for pt in points) / len(points)
    else:
        avg_brightness = 0.5

    behavior = SoilBehavior(
        density_factor=remap(settings.spacing, 2, 20, 1.3, 0.5),
        height_factor=size_factor * threshold_factor,
        thickness_factor=size_factor,
        growth_speed=threshold_factor,
        avg_brightness=avg_brightness,
    )
    logger.info(
        "Soil behavior calculated",
        density=round(behavior.density_factor, 3),
        height=round(behavior.height_factor, 3),
        thickness=round(behavior.thickness_factor, 3),
        growth_speed=round(behavior.growth_speed, 3),
        avg_brightness=round(behavior.avg_brightness, 3),
    )
    return behavior
