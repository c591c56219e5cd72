"""
Digital soil generation.

Turns an image's luminance into a sparse field of soil points. Two passes
share the same thresholded grid scan:
- a lightweight preview (dot positions and sizes for the settings view)
- the final generation (height noise, unbiased subsampling, dark-image
  fallback)

The generated points are drawn as a breathing floor by ``draw_soil_floor``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..utils.random import shuffle
from .alea_prng import AleaPRNG
from .behavior import clamp, lerp
from .brightness import PixelBuffer, luminance_grid
from .surface import DrawingSurface

logger = structlog.get_logger()

PREVIEW_MAX_POINTS = 4000
MIN_SOIL_POINTS = 50
FALLBACK_SOIL_POINTS = 120
HEIGHT_NOISE = 3.0
MIN_PREVIEW_RADIUS = 0.3

# Floor rendering
FLOOR_RADIUS_RATIO = 0.7
BREATH_AMPLITUDE = 0.05
SOIL_HUE = 193  # electric blue-white
SOIL_SATURATION = 45


class SoilShape(str, Enum):
    """Outline of soil points on the floor. Has no effect on generation."""

    DOT = "dot"
    SQUARE = "square"
    LINE = "line"


class SoilSettings(BaseModel):
    """User-facing halftone settings for soil generation.

    Out-of-range numbers are pulled back into range instead of rejected.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    threshold: float = Field(default=100, description="Luminance cutoff (0-255)")
    dot_size: float = Field(default=8, alias="dotSize", description="Max dot size (2-20)")
    spacing: int = Field(default=4, description="Sampling stride in pixels (>= 1)")
    shape: SoilShape = Field(default=SoilShape.DOT, description="Dot shape")
    max_points: int = Field(default=2000, alias="maxPoints", description="Soil point cap")

    @field_validator("threshold", mode="before")
    @classmethod
    def _clamp_threshold(cls, value):
        return clamp(float(value), 0.0, 255.0)

    @field_validator("dot_size", mode="before")
    @classmethod
    def _clamp_dot_size(cls, value):
        return clamp(float(value), 2.0, 20.0)

    @field_validator("spacing", mode="before")
    @classmethod
    def _clamp_spacing(cls, value):
        return int(clamp(int(float(value)), 1, 20))

    @field_validator("max_points", mode="before")
    @classmethod
    def _clamp_max_points(cls, value):
        return max(1, int(value))

    @property
    def step(self) -> int:
        """Grid stride actually used by the scan."""
        return max(1, self.spacing)


@dataclass(frozen=True)
class SoilPoint:
    """A thresholded pixel promoted to a point on the soil floor."""

    x: float  # image space, centred on 0
    y: float  # image space, centred on 0
    z: float  # height noise in [-3, 3]
    b: float  # raw luminance
    n: float  # normalized intensity in [0, 1]


@dataclass(frozen=True)
class PreviewDot:
    """A halftone dot shown while configuring the soil."""

    x: float
    y: float
    size: float


@dataclass(frozen=True)
class SoilField:
    """Result of a final soil generation."""

    points: Tuple[SoilPoint, ...]
    width: int
    height: int
    scanned: int = 0  # points above threshold before subsampling
    synthetic: int = 0  # fallback points injected

    def __len__(self) -> int:
        return len(self.points)


def _scan(
    buffer: Optional[PixelBuffer], threshold: float, step: int
) -> Optional[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]]:
    """
    Sample the luminance grid and keep pixels brighter than the threshold.

    Returns:
        ``(x, y, brightness, normalized)`` arrays in row-major scan order with
        centred coordinates, or None if the buffer is not ready
    """
    grid = luminance_grid(buffer)
    if grid is None:
        return None

    sampled = grid[::step, ::step]
    rows, cols = np.nonzero(sampled > threshold)
    brightness = sampled[rows, cols]
    normalized = np.clip((brightness - threshold) / max(1.0, 255.0 - threshold), 0.0, 1.0)

    xs = cols * step - buffer.width / 2
    ys = rows * step - buffer.height / 2
    return xs.astype(np.float64), ys.astype(np.float64), brightness, normalized


def generate_preview(
    buffer: Optional[PixelBuffer],
    settings: SoilSettings,
    max_points: int = PREVIEW_MAX_POINTS,
) -> List[PreviewDot]:
    """
    Compute halftone preview dots for the configuration view.

    Dots whose radius would be 0.3 or less are dropped and the list is
    truncated (not sampled) to ``max_points``.
    """
    scan = _scan(buffer, settings.threshold, settings.step)
    if scan is None:
        return []
    xs, ys, _, normalized = scan

    radii = normalized * settings.dot_size
    keep = radii > MIN_PREVIEW_RADIUS
    dots = [
        PreviewDot(x=float(x), y=float(y), size=float(r))
        for x, y, r in zip(xs[keep], ys[keep], radii[keep])
    ]
    return dots[:max_points]


def generate_soil(
    buffer: Optional[PixelBuffer],
    settings: SoilSettings,
    prng: AleaPRNG,
    min_points: int = MIN_SOIL_POINTS,
    fallback_points: int = FALLBACK_SOIL_POINTS,
) -> Optional[SoilField]:
    """
    Generate the final soil point field.

    Args:
        buffer: Offscreen bitmap to sample
        settings: Soil settings
        prng: Source of height noise, subsampling and fallback positions
        min_points: Fewer retained points than this triggers the fallback
        fallback_points: Number of synthetic points the fallback injects

    Returns:
        SoilField, or None if the buffer is not ready
    """
    scan = _scan(buffer, settings.threshold, settings.step)
    if scan is None:
        return None
    xs, ys, brightness, normalized = scan

    points = [
        SoilPoint(
            x=float(x),
            y=float(y),
            z=prng.uniform(-HEIGHT_NOISE, HEIGHT_NOISE),
            b=float(b),
            n=float(n),
        )
        for x, y, b, n in zip(xs, ys, brightness, normalized)
    ]
    scanned = len(points)

    # Shuffle before truncating so the cap does not favour the top rows
    if len(points) > settings.max_points:
        points = list(shuffle(points, prng))[: settings.max_points]

    synthetic = 0
    if len(points) < min_points:
        logger.warning(
            "Soil too sparse, injecting synthetic points",
            retained=len(points),
            injected=fallback_points,
        )
        for _ in range(fallback_points):
            points.append(
                SoilPoint(
                    x=(prng.random() - 0.5) * buffer.width,
                    y=(prng.random() - 0.5) * buffer.height,
                    z=0.0,
                    b=255.0,
                    n=1.0,
                )
            )
        synthetic = fallback_points

    logger.info(
        "Soil generated",
        scanned=scanned,
        retained=len(points),
        synthetic=synthetic,
        threshold=settings.threshold,
        spacing=settings.step,
    )
    return SoilField(
        points=tuple(points),
        width=buffer.width,
        height=buffer.height,
        scanned=scanned,
        synthetic=synthetic,
    )


def draw_soil_floor(
    surface: DrawingSurface,
    points: Sequence[SoilPoint],
    settings: SoilSettings,
    breath_phase: float,
    reveal: float = 1.0,
) -> None:
    """
    Draw soil points lying flat on the XZ floor plane.

    Each point sits at ``(x, z * 1.5, y)``. Its size follows the intensity and
    breathes slowly with ``breath_phase``; ``settings.shape`` picks the outline.
    """
    if not points:
        return

    radius_max = settings.dot_size * FLOOR_RADIUS_RATIO
    radius_min = radius_max * 0.3

    surface.push()
    surface.no_stroke()
    for pt in points:
        base_radius = lerp(radius_min, radius_max, pt.n) * reveal
        breath = 1 + math.sin(breath_phase + (pt.x + pt.y) * 0.01) * BREATH_AMPLITUDE
        radius = base_radius * breath
        alpha = lerp(100, 255, pt.n) / 255 * reveal * 0.8

        surface.push()
        surface.translate(pt.x, pt.z * 1.5, pt.y)
        surface.rotate_x(math.pi / 2)
        surface.fill(SOIL_HUE, SOIL_SATURATION, 100, alpha)
        if settings.shape is SoilShape.DOT:
            surface.ellipse(0, 0, radius, radius)
        elif settings.shape is SoilShape.SQUARE:
            surface.rect(0, 0, radius * 1.2, radius * 1.2)
        else:
            surface.rect(0, 0, radius * 0.6, radius * 2)
        surface.pop()
    surface.pop()
