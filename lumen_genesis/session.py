"""
Simulation session.

A Session is the single context object behind one running sketch. It owns
the uploaded image, the soil settings, the current population and the
interaction state, and exposes the triggers the UI shell drives:
entering, uploading, tuning settings, generating, switching species, input
events and the per-frame tick.
"""

import logging
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import structlog
from PIL import Image

from .config import Settings, settings as default_settings
from .core.behavior import SoilBehavior, calculate_behavior, clamp
from .core.brightness import PixelBuffer, fit_image, suggest_threshold
from .core.creatures import Creature, Species, resolve_species
from .core.interaction import HandPrediction, InteractionMapper, InteractionState
from .core.soil import (
    PreviewDot,
    SoilField,
    SoilSettings,
    draw_soil_floor,
    generate_preview,
    generate_soil,
)
from .core.spawner import spawn_population
from .core.surface import DrawingSurface
from .utils.random import make_prng

logger = structlog.get_logger()

FLOOR_OFFSET = 50
BREATH_RATE = 0.01


def configure_logging(config: Optional[Settings] = None) -> None:
    """Configure structlog on top of stdlib logging."""
    config = config or default_settings
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, config.log_level.upper(), logging.INFO),
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if config.log_format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class Scene(IntEnum):
    """Session scenes."""

    IDLE = 0
    CONFIGURING = 1
    GROWING = 3


@dataclass(frozen=True)
class Population:
    """Everything one generation produced, swapped in as a whole."""

    soil: SoilField
    behavior: SoilBehavior
    species: Species
    creatures: Tuple[Creature, ...]
    start_tick: int


class Session:
    """Generation pipeline and simulation state of one running session."""

    def __init__(self, config: Optional[Settings] = None, seed: Optional[str] = None):
        self.config = config or default_settings
        self.seed = seed if seed is not None else self.config.seed
        self.prng = make_prng(self.seed)
        self.mapper = InteractionMapper(
            self.config.canvas_width,
            self.config.canvas_height,
            self.config.video_width,
            self.config.video_height,
            self.config.hand_stale_ticks,
        )

        self.scene = Scene.IDLE
        self.buffer: Optional[PixelBuffer] = None
        self.soil_settings = SoilSettings()
        self.species = Species.TORUS
        self.population: Optional[Population] = None

        self.tick_count = 0
        self.growth_progress = 0.0
        self.soil_breath_phase = 0.0

        self._preview: List[PreviewDot] = []
        self._preview_dirty = True

        logger.info("Session started", seed=self.seed)

    # Context manager

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def close(self) -> None:
        """Tear the session down."""
        self.reset()
        logger.info("Session closed", ticks=self.tick_count)

    # Accessors

    @property
    def interaction(self) -> InteractionState:
        return self.mapper.state

    @property
    def creatures(self) -> Tuple[Creature, ...]:
        return self.population.creatures if self.population else ()

    @property
    def soil_points(self):
        return self.population.soil.points if self.population else ()

    @property
    def behavior(self) -> SoilBehavior:
        return self.population.behavior if self.population else SoilBehavior()

    @property
    def preview(self) -> List[PreviewDot]:
        """Preview dots for the current settings, recomputed when stale."""
        if self._preview_dirty:
            self._preview = generate_preview(
                self.buffer, self.soil_settings, self.config.preview_max_points
            )
            self._preview_dirty = False
        return self._preview

    # Scene transitions

    def enter(self) -> None:
        """Leave the intro screen."""
        if self.scene == Scene.IDLE:
            self._set_scene(Scene.CONFIGURING)

    def load_image(self, image: Union[PixelBuffer, Image.Image, np.ndarray]) -> PixelBuffer:
        """
        Take a decoded image as the new soil source.

        The image is fitted to the canvas, the threshold is re-suggested from
        its brightness and any grown population is discarded.
        """
        if isinstance(image, PixelBuffer):
            buffer = image
        else:
            buffer = fit_image(
                image,
                self.config.canvas_width,
                self.config.canvas_height,
                self.config.image_fit_ratio,
            )

        threshold = suggest_threshold(buffer)
        self.buffer = buffer
        self.population = None
        self.mapper.reset()
        self.update_settings(threshold=threshold)
        self._set_scene(Scene.CONFIGURING)

        logger.info(
            "Image loaded",
            width=buffer.width,
            height=buffer.height,
            suggested_threshold=threshold,
        )
        return buffer

    def update_settings(self, **changes) -> SoilSettings:
        """Apply soil setting changes (snake_case or camelCase names)."""
        aliases = {
            info.alias: name for name, info in SoilSettings.model_fields.items() if info.alias
        }
        values = self.soil_settings.model_dump()
        values.update({aliases.get(key, key): value for key, value in changes.items()})
        self.soil_settings = SoilSettings.model_validate(values)
        self._preview_dirty = True
        return self.soil_settings

    def generate(self) -> Optional[Population]:
        """
        Generate digital soil and grow a population on it.

        Returns:
            The new Population, or None when no image has been loaded
        """
        if self.buffer is None:
            logger.warning("Generate requested before an image was loaded")
            return None

        soil = generate_soil(
            self.buffer,
            self.soil_settings,
            self.prng,
            self.config.min_soil_points,
            self.config.fallback_soil_points,
        )
        if soil is None:
            return None

        behavior = calculate_behavior(self.soil_settings, soil.points)
        creatures = spawn_population(soil.points, behavior, self.species, self.prng)

        self.population = Population(
            soil=soil,
            behavior=behavior,
            species=self.species,
            creatures=tuple(creatures),
            start_tick=self.tick_count,
        )
        self.growth_progress = 0.0
        self._set_scene(Scene.GROWING)
        return self.population

    def set_species(self, species: Union[str, Species]) -> Optional[Population]:
        """Switch species, re-spawning on the existing soil while growing."""
        self.species = resolve_species(species)
        if self.scene != Scene.GROWING or self.population is None:
            return None

        current = self.population
        creatures = spawn_population(current.soil.points, current.behavior, self.species, self.prng)
        self.population = Population(
            soil=current.soil,
            behavior=current.behavior,
            species=self.species,
            creatures=tuple(creatures),
            start_tick=current.start_tick,
        )
        return self.population

    def reset(self) -> None:
        """Back to the intro screen with nothing loaded."""
        self.buffer = None
        self.population = None
        self.growth_progress = 0.0
        self.soil_settings = SoilSettings()
        self._preview = []
        self._preview_dirty = True
        self.mapper.reset()
        self._set_scene(Scene.IDLE)

    def _set_scene(self, scene: Scene) -> None:
        if scene != self.scene:
            logger.info("Scene changed", previous=self.scene.name, scene=scene.name)
        self.scene = scene

    # Input events

    def on_hand_predictions(self, predictions: Sequence[HandPrediction]) -> None:
        """Gesture model callback; only the latest batch is kept."""
        self.mapper.mailbox.post(predictions)

    def on_hand_model_ready(self) -> None:
        self.mapper.mailbox.mark_ready()
        logger.info("Hand model ready")

    def mouse_pressed(self, x: float, y: float) -> None:
        if self.scene == Scene.GROWING:
            self.mapper.start_drag(x, y)

    def mouse_released(self) -> None:
        self.mapper.end_drag()

    def mouse_wheel(self, delta: float) -> Optional[float]:
        if self.scene != Scene.GROWING:
            return None
        return self.mapper.wheel(delta)

    # Simulation

    def compute_growth(self, tick: int) -> float:
        """Shared growth progress of the population at ``tick``."""
        if self.population is None:
            return 0.0
        speed = self.population.behavior.growth_speed or 1.0
        elapsed = tick - self.population.start_tick
        return clamp((elapsed / self.config.growth_ticks) * speed, 0.0, 1.0)

    def tick(self, mouse: Tuple[float, float] = (0.0, 0.0)) -> InteractionState:
        """
        Advance one frame.

        Args:
            mouse: Mouse position in canvas pixels (top-left origin)

        Returns:
            Interaction state after this tick
        """
        self.tick_count += 1
        self.mapper.update_pointer(self.tick_count, mouse)
        self.soil_breath_phase += BREATH_RATE

        if self.scene != Scene.GROWING or self.population is None:
            return self.mapper.state

        self.growth_progress = self.compute_growth(self.tick_count)
        state = self.mapper.map_signals(mouse)
        for creature in self.population.creatures:
            creature.update(
                self.growth_progress,
                state.wind,
                state.contraction,
                state.vertical_influence,
                self.tick_count,
            )
        return state

    def render(self, surface: DrawingSurface) -> None:
        """Draw the soil floor and the grown population onto ``surface``."""
        if self.scene != Scene.GROWING or self.population is None:
            return
        rotation = self.mapper.state.rotation
        surface.push()
        surface.translate(0, FLOOR_OFFSET, 0)
        surface.rotate_x(rotation.x)
        surface.rotate_y(rotation.y)
        surface.scale(self.mapper.state.zoom)
        draw_soil_floor(
            surface, self.population.soil.points, self.soil_settings, self.soil_breath_phase
        )
        for creature in self.population.creatures:
            creature.display(surface)
        surface.pop()
