"""
Creature variants grown from the digital soil.

Every creature shares one state record and one update step. ``update`` only
stores the tick's interaction scalars; ``display`` draws from that stored
state plus constants fixed at construction, so a population can be replayed
tick by tick without a renderer.

Variants are selected by their Species tag through ``SPECIES_REGISTRY``.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Type, Union

from ..exceptions import UnknownSpeciesError
from .alea_prng import AleaPRNG
from .behavior import lerp, remap
from .surface import DrawingSurface, ShapeKind

PHASE_RATE = 0.03
GROWN_THRESHOLD = 0.01


class Species(str, Enum):
    """Creature variant tags."""

    TORUS = "torus"
    MOBIUS = "mobius"
    KNOT = "knot"
    HOPF = "hopf"

    @property
    def label(self) -> str:
        return SPECIES_LABELS[self]


SPECIES_LABELS = {
    Species.TORUS: "Nebula Ring",
    Species.MOBIUS: "Flux Helix",
    Species.KNOT: "Quantum Core",
    Species.HOPF: "Dream Spire",
}


@dataclass(frozen=True)
class CreatureParams:
    """Per-creature parameters handed out by the spawner."""

    strength: float
    height_factor: float
    thickness_factor: float


@dataclass(frozen=True)
class CreatureState:
    """Interaction scalars captured by the last update."""

    growth: float = 0.0
    wind: float = 0.0
    contraction: float = 0.0
    vertical_influence: float = 0.0
    tick: int = 0
    phase: float = 0.0


class Creature:
    """Shared state and update contract of all creature variants."""

    species: Species

    def __init__(self, x: float, y: float, z: float, params: CreatureParams, prng: AleaPRNG):
        self.base_x = x
        self.base_y = y  # vertical in floor space
        self.base_z = z
        self.strength = params.strength
        self.height_base = 100.0
        self.radius_base = 10.0
        self.thickness = params.thickness_factor
        self.hue_offset = (prng.random() - 0.5) * 30
        self.state = CreatureState()

    @property
    def position(self):
        return (self.base_x, self.base_y, self.base_z)

    @property
    def is_grown(self) -> bool:
        """Creatures stay invisible until growth passes 0.01."""
        return self.state.growth > GROWN_THRESHOLD

    @property
    def structure_count(self) -> int:
        """Rings, particles, orbitals or segments depending on the variant."""
        return 0

    def update(
        self,
        growth: float,
        wind: float,
        contraction: float,
        vertical_influence: float,
        tick: int,
    ) -> None:
        """Store this tick's interaction scalars."""
        self.state = CreatureState(
            growth=growth,
            wind=wind,
            contraction=contraction,
            vertical_influence=vertical_influence,
            tick=tick,
            phase=tick * PHASE_RATE,
        )

    def display(self, surface: DrawingSurface) -> None:
        """Draw the creature from its current state."""
        if not self.is_grown:
            return
        surface.push()
        self._draw(surface)
        surface.pop()

    def _draw(self, surface: DrawingSurface) -> None:
        raise NotImplementedError

    def __repr__(self):
        return (
            f"{type(self).__name__}(x={self.base_x:.1f}, y={self.base_y:.1f}, "
            f"z={self.base_z:.1f}, strength={self.strength:.2f})"
        )


SPECIES_REGISTRY: Dict[Species, Type[Creature]] = {}


def register(species: Species) -> Callable[[Type[Creature]], Type[Creature]]:
    """Class decorator binding a variant to its species tag."""

    def decorator(cls: Type[Creature]) -> Type[Creature]:
        cls.species = species
        SPECIES_REGISTRY[species] = cls
        return cls

    return decorator


def resolve_species(tag: Union[str, Species]) -> Species:
    """Normalize a species tag, rejecting unknown ones."""
    try:
        return Species(tag)
    except ValueError:
        raise UnknownSpeciesError(tag) from None


def create_creature(
    species: Union[str, Species],
    x: float,
    y: float,
    z: float,
    params: CreatureParams,
    prng: AleaPRNG,
) -> Creature:
    """Instantiate the variant registered for ``species``."""
    return SPECIES_REGISTRY[resolve_species(species)](x, y, z, params, prng)


@register(Species.TORUS)
class RingOrganism(Creature):
    """Stacked breathing rings that sway with the wind."""

    def __init__(self, x, y, z, params, prng):
        super().__init__(x, y, z, params, prng)
        self.height_base = lerp(80, 160, self.strength) * params.height_factor
        self.radius_base = lerp(12, 24, self.strength) * params.thickness_factor
        self.rings = math.floor(lerp(3, 8, self.strength))

    @property
    def structure_count(self) -> int:
        return self.rings

    def _draw(self, surface):
        s = self.state
        surface.translate(self.base_x, self.base_y, self.base_z)
        surface.no_fill()

        expansion = (1 - s.contraction) * 1.5 + 0.5
        glow = s.contraction * 50
        stack_height = self.height_base * (1 + s.vertical_influence * 0.5)

        for i in range(self.rings):
            t = i / self.rings
            progress = t * s.growth

            y = -progress * stack_height
            radius = self.radius_base * expansion * math.sin(progress * math.pi + s.phase)
            sway_x = math.sin(s.phase + t * 2) * s.wind * 15
            sway_z = math.cos(s.phase + t * 2) * s.wind * 15

            hue = (190 + t * 40 + self.hue_offset) % 360
            alpha = remap(t, 0, 1, 0.4, 0.95)
            surface.stroke_weight((2 + glow * 0.1) * self.strength)
            surface.stroke(hue, 90 - glow, 100, alpha)

            surface.push()
            surface.translate(sway_x, y, sway_z)
            surface.rotate_x(math.pi / 2)
            surface.ellipse(0, 0, radius, radius)
            surface.pop()


@dataclass(frozen=True)
class RibbonParticle:
    offset: float
    speed: float


@register(Species.MOBIUS)
class RibbonOrganism(Creature):
    """Twin twisting ribbons with particles spiralling up the helix."""

    steps = 30

    def __init__(self, x, y, z, params, prng):
        super().__init__(x, y, z, params, prng)
        self.height_base = lerp(70, 150, self.strength) * params.height_factor
        self.radius_base = lerp(8, 16, self.strength) * params.thickness_factor
        self.particles: List[RibbonParticle] = [
            RibbonParticle(offset=prng.random() * math.pi * 2, speed=1 + prng.random())
            for _ in range(3)
        ]

    @property
    def structure_count(self) -> int:
        return len(self.particles)

    def _sway(self, t: float):
        s = self.state
        return (
            math.sin(s.phase + t * 2) * s.wind * 10,
            math.cos(s.phase + t * 2) * s.wind * 10,
        )

    def _draw(self, surface):
        s = self.state
        surface.translate(self.base_x, self.base_y, self.base_z)

        visible = math.floor(self.steps * s.growth)
        width = self.radius_base * ((1 - s.contraction) * 1.2 + 0.4)

        surface.no_stroke()
        for offset in range(2):
            surface.begin_shape(ShapeKind.TRIANGLE_STRIP)
            for i in range(visible + 1):
                t = i / self.steps
                y = -t * self.height_base

                wave = math.sin(t * math.pi * 4 + s.phase * 2 + offset * math.pi)
                angle = t * math.pi * 3 + s.wind * wave
                sway_x, sway_z = self._sway(t)

                shimmer = math.sin(t * 20 - s.phase * 5) * 15
                hue = (260 + t * 80 + self.hue_offset) % 360
                alpha = remap(t, 0, 0.2, 0, 0.95, within_bounds=True)
                surface.fill(hue, 70, 90 + shimmer, alpha)

                r = width * (0.8 + 0.4 * wave)
                surface.vertex(sway_x + math.cos(angle) * r, y, sway_z + math.sin(angle) * r)
                surface.vertex(
                    sway_x + math.cos(angle + 0.5) * r, y, sway_z + math.sin(angle + 0.5) * r
                )
            surface.end_shape()

        surface.stroke_weight(2)
        for particle in self.particles:
            t = (s.tick * 0.01 * particle.speed + particle.offset) % 1
            if t > s.growth:
                continue
            y = -t * self.height_base
            sway_x, sway_z = self._sway(t)
            angle = t * math.pi * 6 + s.phase * 3
            r = self.radius_base * 2

            surface.stroke((280 + t * 60) % 360, 40, 100, 0.8)
            surface.point(sway_x + math.cos(angle) * r, y, sway_z + math.sin(angle) * r)


@dataclass(frozen=True)
class Orbital:
    axis: tuple
    speed: float


@register(Species.KNOT)
class CoreOrganism(Creature):
    """A floating nucleus circled by tilted orbitals."""

    def __init__(self, x, y, z, params, prng):
        super().__init__(x, y, z, params, prng)
        self.height_base = lerp(60, 110, self.strength) * params.height_factor
        self.radius_base = lerp(10, 20, self.strength) * params.thickness_factor

        count = math.floor(lerp(2, 4, self.strength))
        self.orbitals: List[Orbital] = []
        for _ in range(count):
            axis = (prng.random(), prng.random(), prng.random())
            speed = prng.random() + 0.5
            direction = 1 if prng.random() > 0.5 else -1
            self.orbitals.append(Orbital(axis=axis, speed=speed * direction))

    @property
    def structure_count(self) -> int:
        return len(self.orbitals)

    def _draw(self, surface):
        s = self.state
        float_y = -self.height_base * 0.6 * s.growth
        surface.translate(self.base_x, self.base_y + float_y, self.base_z)

        spin = 1 + s.contraction * 4
        size = 1 - s.contraction * 0.4

        surface.no_stroke()
        surface.fill(40 + self.hue_offset, 90, 100, 0.9)
        surface.sphere(3 * size)

        surface.no_fill()
        surface.stroke_weight(1.5)
        for i, orbital in enumerate(self.orbitals):
            surface.push()
            surface.rotate(s.phase * orbital.speed * spin, orbital.axis)

            r = self.radius_base * (1 + i * 0.3) * size * s.growth
            surface.stroke(35 + i * 10 + self.hue_offset, 90, 100, 0.8)
            surface.begin_shape()
            for k in range(4):
                a = k * math.pi / 2
                surface.vertex(math.cos(a) * r, math.sin(a) * r, 0)
            surface.end_shape(close=True)
            surface.pop()

        # Tether back down to the soil
        surface.stroke(40, 50, 100, 0.3)
        surface.stroke_weight(1)
        surface.line(0, 0, 0, 0, -float_y, 0)


@register(Species.HOPF)
class SpireOrganism(Creature):
    """A spinning tower of alternating pyramids and boxes."""

    def __init__(self, x, y, z, params, prng):
        super().__init__(x, y, z, params, prng)
        self.height_base = lerp(80, 160, self.strength) * params.height_factor
        self.radius_base = lerp(8, 15, self.strength) * params.thickness_factor
        self.segments = math.floor(lerp(4, 9, self.strength))
        self.rotation_offset = prng.random() * math.pi * 2

    @property
    def structure_count(self) -> int:
        return self.segments

    def _draw(self, surface):
        s = self.state
        surface.translate(self.base_x, self.base_y, self.base_z)
        surface.no_fill()

        spin = 1 + s.contraction * 8
        compression = 1 - s.contraction * 0.3
        segment_height = (self.height_base / self.segments) * compression

        for i in range(math.ceil(self.segments * s.growth)):
            t = i / self.segments
            y = -i * segment_height * (1 + s.vertical_influence)
            r = self.radius_base * (1.0 - t * 0.5) * (1 + math.sin(s.phase * 2 + i) * 0.2)
            rot = s.phase * spin + i * 0.5 + self.rotation_offset
            sway_x = math.sin(s.phase + i * 0.5) * s.wind * 10
            sway_z = math.cos(s.phase + i * 0.5) * s.wind * 10

            surface.push()
            surface.translate(sway_x, y, sway_z)
            surface.rotate_y(rot)
            surface.rotate_x(math.sin(s.phase + i) * 0.2)

            alpha = remap(i, 0, self.segments, 0.9, 0.4)
            hue = (180 + i * 20 + s.phase * 20) % 360
            surface.stroke(hue, 65, 100, alpha)
            surface.stroke_weight(1.5)

            if i % 2 == 0:
                self._draw_pyramid(surface, r, segment_height * 0.8)
            else:
                surface.box(r, segment_height * 0.5, r)
            surface.pop()

            if i > 0:
                surface.stroke(hue, 40, 100, 0.3)
                surface.line(sway_x, y, sway_z, sway_x, y + segment_height, sway_z)

    @staticmethod
    def _draw_pyramid(surface, r: float, h: float):
        base = [(-r, 0, -r), (r, 0, -r), (r, 0, r), (-r, 0, r)]
        surface.begin_shape()
        for corner in base:
            surface.vertex(*corner)
        surface.end_shape(close=True)

        surface.begin_shape(ShapeKind.TRIANGLES)
        for k in range(4):
            surface.vertex(*base[k])
            surface.vertex(*base[(k + 1) % 4])
            surface.vertex(0, -h, 0)
        surface.end_shape()
