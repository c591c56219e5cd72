"""
Population spawning.

Picks distinct soil points with a uniform permutation and grows one creature
of the selected species on each.
"""

import math
from typing import List, Sequence, Union

import structlog

from ..utils.random import permutation
from .alea_prng import AleaPRNG
from .behavior import SoilBehavior, clamp, lerp, remap
from .creatures import Creature, CreatureParams, Species, create_creature, resolve_species

logger = structlog.get_logger()

MIN_PLANTS = 30
MAX_PLANTS = 160
DEFAULT_STRENGTH = 0.7
HEIGHT_NOISE_SCALE = 1.5


def plant_count(point_count: int, behavior: SoilBehavior) -> int:
    """
    Number of creatures to spawn on ``point_count`` soil points.

    Scales from 30 plants at 50 points to 160 at 1200 (extrapolating past
    either end), weighted by the density factor and clamped to the points
    available.
    """
    base = remap(point_count, 50, 1200, MIN_PLANTS, MAX_PLANTS)
    target = math.floor(base * behavior.density_factor)
    return int(clamp(target, 0, point_count))


def creature_params(point, behavior: SoilBehavior) -> CreatureParams:
    """Per-creature parameters from the soil point's intensity."""
    strength = getattr(point, "n", None)
    if strength is None:
        strength = DEFAULT_STRENGTH
    return CreatureParams(
        strength=strength,
        height_factor=lerp(0.8, 1.5, strength) * behavior.height_factor,
        thickness_factor=lerp(0.8, 1.4, strength) * behavior.thickness_factor,
    )


def select_points(point_count: int, count: int, prng: AleaPRNG) -> List[int]:
    """Indices of ``count`` distinct points, chosen uniformly."""
    return permutation(point_count, prng)[: min(count, point_count)]


def spawn_population(
    points: Sequence,
    behavior: SoilBehavior,
    species: Union[str, Species],
    prng: AleaPRNG,
) -> List[Creature]:
    """
    Grow a fresh creature population on the soil.

    Args:
        points: Soil points
        behavior: Behavior profile of the same generation
        species: Species tag of every creature
        prng: Source for point selection and creature decoration

    Returns:
        New list of creatures; callers replace their population with it
    """
    species = resolve_species(species)
    count = plant_count(len(points), behavior)

    creatures = []
    for index in select_points(len(points), count, prng):
        point = points[index]
        params = creature_params(point, behavior)
        # Image plane becomes the floor; height noise lifts the root slightly
        creatures.append(
            create_creature(
                species, point.x, point.z * HEIGHT_NOISE_SCALE, point.y, params, prng
            )
        )

    logger.info(
        "Population spawned",
        species=species.value,
        creatures=len(creatures),
        soil_points=len(points),
    )
    return creatures
