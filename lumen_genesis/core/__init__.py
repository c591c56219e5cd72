"""
Core generation and simulation functionality.
"""

from .alea_prng import AleaPRNG
from .behavior import SoilBehavior, calculate_behavior, clamp, lerp, remap
from .brightness import PixelBuffer, fit_image, luminance, luminance_grid, suggest_threshold
from .creatures import (
    CoreOrganism,
    Creature,
    CreatureParams,
    RibbonOrganism,
    RingOrganism,
    Species,
    SpireOrganism,
    create_creature,
)
from .interaction import HandPrediction, InteractionMapper, InteractionState, is_fist_like
from .soil import (
    PreviewDot,
    SoilField,
    SoilPoint,
    SoilSettings,
    SoilShape,
    draw_soil_floor,
    generate_preview,
    generate_soil,
)
from .spawner import plant_count, spawn_population
from .surface import DrawingSurface, RecordingSurface

__all__ = ['AleaPRNG', 'SoilBehavior', 'calculate_behavior', 'clamp', 'lerp', 'remap',
           'PixelBuffer', 'fit_image', 'luminance', 'luminance_grid', 'suggest_threshold',
           'CoreOrganism', 'Creature', 'CreatureParams', 'RibbonOrganism', 'RingOrganism',
           'Species', 'SpireOrganism', 'create_creature',
           'HandPrediction', 'InteractionMapper', 'InteractionState', 'is_fist_like',
           'PreviewDot', 'SoilField', 'SoilPoint', 'SoilSettings', 'SoilShape',
           'draw_soil_floor', 'generate_preview', 'generate_soil', 'plant_count', 'spawn_population',
           'DrawingSurface', 'RecordingSurface']
