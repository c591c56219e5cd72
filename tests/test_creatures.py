"""Tests for creature variants."""

import math

import pytest

from lumen_genesis.core.alea_prng import AleaPRNG
from lumen_genesis.core.creatures import (
    SPECIES_REGISTRY,
    CoreOrganism,
    CreatureParams,
    CreatureState,
    RibbonOrganism,
    RingOrganism,
    Species,
    SpireOrganism,
    create_creature,
)
from lumen_genesis.core.surface import RecordingSurface
from lumen_genesis.exceptions import UnknownSpeciesError


def build(cls, strength, seed="creature"):
    params = CreatureParams(strength=strength, height_factor=1.0, thickness_factor=1.0)
    return cls(10.0, -2.0, 5.0, params, AleaPRNG(seed))


ALL_VARIANTS = [RingOrganism, RibbonOrganism, CoreOrganism, SpireOrganism]


class TestSpawnConstants:
    """Test the per-variant constructors."""

    @pytest.mark.parametrize(
        "cls, weak, strong",
        [
            (RingOrganism, (80, 12, 3), (160, 24, 8)),
            (RibbonOrganism, (70, 8, 3), (150, 16, 3)),
            (CoreOrganism, (60, 10, 2), (110, 20, 4)),
            (SpireOrganism, (80, 8, 4), (160, 15, 9)),
        ],
    )
    def test_ranges(self, cls, weak, strong):
        for strength, expected in [(0.0, weak), (1.0, strong)]:
            creature = build(cls, strength)
            assert creature.height_base == pytest.approx(expected[0])
            assert creature.radius_base == pytest.approx(expected[1])
            assert creature.structure_count == expected[2]

    def test_behavior_factors_scale(self):
        params = CreatureParams(strength=0.5, height_factor=2.0, thickness_factor=3.0)
        ring = RingOrganism(0, 0, 0, params, AleaPRNG("x"))
        assert ring.height_base == pytest.approx(120 * 2.0)
        assert ring.radius_base == pytest.approx(18 * 3.0)
        assert ring.rings == 5

    def test_random_decoration_ranges(self):
        ribbon = build(RibbonOrganism, 0.5)
        for particle in ribbon.particles:
            assert 0 <= particle.offset < 2 * math.pi
            assert 1 <= particle.speed < 2

        core = build(CoreOrganism, 0.9)
        for orbital in core.orbitals:
            assert all(0 <= a < 1 for a in orbital.axis)
            assert 0.5 <= abs(orbital.speed) < 1.5

        spire = build(SpireOrganism, 0.5)
        assert 0 <= spire.rotation_offset < 2 * math.pi
        assert -15 <= spire.hue_offset < 15


class TestRegistry:
    """Test species dispatch."""

    def test_every_species_registered(self):
        assert set(SPECIES_REGISTRY) == set(Species)
        for species, cls in SPECIES_REGISTRY.items():
            assert cls.species is species

    @pytest.mark.parametrize("tag, cls", [("torus", RingOrganism), ("mobius", RibbonOrganism),
                                          ("knot", CoreOrganism), ("hopf", SpireOrganism)])
    def test_create_by_tag(self, tag, cls):
        params = CreatureParams(0.5, 1, 1)
        assert isinstance(create_creature(tag, 0, 0, 0, params, AleaPRNG("t")), cls)

    def test_unknown_tag(self):
        with pytest.raises(UnknownSpeciesError):
            create_creature("moss", 0, 0, 0, CreatureParams(0.5, 1, 1), AleaPRNG("t"))

    def test_labels(self):
        assert Species.TORUS.label == "Nebula Ring"
        assert Species.HOPF.label == "Dream Spire"


class TestUpdate:
    """Test the update step."""

    @pytest.mark.parametrize("cls", ALL_VARIANTS)
    def test_stores_inputs(self, cls):
        creature = build(cls, 0.6)
        creature.update(0.5, -0.2, 0.3, 0.8, 100)
        assert creature.state == CreatureState(
            growth=0.5, wind=-0.2, contraction=0.3, vertical_influence=0.8, tick=100, phase=100 * 0.03
        )

    @pytest.mark.parametrize("cls", ALL_VARIANTS)
    def test_idempotent(self, cls):
        once = build(cls, 0.6)
        twice = build(cls, 0.6)
        once.update(0.7, 0.1, 0.0, 0.4, 42)
        twice.update(0.7, 0.1, 0.0, 0.4, 42)
        twice.update(0.7, 0.1, 0.0, 0.4, 42)
        assert once.state == twice.state

    def test_spawn_constants_untouched(self):
        spire = build(SpireOrganism, 0.4)
        before = (spire.height_base, spire.radius_base, spire.segments, spire.rotation_offset)
        for tick in range(10):
            spire.update(tick / 10, 0.5, 0.5, 0.5, tick)
        assert before == (spire.height_base, spire.radius_base, spire.segments, spire.rotation_offset)


class TestDisplay:
    """Test drawing from stored state."""

    @pytest.mark.parametrize("cls", ALL_VARIANTS)
    def test_invisible_until_grown(self, cls):
        creature = build(cls, 0.5)
        surface = RecordingSurface()
        creature.update(0.01, 0, 0, 0, 5)
        creature.display(surface)
        assert surface.calls == []
        assert not creature.is_grown

    @pytest.mark.parametrize("cls", ALL_VARIANTS)
    def test_display_is_pure(self, cls):
        creature = build(cls, 0.8)
        creature.update(0.9, 0.4, 0.2, 0.6, 250)

        first, second = RecordingSurface(), RecordingSurface()
        creature.display(first)
        creature.display(second)

        assert first.calls
        assert first.calls == second.calls
        assert first.depth == 0

    @pytest.mark.parametrize("cls", ALL_VARIANTS)
    def test_same_seed_same_drawing(self, cls):
        a, b = build(cls, 0.3, seed="twin"), build(cls, 0.3, seed="twin")
        for creature in (a, b):
            creature.update(1.0, -0.5, 0.7, 0.2, 77)
        sa, sb = RecordingSurface(), RecordingSurface()
        a.display(sa)
        b.display(sb)
        assert sa.calls == sb.calls

    def test_ring_draws_one_ellipse_per_ring(self):
        ring = build(RingOrganism, 1.0)
        ring.update(1.0, 0, 0, 0, 1)
        surface = RecordingSurface()
        ring.display(surface)
        assert surface.count("ellipse") == ring.rings
        assert surface.calls[1] == ("translate", (10.0, -2.0, 5.0))

    def test_spire_segments_follow_growth(self):
        spire = build(SpireOrganism, 1.0)  # 9 segments
        spire.update(0.5, 0, 0, 0, 1)
        surface = RecordingSurface()
        spire.display(surface)
        assert surface.count("rotate_y") == math.ceil(9 * 0.5)
        assert surface.count("box") == 2

    def test_core_draws_every_orbital(self):
        core = build(CoreOrganism, 1.0)
        core.update(1.0, 0, 1.0, 0, 10)
        surface = RecordingSurface()
        core.display(surface)
        assert surface.count("rotate") == len(core.orbitals)
        assert surface.last("sphere") == (pytest.approx(3 * 0.6),)

    def test_ribbon_strip_length_follows_growth(self):
        ribbon = build(RibbonOrganism, 0.5)
        ribbon.update(0.5, 0, 0, 0, 1)
        surface = RecordingSurface()
        ribbon.display(surface)
        # two strands, (15 + 1) slices, two vertices per slice
        assert surface.count("vertex") == 2 * 16 * 2
        assert surface.count("begin_shape") == 2
