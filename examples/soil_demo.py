#!/usr/bin/env python3
"""
Headless demo: grow each species from a synthetic image and print statistics.
"""

import numpy as np

from lumen_genesis import Session, configure_logging
from lumen_genesis.core import RecordingSurface, Species


def radial_image(width=320, height=240):
    """A bright blob fading out toward the corners."""
    ys, xs = np.mgrid[0:height, 0:width]
    dist = np.hypot(xs - width / 2, ys - height / 2)
    values = np.clip(255 - dist * 1.6, 0, 255).astype(np.uint8)
    return np.stack([values, values, values], axis=2)


def main():
    """Demonstrate soil generation and creature growth."""
    print("Lumen Genesis Demo")
    print("=" * 40)

    configure_logging()
    session = Session(seed="demo123")
    buffer = session.load_image(radial_image())
    print(f"\nFitted bitmap: {buffer.width}x{buffer.height}")
    print(f"Suggested threshold: {session.soil_settings.threshold:.0f}")
    print(f"Preview dots: {len(session.preview)}")

    population = session.generate()
    behavior = population.behavior
    print(f"\nSoil points: {len(population.soil)} (scanned {population.soil.scanned})")
    print(f"  Density factor:   {behavior.density_factor:.3f}")
    print(f"  Height factor:    {behavior.height_factor:.3f}")
    print(f"  Thickness factor: {behavior.thickness_factor:.3f}")
    print(f"  Growth speed:     {behavior.growth_speed:.3f}")
    print(f"  Avg brightness:   {behavior.avg_brightness:.3f}")

    for species in Species:
        session.set_species(species)
        for frame in range(120):
            # sweep the mouse left to right
            session.tick((frame * 900 / 120, 150))
        surface = RecordingSurface()
        session.render(surface)

        print(f"\n{species.label.upper()} ({species.value}):")
        print("-" * 30)
        print(f"  Creatures: {len(session.creatures)}")
        print(f"  Growth:    {session.growth_progress:.2f}")
        print(f"  Wind:      {session.interaction.wind:+.2f}")
        print(f"  Draw calls: {len(surface.calls)}")

    session.close()


if __name__ == "__main__":
    main()
