# particle.py
"""
Manages the state of all particles in the field.

This module defines the Particle class, a single moving dot that bounces
off the surface borders, and the ParticleField class, which creates the
particles from the resolved settings, advances them every tick and finds
the pairs close enough to be linked.
"""
import logging
import math
from typing import Dict, List, NamedTuple, Optional, Tuple

import numpy as np
from numba import jit

from constants import (
    LIGHTNESS_PER_MULTIPLIER, PARTICLE_LIGHTNESS, PARTICLE_SATURATION, SPEED_SCALE
)
from utils import uniform_inclusive

# --- Data Contracts ---
#
# class Particle:
#   - update(self, width: float, height: float) -> None:
#     - Side Effects: Moves the particle by one tick, reflecting off borders.
#     - Invariants: size <= x <= width - size and size <= y <= height - size
#       after the call (for surfaces at least 2 * size wide/high).
#   - render_parameters(self) -> RenderParameters: pure.
#   - distance_to(self, other: Particle) -> float: pure, symmetric.
#
# class ParticleField:
#   - initialize(self, settings: Dict[str, float], bounds: Tuple[int, int]) -> None:
#     - Side Effects: Replaces the particle list with ceil(settings['amount'])
#       new particles.
#   - tick(self, bounds: Tuple[int, int]) -> None
#   - compute_links(self, tolerance: float) -> List[Link]:
#     - Outputs: one Link per unordered pair with distance < tolerance,
#       source index < target index.
#   - set_global_multiplier(self, value: float) -> None


class RenderParameters(NamedTuple):
    x: float
    y: float
    radius: float
    hue: float
    saturation: float
    lightness: float


class Particle:
    """
    A single dot with a position, a velocity vector, a size and a hue.

    The velocity is stored as (vx, vy) but exposed as speed and direction.
    The multiplier (1 by default) scales the drawn size and gives the dot a
    speed boost while it differs from 1.
    """
    __slots__ = ('x', 'y', 'size', 'vx', 'vy', 'hue', 'multiplier')

    def __init__(self, x: float, y: float, size: float, speed: float, direction: float, hue: float):
        """
        Args:
            x (float): Position on the horizontal axis.
            y (float): Position on the vertical axis.
            size (float): Base radius of the particle.
            speed (float): Pixels travelled per tick.
            direction (float): Heading in radians.
            hue (float): HSL hue in degrees.
        """
        self.x = x
        self.y = y
        self.size = size
        self.vx = math.cos(direction) * speed
        self.vy = math.sin(direction) * speed
        self.hue = hue
        self.multiplier = 1.0

    @property
    def speed(self) -> float:
        return math.sqrt(self.vx * self.vx + self.vy * self.vy)

    @speed.setter
    def speed(self, speed: float) -> None:
        direction = self.direction
        self.vx = math.cos(direction) * speed
        self.vy = math.sin(direction) * speed

    @property
    def direction(self) -> float:
        """Heading in radians."""
        return math.atan2(self.vy, self.vx)

    @direction.setter
    def direction(self, direction: float) -> None:
        speed = self.speed
        self.vx = math.cos(direction) * speed
        self.vy = math.sin(direction) * speed

    @property
    def effective_size(self) -> float:
        return self.size * self.multiplier

    def set_multiplier(self, multiplier: float) -> None:
        self.multiplier = multiplier

    def update(self, width: float, height: float) -> None:
        """
        Moves the particle one tick, reflecting it off the surface borders.

        While the multiplier differs from 1, half of it is added to the speed
        for the move and taken off again afterwards, so the resting speed is
        kept but the particle drifts faster.
        """
        increment = self.multiplier / 2 if self.multiplier != 1 else 0
        self.speed = self.speed + increment

        self.x, self.vx = self._step_axis(self.x, self.vx, width)
        self.y, self.vy = self._step_axis(self.y, self.vy, height)

        self.speed = self.speed - increment

    def _step_axis(self, position: float, velocity: float, bound: float) -> Tuple[float, float]:
        target = position + velocity
        if target + self.size > bound:
            return bound - self.size, -velocity
        if target - self.size < 0:
            return self.size, -velocity
        return target, velocity

    def render_parameters(self) -> RenderParameters:
        # Not clamped; renderers handle out-of-range lightness.
        lightness = PARTICLE_LIGHTNESS
        if self.multiplier > 1:
            lightness = 100 - self.multiplier * LIGHTNESS_PER_MULTIPLIER
        return RenderParameters(
            self.x, self.y, self.effective_size, self.hue, PARTICLE_SATURATION, lightness
        )

    def distance_to(self, other: "Particle") -> float:
        dx = other.x - self.x
        dy = other.y - self.y
        return math.sqrt(dx * dx + dy * dy)

    def __repr__(self) -> str:
        return (
            f"Particle(x={self.x:.2f}, y={self.y:.2f}, size={self.size:.2f}, "
            f"speed={self.speed:.3f}, multiplier={self.multiplier})"
        )


class Link(NamedTuple):
    source: Particle
    target: Particle
    distance: float
    opacity: float


@jit(nopython=True)
def _find_links_numba(positions, tolerance):
    """
    Numba-jitted scan over every unordered pair of particles.

    Returns the (i, j) index pairs with i < j whose distance is strictly
    below the tolerance, together with those distances. The distance uses
    the same expression as Particle.distance_to so both always agree on
    pairs sitting right at the threshold.

    The scan is O(n^2) on purpose: the particle count is bounded by what one
    frame can draw anyway.
    """
    particle_count = positions.shape[0]

    # First pass counts the links so the output arrays are allocated once.
    link_count = 0
    for i in range(particle_count):
        for j in range(i + 1, particle_count):
            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            if np.sqrt(dx * dx + dy * dy) < tolerance:
                link_count += 1

    pairs = np.empty((link_count, 2), dtype=np.int64)
    distances = np.empty(link_count, dtype=np.float64)
    k = 0
    for i in range(particle_count):
        for j in range(i + 1, particle_count):
            dx = positions[j, 0] - positions[i, 0]
            dy = positions[j, 1] - positions[i, 1]
            distance = np.sqrt(dx * dx + dy * dy)
            if distance < tolerance:
                pairs[k, 0] = i
                pairs[k, 1] = j
                distances[k] = distance
                k += 1
    return pairs, distances


class ParticleField:
    """
    Owns every particle of the effect and the randomness used to create them.
    """
    def __init__(self, seed: Optional[int] = None):
        """
        Args:
            seed (Optional[int]): Seed for the particle generator. None draws
                fresh entropy, so every run looks different.
        """
        self.seed = seed
        # All randomness in the field comes from this single generator.
        self.rng = np.random.default_rng(seed)
        self.particles: List[Particle] = []

    def __len__(self) -> int:
        return len(self.particles)

    def __iter__(self):
        return iter(self.particles)

    def initialize(self, settings: Dict[str, float], bounds: Tuple[int, int]) -> None:
        """
        Replaces the particle list with freshly randomized particles.

        Every attribute is drawn independently and uniformly from its
        inclusive [min, max] range. A fractional amount is rounded up, the
        same count a ``for i < amount`` loop would create.
        """
        width, height = bounds
        amount = math.ceil(settings['amount'])

        def draw(key):
            return uniform_inclusive(
                self.rng, settings[f'{key}_min'], settings[f'{key}_max'], amount
            )

        # Size first since the position ranges were derived from it.
        sizes = draw('size')
        xs = draw('position_x')
        ys = draw('position_y')
        speeds = draw('speed') / SPEED_SCALE
        directions = draw('direction')
        hues = draw('color')

        self.particles = [
            Particle(float(x), float(y), float(size), float(speed), float(direction), float(hue))
            for x, y, size, speed, direction, hue in zip(xs, ys, sizes, speeds, directions, hues)
        ]

        logging.info(f"ParticleField initialized with {amount} particles on a {width}x{height} surface.")
        logging.debug(
            f"Sizes in [{settings['size_min']:g}, {settings['size_max']:g}], "
            f"x in [{settings['position_x_min']:g}, {settings['position_x_max']:g}], "
            f"y in [{settings['position_y_min']:g}, {settings['position_y_max']:g}]"
        )

    def tick(self, bounds: Tuple[int, int]) -> None:
        """Advances every particle by one tick. Particles do not interact here."""
        width, height = bounds
        for particle in self.particles:
            particle.update(width, height)

    def positions(self) -> np.ndarray:
        """Current particle centres as a float64 array of shape (N, 2)."""
        positions = np.empty((len(self.particles), 2), dtype=np.float64)
        for i, particle in enumerate(self.particles):
            positions[i, 0] = particle.x
            positions[i, 1] = particle.y
        return positions

    def compute_links(self, tolerance: float) -> List[Link]:
        """
        Finds every unordered pair of particles closer than the tolerance.

        Returns:
            List[Link]: One link per pair, its opacity fading linearly from 1
            (touching) to 0 (at the tolerance).
        """
        if len(self.particles) < 2 or not tolerance > 0:
            return []

        pairs, distances = _find_links_numba(self.positions(), float(tolerance))
        particles = self.particles
        return [
            Link(particles[i], particles[j], float(distance), 1 - float(distance) / tolerance)
            for (i, j), distance in zip(pairs.tolist(), distances.tolist())
        ]

    def set_global_multiplier(self, multiplier: float) -> None:
        for particle in self.particles:
            particle.set_multiplier(multiplier)

    def average_speed(self) -> float:
        if not self.particles:
            return 0.0
        return float(np.mean([particle.speed for particle in self.particles]))
