"""
Radial impulses shared by the particle field.

- gather: sustained pull toward the pointer, called every tick while the
  session is gathering
- burst: one-shot shockwave away from an origin, fired on release

Both work in place on Nx2 float arrays (positions, velocities).
"""
from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class ImpulseEvent:
    x: float
    y: float
    strength: float


def apply_gather(pos, vel, target, strength, drag):
    """Accelerate every body straight at target, then apply drag."""
    if len(pos) == 0:
        return
    to_target = np.asarray(target, dtype=np.float64)[None, :] - pos
    d = np.linalg.norm(to_target, axis=1)
    dirn = to_target / (d[:, None] + 1e-6)
    vel += dirn * float(strength)
    vel *= float(drag)


def burst_power(d, strength, gain, max_power):
    """Power falls off as 1/distance and is capped; d must be > 0."""
    return np.minimum((float(strength) * float(gain)) / d, float(max_power))


def apply_burst(pos, vel, event: ImpulseEvent, gain, max_power, min_power=0.0):
    """
    Push bodies away from the event origin.

    Returns the boolean mask of bodies that received at least min_power, so the
    caller can mark them as settling.
    """
    n = len(pos)
    if n == 0:
        return np.zeros(0, dtype=bool)

    away = pos - np.array([event.x, event.y], dtype=np.float64)[None, :]
    d = np.linalg.norm(away, axis=1) + 0.1  # never a literal zero
    power = burst_power(d, event.strength, gain, max_power)

    ang = np.arctan2(away[:, 1], away[:, 0])
    vel[:, 0] += np.cos(ang) * power
    vel[:, 1] += np.sin(ang) * power

    return power > float(min_power)
