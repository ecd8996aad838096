"""
Ambient particle field.

State (numpy, one row per particle):
- pos: Nx2 surface pixels
- vel: Nx2 pixels / tick
- size, shade: visual attributes picked at spawn
- settling: True after a burst until the particle is back to cruise speed

Per tick, normal mode:
- integrate, reflect off the surface edges
- swirl around the pointer when it is within the interaction radius
Gather mode:
- accelerate straight at the pointer with drag, then integrate (no reflection)
Both modes end with speed governance (ceiling, settling decay, floor).
"""
from __future__ import annotations

import numpy as np

from impulse import ImpulseEvent, apply_burst, apply_gather
from logging_config import get_logger

log = get_logger("particles")


class ParticleField:
    def __init__(self, params, rng=None):
        self.params = params
        self.rng = rng if rng is not None else np.random.default_rng(params.seed)

        self.pos = np.zeros((0, 2), dtype=np.float64)
        self.vel = np.zeros((0, 2), dtype=np.float64)
        self.size = np.zeros(0, dtype=np.float64)
        self.shade = np.zeros(0, dtype=np.int32)
        self.settling = np.zeros(0, dtype=bool)

    def __len__(self):
        return int(self.pos.shape[0])

    def spawn(self, n, w, h):
        p = self.params
        n = int(n)

        self.pos = self.rng.random((n, 2)) * np.array([w, h], dtype=np.float64)

        # random heading, speed between the floor and the base velocity
        ang = self.rng.random(n) * 2.0 * np.pi
        spd = p.floor_speed + self.rng.random(n) * max(0.0, p.base_velocity - p.floor_speed)
        self.vel = np.stack([np.cos(ang) * spd, np.sin(ang) * spd], axis=1)

        self.size = self.rng.random(n) * 2.0 + 0.5
        self.shade = self.rng.integers(0, 4, size=n).astype(np.int32)
        self.settling = np.zeros(n, dtype=bool)
        log.debug("spawned %d particles on %dx%d", n, w, h)

    def clamp_to(self, w, h):
        """Viewport changed: keep particles, pull the ones outside back in."""
        if len(self) == 0:
            return
        np.clip(self.pos[:, 0], 0.0, float(w), out=self.pos[:, 0])
        np.clip(self.pos[:, 1], 0.0, float(h), out=self.pos[:, 1])

    def speeds(self):
        return np.linalg.norm(self.vel, axis=1)

    def ceilings(self, gathering):
        p = self.params
        base = p.gather_max_speed if gathering else p.max_speed
        return np.where(self.settling, max(base, p.settle_ceiling), base)

    # ---------- per tick ----------
    def update(self, pointer, gathering, w, h):
        if len(self) == 0:
            return
        p = self.params
        gathering = bool(gathering and pointer.has_position)

        if gathering:
            apply_gather(self.pos, self.vel, pointer.xy, p.gather_strength, p.gather_drag)
            self._govern(gathering=True)
            self.pos += self.vel
            return

        self.pos += self.vel
        self._reflect(w, h)

        if pointer.active and pointer.has_position:
            self._swirl(pointer.xy)

        self._govern(gathering=False)

    def apply_burst(self, event: ImpulseEvent):
        p = self.params
        hit = apply_burst(self.pos, self.vel, event, p.impulse_gain, p.impulse_max_power)
        self.settling |= hit
        return hit

    # ---------- internals ----------
    def _reflect(self, w, h):
        x = self.pos[:, 0]
        y = self.pos[:, 1]
        vx = self.vel[:, 0]
        vy = self.vel[:, 1]

        # flip only when moving outward, so a particle past the edge can't jitter there
        flip_x = ((x <= 0.0) & (vx < 0.0)) | ((x >= w) & (vx > 0.0))
        flip_y = ((y <= 0.0) & (vy < 0.0)) | ((y >= h) & (vy > 0.0))
        vx[flip_x] *= -1.0
        vy[flip_y] *= -1.0

    def _swirl(self, target):
        p = self.params
        r = float(p.interaction_radius)

        to_ptr = np.asarray(target, dtype=np.float64)[None, :] - self.pos
        d = np.linalg.norm(to_ptr, axis=1)
        inside = d < r
        if not np.any(inside):
            return

        # rotated approach angle -> swirl instead of straight attraction
        ang = np.arctan2(to_ptr[inside, 1], to_ptr[inside, 0]) + float(p.swirl_offset)
        force = (1.0 - d[inside] / r) * float(p.swirl_strength)
        self.vel[inside, 0] += np.cos(ang) * force
        self.vel[inside, 1] += np.sin(ang) * force

    def _govern(self, gathering):
        p = self.params
        speed = self.speeds()
        ceiling = self.ceilings(gathering)
        scale = np.ones_like(speed)

        # over the ceiling: damp, but never leave it above the ceiling
        over = speed > ceiling
        if np.any(over):
            scale[over] = np.minimum(float(p.damping_factor), ceiling[over] / speed[over])

        # settling: decay until slow enough, then snap to cruise along the heading
        decaying = self.settling & ~over & (speed > p.settle_speed)
        scale[decaying] = float(p.settle_damping)

        settled = self.settling & (speed <= p.settle_speed)
        if np.any(settled):
            moving = settled & (speed > 1e-9)
            scale[moving] = float(p.base_velocity) / speed[moving]
            self.settling[settled] = False

        # floor: keep the field alive when undisturbed
        if not gathering:
            slow = ~self.settling & ~settled & (speed < p.floor_speed)
            scale[slow] = float(p.floor_boost)

        self.vel *= scale[:, None]

        # a dead-still particle can't be boosted; give it a heading
        still = (self.speeds() < 1e-9) & (not gathering)
        if np.any(still):
            ang = self.rng.random(int(np.count_nonzero(still))) * 2.0 * np.pi
            self.vel[still, 0] = np.cos(ang) * p.floor_speed
            self.vel[still, 1] = np.sin(ang) * p.floor_speed

    def snapshot(self):
        return {
            "pos": self.pos.copy(),
            "vel": self.vel.copy(),
            "size": self.size.copy(),
            "shade": self.shade.copy(),
            "settling": self.settling.copy(),
        }
