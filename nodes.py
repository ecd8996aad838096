# nodes.py
# Interactive nodes: the few clickable destinations floating among the particles.
# - Wander toward a target that is re-rolled every few seconds
# - Hover grows the radius smoothly; clicks use a fixed, larger hit radius
# - Staggered intro: invisible until the per-node delay, then elastic pop-in
# - Activation only calls the sink; node physics never changes because of it
from __future__ import annotations

import math

import numpy as np

from logging_config import get_logger
from vecmath import approach, clamp, dist, ease_out_elastic, normalize, rescale

log = get_logger("nodes")


class InteractiveNode:
    def __init__(self, payload, index, params, rng, w, h):
        self.payload = payload
        self.index = int(index)
        self.params = params
        self.rng = rng

        p = params
        m = float(p.node_margin)
        self.x = self._rand_in(m, w - m, w)
        self.y = self._rand_in(m, h - m, h)
        a = float(rng.random()) * 2.0 * math.pi
        self.vx = math.cos(a) * p.node_max_speed * 0.3
        self.vy = math.sin(a) * p.node_max_speed * 0.3

        # wander
        self.tx, self.ty = self.x, self.y
        self.wander_timer = 0.0
        self.phase = self.index * 2.399  # golden angle keeps nodes out of sync
        self._t = 0.0

        # hover / size
        self.radius = float(p.node_base_radius)
        self.target_radius = float(p.node_base_radius)
        self.hovered = False

        # intro
        self.intro_delay = float(p.node_intro_base_delay) + self.index * float(p.node_intro_stagger)
        self.intro_elapsed = 0.0
        self.intro_progress = 0.0
        self.scale = 0.0
        self.opacity = 0.0

        self._last_event_id = None

    def _rand_in(self, lo, hi, full):
        if hi <= lo:
            # surface smaller than the margins: anywhere will do
            lo, hi = 0.0, float(full)
        return lo + float(self.rng.random()) * (hi - lo)

    # ---------- state ----------
    @property
    def visible(self) -> bool:
        return self.intro_elapsed >= self.intro_delay and self.opacity > 0.0

    @property
    def hittable(self) -> bool:
        # full opacity comes before the elastic scale settles
        return self.visible and self.opacity >= 1.0

    @property
    def loaded(self) -> bool:
        return self.intro_progress >= 1.0

    @property
    def xy(self):
        return (self.x, self.y)

    # ---------- per tick ----------
    def update(self, pointer, dt, w, h):
        dt = float(dt)
        self._t += dt
        self._update_intro(dt)
        self._wander(dt, w, h)
        self._pointer_nudge(pointer)
        self._integrate(w, h)
        self._hover(pointer)

    def _update_intro(self, dt):
        if self.loaded:
            return
        self.intro_elapsed += dt
        if self.intro_elapsed < self.intro_delay:
            return
        p = self.params
        prog = min((self.intro_elapsed - self.intro_delay) / float(p.node_intro_duration), 1.0)
        self.intro_progress = prog
        self.scale = ease_out_elastic(prog)
        self.opacity = min(prog * 2.0, 1.0)

    def _wander(self, dt, w, h):
        p = self.params
        self.wander_timer -= dt
        if self.wander_timer <= 0.0:
            m = float(p.node_margin)
            self.tx = self._rand_in(m, w - m, w)
            self.ty = self._rand_in(m, h - m, h)
            self.wander_timer = float(p.node_wander_min) + float(self.rng.random()) * (
                float(p.node_wander_max) - float(p.node_wander_min)
            )

        ux, uy = normalize((self.tx - self.x, self.ty - self.y))
        self.vx += ux * p.node_steer_strength
        self.vy += uy * p.node_steer_strength

        # small per-node wobble
        wob = self._t * p.node_wobble_freq + self.phase
        self.vx += math.sin(wob) * p.node_wobble
        self.vy += math.cos(wob * 0.7) * p.node_wobble

    def _pointer_nudge(self, pointer):
        if not (pointer.active and pointer.has_position):
            return
        p = self.params
        d = dist(self.xy, pointer.xy)
        hover_d = self.radius + p.node_hover_margin
        if not (hover_d < d < p.node_pointer_radius):
            return
        f = p.node_pointer_pull * (1.0 - d / p.node_pointer_radius)
        if p.node_pointer_repel:
            f = -f
        ux, uy = normalize((pointer.x - self.x, pointer.y - self.y))
        self.vx += ux * f
        self.vy += uy * f

    def _integrate(self, w, h):
        p = self.params
        self.vx *= p.node_damping
        self.vy *= p.node_damping

        s = math.hypot(self.vx, self.vy)
        if s > p.node_max_speed:
            self.vx, self.vy = rescale(self.vx, self.vy, p.node_max_speed)

        self.x += self.vx
        self.y += self.vy

        # clamp to the edge, bounce with loss
        if self.x < 0.0 or self.x > w:
            self.x = clamp(self.x, 0.0, float(w))
            self.vx *= -p.node_edge_loss
        if self.y < 0.0 or self.y > h:
            self.y = clamp(self.y, 0.0, float(h))
            self.vy *= -p.node_edge_loss

    def _hover(self, pointer):
        p = self.params
        if pointer.active and pointer.has_position and self.visible:
            self.hovered = dist(self.xy, pointer.xy) < self.radius + p.node_hover_margin
        else:
            self.hovered = False

        self.target_radius = float(p.node_hover_radius if self.hovered else p.node_base_radius)
        self.radius = approach(self.radius, self.target_radius, p.node_radius_smoothing)
        self.radius = clamp(self.radius, float(p.node_base_radius), float(p.node_hover_radius))

    # ---------- input ----------
    def hit_test(self, x, y) -> bool:
        if not self.hittable:
            return False
        return dist(self.xy, (x, y)) < float(self.params.node_hit_radius)

    def activate(self, event_id, sink=None) -> bool:
        """Hand the payload to the sink, at most once per discrete input event."""
        if event_id is not None and event_id == self._last_event_id:
            return False
        self._last_event_id = event_id
        log.info("node %d activated (event %s)", self.index, event_id)
        if sink is not None:
            sink(self.payload)
        return True

    def reposition(self, w, h):
        self.x = clamp(self.x, 0.0, float(w))
        self.y = clamp(self.y, 0.0, float(h))
        self.tx = clamp(self.tx, 0.0, float(w))
        self.ty = clamp(self.ty, 0.0, float(h))

    def state(self):
        return {
            "index": self.index,
            "x": self.x,
            "y": self.y,
            "radius": self.radius,
            "scale": self.scale,
            "opacity": self.opacity,
            "hovered": self.hovered,
            "visible": self.visible,
            "hittable": self.hittable,
        }


def build_nodes(payloads, params, rng, w, h):
    if rng is None:
        rng = np.random.default_rng(params.seed)
    nodes = [InteractiveNode(pl, i, params, rng, w, h) for i, pl in enumerate(payloads or ())]
    if not nodes:
        log.info("no destinations, running particles only")
    return nodes
