"""
Simulation session: owns the pointer fusion, particles and nodes, and runs
one fixed pipeline per frame:

    fusion -> gestures (gather / burst / activate) -> particles -> nodes
           -> proximity graph -> on_frame hook

Session state is IDLE or GATHERING. A burst is an instantaneous edge on
release; settling is a per-particle flag kept by the particle field.

Usage:
    world = Simulation(params, payloads=destinations, on_activate=open_detail)
    world.resize(1280, 720)
    world.push(MouseMove(400, 300))
    frame = world.tick()
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import time

import numpy as np

from graph import ProximityGraph, build_graph
from impulse import ImpulseEvent
from logging_config import get_logger
from nodes import build_nodes
from particles import ParticleField
from pointer import CANCEL, PRESS, RELEASE, Pointer, PointerFusion, PointerSource

log = get_logger("sim")


class SessionState(Enum):
    IDLE = "idle"
    GATHERING = "gathering"


@dataclass
class Frame:
    tick: int = 0
    ready: bool = False
    positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 2)))
    sizes: np.ndarray = field(default_factory=lambda: np.zeros(0))
    shades: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int32))
    settling: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=bool))
    nodes: list = field(default_factory=list)
    graph: ProximityGraph = field(default_factory=ProximityGraph)
    pointer: Pointer = field(default_factory=Pointer)
    state: SessionState = SessionState.IDLE
    cursor: str = "hidden"
    width: int = 0
    height: int = 0
    bursts: int = 0
    activations: int = 0

    def body_positions(self):
        """Particles first, then visible nodes (the graph's index space)."""
        pts = [self.positions]
        vis = [(n["x"], n["y"]) for n in self.nodes if n["visible"]]
        if vis:
            pts.append(np.array(vis, dtype=np.float64))
        return np.concatenate(pts, axis=0) if len(pts) > 1 else self.positions


class Simulation:
    def __init__(self, params, payloads=(), on_activate=None, on_frame=None,
                 clock=time.monotonic, seed=None):
        self.params = params.validate()
        self.payloads = list(payloads or ())
        self.on_activate = on_activate
        self.on_frame = on_frame
        self.clock = clock

        seed = params.seed if seed is None else seed
        self.rng = np.random.default_rng(seed)

        self.fusion = PointerFusion(params, clock=clock)
        self.particles = ParticleField(params, rng=self.rng)
        self.nodes = []

        self.width = 0
        self.height = 0
        self.state = SessionState.IDLE
        self.tick_count = 0
        self.bursts = 0
        self.activations = 0
        self._initialized = False
        self._last_now = None
        self.last_frame = None

    # ---------- lifecycle ----------
    @property
    def ready(self) -> bool:
        return self.width > 0 and self.height > 0

    def resize(self, w, h, reset=False):
        """Call between frames. First valid size (or reset=True) builds the world."""
        self.width = int(w)
        self.height = int(h)
        if not self.ready:
            log.info("viewport %dx%d not usable yet, pausing", self.width, self.height)
            return
        if reset or not self._initialized:
            self.reset()
            return
        self.particles.clamp_to(self.width, self.height)
        for n in self.nodes:
            n.reposition(self.width, self.height)

    def reset(self):
        if not self.ready:
            return
        self.particles.spawn(self.params.particle_count, self.width, self.height)
        self.nodes = build_nodes(self.payloads, self.params, self.rng, self.width, self.height)
        self.state = SessionState.IDLE
        self._initialized = True
        log.info("world reset: %d particles, %d nodes, %dx%d",
                 len(self.particles), len(self.nodes), self.width, self.height)

    # ---------- input ----------
    def push(self, event) -> int:
        return self.fusion.push(event)

    def offer_sample(self, sample) -> None:
        self.fusion.offer_sample(sample)

    # ---------- frame ----------
    def tick(self, now=None) -> Frame:
        now = self.clock() if now is None else float(now)
        if not (self.ready and self._initialized):
            # input is discarded while there is no world to act on
            dropped = self.fusion.events.drain()
            if dropped:
                log.debug("viewport not ready, dropped %d input events", len(dropped))
            return Frame(tick=self.tick_count, width=self.width, height=self.height)

        dt = self.params.frame_dt if self._last_now is None else max(0.0, now - self._last_now)
        dt = min(dt, 0.1)
        self._last_now = now

        gestures = self.fusion.tick(self.width, self.height, now=now)
        for g in gestures:
            self._on_gesture(g)

        ptr = self.fusion.pointer
        gathering = self.state is SessionState.GATHERING

        self.particles.update(ptr, gathering, self.width, self.height)
        for n in self.nodes:
            n.update(ptr, dt, self.width, self.height)

        frame = self._frame(ptr)
        self.last_frame = frame
        self.tick_count += 1

        if self.on_frame is not None:
            self.on_frame(frame)
        return frame

    def _on_gesture(self, g):
        if g.kind == PRESS:
            self.state = SessionState.GATHERING
        elif g.kind == CANCEL:
            self.state = SessionState.IDLE
        elif g.kind == RELEASE:
            self.state = SessionState.IDLE
            self.release_at(g.x, g.y, g.event_id)

    def release_at(self, x, y, event_id):
        """Activate the node under (x, y) if any, otherwise fire a burst there."""
        for n in self.nodes:
            if n.hit_test(x, y):
                if n.activate(event_id, self.on_activate):
                    self.activations += 1
                return n
        self.burst(x, y)
        return None

    def burst(self, x, y):
        ev = ImpulseEvent(float(x), float(y), float(self.params.impulse_strength))
        self.particles.apply_burst(ev)
        self.bursts += 1

    def _cursor_hint(self, ptr):
        if not ptr.active:
            return "hidden"
        if self.state is SessionState.GATHERING:
            return "gathering"
        if any(n.hovered for n in self.nodes):
            return "hover"
        if ptr.source is PointerSource.TRACKED:
            return "tracked"
        return "idle"

    def _frame(self, ptr) -> Frame:
        p = self.params
        node_states = [n.state() for n in self.nodes]

        vis = [n.xy for n in self.nodes if n.visible]
        bodies = self.particles.pos
        if vis:
            bodies = np.concatenate([bodies, np.array(vis, dtype=np.float64)], axis=0)
        graph = build_graph(bodies, ptr, p.connection_distance, p.pointer_link_distance,
                            p.edge_alpha, p.pointer_edge_alpha)

        return Frame(
            tick=self.tick_count,
            ready=True,
            positions=self.particles.pos.copy(),
            sizes=self.particles.size.copy(),
            shades=self.particles.shade.copy(),
            settling=self.particles.settling.copy(),
            nodes=node_states,
            graph=graph,
            pointer=ptr,
            state=self.state,
            cursor=self._cursor_hint(ptr),
            width=self.width,
            height=self.height,
            bursts=self.bursts,
            activations=self.activations,
        )
