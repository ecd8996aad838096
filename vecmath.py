# vecmath.py
# Small 2D helpers shared by the pointer, bodies and the graph.
from __future__ import annotations

import math

EPS = 1e-6


def clamp(x, a, b):
    return a if x < a else (b if x > b else x)


def dist(a, b) -> float:
    dx = float(a[0] - b[0])
    dy = float(a[1] - b[1])
    return math.hypot(dx, dy)


def normalize(v):
    n = math.hypot(v[0], v[1]) + EPS
    return (v[0] / n, v[1] / n)


def approach(cur: float, target: float, k: float) -> float:
    # exponential step; k in (0, 1] can never carry cur past target
    k = clamp(float(k), 0.0, 1.0)
    return cur + (target - cur) * k


def rescale(vx: float, vy: float, speed: float):
    """Same heading, new magnitude. A zero vector stays zero."""
    n = math.hypot(vx, vy)
    if n < EPS:
        return (0.0, 0.0)
    s = speed / n
    return (vx * s, vy * s)


def ease_out_elastic(p: float) -> float:
    if p <= 0.0:
        return 0.0
    if p >= 1.0:
        return 1.0
    return math.pow(2.0, -10.0 * p) * math.sin((p * 10.0 - 0.75) * (2.0 * math.pi) / 3.0) + 1.0
