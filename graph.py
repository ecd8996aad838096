"""
Proximity graph: which bodies are close enough to draw a line between.

Every tick:
- all unordered body pairs under connection_distance
- pointer -> body links under pointer_distance
Alpha = (1 - d / threshold) * scale, so lines fade out toward the threshold.

This is O(n^2) on purpose; populations are tens to low hundreds of bodies.
Past a few thousand this wants a grid / spatial hash instead.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

import numpy as np


class ConnectionEdge(NamedTuple):
    a: int
    b: int      # -1 means "the pointer"
    alpha: float


@dataclass
class ProximityGraph:
    pairs: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.int64))
    pair_alpha: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float64))
    pointer_links: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))
    pointer_alpha: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.float64))

    def __len__(self):
        return int(self.pairs.shape[0] + self.pointer_links.shape[0])

    def edges(self):
        for (i, j), a in zip(self.pairs.tolist(), self.pair_alpha.tolist()):
            yield ConnectionEdge(i, j, a)
        for i, a in zip(self.pointer_links.tolist(), self.pointer_alpha.tolist()):
            yield ConnectionEdge(i, -1, a)


def build_graph(positions, pointer, connection_distance, pointer_distance,
                edge_alpha=0.15, pointer_edge_alpha=0.2) -> ProximityGraph:
    pos = np.asarray(positions, dtype=np.float64).reshape(-1, 2)
    n = pos.shape[0]
    g = ProximityGraph()
    if n == 0:
        return g

    r = float(connection_distance)
    if n >= 2:
        # diff[i, j] = pos[j] - pos[i]
        diff = pos[None, :, :] - pos[:, None, :]
        d = np.sqrt(diff[:, :, 0] ** 2 + diff[:, :, 1] ** 2)
        iu, ju = np.triu_indices(n, k=1)
        dij = d[iu, ju]
        close = dij < r
        g.pairs = np.stack([iu[close], ju[close]], axis=1)
        g.pair_alpha = (1.0 - dij[close] / r) * float(edge_alpha)

    if pointer is not None and pointer.active and pointer.has_position:
        rp = float(pointer_distance)
        dp = np.linalg.norm(pos - np.array(pointer.xy, dtype=np.float64)[None, :], axis=1)
        near = dp < rp
        g.pointer_links = np.nonzero(near)[0]
        g.pointer_alpha = (1.0 - dp[near] / rp) * float(pointer_edge_alpha)

    return g
