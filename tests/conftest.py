from __future__ import annotations

import pytest

from params import Params


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = float(t)

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> float:
        self.t += float(dt)
        return self.t


def hand(u: float, v: float, pinch: float = 0.2) -> list[tuple[float, float]]:
    """21 normalized landmarks; index tip at (u, v), thumb tip `pinch` away."""
    lms = [(u, v)] * 21
    lms[4] = (u + pinch, v)
    return lms


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def params() -> Params:
    return Params(seed=7)


@pytest.fixture
def fast_intro_params() -> Params:
    # nodes pop in (and become clickable) within a couple of frames
    return Params(
        seed=7,
        node_intro_base_delay=0.01,
        node_intro_stagger=0.01,
        node_intro_duration=0.02,
    )
