# events.py
# Typed input events plus the two buffers between input producers and the tick:
#  - EventQueue: mouse/touch callbacks append, fusion drains once per tick
#  - SampleSlot: the camera thread overwrites, fusion takes the latest one
from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
import itertools
import threading
from typing import Optional, Sequence


@dataclass(frozen=True)
class MouseMove:
    x: float
    y: float


@dataclass(frozen=True)
class MouseDown:
    x: float
    y: float


@dataclass(frozen=True)
class MouseUp:
    x: float
    y: float


@dataclass(frozen=True)
class MouseLeave:
    pass


@dataclass(frozen=True)
class TouchStart:
    points: tuple


@dataclass(frozen=True)
class TouchMove:
    points: tuple


@dataclass(frozen=True)
class TouchEnd:
    points: tuple = ()


@dataclass(frozen=True)
class TrackerSample:
    """One camera result: normalized landmarks of the first hand, or None if no hand."""
    landmarks: Optional[Sequence] = None
    t: float = 0.0

    @property
    def has_hand(self) -> bool:
        return bool(self.landmarks)


@dataclass(frozen=True)
class Queued:
    event_id: int
    event: object


def first_point(points):
    # Only the first contact of a touch list drives the pointer
    if not points:
        return None
    p = points[0]
    if isinstance(p, dict):
        return (float(p["x"]), float(p["y"]))
    return (float(p[0]), float(p[1]))


class EventQueue:
    """FIFO of input events; every event gets a serial id when pushed."""

    def __init__(self):
        self._q = deque()
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def push(self, event) -> int:
        with self._lock:
            eid = next(self._ids)
            self._q.append(Queued(eid, event))
        return eid

    def reserve_id(self) -> int:
        """Id for a discrete input that did not come through the queue (pinch edges)."""
        with self._lock:
            return next(self._ids)

    def drain(self) -> list[Queued]:
        with self._lock:
            out = list(self._q)
            self._q.clear()
        return out

    def __len__(self):
        return len(self._q)


@dataclass
class SampleSlot:
    """Single-slot latest-sample buffer (producer overwrites, consumer swaps out)."""
    _sample: Optional[TrackerSample] = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def put(self, sample: TrackerSample) -> None:
        with self._lock:
            self._sample = sample

    def take(self) -> Optional[TrackerSample]:
        with self._lock:
            sample, self._sample = self._sample, None
        return sample
