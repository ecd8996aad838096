# pointer.py
# Fuses mouse, touch and hand-tracker input into one canonical pointer.
#
# Authority: the tracker wins while it has seen a hand within the activity
# window; otherwise mouse/touch drive the pointer directly.
# Pinch (tracker) and press (mouse/touch) both surface as Gesture edges that
# the simulation turns into gather / burst / node activation.
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
import time

from events import (
    EventQueue,
    MouseDown,
    MouseLeave,
    MouseMove,
    MouseUp,
    SampleSlot,
    TouchEnd,
    TouchMove,
    TouchStart,
    TrackerSample,
    first_point,
)
from logging_config import get_logger
from tracking import pinch_distance, pointer_target
from vecmath import approach

log = get_logger("pointer")

PRESS = "press"
RELEASE = "release"
CANCEL = "cancel"


class PointerSource(Enum):
    MOUSE = "mouse"
    TOUCH = "touch"
    TRACKED = "tracked"


class PinchState(Enum):
    RELEASED = "released"
    PINCHING = "pinching"


@dataclass
class Pointer:
    x: float = 0.0
    y: float = 0.0
    active: bool = False
    pressed: bool = False
    source: PointerSource = PointerSource.MOUSE
    has_position: bool = False

    @property
    def xy(self):
        return (self.x, self.y)

    @property
    def pinching(self) -> bool:
        return self.pressed and self.source is PointerSource.TRACKED


@dataclass(frozen=True)
class Gesture:
    kind: str
    x: float
    y: float
    event_id: int


class PointerFusion:
    def __init__(self, params, clock=time.monotonic):
        self.params = params
        self.clock = clock

        self.events = EventQueue()
        self.slot = SampleSlot()

        self._p = Pointer()
        self._target = None
        self._last_hand_t = None
        self._touch_deadline = None
        self._mouse_inside = False

        self.pinch_state = PinchState.RELEASED

    # ---------- producer side ----------
    def push(self, event) -> int:
        return self.events.push(event)

    def offer_sample(self, sample: TrackerSample) -> None:
        self.slot.put(sample)

    def release_tracker(self) -> None:
        """Camera stopped: hand authority back to the mouse immediately."""
        self._last_hand_t = None

    # ---------- consumer side ----------
    @property
    def pointer(self) -> Pointer:
        return replace(self._p)

    def tracker_active(self, now=None) -> bool:
        if self._last_hand_t is None:
            return False
        now = self.clock() if now is None else now
        return (now - self._last_hand_t) < float(self.params.activity_timeout)

    def tick(self, width, height, now=None) -> list[Gesture]:
        now = self.clock() if now is None else float(now)
        gestures: list[Gesture] = []

        sample = self.slot.take()
        if sample is not None:
            self._consume_sample(sample, width, height, now, gestures)

        tracked = self.tracker_active(now)
        if not tracked and self._p.source is PointerSource.TRACKED:
            self._fall_back(gestures)

        for q in self.events.drain():
            self._consume_event(q.event, q.event_id, tracked, now, gestures)

        if tracked:
            if self._target is not None:
                k = float(self.params.smoothing_factor)
                self._p.x = approach(self._p.x, self._target[0], k)
                self._p.y = approach(self._p.y, self._target[1], k)
            self._p.active = True

        if self._touch_deadline is not None and now >= self._touch_deadline:
            self._touch_deadline = None
            if self._p.source is PointerSource.TOUCH:
                self._p.active = False
                self._p.has_position = False

        return gestures

    # ---------- internals ----------
    def _gesture(self, kind, event_id, gestures):
        gestures.append(Gesture(kind, self._p.x, self._p.y, event_id))

    def _fall_back(self, gestures):
        log.info("tracker idle for %.1fs, pointer back to mouse/touch", self.params.activity_timeout)
        if self.pinch_state is PinchState.PINCHING:
            self.pinch_state = PinchState.RELEASED
        if self._p.pressed:
            self._p.pressed = False
            self._gesture(CANCEL, self.events.reserve_id(), gestures)
        self._target = None
        self._p.source = PointerSource.MOUSE
        # keep the last position; the next mouse event moves it
        self._p.active = self._mouse_inside and self._p.has_position

    def _consume_sample(self, sample, w, h, now, gestures):
        if not sample.has_hand:
            # lost the hand: drop the pinch without a burst
            if self.pinch_state is PinchState.PINCHING:
                self.pinch_state = PinchState.RELEASED
                if self._p.pressed:
                    self._p.pressed = False
                    self._gesture(CANCEL, self.events.reserve_id(), gestures)
            return

        if self._p.source is not PointerSource.TRACKED:
            log.debug("tracker took pointer authority")
            if self._p.pressed:
                # a mouse/touch press can no longer be released by its source
                self._p.pressed = False
                self._gesture(CANCEL, self.events.reserve_id(), gestures)
            self._touch_deadline = None
            self._p.source = PointerSource.TRACKED

        self._last_hand_t = now
        self._target = pointer_target(sample.landmarks, w, h)

        if not self._p.has_position:
            # first acquisition: snap once instead of a long lerp-in
            self._p.x, self._p.y = self._target
            self._p.has_position = True
        self._p.active = True

        d = pinch_distance(sample.landmarks)
        if self.pinch_state is PinchState.RELEASED:
            if d < float(self.params.pinch_threshold):
                self.pinch_state = PinchState.PINCHING
                self._p.pressed = True
                self._gesture(PRESS, self.events.reserve_id(), gestures)
        elif d > float(self.params.pinch_release_threshold):
            self.pinch_state = PinchState.RELEASED
            if self._p.pressed:
                self._p.pressed = False
                self._gesture(RELEASE, self.events.reserve_id(), gestures)

    def _set_direct(self, x, y, source):
        self._p.x = float(x)
        self._p.y = float(y)
        self._p.has_position = True
        self._p.active = True
        self._p.source = source

    def _consume_event(self, ev, event_id, tracked, now, gestures):
        if isinstance(ev, MouseMove):
            self._mouse_inside = True
            if not tracked:
                self._set_direct(ev.x, ev.y, PointerSource.MOUSE)
            return

        if isinstance(ev, MouseLeave):
            self._mouse_inside = False
            if tracked:
                return
            if self._p.pressed:
                self._p.pressed = False
                self._gesture(CANCEL, event_id, gestures)
            self._p.active = False
            self._p.has_position = False
            return

        # below: press/release style events, ignored while the tracker rules
        if tracked:
            return

        if isinstance(ev, MouseDown):
            self._mouse_inside = True
            self._set_direct(ev.x, ev.y, PointerSource.MOUSE)
            if not self._p.pressed:
                self._p.pressed = True
                self._gesture(PRESS, event_id, gestures)
        elif isinstance(ev, MouseUp):
            self._set_direct(ev.x, ev.y, PointerSource.MOUSE)
            if self._p.pressed:
                self._p.pressed = False
                self._gesture(RELEASE, event_id, gestures)
        elif isinstance(ev, TouchStart):
            pt = first_point(ev.points)
            if pt is None:
                return
            self._touch_deadline = None
            self._set_direct(pt[0], pt[1], PointerSource.TOUCH)
            if not self._p.pressed:
                self._p.pressed = True
                self._gesture(PRESS, event_id, gestures)
        elif isinstance(ev, TouchMove):
            pt = first_point(ev.points)
            if pt is not None:
                self._set_direct(pt[0], pt[1], PointerSource.TOUCH)
        elif isinstance(ev, TouchEnd):
            pt = first_point(ev.points)
            if pt is not None:
                self._set_direct(pt[0], pt[1], PointerSource.TOUCH)
            if self._p.pressed:
                self._p.pressed = False
                self._gesture(RELEASE, event_id, gestures)
            # stay active for one settle frame or so
            self._touch_deadline = now + float(self.params.touch_grace)
        else:
            log.warning("ignoring unknown input event %r", ev)
