import math

import pytest

from conftest import hand
from events import MouseDown, MouseLeave, MouseMove, MouseUp, TouchEnd, TouchStart, TrackerSample
from pointer import CANCEL, PRESS, RELEASE, PinchState, PointerFusion, PointerSource

W, H = 800, 600


@pytest.fixture
def fusion(params, clock):
    return PointerFusion(params, clock=clock)


def test_starts_inactive(fusion):
    fusion.tick(W, H)
    p = fusion.pointer
    assert not p.active
    assert not p.has_position


def test_mouse_moves_pointer_directly(fusion):
    fusion.push(MouseMove(120, 80))
    assert fusion.tick(W, H) == []
    p = fusion.pointer
    assert p.active and p.source is PointerSource.MOUSE
    assert (p.x, p.y) == (120, 80)


def test_mouse_press_release_edges_carry_event_ids(fusion):
    down_id = fusion.push(MouseDown(10, 10))
    up_id = fusion.push(MouseUp(30, 40))
    gestures = fusion.tick(W, H)
    assert [g.kind for g in gestures] == [PRESS, RELEASE]
    assert gestures[0].event_id == down_id
    assert gestures[1].event_id == up_id
    assert (gestures[1].x, gestures[1].y) == (30, 40)
    assert not fusion.pointer.pressed


def test_mouse_leave_clears_pointer_and_cancels_press(fusion):
    fusion.push(MouseDown(10, 10))
    fusion.tick(W, H)
    fusion.push(MouseLeave())
    gestures = fusion.tick(W, H)
    assert [g.kind for g in gestures] == [CANCEL]
    assert not fusion.pointer.active


def test_first_tracker_sample_snaps_mirrored(fusion, clock):
    fusion.offer_sample(TrackerSample(hand(0.25, 0.5)))
    fusion.tick(W, H, now=clock())
    p = fusion.pointer
    assert p.source is PointerSource.TRACKED
    assert p.x == pytest.approx(600.0)
    assert p.y == pytest.approx(300.0)


def test_tracker_smooths_toward_target(fusion, params, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    fusion.tick(W, H, now=clock())
    start = fusion.pointer.x

    fusion.offer_sample(TrackerSample(hand(0.25, 0.5)))
    fusion.tick(W, H, now=clock.advance(1 / 60))
    expected = start + (600.0 - start) * params.smoothing_factor
    assert fusion.pointer.x == pytest.approx(expected)

    # no new sample: keeps easing toward the same target
    fusion.tick(W, H, now=clock.advance(1 / 60))
    assert expected < fusion.pointer.x < 600.0


def test_pinch_press_and_release(fusion, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.2)))
    assert fusion.tick(W, H, now=clock()) == []

    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.02)))
    gestures = fusion.tick(W, H, now=clock.advance(0.03))
    assert [g.kind for g in gestures] == [PRESS]
    assert fusion.pinch_state is PinchState.PINCHING
    assert fusion.pointer.pinching

    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.2)))
    gestures = fusion.tick(W, H, now=clock.advance(0.03))
    assert [g.kind for g in gestures] == [RELEASE]
    assert fusion.pinch_state is PinchState.RELEASED
    assert gestures[0].x == pytest.approx(400.0)


def test_pinch_release_hysteresis(params, clock):
    params.pinch_release_threshold = 0.08
    fusion = PointerFusion(params, clock=clock)
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.02)))
    fusion.tick(W, H, now=clock())
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.06)))
    assert fusion.tick(W, H, now=clock.advance(0.03)) == []
    assert fusion.pinch_state is PinchState.PINCHING


def test_hand_loss_cancels_pinch_without_release(fusion, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.02)))
    fusion.tick(W, H, now=clock())
    fusion.offer_sample(TrackerSample(None))
    gestures = fusion.tick(W, H, now=clock.advance(0.03))
    assert [g.kind for g in gestures] == [CANCEL]
    assert fusion.pinch_state is PinchState.RELEASED


def test_mouse_ignored_while_tracker_rules(fusion, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    fusion.tick(W, H, now=clock())
    fusion.push(MouseMove(5, 5))
    fusion.push(MouseDown(5, 5))
    assert fusion.tick(W, H, now=clock.advance(0.5)) == []
    assert fusion.pointer.x == pytest.approx(400.0)


def test_tracker_takeover_cancels_mouse_press(fusion, clock):
    fusion.push(MouseDown(10, 10))
    fusion.tick(W, H, now=clock())
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    gestures = fusion.tick(W, H, now=clock.advance(0.1))
    assert [g.kind for g in gestures] == [CANCEL]
    assert fusion.pointer.source is PointerSource.TRACKED


def test_authority_reverts_after_timeout_not_before(fusion, params, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    fusion.tick(W, H, now=0.0)

    fusion.push(MouseMove(10, 10))
    fusion.tick(W, H, now=params.activity_timeout - 0.001)
    assert fusion.pointer.source is PointerSource.TRACKED
    assert fusion.pointer.x == pytest.approx(400.0)

    fusion.push(MouseMove(20, 30))
    fusion.tick(W, H, now=params.activity_timeout)
    p = fusion.pointer
    assert p.source is PointerSource.MOUSE
    assert (p.x, p.y) == (20, 30)


def test_timeout_while_pinching_cancels(fusion, params, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5, pinch=0.01)))
    fusion.tick(W, H, now=0.0)
    gestures = fusion.tick(W, H, now=params.activity_timeout + 0.01)
    assert [g.kind for g in gestures] == [CANCEL]
    assert not fusion.pointer.pressed


def test_fallback_and_reacquire_has_no_jump(fusion, params, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    fusion.tick(W, H, now=0.0)
    before = fusion.pointer

    # stream stops; authority falls back but the position stays put
    fusion.tick(W, H, now=params.activity_timeout + 0.5)
    mid = fusion.pointer
    assert mid.source is PointerSource.MOUSE
    assert (mid.x, mid.y) == (before.x, before.y)

    # hand comes back somewhere else: one smoothing step, not a snap
    fusion.offer_sample(TrackerSample(hand(0.1, 0.9)))
    fusion.tick(W, H, now=params.activity_timeout + 0.6)
    after = fusion.pointer
    target = (0.9 * W, 0.9 * H)
    full = math.hypot(target[0] - before.x, target[1] - before.y)
    jump = math.hypot(after.x - before.x, after.y - before.y)
    assert jump == pytest.approx(full * params.smoothing_factor)


def test_release_tracker_hands_back_immediately(fusion, clock):
    fusion.offer_sample(TrackerSample(hand(0.5, 0.5)))
    fusion.tick(W, H, now=clock())
    fusion.release_tracker()
    fusion.push(MouseMove(1, 2))
    fusion.tick(W, H, now=clock.advance(0.1))
    assert fusion.pointer.source is PointerSource.MOUSE
    assert (fusion.pointer.x, fusion.pointer.y) == (1, 2)


def test_touch_release_then_grace(fusion, params, clock):
    fusion.push(TouchStart(((50, 60), (300, 300))))
    gestures = fusion.tick(W, H, now=0.0)
    assert [g.kind for g in gestures] == [PRESS]
    assert fusion.pointer.source is PointerSource.TOUCH
    assert (fusion.pointer.x, fusion.pointer.y) == (50, 60)

    fusion.push(TouchEnd())
    gestures = fusion.tick(W, H, now=0.01)
    assert [g.kind for g in gestures] == [RELEASE]
    assert (gestures[0].x, gestures[0].y) == (50, 60)
    assert fusion.pointer.active

    fusion.tick(W, H, now=0.01 + params.touch_grace)
    assert not fusion.pointer.active
