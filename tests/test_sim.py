import numpy as np
import pytest

from conftest import hand
from events import MouseDown, MouseLeave, MouseMove, MouseUp, TrackerSample
from params import Params
from sim import SessionState, Simulation

W, H = 800, 600
DT = 1 / 60


def make_world(params, clock, payloads=(), **kw):
    world = Simulation(params, payloads=payloads, clock=clock, **kw)
    world.resize(W, H)
    return world


def run(world, clock, ticks):
    frame = None
    for _ in range(ticks):
        frame = world.tick(clock.advance(DT))
    return frame


def test_not_ready_until_sized(params, clock):
    world = Simulation(params, clock=clock)
    world.resize(0, 0)
    frame = world.tick()
    assert not world.ready
    assert not frame.ready
    assert len(frame.positions) == 0
    assert len(world.particles) == 0

    world.resize(W, H)
    frame = world.tick(clock.advance(DT))
    assert frame.ready
    assert len(frame.positions) == params.particle_count


def test_compact_population(clock):
    world = make_world(Params(seed=1, compact=True), clock)
    assert len(world.particles) == 60


def test_resize_clamps_and_reset_respawns(params, clock):
    world = make_world(params, clock)
    world.particles.pos[:] = [W - 1, H - 1]
    world.resize(400, 300)
    assert len(world.particles) == params.particle_count
    assert (world.particles.pos <= [400, 300]).all()

    world.resize(400, 300, reset=True)
    assert len(np.unique(world.particles.pos[:, 0])) > 1


def test_click_on_empty_space_bursts(params, clock):
    world = make_world(params, clock)
    run(world, clock, 2)
    before = world.particles.pos.copy()

    world.push(MouseDown(400, 300))
    world.push(MouseUp(400, 300))
    frame = world.tick(clock.advance(DT))

    assert frame.bursts == 1
    assert frame.state is SessionState.IDLE
    near = np.linalg.norm(before - [400, 300], axis=1) < 100
    assert near.any()
    assert (world.particles.speeds()[near] > params.max_speed).all()
    assert frame.settling[near].all()

    world.push(MouseLeave())
    for _ in range(200):
        frame = world.tick(clock.advance(DT))
        assert (world.particles.speeds() <= params.settle_ceiling + 1e-9).all()

    assert not frame.settling.any()
    s = world.particles.speeds()
    assert (s >= params.floor_speed - 1e-9).all()
    assert (s <= params.max_speed + 1e-9).all()
    assert frame.cursor == "hidden"


def test_hold_gathers_then_release_bursts(params, clock):
    world = make_world(params, clock)
    world.push(MouseDown(400, 300))
    frame = run(world, clock, 60)
    assert frame.state is SessionState.GATHERING
    assert frame.cursor == "gathering"
    assert (world.particles.speeds() <= params.gather_max_speed + 1e-9).all()

    world.push(MouseUp(400, 300))
    frame = world.tick(clock.advance(DT))
    assert frame.state is SessionState.IDLE
    assert frame.bursts == 1


def test_pinch_release_over_node_activates_without_burst(fast_intro_params, clock):
    got = []
    world = make_world(fast_intro_params, clock, payloads=[{"url": "/a"}], on_activate=got.append)
    run(world, clock, 10)
    node = world.nodes[0]
    assert node.hittable

    def over_node(pinch):
        return TrackerSample(hand(1.0 - node.x / W, node.y / H, pinch=pinch))

    world.offer_sample(over_node(0.2))
    world.tick(clock.advance(DT))
    world.offer_sample(over_node(0.01))
    frame = world.tick(clock.advance(DT))
    assert frame.state is SessionState.GATHERING
    assert frame.pointer.pinching

    world.offer_sample(over_node(0.2))
    frame = world.tick(clock.advance(DT))

    assert got == [{"url": "/a"}]
    assert frame.activations == 1
    assert frame.bursts == 0
    assert frame.state is SessionState.IDLE

    # later ticks never re-fire the same release
    run(world, clock, 5)
    assert world.activations == 1


def test_mouse_click_on_node(fast_intro_params, clock):
    got = []
    world = make_world(fast_intro_params, clock, payloads=["only"], on_activate=got.append)
    run(world, clock, 10)
    n = world.nodes[0]

    world.push(MouseMove(n.x, n.y))
    frame = world.tick(clock.advance(DT))
    assert frame.cursor == "hover"

    world.push(MouseDown(n.x, n.y))
    world.push(MouseUp(n.x, n.y))
    frame = world.tick(clock.advance(DT))
    assert got == ["only"]
    assert frame.bursts == 0


def test_release_at_same_event_activates_once(fast_intro_params, clock):
    world = make_world(fast_intro_params, clock, payloads=["a"])
    run(world, clock, 10)
    n = world.nodes[0]
    assert world.release_at(n.x, n.y, 42) is n
    assert world.release_at(n.x, n.y, 42) is n
    assert world.activations == 1
    assert world.bursts == 0


def test_no_destinations(params, clock):
    world = make_world(params, clock, payloads=[])
    frame = run(world, clock, 3)
    assert frame.nodes == []
    assert world.release_at(10, 10, 1) is None
    assert world.bursts == 1


def test_graph_covers_visible_nodes(fast_intro_params, clock):
    world = make_world(fast_intro_params, clock, payloads=["a", "b"])
    frame = run(world, clock, 10)
    bodies = frame.body_positions()
    assert len(bodies) == len(frame.positions) + 2
    n = len(bodies)
    for e in frame.graph.edges():
        assert 0 <= e.a < n
        assert e.b == -1 or 0 <= e.b < n


def test_tracked_cursor_and_on_frame_hook(params, clock):
    frames = []
    world = make_world(params, clock, on_frame=frames.append)
    world.offer_sample(TrackerSample(hand(0.5, 0.5)))
    frame = world.tick(clock.advance(DT))
    assert frame.cursor == "tracked"
    assert len(frames) == 1 and frames[0] is frame
    assert frame.pointer.x == pytest.approx(W / 2)


def test_mouse_cursor_idle(params, clock):
    world = make_world(params, clock)
    world.push(MouseMove(10, 10))
    assert world.tick(clock.advance(DT)).cursor == "idle"


def test_rejects_invalid_params(params, clock):
    params.smoothing_factor = -1
    with pytest.raises(ValueError):
        Simulation(params, clock=clock)


def test_zero_seed_world(clock):
    world = make_world(Params(seed=0), clock)
    assert len(world.particles) == Params().particle_count


def test_input_before_ready_is_dropped(params, clock):
    world = Simulation(params, clock=clock)
    world.push(MouseDown(100, 100))
    world.push(MouseUp(100, 100))
    world.tick()
    assert len(world.fusion.events) == 0

    world.resize(W, H)
    frame = world.tick(clock.advance(DT))
    assert frame.bursts == 0
    assert frame.state is SessionState.IDLE
