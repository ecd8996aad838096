import json

import cv2

from conftest import hand
from app import load_destinations, make_mouse_callback, open_destination
from events import TrackerSample
from renderer import FrameRenderer, _ink, _label
from sim import Simulation


def test_ink_and_label():
    assert _ink(0.0) == (255, 255, 255)
    assert _ink(1.0) == (0, 0, 0)
    assert _ink(5.0) == (0, 0, 0)
    assert _label({"title": {"en": "About", "fr": "A propos"}}) == "About"
    assert _label({"title": "Skills"}) == "Skills"
    assert _label("plain") == "plain"


def test_render_not_ready_frame(params, clock):
    img = FrameRenderer().render(Simulation(params, clock=clock).tick())
    assert img.shape == (1, 1, 3)


def test_render_tracked_frame_with_nodes(fast_intro_params, clock):
    payloads = [{"title": "About"}, {"title": "Contact"}]
    world = Simulation(fast_intro_params, payloads=payloads, clock=clock)
    world.resize(320, 240)
    lms = hand(0.5, 0.5)
    world.offer_sample(TrackerSample(lms))
    frame = None
    for _ in range(10):
        frame = world.tick(clock.advance(1 / 60))

    r = FrameRenderer(show_labels=True)
    img = r.render(frame, payloads, hand_landmarks=lms)
    assert img.shape == (240, 320, 3)
    # something dark got drawn on the white canvas
    assert img.min() < 128


def test_load_destinations(tmp_path):
    assert len(load_destinations(None)) == 4
    path = tmp_path / "d.json"
    path.write_text(json.dumps({"projects": [{"title": "x", "link": "#"}]}))
    assert load_destinations(str(path)) == [{"title": "x", "link": "#"}]


def test_open_destination_skips_placeholder_links(monkeypatch, capsys):
    opened = []
    monkeypatch.setattr("webbrowser.open", opened.append)
    open_destination({"title": "About", "link": "#"})
    open_destination({"title": "Mail", "link": "mailto:a@b.c"})
    assert opened == ["mailto:a@b.c"]
    assert "About" in capsys.readouterr().out


def test_mouse_callback_pushes_events(params, clock):
    world = Simulation(params, clock=clock)
    world.resize(100, 100)
    cb = make_mouse_callback(world)
    cb(cv2.EVENT_MOUSEMOVE, 10, 20, 0, None)
    cb(cv2.EVENT_LBUTTONDOWN, 10, 20, 0, None)
    cb(cv2.EVENT_LBUTTONUP, 10, 20, 0, None)
    cb(cv2.EVENT_RBUTTONDOWN, 10, 20, 0, None)
    assert len(world.fusion.events) == 3
