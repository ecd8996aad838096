# app.py - constellation field demo (mouse + optional hand tracking)
import argparse
import json
import logging
import time
import webbrowser

import cv2

from events import MouseDown, MouseMove, MouseUp
from hands import CameraTracker
from logging_config import setup_logging
from params import Params
from renderer import FrameRenderer
from sim import Simulation

WINDOW_NAME = "pinchfield"

CANVAS_W = 1280
CANVAS_H = 720

ENABLE_CAMERA = True

DEFAULT_DESTINATIONS = [
    {"id": "about", "title": "About Me", "category": "Creator", "link": "#"},
    {"id": "cert", "title": "Certification", "category": "Generative AI Leader", "link": "#"},
    {"id": "contact", "title": "Contact", "category": "Get in touch", "link": "mailto:hello@example.com"},
    {"id": "skills", "title": "Skills", "category": "Tech Stack", "link": "#"},
]


def load_destinations(path):
    if not path:
        return list(DEFAULT_DESTINATIONS)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("projects", [])
    return list(data)


def open_destination(payload):
    title = payload.get("title") if isinstance(payload, dict) else payload
    link = payload.get("link", "#") if isinstance(payload, dict) else "#"
    print(f"🔗 Open: {title} ({link})")
    if link and link != "#":
        webbrowser.open(link)


def make_mouse_callback(world):
    def on_mouse(event, x, y, flags, param):
        if event == cv2.EVENT_MOUSEMOVE:
            world.push(MouseMove(x, y))
        elif event == cv2.EVENT_LBUTTONDOWN:
            world.push(MouseDown(x, y))
        elif event == cv2.EVENT_LBUTTONUP:
            world.push(MouseUp(x, y))
    return on_mouse


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Interactive particle field")
    ap.add_argument("--config", help="JSON file with Params overrides")
    ap.add_argument("--destinations", help="JSON list of destination payloads")
    ap.add_argument("--compact", action="store_true", help="fewer particles")
    ap.add_argument("--no-camera", action="store_true")
    ap.add_argument("--serve", action="store_true", help="headless: serve frames over websocket")
    ap.add_argument("--port", type=int, default=8765)
    ap.add_argument("--debug", action="store_true")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    setup_logging(logging.DEBUG if args.debug else logging.INFO)

    params = Params.from_json(args.config) if args.config else Params()
    if args.compact:
        params.compact = True

    destinations = load_destinations(args.destinations)
    world = Simulation(params, payloads=destinations, on_activate=open_destination)
    world.resize(CANVAS_W, CANVAS_H)

    if args.serve:
        from frame_server import serve
        print(f"🌐 Serving frames on ws://0.0.0.0:{args.port}/ws")
        serve(world, port=args.port)
        return

    tracker = CameraTracker(world.offer_sample)
    if ENABLE_CAMERA and not args.no_camera:
        if not tracker.start():
            print(f"⚠️  Hand tracking unavailable ({tracker.error}) - mouse only")

    renderer = FrameRenderer(show_labels=params.compact)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_NORMAL)
    cv2.resizeWindow(WINDOW_NAME, CANVAS_W, CANVAS_H)
    cv2.setMouseCallback(WINDOW_NAME, make_mouse_callback(world))

    print("\n" + "=" * 60)
    print("✨ PINCHFIELD")
    print("=" * 60)
    print("\n📋 CONTROLS:")
    print("   Move mouse - swirl the particles")
    print("   Hold left button - gather, release - burst")
    print("   Click a diamond - open destination")
    print("   Pinch (camera) - gather, open hand - burst")
    print("   C - Toggle camera | R - Reset field | ESC - Exit")
    print("\n" + "=" * 60 + "\n")

    prev = time.time()
    fps_smooth = 0.0

    while True:
        frame = world.tick()

        now = time.time()
        dt = max(1e-6, now - prev)
        prev = now
        fps = 1.0 / dt
        fps_smooth = fps if fps_smooth == 0 else 0.9 * fps_smooth + 0.1 * fps

        img = renderer.render(frame, destinations, hand_landmarks=tracker.latest)
        out = img.copy()
        status = f"FPS: {fps_smooth:5.1f}  camera: {tracker.status}"
        cv2.putText(out, status, (12, out.shape[0] - 12), cv2.FONT_HERSHEY_SIMPLEX, 0.5, (120, 120, 120), 1, cv2.LINE_AA)
        cv2.imshow(WINDOW_NAME, out)

        key = cv2.waitKey(1) & 0xFF
        if key == 27:
            break
        if key in (ord("c"), ord("C")):
            if tracker.running:
                tracker.stop()
                world.fusion.release_tracker()
            elif not tracker.start():
                print(f"⚠️  Hand tracking unavailable ({tracker.error})")
        elif key in (ord("r"), ord("R")):
            world.reset()

    tracker.stop()
    cv2.destroyAllWindows()
    print("\n✅ pinchfield shutdown complete")


if __name__ == "__main__":
    main()
