# renderer.py
# Reference OpenCV renderer for Frame objects (the simulation itself never draws).
# Light theme: white canvas with a fading trail, dark particles and lines.
from __future__ import annotations

import math
import time

import cv2
import numpy as np

from pointer import PointerSource

# particle palette (BGR greys, darkest first)
SHADES = [(17, 17, 17), (51, 51, 51), (85, 85, 85), (119, 119, 119)]

FINGER_CHAINS = [
    [0, 1, 2, 3, 4],
    [0, 5, 6, 7, 8],
    [0, 9, 10, 11, 12],
    [0, 13, 14, 15, 16],
    [0, 17, 18, 19, 20],
    [5, 9, 13, 17],
]
FINGER_TIPS = (4, 8, 12, 16, 20)


def _ink(alpha):
    # black at `alpha` over white, without a per-line overlay copy
    v = int(round(255 * (1.0 - max(0.0, min(1.0, alpha)))))
    return (v, v, v)


def _label(payload):
    if isinstance(payload, dict):
        title = payload.get("title", "")
        if isinstance(title, dict):
            return str(title.get("en") or next(iter(title.values()), ""))
        return str(title)
    return str(payload)


class FrameRenderer:
    def __init__(self, trail_alpha=0.2, show_labels=False):
        self.trail_alpha = float(trail_alpha)
        self.show_labels = bool(show_labels)
        self.font = cv2.FONT_HERSHEY_SIMPLEX
        self.canvas = None

    def _ensure_canvas(self, w, h):
        if self.canvas is None or self.canvas.shape[:2] != (h, w):
            self.canvas = np.full((h, w, 3), 255, dtype=np.uint8)

    def render(self, frame, payloads=(), hand_landmarks=None):
        """Draw one frame and return the BGR canvas."""
        w, h = max(1, frame.width), max(1, frame.height)
        self._ensure_canvas(w, h)
        img = self.canvas

        # trail: fade previous frame toward white
        white = np.full_like(img, 255)
        cv2.addWeighted(white, self.trail_alpha, img, 1.0 - self.trail_alpha, 0, img)

        if not frame.ready:
            return img

        self._draw_edges(img, frame)
        self._draw_particles(img, frame)
        self._draw_nodes(img, frame, payloads)
        if hand_landmarks is not None and frame.pointer.source is PointerSource.TRACKED:
            self._draw_hand(img, hand_landmarks, w, h)
        self._draw_cursor(img, frame)
        return img

    def _draw_edges(self, img, frame):
        bodies = frame.body_positions()
        g = frame.graph
        for (i, j), a in zip(g.pairs.tolist(), g.pair_alpha.tolist()):
            pa = tuple(map(int, bodies[i]))
            pb = tuple(map(int, bodies[j]))
            cv2.line(img, pa, pb, _ink(a), 1, cv2.LINE_AA)

        if len(g.pointer_links):
            pp = (int(frame.pointer.x), int(frame.pointer.y))
            for i, a in zip(g.pointer_links.tolist(), g.pointer_alpha.tolist()):
                cv2.line(img, pp, tuple(map(int, bodies[i])), _ink(a), 1, cv2.LINE_AA)

    def _draw_particles(self, img, frame):
        t_ms = time.time() * 1000.0
        for (x, y), s, c in zip(frame.positions.tolist(), frame.sizes.tolist(), frame.shades.tolist()):
            pulse = math.sin(t_ms * 0.005 + x) * 0.5 + 1.0
            r = max(1, int(round(s * pulse)))
            cv2.circle(img, (int(x), int(y)), r, SHADES[int(c) % len(SHADES)], -1, cv2.LINE_AA)

    def _draw_nodes(self, img, frame, payloads):
        for n in frame.nodes:
            if not n["visible"] or n["scale"] <= 0.01:
                continue
            cx, cy = int(n["x"]), int(n["y"])
            s = n["radius"] * n["scale"]
            pts = np.array([[cx, cy - s], [cx + s, cy], [cx, cy + s], [cx - s, cy]], dtype=np.int32)

            if n["hovered"]:
                cv2.polylines(img, [pts], True, (200, 200, 200), 6, cv2.LINE_AA)
            col = _ink(0.93 * n["opacity"])
            cv2.fillConvexPoly(img, pts, col, cv2.LINE_AA)

            if (n["hovered"] or self.show_labels) and n["index"] < len(payloads):
                text = _label(payloads[n["index"]])
                (tw, _), _ = cv2.getTextSize(text, self.font, 0.5, 1)
                cv2.putText(img, text, (cx - tw // 2, int(cy - s - 15)), self.font, 0.5,
                            (17, 17, 17), 1, cv2.LINE_AA)

    def _draw_hand(self, img, lms, w, h):
        pts = [(int((1.0 - u) * w), int(v * h)) for (u, v) in lms]
        for chain in FINGER_CHAINS:
            for a, b in zip(chain, chain[1:]):
                cv2.line(img, pts[a], pts[b], (128, 128, 128), 2, cv2.LINE_AA)
        for i, p in enumerate(pts):
            big = i in FINGER_TIPS
            cv2.circle(img, p, 5 if big else 3, (0, 0, 0) if big else (100, 100, 100), -1, cv2.LINE_AA)

    def _draw_cursor(self, img, frame):
        if frame.cursor == "hidden":
            return
        p = (int(frame.pointer.x), int(frame.pointer.y))
        if frame.cursor == "hover":
            cv2.circle(img, p, 25, (0, 0, 0), 1, cv2.LINE_AA)
        elif frame.cursor == "gathering":
            cv2.circle(img, p, 5, (0, 0, 0), -1, cv2.LINE_AA)
        elif frame.cursor == "tracked":
            cv2.circle(img, p, 10, (200, 200, 0), 2, cv2.LINE_AA)
        else:
            cv2.circle(img, p, 4, (0, 0, 0), -1, cv2.LINE_AA)
