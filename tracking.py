# tracking.py
# Hand landmarks -> pointer target + pinch metric.
# Landmarks are MediaPipe-normalized (0..1); entries may be (x, y) tuples or
# objects with .x/.y (raw NormalizedLandmark).
from __future__ import annotations

import math

THUMB_TIP = 4
INDEX_TIP = 8


def _xy(lm):
    if isinstance(lm, (list, tuple)):
        return float(lm[0]), float(lm[1])
    return float(lm.x), float(lm.y)


def pointer_target(landmarks, w, h):
    """Index fingertip in surface coordinates, mirrored horizontally."""
    u, v = _xy(landmarks[INDEX_TIP])
    return ((1.0 - u) * float(w), v * float(h))


def pinch_distance(landmarks) -> float:
    ix, iy = _xy(landmarks[INDEX_TIP])
    tx, ty = _xy(landmarks[THUMB_TIP])
    return math.hypot(ix - tx, iy - ty)


def _as_hands_list(hand_result):
    if hand_result is None:
        return []
    if isinstance(hand_result, dict) and isinstance(hand_result.get("hands"), list):
        return hand_result["hands"]
    if isinstance(hand_result, (list, tuple)):
        return list(hand_result)
    return []


def _get_landmarks(hand):
    if hand is None:
        return None
    if isinstance(hand, dict):
        return hand.get("landmarks", hand.get("landmarks_uv", None))
    return getattr(hand, "landmarks", None)


def landmarks_from_result(result):
    """
    First hand's landmarks as a list of (u, v), or None.

    Accepts either the {"hands": [...]} dict produced by hands.Hands.process
    or a raw MediaPipe result with .multi_hand_landmarks.
    """
    multi = getattr(result, "multi_hand_landmarks", None)
    if multi:
        return [_xy(lm) for lm in multi[0].landmark]

    hands = _as_hands_list(result)
    if not hands:
        return None
    lms = _get_landmarks(hands[0])
    if not lms or len(lms) <= INDEX_TIP:
        return None
    return [_xy(lm) for lm in lms]
