"""
Headless mode: run the simulation inside an aiohttp app and let browsers draw it.

Routes:
  GET  /ws     websocket, one JSON frame per tick
  GET  /state  latest frame as JSON
  POST /input  remote pointer event, e.g. {"type": "mouse_move", "x": 10, "y": 20}
  POST /resize {"width": 1280, "height": 720}
"""
import asyncio
import contextlib
import json
import math

from aiohttp import web

from events import MouseDown, MouseLeave, MouseMove, MouseUp, TouchEnd, TouchMove, TouchStart, TrackerSample
from logging_config import get_logger
from sim import Frame
from tracking import INDEX_TIP

log = get_logger("frame_server")

SIM_KEY = web.AppKey("sim", object)
HUB_KEY = web.AppKey("hub", object)
TICKER_KEY = web.AppKey("ticker", asyncio.Task)


def frame_to_dict(frame) -> dict:
    g = frame.graph
    return {
        "type": "frame",
        "tick": frame.tick,
        "ready": frame.ready,
        "width": frame.width,
        "height": frame.height,
        "state": frame.state.value,
        "cursor": frame.cursor,
        "pointer": {
            "x": frame.pointer.x,
            "y": frame.pointer.y,
            "active": frame.pointer.active,
            "pressed": frame.pointer.pressed,
            "source": frame.pointer.source.value,
        },
        "particles": {
            "pos": [[round(x, 2), round(y, 2)] for x, y in frame.positions.tolist()],
            "size": [round(s, 2) for s in frame.sizes.tolist()],
            "shade": frame.shades.tolist(),
        },
        "nodes": frame.nodes,
        "edges": [[e.a, e.b, round(e.alpha, 4)] for e in g.edges()],
        "bursts": frame.bursts,
        "activations": frame.activations,
    }


def _num(v):
    x = float(v)
    if not math.isfinite(x):
        raise ValueError(f"non-finite coordinate: {v!r}")
    return x


def _points(d):
    pts = d.get("points")
    if pts is None and "x" in d:
        pts = [[d["x"], d["y"]]]
    return tuple(tuple(_num(v) for v in p[:2]) for p in (pts or ()))


def _landmarks(lms):
    if not lms:
        return None
    if len(lms) <= INDEX_TIP:
        raise ValueError(f"hand needs at least {INDEX_TIP + 1} landmarks, got {len(lms)}")
    return [(_num(u), _num(v)) for u, v in lms]


def event_from_dict(d):
    """JSON payload -> input event. Raises ValueError on anything malformed."""
    if not isinstance(d, dict):
        raise ValueError("event must be an object")
    kind = d.get("type")
    try:
        if kind == "mouse_move":
            return MouseMove(_num(d["x"]), _num(d["y"]))
        if kind == "mouse_down":
            return MouseDown(_num(d["x"]), _num(d["y"]))
        if kind == "mouse_up":
            return MouseUp(_num(d["x"]), _num(d["y"]))
        if kind == "mouse_leave":
            return MouseLeave()
        if kind == "touch_start":
            return TouchStart(_points(d))
        if kind == "touch_move":
            return TouchMove(_points(d))
        if kind == "touch_end":
            return TouchEnd(_points(d))
        if kind == "hand":
            return TrackerSample(landmarks=_landmarks(d.get("landmarks")))
    except (KeyError, TypeError) as e:
        raise ValueError(f"bad {kind} event: {e}") from e
    raise ValueError(f"unknown event type: {kind!r}")


class FrameHub:
    def __init__(self):
        self.clients = set()
        self.latest = None

    async def broadcast(self, data: dict):
        self.latest = data
        if not self.clients:
            return
        payload = json.dumps(data)
        dead = []
        for ws in list(self.clients):
            try:
                await ws.send_str(payload)
            except ConnectionError:
                dead.append(ws)
        for ws in dead:
            self.clients.discard(ws)


async def ws_handler(request):
    hub = request.app[HUB_KEY]
    ws = web.WebSocketResponse()
    await ws.prepare(request)

    hub.clients.add(ws)
    log.info("viewer connected: %d", len(hub.clients))

    try:
        async for _ in ws:
            pass
    finally:
        hub.clients.discard(ws)
        log.info("viewer disconnected: %d", len(hub.clients))

    return ws


async def get_state(request):
    hub = request.app[HUB_KEY]
    if hub.latest is not None:
        return web.json_response(hub.latest)
    # nothing broadcast yet: report without advancing the world
    sim = request.app[SIM_KEY]
    frame = sim.last_frame
    if frame is None:
        frame = Frame(tick=sim.tick_count, width=sim.width, height=sim.height)
    return web.json_response(frame_to_dict(frame))


async def post_input(request):
    sim = request.app[SIM_KEY]
    try:
        data = await request.json()
        ev = event_from_dict(data)
    except ValueError as e:
        return web.json_response({"ok": False, "error": str(e)}, status=400)

    if isinstance(ev, TrackerSample):
        sim.offer_sample(ev)
        return web.json_response({"ok": True})
    eid = sim.push(ev)
    return web.json_response({"ok": True, "event_id": eid})


async def post_resize(request):
    sim = request.app[SIM_KEY]
    try:
        data = await request.json()
        w, h = int(data["width"]), int(data["height"])
    except (ValueError, KeyError, TypeError) as e:
        return web.json_response({"ok": False, "error": str(e)}, status=400)
    sim.resize(w, h)
    return web.json_response({"ok": True, "ready": sim.ready})


async def _tick_loop(app):
    sim = app[SIM_KEY]
    hub = app[HUB_KEY]
    dt = float(sim.params.frame_dt)
    while True:
        await hub.broadcast(frame_to_dict(sim.tick()))
        await asyncio.sleep(dt)


async def _ticker(app):
    app[TICKER_KEY] = asyncio.create_task(_tick_loop(app))
    yield
    app[TICKER_KEY].cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await app[TICKER_KEY]


def make_app(sim, run_ticker=True):
    app = web.Application()
    app[SIM_KEY] = sim
    app[HUB_KEY] = FrameHub()

    app.router.add_get("/ws", ws_handler)
    app.router.add_get("/state", get_state)
    app.router.add_post("/input", post_input)
    app.router.add_post("/resize", post_resize)

    if run_ticker:
        app.cleanup_ctx.append(_ticker)
    return app


def serve(sim, host="0.0.0.0", port=8765):
    web.run_app(make_app(sim), host=host, port=port)
