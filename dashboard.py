"""Dishdash: Flask + Socket.IO live dashboard for a satellite dish rotator.

Features:
- Polls the rotator's telemetry endpoint every 250 ms
- Skyplane (position, setpoint, wind) rendered server-side as SVG
- Bounded, pausable device log view shared by every connected browser
- Fire-and-forget control commands forwarded to the rotator
"""

# pylint: disable=wrong-import-position
from __future__ import annotations

import argparse
import logging
import json
from typing import Any, Callable, Dict, List, Optional

import eventlet
eventlet.monkey_patch()

from flask import Flask, jsonify, request
from flask_socketio import SocketIO, emit

from commands import CommandDispatcher, CommandResult, validate_move, validate_setpoint
from log_buffer import LogBuffer, LogChanges, LogCursor
from page_template import HTML_PAGE
from projection import Projection
from skyplane import SkyplaneRenderer, SvgCanvas
from state import DashboardConfig
from telemetry import DISPLAY_FIELDS, TelemetrySnapshot, format_debug_level
from telemetry_sync import TelemetrySync

# ---------------------------------------------------------------------------
# Flask + Socket.IO
# ---------------------------------------------------------------------------
app = Flask(__name__)
socketio = SocketIO(app, async_mode="eventlet")


# ---------------------------------------------------------------------------
# Socket-backed log sink
# ---------------------------------------------------------------------------
class SocketLogSink:
    """Log view shared by all browsers; each browser keeps its own lines.

    Normal ticks broadcast only the lines appended since the last render and
    how many to drop from the head. Clear and resume broadcast a reset with
    the full content, and a newly connected browser gets one to itself.
    """

    def __init__(self, sio: SocketIO):
        self.socketio = sio
        self._cursor: Optional[LogCursor] = None
        self._pending: Optional[Dict[str, Any]] = None

    def log_cursor(self) -> Optional[LogCursor]:
        return self._cursor

    def show_changes(self, changes: LogChanges) -> None:
        self._cursor = (changes.first, changes.end)
        if changes.reset or changes.added or changes.evicted:
            self._pending = {
                "reset": changes.reset,
                "lines": changes.added,
                "evicted": changes.evicted,
                "has_content": changes.has_content,
            }

    def scroll_to_end(self) -> None:
        payload: Dict[str, Any] = {"scroll": "end"}
        if self._pending is not None:
            payload.update(self._pending)
            self._pending = None
        self.socketio.emit("log", payload)

    def catch_up_payload(self, log_buffer: LogBuffer) -> Dict[str, Any]:
        """What the other browsers currently show, as a reset."""
        lines = [] if self._cursor is None else log_buffer.lines_between(*self._cursor)
        return {"reset": True, "lines": lines, "evicted": 0, "has_content": bool(lines), "scroll": "end"}


# ---------------------------------------------------------------------------
# Dashboard wiring
# ---------------------------------------------------------------------------
class Dashboard:
    """Everything one dashboard process owns, built once at startup."""

    def __init__(self, config: DashboardConfig, sio: SocketIO):
        self.config = config
        self.socketio = sio

        width, height, margin = config.skyplane_size
        self.projection = Projection.for_canvas(width, height, margin)
        self.canvas = SvgCanvas(width, height)
        self.renderer = SkyplaneRenderer(self.canvas, self.projection)
        self.renderer.draw_grid()

        self.log_sink = SocketLogSink(sio)
        self.log_buffer = LogBuffer(config.log_capacity, sink=self.log_sink)

        self.commands = CommandDispatcher(config.device_url, timeout=config.command_timeout)

        self.sync = TelemetrySync(
            config.device_url,
            self.log_buffer,
            self.renderer,
            interval=config.poll_interval,
            timeout=config.poll_timeout,
            strict_order=config.strict_tick_order,
            spawn=sio.start_background_task,
            sleep=sio.sleep,
        )
        self.fields: Dict[str, Any] = {}
        for name in DISPLAY_FIELDS:
            self.sync.register_display(name, self._slot(name))
        self.sync.add_listener(self._push_telemetry)

    def _slot(self, name: str) -> Callable[[Any], None]:
        def update(value: Any) -> None:
            self.fields[name] = value
        return update

    def telemetry_payload(self, snapshot: Optional[TelemetrySnapshot] = None) -> Dict[str, Any]:
        """Everything a browser needs to refresh its view of the device."""
        snapshot = snapshot or self.sync.snapshot
        payload: Dict[str, Any] = {
            "fields": dict(self.fields),
            "skyplane": self.sync.skyplane_svg or self.renderer.to_svg(),
        }
        if snapshot is not None:
            payload["level"] = snapshot.level
            payload["debug_level"] = snapshot.debug_level
            payload["debug_level_text"] = format_debug_level(snapshot.debug_level)
            if "serialOutputDisabled" in snapshot.fields:
                payload["serial_output_disabled"] = snapshot.fields["serialOutputDisabled"]
        return payload

    def _push_telemetry(self, snapshot: TelemetrySnapshot, _svg: str) -> None:
        self.socketio.emit("telemetry", self.telemetry_payload(snapshot))

    # ----------------- Commands -----------------
    def dispatch(self, name: str, fn: Callable[..., CommandResult], *args: Any) -> None:
        """Run a command on the event loop; the HTTP request returns at once."""
        self.socketio.start_background_task(self._run_command, name, fn, *args)

    def _run_command(self, name: str, fn: Callable[..., CommandResult], *args: Any) -> None:
        result = fn(*args)
        self.socketio.emit("command", {"name": name, "ok": result.ok, "status": result.status})
        if result.alert:
            self.socketio.emit("alert", {"msg": result.alert})


def get_dashboard() -> Dashboard:
    return app.extensions["dishdash"]


def init_dashboard(config: DashboardConfig) -> Dashboard:
    """Build the dashboard and attach it to the Flask app."""
    dash = Dashboard(config, socketio)
    app.extensions["dishdash"] = dash
    return dash


# ---------------------------------------------------------------------------
# Action routing
# ---------------------------------------------------------------------------
_TOGGLES = {
    "cal": "set_cal_mode",
    "single_motor": "set_single_motor_mode",
    "wind_safety": "set_wind_safety",
    "wind_home": "set_wind_based_home",
    "weather": "set_weather_polling",
    "stellarium": "set_stellarium_polling",
}

_SIMPLE = {
    "cal_el": ("calibrate_elevation", "Elevation calibration requested."),
    "home": ("home", "Homing to AZ 0°, EL 0°."),
    "force_weather": ("force_weather_update", "Weather update requested."),
    "restart": ("restart", "Restart requested."),
    "reset_unwind": ("reset_needs_unwind", "Needs-unwind reset requested."),
    "reset_eeprom": ("reset_eeprom", "EEPROM reset requested."),
}


def _route_action(dash: Dashboard, action: str, form: Dict[str, str]) -> str:
    """Validate form input, queue the command and return a status message."""
    cmds = dash.commands

    if action in _SIMPLE:
        method, msg = _SIMPLE[action]
        dash.dispatch(action, getattr(cmds, method))
        return msg

    for prefix, method in _TOGGLES.items():
        if action in (f"{prefix}_on", f"{prefix}_off"):
            on = action.endswith("_on")
            dash.dispatch(action, getattr(cmds, method), on)
            return f"{prefix.replace('_', ' ').capitalize()} {'on' if on else 'off'}."

    if action == "set":
        az, el = validate_setpoint(form.get("azimuth", ""), form.get("elevation", ""))
        dash.dispatch(action, cmds.set_setpoint, az, el)
        return f"Setpoint AZ {az:.2f}°, EL {el:.2f}° sent."

    if action in ("move_az", "move_el"):
        value = validate_move(form.get("value", ""))
        fn = cmds.move_az if action == "move_az" else cmds.move_el
        dash.dispatch(action, fn, value)
        return f"{action[-2:].upper()} move {value:g} sent."

    if action == "debug_level":
        level = int(form.get("level", ""))
        if not 0 <= level <= 5:
            raise ValueError(f"Debug level must be between 0 and 5, got {level}")
        dash.dispatch(action, cmds.set_debug_level, level)
        return f"Debug level {format_debug_level(level)} sent."

    if action == "serial_output":
        disabled = form.get("disabled", "").strip().lower() == "true"
        dash.dispatch(action, cmds.set_serial_output_disabled, disabled)
        return f"Serial output {'disabled' if disabled else 'enabled'}."

    raise ValueError(f"Unknown command: {action!r}")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.route("/", methods=["GET"])
def index():
    """Render the dashboard page with the current skyplane."""
    dash = get_dashboard()
    html = HTML_PAGE
    html = html.replace("{{skyplane}}", dash.sync.skyplane_svg or dash.renderer.to_svg())
    html = html.replace("{{fields_json}}", json.dumps(list(DISPLAY_FIELDS)))
    return html


@app.route("/", methods=["POST"])
def control():
    """Handle control actions posted by the web UI."""
    action = request.form.get("action", "").strip().lower()
    logging.info("Action: %s %s", action, dict(request.form))
    try:
        msg = _route_action(get_dashboard(), action, request.form)
    except ValueError as e:
        return jsonify({"msg": f"Error: {e}"}), 400
    return jsonify({"msg": msg}), 202


@app.route("/snapshot", methods=["GET"])
def snapshot():
    """Last applied telemetry, as received from the device."""
    snap = get_dashboard().sync.snapshot
    if snap is None:
        return jsonify({"msg": "No telemetry received yet."}), 404
    return jsonify(dict(snap.fields))


# ---------------------------------------------------------------------------
# Socket events
# ---------------------------------------------------------------------------
@socketio.on("connect")
def on_connect():
    """Bring a newly connected browser up to date."""
    dash = get_dashboard()
    emit("telemetry", dash.telemetry_payload())
    emit("log", dash.log_sink.catch_up_payload(dash.log_buffer))
    emit("log_state", {"paused": dash.log_buffer.paused})


@socketio.on("log_pause")
def on_log_pause(data):
    """Pause or resume the shared log view."""
    dash = get_dashboard()
    paused = bool(data.get("paused")) if isinstance(data, dict) else False
    dash.log_buffer.set_paused(paused)
    socketio.emit("log_state", {"paused": dash.log_buffer.paused})


@socketio.on("log_clear")
def on_log_clear():
    """Empty the log view (the device is not involved)."""
    get_dashboard().log_buffer.clear()


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Satellite dish rotator dashboard")
    parser.add_argument("--device", help="Rotator base URL (e.g., http://192.168.4.1)")
    parser.add_argument("--config", help="Path to config.json (default: $DISHDASH_CONFIG or next to this module)")
    parser.add_argument("--host", help="Web server bind address (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Web server port (default: 5000)")
    parser.add_argument("--interval", type=float, help="Telemetry poll interval in seconds (default: 0.25)")
    parser.add_argument("--verbose", action="store_true", help="Log dropped polls and command details")
    parser.add_argument("--save", action="store_true", help="Write these options to the config file before starting")
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> DashboardConfig:
    """Load the config file and apply command-line overrides (saved with --save)."""
    config = DashboardConfig(args.config)
    overrides: Dict[str, Any] = {}
    if args.device:
        overrides["DEVICE_URL"] = args.device
    if args.host:
        overrides["HTTP_HOST"] = args.host
    if args.port:
        overrides["HTTP_PORT"] = args.port
    if args.interval:
        overrides["POLL_INTERVAL_SEC"] = args.interval
    config.update_config(overrides, persist=args.save)
    return config


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the Dishdash dashboard."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

    args = parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = config_from_args(args)
    dash = init_dashboard(config)
    socketio.start_background_task(dash.sync.run)

    host = str(config.get_config("HTTP_HOST"))
    port = int(config.get_config("HTTP_PORT"))
    logging.info("Starting web server at http://%s:%d for rotator %s", host, port, config.device_url)
    try:
        socketio.run(app, host=host, port=port)
    except KeyboardInterrupt:
        logging.info("Shutting down Dishdash.")
    finally:
        dash.sync.stop()


if __name__ == "__main__":
    main()
