"""Periodic telemetry poll loop.

Every tick fires one ``GET /variable`` on its own green thread and, if the
response decodes, applies it: display slots, log buffer, log refresh and a
full skyplane redraw, in that order. Failed ticks are dropped; the next tick
is the retry.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

import eventlet
import requests

from log_buffer import LogBuffer
from skyplane import SkyplaneRenderer
from telemetry import TelemetryDecodeError, TelemetrySnapshot, decode_snapshot

__all__ = ["TELEMETRY_PATH", "DisplaySlot", "AppliedListener", "TelemetrySync"]

TELEMETRY_PATH = "/variable"

DisplaySlot = Callable[[Any], None]
AppliedListener = Callable[[TelemetrySnapshot, str], None]


class TelemetrySync:
    """Owns the poll cadence and is the only writer of current telemetry.

    Ordering:
        Each tick gets a sequence number. With ``strict_order`` (the default)
        a result is applied only if it is newer than the last applied one, so
        a slow response can never overwrite a fresher display. With
        ``strict_order=False`` results apply in completion order.
    """

    def __init__(
        self,
        device_url: str,
        log_buffer: LogBuffer,
        renderer: SkyplaneRenderer,
        *,
        session: Optional[requests.Session] = None,
        interval: float = 0.25,
        timeout: Optional[float] = None,
        strict_order: bool = True,
        spawn: Optional[Callable[..., Any]] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        self.url = device_url.rstrip("/") + TELEMETRY_PATH
        self.log_buffer = log_buffer
        self.renderer = renderer
        self.session = session or requests.Session()
        self.interval = float(interval)
        self.timeout = timeout
        self.strict_order = strict_order
        self._spawn = spawn or eventlet.spawn_n
        self._sleep = sleep or eventlet.sleep

        self.displays: Dict[str, DisplaySlot] = {}
        self.listeners: List[AppliedListener] = []

        self.snapshot: Optional[TelemetrySnapshot] = None
        self.skyplane_svg: str = ""
        self._issued_seq = 0
        self._applied_seq = 0
        self._running = False

    # ----------------- Wiring -----------------
    def register_display(self, name: str, slot: DisplaySlot) -> None:
        """Route telemetry attribute `name` to `slot` on every applied tick."""
        self.displays[name] = slot

    def add_listener(self, listener: AppliedListener) -> None:
        """Call `listener(snapshot, svg)` after each applied tick."""
        self.listeners.append(listener)

    # ----------------- Poll -----------------
    def tick(self) -> int:
        """Issue one asynchronous poll and return its sequence number."""
        self._issued_seq += 1
        seq = self._issued_seq
        self._spawn(self._poll, seq)
        return seq

    def fetch(self) -> Optional[TelemetrySnapshot]:
        """Read and decode one snapshot; None if the tick should be dropped."""
        try:
            resp = self.session.get(self.url, timeout=self.timeout)
        except requests.RequestException as err:
            logging.debug("Telemetry poll failed: %s", err)
            return None

        if resp.status_code != 200:
            logging.debug("Telemetry poll returned HTTP %s", resp.status_code)
            return None

        try:
            return decode_snapshot(resp.json())
        except TelemetryDecodeError as err:
            logging.debug("Dropping malformed telemetry: %s", err)
        except ValueError as err:
            logging.debug("Telemetry body is not JSON: %s", err)
        return None

    def _poll(self, seq: int) -> None:
        snapshot = self.fetch()
        if snapshot is not None:
            self.apply(seq, snapshot)

    def apply(self, seq: int, snapshot: TelemetrySnapshot) -> bool:
        """Push `snapshot` to every consumer. Returns False if it was stale."""
        if self.strict_order and seq <= self._applied_seq:
            logging.debug("Discarding stale tick %d (latest applied %d)", seq, self._applied_seq)
            return False
        self._applied_seq = max(self._applied_seq, seq)
        self.snapshot = snapshot

        # (a) plain fields, 1:1
        for name, slot in self.displays.items():
            slot(snapshot.display_value(name))

        # (b) new log lines, (c) log refresh
        if snapshot.new_log_messages.strip():
            self.log_buffer.extend(snapshot.new_log_messages)
        self.log_buffer.refresh()

        # (d) skyplane
        self.skyplane_svg = self.renderer.redraw(
            snapshot.azimuth,
            snapshot.elevation,
            snapshot.setpoint_az,
            snapshot.setpoint_el,
            snapshot.wind_direction,
            snapshot.weather_data_valid,
        )

        for listener in self.listeners:
            listener(snapshot, self.skyplane_svg)
        return True

    # ----------------- Loop -----------------
    @property
    def running(self) -> bool:
        return self._running

    def run(self) -> None:
        """Tick every `interval` seconds until :meth:`stop` is called."""
        self._running = True
        logging.info("Polling %s every %.0f ms", self.url, self.interval * 1000)
        while self._running:
            self.tick()
            self._sleep(self.interval)
        logging.info("Telemetry polling stopped.")

    def stop(self) -> None:
        self._running = False
