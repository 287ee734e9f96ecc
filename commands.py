"""Control requests sent to the rotator's HTTP endpoints.

Supports:
- Calibration-mode motor moves and elevation calibration
- Mode toggles (single motor, wind safety, wind-based home, weather, Stellarium)
- Setpoint updates and debug-level changes
- Destructive maintenance actions (restart, unwind reset, EEPROM reset)

Every command is one request, fire-and-forget: there is no retry and no
acknowledgement beyond the HTTP status. Failures go to the log only, except a
forced weather update, which can explain a misconfiguration to the operator.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import requests

__all__ = [
    "AZ_SETPOINT_RANGE",
    "EL_SETPOINT_RANGE",
    "CommandResult",
    "CommandDispatcher",
    "validate_move",
    "validate_setpoint",
    "weather_alert_for",
]

AZ_SETPOINT_RANGE = (-360.0, 360.0)
EL_SETPOINT_RANGE = (0.0, 90.0)


@dataclass(frozen=True)
class CommandResult:
    name: str
    ok: bool
    status: Optional[int] = None
    text: str = ""
    alert: Optional[str] = None


def weather_alert_for(body: str) -> Optional[str]:
    """Operator-facing reason for a failed weather update, if recognizable."""
    lowered = (body or "").lower()
    if "location" in lowered and ("not set" in lowered or "not configured" in lowered):
        return "Weather update failed: the location (latitude/longitude) is not set on the device."
    if "api key" in lowered and ("not set" in lowered or "not configured" in lowered):
        return "Weather update failed: the WeatherAPI key is not set on the device."
    return None


def validate_setpoint(az: float, el: float) -> Tuple[float, float]:
    """Return (az, el) as floats, or raise ValueError if out of range."""
    az = float(az)
    el = float(el)
    lo, hi = AZ_SETPOINT_RANGE
    if not lo <= az <= hi:
        raise ValueError(f"Azimuth must be between {lo:g} and {hi:g}, got {az:g}")
    lo, hi = EL_SETPOINT_RANGE
    if not lo <= el <= hi:
        raise ValueError(f"Elevation must be between {lo:g} and {hi:g}, got {el:g}")
    return az, el


def validate_move(value: float) -> float:
    """Return a jog step as a float, or raise ValueError if it is not finite."""
    value = float(value)
    if not math.isfinite(value):
        raise ValueError(f"Move step must be a finite number, got {value}")
    return value


def _on_off(flag: bool) -> str:
    return "On" if flag else "Off"


class CommandDispatcher:
    """Translate UI actions into one-shot requests to the device."""

    def __init__(
        self,
        device_url: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = 5.0,
    ):
        self.base_url = device_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    # ------------------------ Transport ------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        expect: int = 200,
        params: Optional[Dict[str, str]] = None,
        data: Optional[Dict[str, str]] = None,
    ) -> CommandResult:
        url = self.base_url + path
        try:
            resp = self.session.request(method, url, params=params, data=data, timeout=self.timeout)
        except requests.RequestException as err:
            logging.warning("Command %s %s failed: %s", method, path, err)
            return CommandResult(path, ok=False, text=str(err))

        ok = resp.status_code == expect
        if ok:
            logging.debug("Command %s %s -> %s", method, path, resp.status_code)
        else:
            logging.warning(
                "Command %s %s returned HTTP %s (expected %s): %s",
                method, path, resp.status_code, expect, resp.text,
            )
        return CommandResult(path, ok=ok, status=resp.status_code, text=resp.text)

    def _get(self, path: str, params: Optional[Dict[str, str]] = None) -> CommandResult:
        return self._request("GET", path, params=params)

    # ------------------------ Movement / calibration ------------------------

    def move_az(self, value: float) -> CommandResult:
        """Jog the azimuth motor (honored by the device only in cal mode).

        Raises:
            ValueError: if `value` is not a finite number.
        """
        return self._get("/moveAz", params={"value": str(validate_move(value))})

    def move_el(self, value: float) -> CommandResult:
        """Jog the elevation motor (honored by the device only in cal mode).

        Raises:
            ValueError: if `value` is not a finite number.
        """
        return self._get("/moveEl", params={"value": str(validate_move(value))})

    def calibrate_elevation(self) -> CommandResult:
        return self._get("/calEl")

    def set_cal_mode(self, on: bool) -> CommandResult:
        return self._get("/calon" if on else "/caloff")

    def set_setpoint(self, az: float, el: float) -> CommandResult:
        """Send a new az/el target.

        Raises:
            ValueError: if az is outside [-360, 360] or el outside [0, 90].
        """
        az, el = validate_setpoint(az, el)
        return self._request(
            "POST",
            "/update_variable",
            expect=204,
            data={"new_setpoint_az": f"{az:.2f}", "new_setpoint_el": f"{el:.2f}"},
        )

    def home(self) -> CommandResult:
        """Send the rotator to az=0, el=0."""
        return self.set_setpoint(0.0, 0.0)

    # ------------------------ Mode toggles ------------------------

    def set_single_motor_mode(self, on: bool) -> CommandResult:
        return self._get(f"/setSingleMotorMode{_on_off(on)}")

    def set_wind_safety(self, on: bool) -> CommandResult:
        return self._get(f"/windSafety{_on_off(on)}")

    def set_wind_based_home(self, on: bool) -> CommandResult:
        return self._get(f"/windBasedHome{_on_off(on)}")

    def set_weather_polling(self, on: bool) -> CommandResult:
        return self._get(f"/weather{_on_off(on)}")

    def set_stellarium_polling(self, on: bool) -> CommandResult:
        return self._get(f"/stellarium{_on_off(on)}")

    def set_serial_output_disabled(self, disabled: bool) -> CommandResult:
        return self._get("/setSerialOutputDisabled", params={"disabled": "true" if disabled else "false"})

    def set_debug_level(self, level: int) -> CommandResult:
        """Change the device log verbosity (0=NONE .. 5=VERBOSE).

        Raises:
            ValueError: if level is outside 0..5.
        """
        level = int(level)
        if not 0 <= level <= 5:
            raise ValueError(f"Debug level must be between 0 and 5, got {level}")
        return self._request("POST", "/setDebugLevel", expect=204, data={"debugLevel": str(level)})

    def force_weather_update(self) -> CommandResult:
        result = self._get("/forceWeatherUpdate")
        if result.ok:
            return result
        alert = weather_alert_for(result.text)
        if alert:
            logging.warning("%s", alert)
        return CommandResult(result.name, ok=False, status=result.status, text=result.text, alert=alert)

    # ------------------------ Maintenance (confirm before calling) ------------------------

    def restart(self) -> CommandResult:
        return self._request("POST", "/restart")

    def reset_needs_unwind(self) -> CommandResult:
        return self._request("POST", "/resetNeedsUnwind")

    def reset_eeprom(self) -> CommandResult:
        return self._request("POST", "/resetEEPROM")
