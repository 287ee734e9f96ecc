"""Telemetry snapshot decoded from the rotator's ``GET /variable`` response.

The firmware serializes almost every value as a string (``"12.34"``), so the
decoder accepts numbers or numeric strings. A snapshot is immutable and is
replaced wholesale by the next successful poll.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

__all__ = [
    "DEBUG_LEVEL_NAMES",
    "DISPLAY_FIELDS",
    "TelemetryDecodeError",
    "TelemetrySnapshot",
    "decode_snapshot",
    "format_debug_level",
]

DEBUG_LEVEL_NAMES = ("NONE", "ERROR", "WARN", "INFO", "DEBUG", "VERBOSE")

# Attributes shown verbatim on the dashboard, one display slot each.
DISPLAY_FIELDS = (
    "correctedAngle_az",
    "correctedAngle_el",
    "setpoint_az",
    "setpoint_el",
    "setPointState_az",
    "setPointState_el",
    "error_az",
    "error_el",
    "el_startAngle",
    "needs_unwind",
    "calMode",
    "i2cErrorFlag_az",
    "i2cErrorFlag_el",
    "badAngleFlag",
    "magnetFault",
    "faultTripped",
    "isAzMotorLatched",
    "isElMotorLatched",
    "singleMotorModeText",
    "toleranceAz",
    "toleranceEl",
    "maxDualMotorAzSpeed",
    "maxDualMotorElSpeed",
    "maxSingleMotorAzSpeed",
    "maxSingleMotorElSpeed",
    "P_az",
    "P_el",
    "MIN_AZ_SPEED",
    "MIN_EL_SPEED",
    "MIN_AZ_TOLERANCE",
    "MIN_EL_TOLERANCE",
    "MAX_FAULT_POWER",
    "inputVoltage",
    "currentDraw",
    "rotatorPowerDraw",
    "stellariumPollingOn",
    "stellariumServerIPText",
    "stellariumServerPortText",
    "stellariumConnActive",
    "windSpeed",
    "windGust",
    "windDirection",
    "windSafetyEnabled",
    "windBasedHomeEnabled",
    "emergencyStowActive",
    "weatherPollingOn",
    "weatherLastUpdate",
    "http_port",
    "rotctl_port",
    "wifissid",
    "ip_addr",
    "rotctl_client_ip",
    "bssid",
    "wifi_channel",
    "rssi",
    "serialActive",
)


class TelemetryDecodeError(ValueError):
    """Raised when a poll response is not a usable telemetry snapshot."""


def _required_float(data: Mapping[str, Any], key: str) -> float:
    if key not in data:
        raise TelemetryDecodeError(f"Missing field {key!r}")
    value = data[key]
    if isinstance(value, bool):
        raise TelemetryDecodeError(f"Field {key!r} is not numeric: {value!r}")
    try:
        out = float(value)
    except (TypeError, ValueError) as err:
        raise TelemetryDecodeError(f"Field {key!r} is not numeric: {value!r}") from err
    if not math.isfinite(out):
        raise TelemetryDecodeError(f"Field {key!r} is not finite: {value!r}")
    return out


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)
    except (TypeError, ValueError):
        return None
    return out if math.isfinite(out) else None


def _optional_int(value: Any) -> Optional[int]:
    f = _optional_float(value)
    return None if f is None else int(f)


def _flag(value: Any) -> bool:
    """Interpret the firmware's many spellings of a boolean."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return str(value).strip().lower() in ("1", "true", "on", "yes", "valid")


def _wind_bearing(value: Any) -> Optional[float]:
    """Wind bearing in [0, 360), or None when the device reports none."""
    bearing = _optional_float(value)
    if bearing is None or bearing < 0:
        return None
    return bearing % 360.0


@dataclass(frozen=True)
class TelemetrySnapshot:
    azimuth: float
    elevation: float
    setpoint_az: float
    setpoint_el: float
    error_az: Optional[float] = None
    error_el: Optional[float] = None
    az_latched: bool = False
    el_latched: bool = False
    fault_tripped: bool = False
    bad_angle: bool = False
    magnet_fault: bool = False
    level: int = 0
    wind_direction: Optional[float] = None
    weather_data_valid: bool = False
    new_log_messages: str = ""
    debug_level: Optional[int] = None
    fields: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_wind(self) -> bool:
        return self.weather_data_valid and self.wind_direction is not None

    def display_value(self, name: str) -> Any:
        """Raw attribute as received, or None if the device did not send it."""
        return self.fields.get(name)


def decode_snapshot(data: Any) -> TelemetrySnapshot:
    """Build a snapshot from a decoded JSON object.

    Raises:
        TelemetryDecodeError: if `data` is not an object or an angle is
            missing or non-numeric.
    """
    if not isinstance(data, Mapping):
        raise TelemetryDecodeError(f"Expected a JSON object, got {type(data).__name__}")

    level = _optional_int(data.get("level")) or 0
    debug_level = _optional_int(data.get("currentDebugLevel"))
    if debug_level is not None and not 0 <= debug_level < len(DEBUG_LEVEL_NAMES):
        debug_level = None

    log_text = data.get("newLogMessages") or ""
    if not isinstance(log_text, str):
        log_text = str(log_text)

    return TelemetrySnapshot(
        azimuth=_required_float(data, "correctedAngle_az"),
        elevation=_required_float(data, "correctedAngle_el"),
        setpoint_az=_required_float(data, "setpoint_az"),
        setpoint_el=_required_float(data, "setpoint_el"),
        error_az=_optional_float(data.get("error_az")),
        error_el=_optional_float(data.get("error_el")),
        az_latched=_flag(data.get("isAzMotorLatched")),
        el_latched=_flag(data.get("isElMotorLatched")),
        fault_tripped=_flag(data.get("faultTripped")),
        bad_angle=_flag(data.get("badAngleFlag")),
        magnet_fault=_flag(data.get("magnetFault")),
        level=max(0, min(4, level)),
        wind_direction=_wind_bearing(data.get("windDirection")),
        weather_data_valid=_flag(data.get("weatherDataValid")),
        new_log_messages=log_text,
        debug_level=debug_level,
        fields=MappingProxyType(dict(data)),
    )


def format_debug_level(level: Optional[int]) -> str:
    """Render a debug level as ``"3 (INFO)"``; unknown levels render blank."""
    if level is None or not 0 <= level < len(DEBUG_LEVEL_NAMES):
        return ""
    return f"{level} ({DEBUG_LEVEL_NAMES[level]})"
