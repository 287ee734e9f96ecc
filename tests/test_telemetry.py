import unittest
from dataclasses import FrozenInstanceError

from telemetry import (
    DISPLAY_FIELDS,
    TelemetryDecodeError,
    decode_snapshot,
    format_debug_level,
)


def sample_payload(**overrides):
    """A /variable body shaped like the firmware sends it (mostly strings)."""
    data = {
        "correctedAngle_az": "123.45",
        "correctedAngle_el": "30.50",
        "setpoint_az": "125.00",
        "setpoint_el": "31.00",
        "error_az": "1.55",
        "error_el": "0.50",
        "isAzMotorLatched": "1",
        "isElMotorLatched": "0",
        "faultTripped": "0",
        "badAngleFlag": "0",
        "magnetFault": "0",
        "calMode": "OFF",
        "level": 3,
        "rssi": "-58",
        "newLogMessages": "[1000] [INFO]  Started\n",
        "currentDebugLevel": 3,
        "serialOutputDisabled": False,
    }
    data.update(overrides)
    return data


class TestDecodeSnapshot(unittest.TestCase):
    def test_decodes_string_numbers(self):
        snap = decode_snapshot(sample_payload())
        self.assertEqual(snap.azimuth, 123.45)
        self.assertEqual(snap.elevation, 30.5)
        self.assertEqual(snap.setpoint_az, 125.0)
        self.assertEqual(snap.setpoint_el, 31.0)
        self.assertEqual(snap.error_az, 1.55)
        self.assertTrue(snap.az_latched)
        self.assertFalse(snap.el_latched)
        self.assertEqual(snap.level, 3)
        self.assertEqual(snap.debug_level, 3)
        self.assertEqual(snap.new_log_messages, "[1000] [INFO]  Started\n")

    def test_raw_fields_kept_for_display(self):
        snap = decode_snapshot(sample_payload())
        self.assertEqual(snap.display_value("calMode"), "OFF")
        self.assertEqual(snap.display_value("correctedAngle_az"), "123.45")
        self.assertIsNone(snap.display_value("wifissid"))

    def test_snapshot_is_immutable(self):
        snap = decode_snapshot(sample_payload())
        with self.assertRaises(FrozenInstanceError):
            snap.azimuth = 0.0
        with self.assertRaises(TypeError):
            snap.fields["calMode"] = "ON"

    def test_snapshot_does_not_alias_input(self):
        data = sample_payload()
        snap = decode_snapshot(data)
        data["calMode"] = "ON"
        self.assertEqual(snap.display_value("calMode"), "OFF")

    def test_missing_angle_is_decode_error(self):
        data = sample_payload()
        del data["setpoint_el"]
        with self.assertRaises(TelemetryDecodeError):
            decode_snapshot(data)

    def test_non_numeric_angle_is_decode_error(self):
        with self.assertRaises(TelemetryDecodeError):
            decode_snapshot(sample_payload(correctedAngle_az="abc"))
        with self.assertRaises(TelemetryDecodeError):
            decode_snapshot(sample_payload(correctedAngle_el=None))
        with self.assertRaises(TelemetryDecodeError):
            decode_snapshot(sample_payload(setpoint_az="nan"))

    def test_non_object_is_decode_error(self):
        for body in ([], "text", 42, None):
            with self.assertRaises(TelemetryDecodeError):
                decode_snapshot(body)

    def test_decode_error_is_value_error(self):
        self.assertTrue(issubclass(TelemetryDecodeError, ValueError))

    def test_missing_optional_fields_default(self):
        data = {
            "correctedAngle_az": 1,
            "correctedAngle_el": 2,
            "setpoint_az": 3,
            "setpoint_el": 4,
        }
        snap = decode_snapshot(data)
        self.assertEqual(snap.new_log_messages, "")
        self.assertIsNone(snap.debug_level)
        self.assertIsNone(snap.wind_direction)
        self.assertFalse(snap.weather_data_valid)
        self.assertEqual(snap.level, 0)

    def test_level_clamped(self):
        self.assertEqual(decode_snapshot(sample_payload(level=9)).level, 4)
        self.assertEqual(decode_snapshot(sample_payload(level=-2)).level, 0)
        self.assertEqual(decode_snapshot(sample_payload(level="2")).level, 2)

    def test_debug_level_out_of_range_dropped(self):
        self.assertIsNone(decode_snapshot(sample_payload(currentDebugLevel=7)).debug_level)
        self.assertEqual(decode_snapshot(sample_payload(currentDebugLevel="5")).debug_level, 5)

    def test_wind_fields(self):
        snap = decode_snapshot(sample_payload(windDirection="270.0", weatherDataValid=True))
        self.assertEqual(snap.wind_direction, 270.0)
        self.assertTrue(snap.weather_data_valid)
        self.assertTrue(snap.has_wind)

    def test_wind_bearing_normalized(self):
        snap = decode_snapshot(sample_payload(windDirection=370, weatherDataValid="true"))
        self.assertEqual(snap.wind_direction, 10.0)

    def test_wind_sentinels(self):
        for raw in ("N/A", "", None, -1, "-1.0", "nan", "inf"):
            snap = decode_snapshot(sample_payload(windDirection=raw, weatherDataValid=True))
            self.assertIsNone(snap.wind_direction, msg=repr(raw))
            self.assertFalse(snap.has_wind)

    def test_flag_spellings(self):
        for raw, expected in (("ON", True), ("OFF", False), ("true", True), (1, True), (0, False), ("0", False)):
            snap = decode_snapshot(sample_payload(faultTripped=raw))
            self.assertIs(snap.fault_tripped, expected, msg=repr(raw))

    def test_non_string_log_messages(self):
        snap = decode_snapshot(sample_payload(newLogMessages=None))
        self.assertEqual(snap.new_log_messages, "")


class TestHelpers(unittest.TestCase):
    def test_format_debug_level(self):
        self.assertEqual(format_debug_level(0), "0 (NONE)")
        self.assertEqual(format_debug_level(3), "3 (INFO)")
        self.assertEqual(format_debug_level(5), "5 (VERBOSE)")
        self.assertEqual(format_debug_level(None), "")
        self.assertEqual(format_debug_level(6), "")

    def test_display_fields_unique(self):
        self.assertEqual(len(DISPLAY_FIELDS), len(set(DISPLAY_FIELDS)))
        self.assertIn("correctedAngle_az", DISPLAY_FIELDS)


if __name__ == "__main__":
    unittest.main()
