import json
import os
import tempfile
import unittest
from unittest.mock import patch

from state import DEFAULT_CONFIG, DashboardConfig, default_config_path


class TestDashboardConfig(unittest.TestCase):
    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "config.json")

    def tearDown(self):
        self.tmpdir.cleanup()

    def _write(self, data):
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(data if isinstance(data, str) else json.dumps(data))

    def test_defaults_without_file(self):
        cfg = DashboardConfig(self.path)
        self.assertEqual(cfg.poll_interval, 0.25)
        self.assertIsNone(cfg.poll_timeout)
        self.assertEqual(cfg.log_capacity, 100_000)
        self.assertTrue(cfg.strict_tick_order)
        self.assertEqual(cfg.skyplane_size, (400, 400, 20.0))
        self.assertEqual(cfg.device_url, DEFAULT_CONFIG["DEVICE_URL"])
        self.assertFalse(os.path.exists(self.path))

    def test_file_merges_into_defaults(self):
        self._write({"DEVICE_URL": "http://10.0.0.5/", "LOG_CAPACITY": 500})
        cfg = DashboardConfig(self.path)
        self.assertEqual(cfg.device_url, "http://10.0.0.5")
        self.assertEqual(cfg.log_capacity, 500)
        self.assertEqual(cfg.poll_interval, 0.25)

    def test_invalid_json_ignored(self):
        self._write("{not json")
        cfg = DashboardConfig(self.path)
        self.assertEqual(cfg.log_capacity, 100_000)

    def test_non_object_ignored(self):
        self._write([1, 2, 3])
        cfg = DashboardConfig(self.path)
        for key, value in DEFAULT_CONFIG.items():
            self.assertEqual(cfg.get_config(key), value)

    def test_bad_values_fall_back(self):
        self._write({"POLL_INTERVAL_SEC": "fast", "LOG_CAPACITY": 0, "POLL_TIMEOUT_SEC": "never"})
        cfg = DashboardConfig(self.path)
        self.assertEqual(cfg.poll_interval, 0.25)
        self.assertEqual(cfg.log_capacity, 100_000)
        self.assertIsNone(cfg.poll_timeout)

    def test_update_persists_atomically(self):
        cfg = DashboardConfig(self.path)
        cfg.update_config({"POLL_TIMEOUT_SEC": 2}, persist=True)
        self.assertFalse(os.path.exists(self.path + ".tmp"))
        with open(self.path, encoding="utf-8") as f:
            saved = json.load(f)
        self.assertEqual(saved["POLL_TIMEOUT_SEC"], 2)
        self.assertEqual(DashboardConfig(self.path).poll_timeout, 2.0)

    def test_update_without_persist(self):
        cfg = DashboardConfig(self.path)
        cfg.update_config({"HTTP_PORT": 8080}, persist=False)
        self.assertEqual(cfg.get_config("HTTP_PORT"), 8080)
        self.assertFalse(os.path.exists(self.path))

    def test_env_override(self):
        with patch.dict(os.environ, {"DISHDASH_CONFIG": self.path}):
            self.assertEqual(default_config_path(), self.path)
            self._write({"STRICT_TICK_ORDER": False})
            self.assertFalse(DashboardConfig().strict_tick_order)

    def test_save_failure_is_logged_not_raised(self):
        blocker = os.path.join(self.tmpdir.name, "file")
        self._write("{}")
        os.replace(self.path, blocker)
        cfg = DashboardConfig(os.path.join(blocker, "config.json"))
        with self.assertLogs(level="ERROR"):
            cfg.update_config({"HTTP_PORT": 1}, persist=True)
        self.assertEqual(cfg.get_config("HTTP_PORT"), 1)


if __name__ == "__main__":
    unittest.main()
