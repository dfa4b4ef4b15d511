"""Tests for config persistence and value sanitization.

Malformed files and wrong-typed values fall back to defaults one setting
at a time; environment variables override the file.
"""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from remotebrowser import config
from remotebrowser.config import BrowserConfig
from remotebrowser.engine.upload import UploadLimits


class ConfigBehaviorTests(unittest.TestCase):
    def test_missing_file_gives_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            with mock.patch("remotebrowser.config.CONFIG_PATH", config_path):
                self.assertEqual(config.load_config(environ={}), BrowserConfig())

    def test_round_trip(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "nested" / "config.json"
            custom = BrowserConfig(
                base_url="https://files.example.com",
                max_upload_files=3,
                blocked_extensions=("exe", "sh"),
                search_debounce=0.0,
            )
            with mock.patch("remotebrowser.config.CONFIG_PATH", config_path):
                self.assertTrue(config.save_config(custom))
                self.assertEqual(config.load_config(environ={}), custom)

    def test_malformed_json_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("{not json", encoding="utf-8")
            with self.assertLogs("remotebrowser.config", level="WARNING"):
                self.assertEqual(config.load_config_data(config_path), {})

    def test_non_object_json_is_ignored(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text("[1, 2]", encoding="utf-8")
            self.assertEqual(config.load_config_data(config_path), {})

    def test_wrong_types_fall_back_per_value(self) -> None:
        loaded = config.config_from_data(
            {
                "base_url": "http://api.local/",
                "request_timeout": 0,
                "session_header": "   ",
                "max_upload_files": True,
                "max_file_size": -5,
                "max_total_size": 1024,
                "blocked_extensions": [".EXE", "bat", 7, ""],
                "search_debounce": "fast",
                "search_max_results": 2.5,
                "highlight_style": 12,
                "log_level": "debug",
            }
        )
        default = BrowserConfig()
        self.assertEqual(loaded.base_url, "http://api.local")
        self.assertEqual(loaded.request_timeout, default.request_timeout)
        self.assertEqual(loaded.session_header, default.session_header)
        self.assertEqual(loaded.max_upload_files, default.max_upload_files)
        self.assertEqual(loaded.max_file_size, default.max_file_size)
        self.assertEqual(loaded.max_total_size, 1024)
        self.assertEqual(loaded.blocked_extensions, ("bat", "exe"))
        self.assertEqual(loaded.search_debounce, default.search_debounce)
        self.assertEqual(loaded.search_max_results, default.search_max_results)
        self.assertEqual(loaded.highlight_style, default.highlight_style)
        self.assertEqual(loaded.log_level, "DEBUG")

    def test_environment_overrides_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "config.json"
            config_path.write_text(json.dumps({"base_url": "http://from-file"}), encoding="utf-8")
            loaded = config.load_config(
                config_path,
                environ={config.ENV_BASE_URL: "http://from-env/", config.ENV_LOG_LEVEL: "info"},
            )
        self.assertEqual(loaded.base_url, "http://from-env")
        self.assertEqual(loaded.log_level, "INFO")

    def test_save_failure_is_reported(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            blocker = Path(tmp) / "file"
            blocker.write_text("x", encoding="utf-8")
            with self.assertLogs("remotebrowser.config", level="WARNING"):
                self.assertFalse(config.save_config_data({}, blocker / "config.json"))

    def test_upload_limits_follow_config(self) -> None:
        loaded = BrowserConfig(max_upload_files=2, max_file_size=10, max_total_size=15, blocked_extensions=("bat",))
        limits = UploadLimits.from_config(loaded)
        self.assertEqual((limits.max_files, limits.max_file_size, limits.max_total_size), (2, 10, 15))
        self.assertTrue(limits.is_blocked("RUN.BAT"))
        self.assertFalse(limits.is_blocked("run.exe"))


if __name__ == "__main__":
    unittest.main()
