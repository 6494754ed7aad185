import json
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "installers" / "bootstrap"))

from lai_bootstrap.config import DEFAULT_REPO, InstallerConfig, load_config, save_config


class ConfigTests(unittest.TestCase):
    def setUp(self):
        patcher = patch.dict(os.environ, {}, clear=False)
        patcher.start()
        self.addCleanup(patcher.stop)
        os.environ.pop("LAI_BOOTSTRAP_REPO", None)
        os.environ.pop("LAI_BOOTSTRAP_DEST", None)

    def test_missing_file_gives_defaults(self):
        cfg = load_config(Path("/tmp/lai-bootstrap-nonexistent/config.json"))
        self.assertEqual(cfg.release.repo, DEFAULT_REPO)
        self.assertEqual(cfg.release.version, "latest")
        self.assertEqual(cfg.install.binary_name, "af_ollama_plugin")
        self.assertIsNone(cfg.install.dest_dir)

    def test_round_trip_and_normalize(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = InstallerConfig()
            cfg.install.dest_dir = "/opt/bin"
            cfg.network.api_timeout_s = 1
            save_config(cfg, path)

            raw = json.loads(path.read_text(encoding="utf-8"))
            raw["install"]["platform"] = "solaris"
            raw["network"]["download_timeout_s"] = "oops"
            raw["unknown"] = {"x": 1}
            path.write_text(json.dumps(raw), encoding="utf-8")

            loaded = load_config(path)
            self.assertEqual(loaded.install.dest_dir, "/opt/bin")
            self.assertEqual(loaded.network.api_timeout_s, 5)
            self.assertEqual(loaded.network.download_timeout_s, 180)
            self.assertIsNone(loaded.install.platform)

    def test_mistyped_values_are_coerced_or_dropped(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            raw = {
                "release": {"repo": ["x"], "strict_asset": "false", "verify_checksums": "no"},
                "install": {"dest_dir": 123, "platform": ["linux"], "binary_name": 7},
                "network": {"api_timeout_s": "45"},
            }
            path.write_text(json.dumps(raw), encoding="utf-8")

            cfg = load_config(path)
            self.assertEqual(cfg.release.repo, DEFAULT_REPO)
            self.assertIs(cfg.release.strict_asset, False)
            self.assertIs(cfg.release.verify_checksums, False)
            self.assertIsNone(cfg.install.dest_dir)
            self.assertIsNone(cfg.install.platform)
            self.assertEqual(cfg.install.binary_name, "af_ollama_plugin")
            self.assertEqual(cfg.network.api_timeout_s, 45)

    def test_boolean_strings_enable_flags(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"release": {"strict_asset": "TRUE", "verify_checksums": "maybe"}}), encoding="utf-8")

            cfg = load_config(path)
            self.assertIs(cfg.release.strict_asset, True)
            self.assertIs(cfg.release.verify_checksums, True)

    def test_invalid_json_gives_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path).release.repo, DEFAULT_REPO)

    def test_env_overrides(self):
        os.environ["LAI_BOOTSTRAP_REPO"] = "me/fork"
        os.environ["LAI_BOOTSTRAP_DEST"] = "/tmp/bin"
        cfg = load_config(Path("/tmp/lai-bootstrap-nonexistent/config.json"))
        self.assertEqual(cfg.release.repo, "me/fork")
        self.assertEqual(cfg.install.dest_dir, "/tmp/bin")


if __name__ == "__main__":
    unittest.main()
