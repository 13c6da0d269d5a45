"""
core/tests/test_config_service.py

Layer precedence and typed sections of ConfigService.
"""
from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from core.config.config_service import ConfigService, PlacementConfig


class TestConfigService(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.missing_user_ini = self.tmp / "absent.ini"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_defaults_are_typed(self) -> None:
        cfg = ConfigService(user_ini=self.missing_user_ini, environ={})
        self.assertEqual(cfg.artwork.canvas_width, 800)
        self.assertEqual(cfg.artwork.signature_font_size, 64)
        self.assertEqual(cfg.artwork.initials_font_size, 48)
        self.assertAlmostEqual(cfg.artwork.pen_max_width, 3.0)
        self.assertEqual(cfg.placement, PlacementConfig())
        self.assertIsInstance(cfg.storage.database, Path)

    def test_env_overrides_defaults_ini(self) -> None:
        cfg = ConfigService(user_ini=self.missing_user_ini,
                            environ={"ESIGN_PLACEMENT__DATE_FONT_SIZE": "14"})
        self.assertEqual(cfg.placement.date_font_size, 14)
        self.assertEqual(cfg.meta_source("Placement", "date_font_size")["layer"], "env")

    def test_user_ini_wins_over_env(self) -> None:
        user_ini = self.tmp / "config.ini"
        user_ini.write_text("[Artwork]\ntext_padding = 8\n", encoding="utf-8")
        cfg = ConfigService(user_ini=user_ini, environ={"ESIGN_ARTWORK__TEXT_PADDING": "30"})
        self.assertEqual(cfg.artwork.text_padding, 8)
        self.assertEqual(cfg.meta_source("Artwork", "text_padding")["layer"], "user")

    def test_get_with_cast(self) -> None:
        cfg = ConfigService(user_ini=self.missing_user_ini, environ={})
        self.assertEqual(cfg.get("Artwork", "canvas_height", cast=int), 220)
        self.assertIsNone(cfg.get("Artwork", "no_such_key"))

    def test_unprefixed_env_is_ignored(self) -> None:
        cfg = ConfigService(user_ini=self.missing_user_ini,
                            environ={"PLACEMENT__DATE_FONT_SIZE": "99", "ESIGN_NOSEPARATOR": "1"})
        self.assertEqual(cfg.placement.date_font_size, 12)


if __name__ == "__main__":
    unittest.main()
