"""Tests for icon font compilation and the rendered CSS/HTML assets."""

import os
import sys
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from fontTools.ttLib import TTFont

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from font import (
    FontConfig,
    font_revision,
    format_version,
    generate_fonts,
    start_font_generation,
)
from meta import ProjectMetadata
from tests.helpers import GEAR_SVG, VALVE_SVG, write_templates


class TestFormatVersion(unittest.TestCase):

    def test_full_is_verbatim(self):
        self.assertEqual(format_version("1.2.3-beta", "full"), "1.2.3-beta")

    def test_major_minor(self):
        self.assertEqual(format_version("1.2.3", "major_minor"), "1.2")
        self.assertEqual(format_version("4", "major_minor"), "4.0")

    def test_unknown_format(self):
        with self.assertRaises(ValueError):
            format_version("1.2.3", "patch")

    def test_font_revision(self):
        self.assertEqual(font_revision("1.2.3"), 1.2)


class TestGenerateFonts(unittest.TestCase):

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        root = Path(self.temp_dir.name)
        self.input_dir = root / "lib"
        self.output_dir = root / "dist"
        self.input_dir.mkdir()
        self.output_dir.mkdir()
        (self.input_dir / "gear.svg").write_text(GEAR_SVG)
        (self.input_dir / "valve.svg").write_text(VALVE_SVG)
        self.templates = write_templates(root / "templates")
        self.codepoints = {"gear": 60000, "valve": 60001}
        self.metadata = ProjectMetadata("1.2.3", "Plant icons")

    def tearDown(self):
        self.temp_dir.cleanup()

    def _generate(self, **overrides):
        config = FontConfig(templates=self.templates, **overrides)
        return generate_fonts(
            self.input_dir, self.output_dir, self.codepoints, self.metadata, config
        )

    def test_glyphs_are_addressed_by_codepoint(self):
        result = self._generate()
        self.assertTrue(result.ok, result.error)

        font = TTFont(self.output_dir / "industricon.ttf")
        cmap = font.getBestCmap()
        self.assertEqual(cmap[60000], "gear")
        self.assertEqual(cmap[60001], "valve")
        self.assertGreater(font["glyf"]["gear"].numberOfContours, 0)
        self.assertEqual(font["hmtx"]["gear"][0], 1000)

    def test_name_table_carries_version_and_description(self):
        self._generate(version_format="major_minor")
        font = TTFont(self.output_dir / "industricon.ttf")

        self.assertEqual(font["name"].getDebugName(5), "Version 1.2")
        self.assertEqual(font["name"].getDebugName(10), "Plant icons")
        self.assertEqual(font["name"].getDebugName(1), "industricon")

    def test_css_and_html_are_rendered(self):
        result = self._generate()

        css = (self.output_dir / "industricon.css").read_text()
        html = (self.output_dir / "industricon.html").read_text()
        self.assertIn('.industricon-gear::before { content: "\\ea60"; }', css)
        self.assertIn("./industricon.ttf?", css)
        self.assertIn("industricon 1.2.3", html)
        self.assertIn('class="industricon-valve"', html)
        self.assertEqual(
            sorted(p.name for p in result.outputs),
            ["industricon.css", "industricon.html", "industricon.ttf"],
        )

    def test_woff_output(self):
        result = self._generate(font_types=("ttf", "woff"))
        self.assertTrue((self.output_dir / "industricon.woff").exists())
        self.assertEqual(TTFont(self.output_dir / "industricon.woff").flavor, "woff")
        self.assertIn(self.output_dir / "industricon.woff", result.outputs)

    def test_icons_without_codepoint_are_skipped(self):
        del self.codepoints["valve"]
        with self.assertLogs(level="WARNING"):
            result = self._generate()
        self.assertTrue(result.ok)
        self.assertNotIn(60001, TTFont(self.output_dir / "industricon.ttf").getBestCmap())

    def test_failure_is_reported_not_raised(self):
        (self.input_dir / "gear.svg").write_text(
            '<svg xmlns="http://www.w3.org/2000/svg"><path d="M0 0h1v1z"/></svg>'
        )
        with self.assertLogs(level="ERROR"):
            result = self._generate()
        self.assertFalse(result.ok)
        self.assertIsNotNone(result.error)

    def test_runs_in_background(self):
        config = FontConfig(templates=self.templates)
        with ThreadPoolExecutor(max_workers=1) as executor:
            future = start_font_generation(
                executor,
                self.input_dir,
                self.output_dir,
                self.codepoints,
                self.metadata,
                config,
            )
            self.assertTrue(future.result().ok)


class TestFontConfig(unittest.TestCase):

    def test_requires_templates_for_assets(self):
        with self.assertRaises(ValueError):
            FontConfig()

    def test_rejects_unknown_version_format(self):
        with self.assertRaises(ValueError):
            FontConfig(asset_types=(), version_format="latest")


if __name__ == "__main__":
    unittest.main()
