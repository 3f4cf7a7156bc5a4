"""
Tests for dashprint/config.py - capture configuration and data model.
"""

import dataclasses
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

import pytest

from dashprint.config import (
    EXCLUDED_PANEL_TYPES,
    CaptureConfig,
    HeightEstimate,
    PanelGeometry,
    load_config,
)
from dashprint.errors import ConfigError


class TestCaptureConfig:
    """Tests for CaptureConfig defaults and validation."""

    def test_defaults(self):
        config = CaptureConfig()
        assert config.width_px == 1200
        assert config.height_override_px == 'auto'
        assert config.auto_height is True
        assert config.expand_panels is True
        assert config.expand_tables is True
        assert config.check_queries is False
        assert config.debug_mode is False
        assert config.excluded_panel_types == EXCLUDED_PANEL_TYPES

    def test_immutable(self):
        """Config cannot be changed once built."""
        config = CaptureConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.width_px = 800

    def test_height_override(self):
        config = CaptureConfig(height_override_px=1080)
        assert config.auto_height is False

    @pytest.mark.parametrize("override", [0, -5, "tall", True])
    def test_invalid_height_override(self, override):
        with pytest.raises(ConfigError):
            CaptureConfig(height_override_px=override)

    def test_invalid_width(self):
        with pytest.raises(ConfigError):
            CaptureConfig(width_px=0)

    def test_invalid_poll_interval(self):
        with pytest.raises(ConfigError):
            CaptureConfig(poll_interval=0)

    def test_panel_types_become_tuples(self):
        config = CaptureConfig(excluded_panel_types=['text'], container_panel_types=['row'])
        assert config.excluded_panel_types == ('text',)
        assert config.container_panel_types == ('row',)
        hash(config)


class TestFromMapping:
    """Tests for CaptureConfig.from_mapping."""

    def test_auto_string(self):
        config = CaptureConfig.from_mapping({"height_override_px": "AUTO"})
        assert config.height_override_px == 'auto'

    def test_numeric_string(self):
        config = CaptureConfig.from_mapping({"height_override_px": "1080", "width_px": 1600})
        assert config.height_override_px == 1080
        assert config.width_px == 1600

    def test_bad_string(self):
        with pytest.raises(ConfigError):
            CaptureConfig.from_mapping({"height_override_px": "tall"})

    def test_unknown_key(self):
        with pytest.raises(ConfigError, match="pdf_width"):
            CaptureConfig.from_mapping({"pdf_width": 1200})


class TestLoadConfig:
    """Tests for load_config YAML loading."""

    def test_load(self, tmp_path):
        path = tmp_path / "capture.yaml"
        path.write_text(
            "width_px: 1600\n"
            "height_override_px: auto\n"
            "check_queries: true\n"
            "max_single_query_time: 30\n"
            "debug_dir: out/debug\n"
        )
        config = load_config(path)
        assert config.width_px == 1600
        assert config.auto_height
        assert config.check_queries is True
        assert config.max_single_query_time == 30
        assert config.debug_dir == Path("out/debug")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == CaptureConfig()

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- 1\n- 2\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")


class TestDataModel:

    def test_panel_bottom(self):
        panel = PanelGeometry(top=120, left=0, width=600, height=300)
        assert panel.bottom == 420

    def test_fallback_estimate_not_trustworthy(self):
        """
        The viewport fallback is never trusted, even though its height is
        always at least 1600 and so above the 100px floor. A guessed height
        gets fixed-step scrolling instead of a traversal sized to the guess.
        """
        assert not HeightEstimate(1600, "viewport_fallback").trustworthy

    def test_measured_estimate_trustworthy(self):
        assert HeightEstimate(1090, "panel_geometry").trustworthy
        assert not HeightEstimate(80, "container_rect").trustworthy
