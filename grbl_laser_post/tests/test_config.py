"""Tests for the post-processor config loader.

Validates that:
    - The shipped post.yaml loads and equals the built-in defaults
    - Partial files fall back to defaults for missing keys
    - Invalid values are rejected with ConfigError, never silently kept
"""

from __future__ import annotations

from pathlib import Path

import pytest

from grbl_laser_post.configs.loader import (
    ArcsConfig,
    ConfigError,
    FeedsConfig,
    LaserConfig,
    PostConfig,
    config_from_dict,
    load_config,
)


def write_yaml(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "post.yaml"
    path.write_text(text)
    return path


# ---------------------------------------------------------------------------
# Default file
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_shipped_file_matches_defaults(self) -> None:
        assert load_config() == PostConfig()

    def test_default_values(self) -> None:
        cfg = PostConfig()
        assert cfg.metric is True
        assert cfg.feeds == FeedsConfig(rapid_xy=3000.0, rapid_z=500.0)
        assert cfg.laser.off == "M5"
        assert cfg.arcs.unsupported_plane == "error"
        assert cfg.finish_position.x is None
        assert cfg.finish_position.y is None

    def test_frozen(self) -> None:
        cfg = PostConfig()
        with pytest.raises(AttributeError):
            cfg.units = "inch"  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Loading from files
# ---------------------------------------------------------------------------


class TestLoadConfig:
    def test_partial_file(self, tmp_path: Path) -> None:
        path = write_yaml(
            tmp_path,
            "units: inch\n"
            "home_on_end: true\n"
            "finish_position:\n"
            "  x: 0\n"
            "laser:\n"
            "  etch: M4 S150\n",
        )
        cfg = load_config(path)
        assert cfg.metric is False
        assert cfg.home_on_end is True
        assert cfg.home_on_start is False
        assert cfg.finish_position.x == 0.0
        assert cfg.finish_position.y is None
        assert cfg.laser == LaserConfig(etch="M4 S150")
        assert cfg.feeds == FeedsConfig()

    def test_string_path(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "arcs:\n  unsupported_plane: linearize\n")
        cfg = load_config(str(path))
        assert cfg.arcs == ArcsConfig(unsupported_plane="linearize")

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "absent.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "")
        with pytest.raises(ConfigError, match="Empty"):
            load_config(path)

    def test_non_mapping_root(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "- mm\n- inch\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_quoted_boolean_rejected(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "home_on_end: 'yes'\n")
        with pytest.raises(ConfigError, match="home_on_end"):
            load_config(path)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_bad_units(self) -> None:
        with pytest.raises(ConfigError, match="units"):
            config_from_dict({"units": "cm"})

    @pytest.mark.parametrize("key", ["rapid_xy", "rapid_z"])
    def test_non_positive_feed(self, key: str) -> None:
        with pytest.raises(ConfigError, match=f"feeds.{key}"):
            config_from_dict({"feeds": {key: 0}})

    def test_non_numeric_feed(self) -> None:
        with pytest.raises(ConfigError, match="Invalid configuration value"):
            config_from_dict({"feeds": {"rapid_xy": "fast"}})

    def test_empty_laser_command(self) -> None:
        with pytest.raises(ConfigError, match="laser.through"):
            config_from_dict({"laser": {"through": "  "}})

    @pytest.mark.parametrize(
        ("data", "label"),
        [
            ({"laser": {"through": None}}, "laser.through"),
            ({"laser": {"off": 5}}, "laser.off"),
            ({"units": None}, "units"),
            ({"arcs": {"unsupported_plane": None}}, "arcs.unsupported_plane"),
        ],
    )
    def test_non_string_rejected(self, data: dict, label: str) -> None:
        with pytest.raises(ConfigError, match=f"{label} must be a string"):
            config_from_dict(data)

    def test_null_laser_command_in_file(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path, "laser:\n  etch: null\n")
        with pytest.raises(ConfigError, match="laser.etch"):
            load_config(path)

    def test_bad_tolerance(self) -> None:
        with pytest.raises(ConfigError, match="tolerance_mm"):
            config_from_dict({"arcs": {"tolerance_mm": -0.1}})

    def test_bad_plane_policy(self) -> None:
        with pytest.raises(ConfigError, match="unsupported_plane"):
            config_from_dict({"arcs": {"unsupported_plane": "ignore"}})

    def test_section_must_be_mapping(self) -> None:
        with pytest.raises(ConfigError, match="'feeds' must be a mapping"):
            config_from_dict({"feeds": [3000, 500]})

    def test_direct_construction_validated(self) -> None:
        with pytest.raises(ConfigError):
            PostConfig(feeds=FeedsConfig(rapid_xy=-1.0))
