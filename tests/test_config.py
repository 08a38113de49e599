"""Tests for configuration loading."""

import os

import pytest

from existential_annotator.config import (
    DEFAULT_EXTERNAL_PROTOCOLS,
    AnnotatorConfig,
    load_config,
)
from existential_annotator.exceptions import ConfigurationError, InvalidConfigError


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Keep user and project config files and ANNOTATOR_* vars out of tests."""
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(project)
    for key in list(os.environ):
        if key.startswith("ANNOTATOR_"):
            monkeypatch.delenv(key)
    return project


class TestAnnotatorConfig:
    """Test defaults and validation."""

    def test_defaults(self):
        config = AnnotatorConfig()
        assert config.protocol_names == frozenset(DEFAULT_EXTERNAL_PROTOCOLS)
        assert config.extensions == [".swift"]
        assert config.dry_run is False
        assert config.workers is None

    def test_extra_protocols_extend_defaults(self):
        config = AnnotatorConfig(extra_protocols=["AnalyticsTracking"])
        assert "AnalyticsTracking" in config.protocol_names
        assert "NSCoding" in config.protocol_names

    def test_allow_list_replaces_defaults(self):
        config = AnnotatorConfig(allow_list=["Routing"])
        assert config.protocol_names == frozenset({"Routing"})

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"allow_list": ["Not A Name"]},
            {"extra_protocols": [""]},
            {"extensions": []},
            {"extensions": ["swift"]},
            {"workers": 0},
            {"max_file_size_mb": 0},
            {"verbosity": "loud"},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(InvalidConfigError):
            AnnotatorConfig(**kwargs)

    def test_max_file_size_bytes(self):
        assert AnnotatorConfig(max_file_size_mb=1.0).max_file_size_bytes == 1024 * 1024


class TestLoadConfig:
    """Test source merging."""

    def test_no_sources(self):
        assert load_config() == AnnotatorConfig()

    def test_project_file(self, isolated):
        (isolated / "existential-annotator.toml").write_text(
            'extra_protocols = ["Routing"]\nworkers = 2\n'
        )
        config = load_config()
        assert "Routing" in config.protocol_names
        assert config.workers == 2

    def test_section_in_shared_file(self, tmp_path):
        path = tmp_path / "tools.toml"
        path.write_text('[existential-annotator]\nallow_list = ["Store"]\n')
        assert load_config(config_file=path).protocol_names == frozenset({"Store"})

    def test_explicit_file_beats_project_file(self, isolated, tmp_path):
        (isolated / "existential-annotator.toml").write_text("workers = 2\n")
        explicit = tmp_path / "explicit.toml"
        explicit.write_text("workers = 3\n")
        assert load_config(config_file=explicit).workers == 3

    def test_env_beats_files(self, isolated, monkeypatch):
        (isolated / "existential-annotator.toml").write_text("workers = 2\n")
        monkeypatch.setenv("ANNOTATOR_WORKERS", "5")
        monkeypatch.setenv("ANNOTATOR_EXTRA_PROTOCOLS", "Routing, Tracking")
        monkeypatch.setenv("ANNOTATOR_DRY_RUN", "yes")
        config = load_config()
        assert config.workers == 5
        assert config.extra_protocols == ["Routing", "Tracking"]
        assert config.dry_run is True

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("ANNOTATOR_WORKERS", "5")
        assert load_config(workers=1).workers == 1

    def test_none_overrides_ignored(self, monkeypatch):
        monkeypatch.setenv("ANNOTATOR_WORKERS", "5")
        assert load_config(workers=None).workers == 5

    def test_verbosity_flags(self):
        assert load_config(verbose=True).verbosity == "verbose"
        assert load_config(quiet=True).verbosity == "quiet"
        assert load_config(verbose=False, quiet=False).verbosity == "normal"

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config(config_file=tmp_path / "missing.toml")

    def test_unknown_key(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("colour = true\n")
        with pytest.raises(ConfigurationError):
            load_config(config_file=path)

    def test_malformed_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("workers = \n")
        with pytest.raises(ConfigurationError):
            load_config(config_file=path)

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("ANNOTATOR_DRY_RUN", "maybe")
        with pytest.raises(InvalidConfigError):
            load_config()
