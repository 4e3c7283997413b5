"""
Unit tests for the configuration singleton.
"""

import pytest

from streambench.config import manager
from streambench.config.manager import (
    clear_config_cache,
    get_config,
    get_config_info,
    is_config_loaded,
    set_config_path,
)
from streambench.validation import ValidationError


@pytest.mark.unit
class TestConfigManager:
    def test_loads_custom_file(self, config_files):
        set_config_path(config_files["config"])
        config = get_config()

        assert config.max_streams == 12
        assert config.media.sweep_orphans is False
        assert is_config_loaded()

    def test_config_is_cached(self, config_files):
        set_config_path(config_files["config"])
        assert get_config() is get_config()

    def test_clear_cache_forces_reload(self, config_files):
        set_config_path(config_files["config"])
        first = get_config()
        clear_config_cache()
        assert not is_config_loaded()
        assert get_config() is not first

    def test_missing_explicit_file_raises(self, temp_dir):
        set_config_path(temp_dir / "missing.toml")
        with pytest.raises(FileNotFoundError):
            get_config()

    def test_missing_default_file_uses_defaults(self, temp_dir, monkeypatch):
        missing = temp_dir / "conf" / "config.toml"
        monkeypatch.setattr(manager, "_DEFAULT_CONFIG_FILE_PATH", missing)
        monkeypatch.setattr(manager, "_CONFIG_FILE_PATH", missing)
        config = get_config()
        assert config.max_streams == 100

    def test_invalid_file_raises_validation_error(self, temp_dir):
        bad = temp_dir / "bad.toml"
        bad.write_text('[benchmark]\nmax_streams = 0\n')
        set_config_path(bad)
        with pytest.raises(ValidationError):
            get_config()

    def test_config_info(self, config_files):
        set_config_path(config_files["config"])
        info = get_config_info()
        assert info["config_path"] == str(config_files["config"])
        assert info["config_loaded"] is False

    def test_shipped_config_matches_defaults(self):
        """conf/config.toml at the repository root loads cleanly."""
        config = get_config()
        assert config.port_start == 8090
        assert config.timing.sample_interval == 10.0
