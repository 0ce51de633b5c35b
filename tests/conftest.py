import json

import pytest

import config_manager
import debug_logging
import paths


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Points the config file and command log into tmp_path and drops the cached config."""
    config_path = tmp_path / "config.json"
    monkeypatch.setattr(paths, "USER_CONFIG_FILE_PATH", str(config_path))
    monkeypatch.setattr(paths, "COMMAND_LOG_FILE_PATH", str(tmp_path / "commands.log"))
    config_manager.reset_cache()
    debug_logging.set_debug_mode(False)
    yield config_path
    config_manager.reset_cache()


@pytest.fixture
def write_config(isolated_config):
    def _write(settings: dict):
        isolated_config.write_text(json.dumps(settings))
        config_manager.reset_cache()
        return isolated_config
    return _write
