"""
Unit tests for configuration loader.

Tests multi-layer config merging, environment variable overrides,
caching, XDG directory handling and layered .env loading.
"""

import json
import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from pmtask.core.config import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    load_config,
)
from pmtask.core.config.env import get_user_env_path, load_layered_env, merge_env_files
from pmtask.core.config.loader import (
    apply_env_overrides,
    deep_merge,
    get_default_config,
    get_xdg_config_home,
    load_json_file,
)
from pmtask.core.config.models import IdConfig, PmConfig, StorageConfig

# ==============================================================================
# Helper Functions Tests
# ==============================================================================


class TestDeepMerge:
    """Test the deep_merge helper function."""

    def test_simple_merge(self):
        assert deep_merge({"a": 1, "b": 2}, {"b": 3, "c": 4}) == {"a": 1, "b": 3, "c": 4}

    def test_nested_merge(self):
        base = {"a": 1, "b": {"x": 10, "y": 20}}
        override = {"b": {"y": 30, "z": 40}, "c": 3}
        assert deep_merge(base, override) == {"a": 1, "b": {"x": 10, "y": 30, "z": 40}, "c": 3}

    def test_override_replaces_non_dict(self):
        assert deep_merge({"a": [1, 2, 3]}, {"a": [4, 5]}) == {"a": [4, 5]}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}


class TestLoadJsonFile:
    """Test the load_json_file helper function."""

    def test_load_existing_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"storage": {"backend": "memory"}}))
        assert load_json_file(path) == {"storage": {"backend": "memory"}}

    def test_load_nonexistent_file(self, tmp_path):
        assert load_json_file(tmp_path / "missing.json") is None

    def test_load_invalid_json(self, tmp_path, caplog):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        with caplog.at_level("WARNING"):
            assert load_json_file(path) is None
        assert "Failed to parse config" in caplog.text

    def test_non_object_ignored(self, tmp_path, caplog):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with caplog.at_level("WARNING"):
            assert load_json_file(path) is None
        assert "must be an object" in caplog.text


class TestApplyEnvOverrides:
    """Test PM_* environment variable overrides."""

    def test_backend_override(self, monkeypatch):
        monkeypatch.setenv("PM_BACKEND", "MEMORY")
        result = apply_env_overrides(get_default_config())
        assert result["storage"]["backend"] == "memory"

    def test_data_dir_override(self, monkeypatch):
        monkeypatch.setenv("PM_DATA_DIR", "/srv/pm")
        result = apply_env_overrides({})
        assert result["storage"] == {"data_dir": "/srv/pm"}

    @pytest.mark.parametrize("value", ["false", "0", "no", "off", ""])
    def test_require_approval_false(self, monkeypatch, value):
        monkeypatch.setenv("PM_REQUIRE_APPROVAL", value)
        assert apply_env_overrides({})["approval"]["required"] is False

    @pytest.mark.parametrize("value", ["true", "1", "yes"])
    def test_reject_cycles_true(self, monkeypatch, value):
        monkeypatch.setenv("PM_REJECT_CYCLES", value)
        assert apply_env_overrides({})["lifecycle"]["reject_dependency_cycles"] is True

    def test_no_env_overrides(self):
        config = get_default_config()
        assert apply_env_overrides(config) == config

    def test_input_not_mutated(self, monkeypatch):
        monkeypatch.setenv("PM_BACKEND", "memory")
        config = get_default_config()
        apply_env_overrides(config)
        assert config["storage"]["backend"] == "json"


class TestGetDefaultConfig:
    def test_defaults_validate(self):
        config = PmConfig(**get_default_config())
        assert config.storage.backend == "json"
        assert config.approval.required is True
        assert config.lifecycle.reject_dependency_cycles is False
        assert config.ids.task == "TSK"


# ==============================================================================
# Paths
# ==============================================================================


class TestXdgDirectories:
    def test_get_xdg_config_home_default(self, monkeypatch):
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        assert get_xdg_config_home() == Path.home() / ".config"

    def test_get_xdg_config_home_custom(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "custom"))
        assert get_xdg_config_home() == tmp_path / "custom"

    def test_get_user_config_path(self, monkeypatch, tmp_path):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
        assert get_user_config_path() == tmp_path / "pm" / "config.json"

    def test_get_project_config_path(self, tmp_path):
        assert get_project_config_path(tmp_path) == tmp_path / ".pm.json"


# ==============================================================================
# load_config
# ==============================================================================


class TestLoadConfig:
    def test_defaults_only(self, tmp_path):
        config = load_config(tmp_path, use_cache=False)
        assert config.storage.backend == "json"
        assert config.storage.data_dir == ".pm"

    def test_precedence(self, tmp_path, monkeypatch):
        user_config = get_user_config_path()
        user_config.parent.mkdir(parents=True)
        user_config.write_text(
            json.dumps({"storage": {"data_dir": "user-data"}, "approval": {"required": False}})
        )
        (tmp_path / ".pm.json").write_text(json.dumps({"storage": {"data_dir": "project-data"}}))
        monkeypatch.setenv("PM_REJECT_CYCLES", "true")

        config = load_config(tmp_path, use_cache=False)

        assert config.storage.data_dir == "project-data"
        assert config.approval.required is False
        assert config.lifecycle.reject_dependency_cycles is True

    def test_storage_shorthand(self, tmp_path):
        (tmp_path / ".pm.json").write_text(json.dumps({"storage": "memory"}))
        assert load_config(tmp_path, use_cache=False).storage.backend == "memory"

    def test_invalid_backend_raises(self, tmp_path):
        (tmp_path / ".pm.json").write_text(json.dumps({"storage": {"backend": "sqlite"}}))
        with pytest.raises(ValidationError):
            load_config(tmp_path, use_cache=False)

    def test_cache(self, tmp_path):
        first = load_config(tmp_path)
        (tmp_path / ".pm.json").write_text(json.dumps({"storage": "memory"}))
        assert load_config(tmp_path) is first

        clear_cache()
        assert load_config(tmp_path).storage.backend == "memory"


class TestConfigModels:
    def test_id_format(self):
        ids = IdConfig()
        assert ids.format("task", 5) == "TSK-5"
        assert ids.format("rnd", 12) == "RND-12"
        assert IdConfig(separator="_").format("idea", 1) == "IDEA_1"

    def test_resolve_data_dir(self, tmp_path):
        assert StorageConfig().resolve_data_dir(tmp_path) == tmp_path / ".pm"
        absolute = tmp_path / "elsewhere"
        assert StorageConfig(data_dir=str(absolute)).resolve_data_dir(Path("/x")) == absolute


# ==============================================================================
# Layered .env
# ==============================================================================


class TestLayeredEnv:
    def test_project_env_overrides_user_env(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PM_TEST_VALUE", raising=False)
        user_env = tmp_path / "user.env"
        user_env.write_text("PM_TEST_VALUE=user\n")
        project_env = tmp_path / ".env"
        project_env.write_text("PM_TEST_VALUE=project\n")

        loaded = load_layered_env(
            project_dir=tmp_path, user_env_paths=[user_env], project_env_paths=[project_env]
        )

        assert loaded == {"PM_TEST_VALUE"}
        assert os.environ["PM_TEST_VALUE"] == "project"
        monkeypatch.delenv("PM_TEST_VALUE")

    def test_os_env_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PM_TEST_VALUE", "shell")
        project_env = tmp_path / ".env"
        project_env.write_text("PM_TEST_VALUE=project\n")

        loaded = load_layered_env(
            project_dir=tmp_path, user_env_paths=[], project_env_paths=[project_env]
        )

        assert loaded == set()
        assert os.environ["PM_TEST_VALUE"] == "shell"

    def test_missing_files_are_fine(self, tmp_path):
        assert load_layered_env(project_dir=tmp_path, user_env_paths=[tmp_path / "nope"]) == set()

    def test_local_env_overrides_project_env(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PM_TEST_VALUE", raising=False)
        (tmp_path / ".env").write_text("PM_TEST_VALUE=shared\n")
        (tmp_path / ".env.local").write_text("PM_TEST_VALUE=local\n")

        loaded = load_layered_env(project_dir=tmp_path, user_env_paths=[])

        assert loaded == {"PM_TEST_VALUE"}
        assert os.environ["PM_TEST_VALUE"] == "local"
        monkeypatch.delenv("PM_TEST_VALUE")

    def test_user_env_under_xdg_config_home(self, tmp_path):
        assert get_user_env_path() == tmp_path / "xdg" / "pm" / ".env"

    def test_merge_skips_valueless_keys(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("PM_BACKEND=memory\nPM_FLAG\n")

        assert merge_env_files([env_file, tmp_path / "missing.env"]) == {"PM_BACKEND": "memory"}
