"""Tests for layered configuration loading."""

import pytest
import yaml
from converge.config import load_engine_config
from converge.config import manager
from converge.utils.errors import ConfigError


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    """No user config, and a working directory without project config."""
    monkeypatch.setattr(manager, "get_user_config_path", lambda: tmp_path / "home" / "config.yaml")
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data))
    return path


class TestLoadEngineConfig:
    """Test config layering and validation."""
    
    def test_defaults(self, isolated):
        config = load_engine_config()
        
        assert config["state"]["path"] == "converge.state.json"
        assert config["executor"]["parallelism"] == 4
        assert config["executor"]["call_timeout"] is None
        assert config["executor"]["refresh"] is False
        assert config["provider"]["class"] == "converge.providers.simulated:SimulatedProvider"
    
    def test_project_overrides_user(self, isolated):
        _write(isolated / "home" / "config.yaml", {"executor": {"parallelism": 2, "call_timeout": 30}})
        _write(isolated / ".converge" / "config.yaml", {"executor": {"parallelism": 8}})
        
        config = load_engine_config()
        
        assert config["executor"]["parallelism"] == 8
        assert config["executor"]["call_timeout"] == 30
        assert config["executor"]["refresh"] is False
    
    def test_explicit_file_replaces_project(self, isolated):
        _write(isolated / ".converge" / "config.yaml", {"state": {"path": "project.json"}})
        explicit = _write(isolated / "ci.yaml", {"state": {"path": "ci.json"}})
        
        config = load_engine_config(str(explicit))
        
        assert config["state"]["path"] == "ci.json"
    
    def test_missing_explicit_file(self, isolated):
        with pytest.raises(ConfigError, match="not found"):
            load_engine_config(str(isolated / "missing.yaml"))
    
    def test_invalid_yaml(self, isolated):
        path = isolated / "bad.yaml"
        path.write_text("executor: [unclosed\n")
        
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_engine_config(str(path))
    
    @pytest.mark.parametrize("override, message", [
        ({"executor": {"parallelism": 0}}, "parallelism"),
        ({"executor": {"parallelism": True}}, "parallelism"),
        ({"executor": {"call_timeout": -1}}, "call_timeout"),
        ({"executor": {"refresh": "yes"}}, "refresh"),
        ({"provider": {"class": "nocolon"}}, "provider.class"),
        ({"logging": {"level": "LOUD"}}, "logging.level"),
        ({"state": "file.json"}, "state is not a dict"),
    ])
    def test_invalid_values(self, isolated, override, message):
        path = _write(isolated / "config.yaml", override)
        
        with pytest.raises(ConfigError, match=message):
            load_engine_config(str(path))
