# tests/test_config.py
"""Tests for ClientConfig loading."""

import pytest

from apfed import __version__
from apfed.config import CONFIG_ENV_VAR, ClientConfig


class TestClientConfig:
    """Test configuration sources."""

    def test_defaults(self):
        config = ClientConfig()
        assert config.timeout == 30.0
        assert config.user_agent == f"apfed/{__version__}"
        assert config.page_limit == 5
        assert config.strict_headers is True

    def test_from_yaml_partial(self):
        config = ClientConfig.from_yaml("timeout: 5\npage_limit: 2\n")
        assert config.timeout == 5
        assert config.page_limit == 2
        assert config.strict_headers is True

    def test_empty_yaml_is_defaults(self):
        assert ClientConfig.from_yaml("") == ClientConfig()

    def test_unknown_key(self):
        with pytest.raises(ValueError, match="Unknown config keys: verbose"):
            ClientConfig.from_yaml("verbose: true\n")

    def test_not_a_mapping(self):
        with pytest.raises(ValueError, match="mapping"):
            ClientConfig.from_yaml("- a\n- b\n")

    def test_from_file(self, tmp_path):
        path = tmp_path / "apfed.yaml"
        path.write_text('user_agent: "myserver/1.0"\nstrict_headers: false\n')

        config = ClientConfig.from_file(path)
        assert config.user_agent == "myserver/1.0"
        assert config.strict_headers is False

    def test_load_explicit_path(self, tmp_path, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        path = tmp_path / "apfed.yaml"
        path.write_text("page_limit: 9\n")
        assert ClientConfig.load(str(path)).page_limit == 9

    def test_load_from_environment(self, tmp_path, monkeypatch):
        path = tmp_path / "env.yaml"
        path.write_text("timeout: 3\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert ClientConfig.load().timeout == 3

    def test_load_defaults(self, monkeypatch):
        monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
        assert ClientConfig.load() == ClientConfig()
