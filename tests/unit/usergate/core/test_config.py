import pytest
from pydantic import BaseModel, SecretStr

from usergate.core.config import Config, CoreConfig
from usergate.core.config.config import _AttrView


class ApiSettings(BaseModel):
    HOST: str = "localhost"
    PORT: int = 8080
    TOKEN: SecretStr = SecretStr("abc")


class TestConfig:
    def test_config_init_empty(self):
        config = Config()
        assert isinstance(config, dict)
        assert len(config) == 0

    def test_config_init_with_list_later_entries_win(self):
        config = Config([{"A": {"x": 1, "y": 2}}, {"A": {"y": 3}}])
        assert config["A"] == {"x": 1, "y": 3}

    def test_config_attr_access(self):
        config = Config({"SECTION": {"NESTED": {"KEY": "value"}}})
        assert isinstance(config.SECTION, _AttrView)
        assert config.SECTION.NESTED.KEY == "value"
        assert config.SECTION["NESTED"].KEY == "value"

    def test_config_attr_access_missing(self):
        config = Config()
        with pytest.raises(AttributeError, match="No such attribute: missing"):
            config.missing

    def test_native_types_are_kept(self):
        config = Config({"API": ApiSettings().model_dump()})
        assert config.API.PORT == 8080
        assert isinstance(config.API.PORT, int)

    def test_secret_fields_are_masked(self):
        config = Config({"API": ApiSettings().model_dump()})
        assert config.API.TOKEN == Config.MASK
        assert config.get_secret("API", "TOKEN") == "abc"
        assert config.secret_paths() == ["API.TOKEN"]

    def test_secret_detected_from_model_instance(self):
        config = Config(ApiSettings())
        assert config["TOKEN"] == Config.MASK
        assert config.get_secret("TOKEN") == "abc"

    def test_env_override_coerces_values(self, monkeypatch):
        monkeypatch.setenv("API__PORT", "9090")
        monkeypatch.setenv("API__HOST", "example.com")
        config = Config({"API": ApiSettings().model_dump()})
        assert config.API.PORT == 9090
        assert config.API.HOST == "example.com"

    def test_env_override_of_secret_stays_secret(self, monkeypatch):
        monkeypatch.setenv("API__TOKEN", "from-env")
        config = Config({"API": ApiSettings().model_dump()})
        assert config.API.TOKEN == Config.MASK
        assert config.get_secret("API", "TOKEN") == "from-env"

    def test_env_override_ignores_unknown_sections(self, monkeypatch):
        monkeypatch.setenv("UNRELATED__VALUE", "1")
        config = Config({"API": ApiSettings().model_dump()})
        assert "UNRELATED" not in config

    def test_load_precedence(self, monkeypatch):
        monkeypatch.setenv("API__PORT", "9000")
        monkeypatch.setenv("API__HOST", "env-host")
        config = Config.load(
            defaults={"API": ApiSettings().model_dump()},
            overrides={"API": {"HOST": "override-host"}},
        )
        assert config.API.PORT == 9000
        assert config.API.HOST == "override-host"

    def test_load_override_of_secret_stays_secret(self):
        config = Config.load(defaults={"API": ApiSettings().model_dump()}, overrides={"API": {"TOKEN": "new"}})
        assert config.API.TOKEN == Config.MASK
        assert config.get_secret("API", "TOKEN") == "new"


class TestCoreConfig:
    def test_core_config_has_default_sections(self):
        config = CoreConfig()
        assert "USERGATE_DIR_PATHS" in config
        assert "USERGATE_LOGGER" in config
        assert not config.USERGATE_DIR_PATHS.ROOT.startswith("~")

    def test_core_config_extra_settings(self):
        config = CoreConfig({"EXTRA": {"KEY": "value"}})
        assert config.EXTRA.KEY == "value"
        assert "USERGATE_DIR_PATHS" in config
