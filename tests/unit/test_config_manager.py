"""
Tests for ConfigManager
"""
from pathlib import Path

from hydra_backend.core.config_manager import ConfigManager


SHIPPED_CONFIG_DIR = Path(__file__).resolve().parents[2] / "config"


class TestConfigManager:

    def test_defaults_without_file(self, tmp_path):
        config_manager = ConfigManager(config_dir=str(tmp_path), environ={})

        settings = config_manager.default_settings()
        assert settings.theme == "dark"
        assert settings.language == "en"
        assert settings.default_model == "claude-sonnet-4-5-20250929"
        assert settings.auto_start is False
        assert config_manager.app_name == "ClaudeHydra"
        assert config_manager.anthropic["api_version"] == "2023-06-01"
        assert [model["tier"] for model in config_manager.models()] == ["Commander", "Coordinator", "Executor"]

    def test_file_overrides_are_merged(self, tmp_path):
        (tmp_path / "app.yaml").write_text(
            "settings:\n"
            "  theme: light\n"
            "anthropic:\n"
            "  default_max_tokens: 1024\n"
        )

        config_manager = ConfigManager(config_dir=str(tmp_path), environ={})

        assert config_manager.default_settings().theme == "light"
        assert config_manager.default_settings().language == "en"
        assert config_manager.anthropic["default_max_tokens"] == 1024
        assert config_manager.anthropic["base_url"] == "https://api.anthropic.com/v1"

    def test_non_mapping_file_is_ignored(self, tmp_path):
        (tmp_path / "app.yaml").write_text("- just\n- a list\n")

        config_manager = ConfigManager(config_dir=str(tmp_path), environ={})

        assert config_manager.app_name == "ClaudeHydra"

    def test_invalid_yaml_is_ignored(self, tmp_path):
        (tmp_path / "app.yaml").write_text("settings: [unclosed\n")

        config_manager = ConfigManager(config_dir=str(tmp_path), environ={})

        assert config_manager.default_settings().theme == "dark"

    def test_config_dir_from_environment(self, tmp_path):
        (tmp_path / "app.yaml").write_text("app:\n  name: Custom\n")

        config_manager = ConfigManager(environ={"HYDRA_CONFIG_DIR": str(tmp_path)})

        assert config_manager.app_name == "Custom"

    def test_credentials_from_environment(self, tmp_path):
        environ = {"ANTHROPIC_API_KEY": "a-key", "GOOGLE_API_KEY": "", "UNRELATED": "x"}

        config_manager = ConfigManager(config_dir=str(tmp_path), environ=environ)

        assert config_manager.credentials_from_env() == {"ANTHROPIC_API_KEY": "a-key", "GOOGLE_API_KEY": ""}

    def test_unset_credentials_are_skipped(self, tmp_path):
        config_manager = ConfigManager(config_dir=str(tmp_path), environ={"UNRELATED": "x"})

        assert config_manager.credentials_from_env() == {}

    def test_reload_picks_up_changes(self, tmp_path):
        config_file = tmp_path / "app.yaml"
        config_file.write_text("settings:\n  language: en\n")
        config_manager = ConfigManager(config_dir=str(tmp_path), environ={})

        config_file.write_text("settings:\n  language: pl\n")
        config_manager.reload_config()

        assert config_manager.default_settings().language == "pl"

    def test_shipped_config_file(self):
        config_manager = ConfigManager(config_dir=str(SHIPPED_CONFIG_DIR), environ={})

        assert config_manager.app_version == "4.0.0"
        assert len(config_manager.models()) == 3
