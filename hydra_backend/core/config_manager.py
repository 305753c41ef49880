import yaml
import os
from typing import Dict, Any, List, Optional

from .logging import logger
from .models import Settings
from ..utils.deep_merge import deep_merge


DEFAULT_CONFIG: Dict[str, Any] = {
    "app": {
        "name": "ClaudeHydra",
        "version": "4.0.0",
    },
    "anthropic": {
        "base_url": "https://api.anthropic.com/v1",
        "api_version": "2023-06-01",
        "api_key_name": "ANTHROPIC_API_KEY",
        "default_max_tokens": 4096,
        "stream_timeout": 300.0,
        "request_timeout": 120.0,
        "connect_timeout": 10.0,
        "max_line_length": 1024 * 1024,
    },
    "settings": {
        "theme": "dark",
        "language": "en",
        "default_model": "claude-sonnet-4-5-20250929",
        "auto_start": False,
    },
    "credentials": ["ANTHROPIC_API_KEY", "GOOGLE_API_KEY"],
    "models": [
        {"id": "claude-opus-4-6", "name": "Claude Opus 4.6", "tier": "Commander"},
        {"id": "claude-sonnet-4-5-20250929", "name": "Claude Sonnet 4.5", "tier": "Coordinator"},
        {"id": "claude-haiku-4-5-20251001", "name": "Claude Haiku 4.5", "tier": "Executor"},
    ],
}


class ConfigManager:
    def __init__(self, config_dir: Optional[str] = None, environ: Optional[Dict[str, str]] = None):
        self.environ = os.environ if environ is None else environ
        self.config_dir = config_dir or self.environ.get("HYDRA_CONFIG_DIR", "config")
        self.config_path = os.path.join(self.config_dir, "app.yaml")
        self.config = self._load_config()

        logger.info("Configuration manager initialized", config={
            "config_dir": self.config_dir,
            "config_file_exists": os.path.exists(self.config_path),
        })

    def _load_config(self) -> Dict[str, Any]:
        overrides: Dict[str, Any] = {}
        try:
            with open(self.config_path, 'r') as f:
                overrides = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.warning(f"Configuration file not found, using defaults: {self.config_path}", config={
                "error_type": "file_not_found",
                "file_path": self.config_path,
            })
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML file: {e}", config={
                "error_type": "yaml_parse_error",
                "file_path": self.config_path,
            })

        if not isinstance(overrides, dict):
            logger.warning("Configuration file does not contain a mapping, using defaults", config={
                "file_path": self.config_path,
            })
            overrides = {}

        return deep_merge(DEFAULT_CONFIG, overrides)

    @property
    def app_name(self) -> str:
        return self.config["app"]["name"]

    @property
    def app_version(self) -> str:
        return str(self.config["app"]["version"])

    @property
    def anthropic(self) -> Dict[str, Any]:
        return self.config["anthropic"]

    @property
    def default_model(self) -> str:
        return self.config["settings"]["default_model"]

    def default_settings(self) -> Settings:
        section = self.config["settings"]
        return Settings(
            theme=section["theme"],
            language=section["language"],
            default_model=section["default_model"],
            auto_start=bool(section["auto_start"]),
        )

    def models(self) -> List[Dict[str, Any]]:
        return list(self.config["models"])

    def credentials_from_env(self) -> Dict[str, str]:
        """Credential names listed in config that are set in the environment."""
        credentials = {}
        for name in self.config["credentials"]:
            value = self.environ.get(name)
            if value is not None:
                credentials[name] = value
        return credentials

    def reload_config(self):
        logger.info("Reloading configuration", config={
            "operation": "reload_config",
            "config_dir": self.config_dir,
        })
        self.config = self._load_config()
