from typing import Dict, Any, List

from ..core.config_manager import ConfigManager
from ..core.models import ModelInfo
from ..core.state_store import StateStore


HEALTH_PROVIDERS = (
    ("anthropic", "ANTHROPIC_API_KEY"),
    ("google", "GOOGLE_API_KEY"),
)


class ModelService:
    """Static model catalogue and service health reporting."""

    def __init__(self, config_manager: ConfigManager, state_store: StateStore):
        self.config_manager = config_manager
        self.state_store = state_store

    def list_models(self) -> List[ModelInfo]:
        return [
            ModelInfo(
                id=model["id"],
                name=model["name"],
                tier=model["tier"],
                provider=model.get("provider", "anthropic"),
                available=bool(model.get("available", True)),
            )
            for model in self.config_manager.models()
        ]

    def health(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "version": self.config_manager.app_version,
            "app": self.config_manager.app_name,
            "uptime_seconds": self.state_store.uptime_seconds(),
            "providers": [
                {"name": name, "available": self.state_store.has_credential(credential)}
                for name, credential in HEALTH_PROVIDERS
            ],
        }
