import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from dotenv import load_dotenv

from .errors import ConfigurationError

CONFIG_PATH = Path("config.json")
ENV_OVERRIDE_KEY = "REPAIR_PLANNER_ENV_OVERRIDES_CONFIG"
ENV_OVERRIDE_TRUE = {"1", "true", "yes", "on"}

logger = logging.getLogger(__name__)


class EndpointConfig(BaseModel):
    base_url: str
    model_id: str

    model_config = {"protected_namespaces": ()}


class AppSettings(BaseModel):
    generation_endpoint: EndpointConfig = Field(
        default_factory=lambda: EndpointConfig(base_url="http://127.0.0.1:1234/v1", model_id="")
    )
    generation_api_key: Optional[str] = None
    generation_temperature: float = 0.2
    generation_max_tokens: int = 2048
    generation_timeout_s: float = 120.0

    database_path: str = "repair_planner.db"
    technicians_container: str = "technicians"
    parts_container: str = "parts_inventory"
    work_orders_container: str = "work_orders"

    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {"protected_namespaces": ()}

    def to_safe_dict(self) -> dict:
        data = self.model_dump()
        if data.get("generation_api_key"):
            data["generation_api_key"] = "********"
        return data

    def require_generation(self) -> EndpointConfig:
        endpoint = self.generation_endpoint
        if not endpoint.base_url.strip():
            raise ConfigurationError("GENERATION_BASE_URL is required")
        if not endpoint.model_id.strip():
            raise ConfigurationError("MODEL_DEPLOYMENT_NAME is required")
        return endpoint


def _load_from_env() -> dict:
    load_dotenv()
    env_map = {
        "generation_base_url": os.getenv("GENERATION_BASE_URL"),
        "generation_model": os.getenv("MODEL_DEPLOYMENT_NAME"),
        "generation_api_key": os.getenv("GENERATION_API_KEY"),
        "generation_temperature": os.getenv("GENERATION_TEMPERATURE"),
        "generation_max_tokens": os.getenv("GENERATION_MAX_TOKENS"),
        "generation_timeout_s": os.getenv("GENERATION_TIMEOUT_S"),
        "database_path": os.getenv("DATABASE_PATH"),
        "host": os.getenv("HOST"),
        "port": os.getenv("PORT"),
        "log_level": os.getenv("LOG_LEVEL"),
    }
    cleaned = {k: v for k, v in env_map.items() if v not in (None, "")}
    if "generation_temperature" in cleaned:
        cleaned["generation_temperature"] = float(cleaned["generation_temperature"])
    if "generation_max_tokens" in cleaned:
        cleaned["generation_max_tokens"] = int(cleaned["generation_max_tokens"])
    if "generation_timeout_s" in cleaned:
        cleaned["generation_timeout_s"] = float(cleaned["generation_timeout_s"])
    if "port" in cleaned:
        cleaned["port"] = int(cleaned["port"])
    if "log_level" in cleaned:
        cleaned["log_level"] = str(cleaned["log_level"]).upper()
    return cleaned


def _env_overrides_config() -> bool:
    return str(os.getenv(ENV_OVERRIDE_KEY, "")).strip().lower() in ENV_OVERRIDE_TRUE


def _apply_endpoint_overrides(merged: Dict[str, Any], file_data: Dict[str, Any], allow_env_overrides: bool) -> None:
    """Fold the flat env vars into the nested endpoint block."""
    base_url = merged.pop("generation_base_url", None)
    model = merged.pop("generation_model", None)
    endpoint = merged.get("generation_endpoint")
    if not isinstance(endpoint, dict):
        endpoint = {}
    from_file = file_data.get("generation_endpoint") if isinstance(file_data.get("generation_endpoint"), dict) else {}
    if base_url and (allow_env_overrides or not from_file.get("base_url")):
        endpoint["base_url"] = base_url
    if model and (allow_env_overrides or not from_file.get("model_id")):
        endpoint["model_id"] = model
    if endpoint:
        defaults = AppSettings().generation_endpoint
        endpoint.setdefault("base_url", defaults.base_url)
        endpoint.setdefault("model_id", defaults.model_id)
        merged["generation_endpoint"] = endpoint


def load_settings(config_path: Optional[Path] = None) -> AppSettings:
    env_data = _load_from_env()
    path = config_path or CONFIG_PATH
    file_data: Dict[str, Any] = {}
    if path.exists():
        try:
            file_data = json.loads(path.read_text())
        except Exception as exc:
            logger.warning("Ignoring unreadable config %s: %s", path, exc)
            file_data = {}
    allow_env_overrides = _env_overrides_config()
    # Config wins by default; allow env overrides only when explicitly enabled.
    if allow_env_overrides:
        merged = {**file_data, **env_data}
    else:
        merged = {**env_data, **file_data}
    if not merged.get("generation_api_key") and env_data.get("generation_api_key"):
        merged["generation_api_key"] = env_data["generation_api_key"]
    _apply_endpoint_overrides(merged, file_data, allow_env_overrides)
    return AppSettings(**merged)


def save_settings(settings: AppSettings, config_path: Optional[Path] = None) -> None:
    path = config_path or CONFIG_PATH
    path.write_text(settings.model_dump_json(indent=2))


def configure_logging(settings: AppSettings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
