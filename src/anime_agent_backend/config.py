import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

try:
    import yaml
except ModuleNotFoundError as exc:  # pragma: no cover - import guard
    raise ModuleNotFoundError(
        "PyYAML is required to load application configuration. Install it via 'pip install pyyaml'."
    ) from exc
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_APP_CONFIG_PATH = "config/app.yaml"


class AnimechanSettings(BaseModel):
    base_url: str = "https://api.animechan.io/v1"
    timeout_s: float = 10.0
    default_page: int = 1

    model_config = ConfigDict(extra="ignore")


class MyAnimeListSettings(BaseModel):
    base_url: str = "https://api.myanimelist.net/v2"
    timeout_s: float = 10.0

    model_config = ConfigDict(extra="ignore")


class VerificationSettings(BaseModel):
    similarity_threshold: float = 0.5
    # Word sets must be strictly larger than this for a "similar" match
    min_words_exclusive: int = 2
    max_matches: int = 5
    concurrent_lookups: bool = True

    model_config = ConfigDict(extra="ignore")


class GenerationSettings(BaseModel):
    temperature: float = 0.3
    max_tokens: int = 4000
    max_tool_rounds: int = 5

    model_config = ConfigDict(extra="ignore")


class DocumentSettings(BaseModel):
    max_file_mb: float = 50.0
    chunk_size: int = 1000
    chunk_overlap: int = 200
    query_context_chunks: int = 5

    model_config = ConfigDict(extra="ignore")


class TelemetrySettings(BaseModel):
    log_level: str = "INFO"
    metrics_enabled: bool = True

    model_config = ConfigDict(extra="ignore")


class AppConfig(BaseModel):
    animechan: AnimechanSettings = Field(default_factory=AnimechanSettings)
    myanimelist: MyAnimeListSettings = Field(default_factory=MyAnimeListSettings)
    verification: VerificationSettings = Field(default_factory=VerificationSettings)
    generation: GenerationSettings = Field(default_factory=GenerationSettings)
    documents: DocumentSettings = Field(default_factory=DocumentSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = ConfigDict(extra="ignore")


def _resolve_config_path(path_str: str) -> Path:
    candidate = Path(path_str).expanduser()
    if not candidate.is_absolute():
        candidate = (PROJECT_ROOT / candidate).resolve()
    return candidate


def _load_app_config(path: Path) -> AppConfig:
    if not path.exists():
        logger.warning("App config file %s not found; using defaults", path)
        return AppConfig()
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw: Dict[str, Any] = yaml.safe_load(handle) or {}
    except Exception as exc:  # pragma: no cover - configuration failures are fatal
        logger.error("Failed to load app config from %s: %s", path, exc)
        raise
    return AppConfig(**raw)


@lru_cache(maxsize=4)
def _load_app_config_cached(resolved_path: str) -> AppConfig:
    return _load_app_config(Path(resolved_path))


def get_app_config(path_str: str) -> AppConfig:
    resolved = _resolve_config_path(path_str)
    return _load_app_config_cached(str(resolved))


class Settings(BaseSettings):
    # LLM Provider Configuration (OpenAI-compatible)
    llm_base_url: str = Field("https://api.openai.com/v1", description="Base URL for the OpenAI-compatible LLM API")
    llm_api_key: str = Field("dummy-key", description="API key for the LLM API")
    llm_model: str = Field("gpt-4o-mini", description="The model name to use for chat completions")

    # Upstream APIs
    animechan_api_key: Optional[str] = Field(
        None,
        description="Default Animechan supporter key, forwarded as x-api-key when a request carries none",
    )
    mal_client_id: str = Field("", description="MyAnimeList client ID sent as X-MAL-CLIENT-ID")

    # Storage / agent interchange
    storage_root: str = Field("data/storage", description="Root directory for stored documents")
    a2a_base_url: str = Field(
        "http://localhost:8788",
        description="Base URL used by the a2a_communicate tool when no URL is supplied",
    )

    # App configuration
    app_config_path: str = Field(
        DEFAULT_APP_CONFIG_PATH,
        description="Path to the YAML configuration file controlling upstream clients and verification.",
        validation_alias=AliasChoices("ANIME_AGENT_APP_CONFIG_PATH", "app_config_path"),
    )

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    def resolved_app_config_path(self) -> Path:
        return _resolve_config_path(self.app_config_path)

    def resolved_storage_root(self) -> Path:
        return _resolve_config_path(self.storage_root)

    @property
    def app_config(self) -> AppConfig:
        return get_app_config(self.app_config_path)


# Initialize settings
settings = Settings()
