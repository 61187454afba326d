"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        yaml_path = find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
        if 'openai' in data:
            flattened['openai_base_url'] = data['openai'].get('base_url')
            flattened['transcription_model'] = data['openai'].get('transcription_model')
            flattened['grading_model'] = data['openai'].get('grading_model')
        if 'storage' in data:
            flattened['storage_backend'] = data['storage'].get('backend')
            flattened['firebase_project_id'] = data['storage'].get('firebase_project_id')
        if 'retry' in data:
            flattened['external_retry_delay_seconds'] = (
                data['retry'].get('external_delay_seconds')
            )
            flattened['store_retry_delays_ms'] = data['retry'].get('store_delays_ms')
        if 'learning' in data:
            flattened['default_native_language'] = data['learning'].get('native_language')
            flattened['weekly_report_weekday'] = data['learning'].get('weekly_report_weekday')
            flattened['weekly_report_time'] = data['learning'].get('weekly_report_time')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # OpenAI (or an OpenAI-compatible endpoint such as Groq)
    openai_api_key: str = Field(description="OpenAI API key")
    openai_base_url: str | None = Field(default=None)
    transcription_model: str = Field(default="whisper-1")
    grading_model: str = Field(default="gpt-4")

    # Telegram
    telegram_bot_token: str | None = Field(default=None)
    admin_telegram_id: str | None = Field(default=None)

    # Authentication for the HTTP API (None disables auth)
    app_secret: str | None = Field(default=None)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)

    # Storage
    storage_backend: Literal["json", "firestore"] = Field(default="json")
    firebase_project_id: str | None = Field(default=None)
    firebase_credentials_path: Path | None = Field(default=None)

    # Retry timing
    external_retry_delay_seconds: float = Field(default=1.0)
    store_retry_delays_ms: list[int] = Field(default_factory=lambda: [100, 200, 400])
    audio_download_timeout_seconds: float = Field(default=30.0)

    # Learning
    default_native_language: str = Field(default="he")
    weekly_report_weekday: int = Field(default=6, ge=0, le=6)  # Monday=0, Sunday=6
    weekly_report_time: str = Field(default="20:00")

    # Paths
    project_root: Path = Field(default_factory=find_project_root)

    @property
    def data_dir(self) -> Path:
        d = self.project_root / "data" / "documents"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def lessons_path(self) -> Path:
        return self.project_root / "config" / "lessons.yaml"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
