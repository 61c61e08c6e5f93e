"""Configuration management module"""
import os
from contextvars import ContextVar
from pathlib import Path
from typing import Optional

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
    PydanticBaseSettingsSource,
    TomlConfigSettingsSource,
)

from .enum import LLMModel
from .exception import ConfigError


INSTANCE_PATH_ENV = "CHATRELAY_INSTANCE_PATH"

# Instance selected by load_settings for the Settings it is building
_selected_instance: ContextVar[Optional[Path]] = ContextVar("selected_instance", default=None)


def get_instance_path() -> Path:
    """Get the current instance path from load_settings, environment or default"""
    selected = _selected_instance.get()
    if selected is not None:
        return selected
    instance_path = os.environ.get(INSTANCE_PATH_ENV)
    if instance_path:
        return Path(instance_path).expanduser()
    return Path.home() / ".chatrelay"


def get_config_file() -> Path | None:
    """Get config file path if it exists"""
    config_file = get_instance_path() / "config.toml"
    if config_file.exists():
        return config_file
    return None


class Settings(BaseSettings):
    """chatrelay configuration settings

    Sources, highest priority first: init kwargs, CHATRELAY_* environment
    variables, .env file, <instance>/config.toml.
    """

    instance_path: Path = Field(default_factory=get_instance_path)

    # Assistant process
    working_dir: Path = Field(default_factory=Path.home)
    default_model: str = LLMModel.SONNET.value
    available_models: list[str] = Field(
        default_factory=lambda: [model.value for model in LLMModel]
    )
    permission_mode: str = "bypassPermissions"
    max_thinking_tokens: Optional[int] = None
    system_prompt_append: Optional[str] = None

    # Orchestrator
    preempt_grace_seconds: float = Field(default=0.1, ge=0)

    # Session list
    database_url: Optional[str] = None
    max_saved_sessions: int = Field(default=5, ge=1)
    session_title_length: int = Field(default=50, ge=1)

    model_config = SettingsConfigDict(
        env_prefix="CHATRELAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def check_default_model(self) -> "Settings":
        """Default model must be one of the recognized models"""
        if not self.available_models:
            raise ValueError("available_models must not be empty")
        if self.default_model not in self.available_models:
            raise ValueError(
                f"default_model '{self.default_model}' is not in available_models "
                f"({', '.join(self.available_models)})"
            )
        return self

    @property
    def resolved_database_url(self) -> str:
        """Database URL for the session list, defaulting to the instance data dir"""
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.instance_path / 'data' / 'chatrelay.db'}"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings sources to include TOML file"""
        config_file = get_config_file()
        if config_file:
            toml_settings = TomlConfigSettingsSource(
                settings_cls, toml_file=config_file
            )
            return (
                init_settings,
                env_settings,
                dotenv_settings,
                toml_settings,
                file_secret_settings,
            )
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


def load_settings(instance_path: Optional[Path] = None, **overrides) -> Settings:
    """Load settings for an instance

    Args:
        instance_path: Instance directory; when given it also selects the
            config.toml that is read
        **overrides: Explicit values taking precedence over every source

    Returns:
        Validated Settings

    Raises:
        ConfigError: If the configuration is invalid
    """
    token = None
    if instance_path is not None:
        token = _selected_instance.set(Path(instance_path).expanduser())
        overrides.setdefault("instance_path", Path(instance_path).expanduser())
    try:
        return Settings(**overrides)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e
    finally:
        if token is not None:
            _selected_instance.reset(token)
