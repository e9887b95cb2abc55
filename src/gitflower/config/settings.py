"""Application settings using Pydantic Settings."""

import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any

import yaml
from pydantic import Field, TypeAdapter, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitflower.core.exceptions import ConfigurationError
from gitflower.core.models.repository import ScanConfig

DEFAULT_CONFIG_FILE = Path("~/.config/gitflower/config.yaml")
CONFIG_FILE_ENV = "GITFLOWER_CONFIG"
# also the env name of the config_file field
CONFIG_FILE_FIELD_ENV = "GITFLOWER_CONFIG_FILE"

# YAML sections and the settings fields they map to
_SECTIONS = {
    "repos": {
        "directory": "repos_directory",
        "scan_depth": "scan_depth",
        "default_branch": "default_branch",
        "clone_url_template": "clone_url_template",
    },
    "web": {
        "host": "web_host",
        "port": "web_port",
    },
    "log": {
        "level": "log_level",
        "format": "log_format",
    },
}


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML config file into flat settings field names.

    A missing file yields an empty dict.
    """
    path = Path(path).expanduser()
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(
            f"reading config file {path}: {exc}",
            details={"config_file": str(path)},
        ) from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigurationError(
            f"config file {path} must contain a mapping",
            details={"config_file": str(path)},
        )

    values: dict[str, Any] = {}
    for section, fields in _SECTIONS.items():
        content = raw.get(section) or {}
        if not isinstance(content, dict):
            raise ConfigurationError(
                f"config section '{section}' must be a mapping",
                details={"config_file": str(path)},
            )
        for key, field_name in fields.items():
            if key in content:
                values[field_name] = content[key]
    return values


# field name -> (section, key) in the YAML file
_FIELD_LOCATIONS = {
    field_name: (section, key)
    for section, fields in _SECTIONS.items()
    for key, field_name in fields.items()
}


def resolve_config_file(explicit: str | Path | None = None) -> Path:
    """Pick the config file: explicit path, then environment, then the default."""
    config_file = (
        explicit
        or os.environ.get(CONFIG_FILE_FIELD_ENV)
        or os.environ.get(CONFIG_FILE_ENV)
        or DEFAULT_CONFIG_FILE
    )
    return Path(config_file).expanduser()


def write_config_value(path: Path, field_name: str, value: Any) -> None:
    """Store one setting in the YAML config file, keeping everything else.

    The file and its parent directory are created when missing.
    """
    if field_name not in _FIELD_LOCATIONS:
        raise ConfigurationError(
            f"config key cannot be stored in the config file: {field_name}",
            details={"key": field_name},
        )

    path = Path(path).expanduser()
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raw = None
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(
            f"reading config file {path}: {exc}",
            details={"config_file": str(path)},
        ) from exc

    raw = raw or {}
    section, key = _FIELD_LOCATIONS[field_name]
    if not isinstance(raw, dict) or not isinstance(raw.get(section) or {}, dict):
        raise ConfigurationError(
            f"config file {path} has an unexpected layout",
            details={"config_file": str(path)},
        )
    raw[section] = {**(raw.get(section) or {}), key: value}

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(raw, sort_keys=False), encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(
            f"writing config file {path}: {exc.strerror or exc}",
            details={"config_file": str(path)},
        ) from exc


class YamlConfigFileSource(PydanticBaseSettingsSource):
    """Settings source backed by the sectioned YAML config file."""

    def __init__(self, settings_cls: type[BaseSettings], config_file: Path) -> None:
        super().__init__(settings_cls)
        self._values = read_config_file(config_file)

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._values.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return {
            name: value
            for name, value in self._values.items()
            if name in self.settings_cls.model_fields
        }


class Settings(BaseSettings):
    """Application settings.

    Priority: keyword arguments (CLI flags), environment variables
    (``GITFLOWER_*``), ``.env``, the YAML config file, defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="GITFLOWER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # General
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "console"  # "console" | "json"
    config_file: str | None = None

    # Repositories
    repos_directory: str = "./repos/"
    scan_depth: int | None = Field(default=None, ge=0)  # unbounded when unset
    default_branch: str = "main"
    clone_url_template: str | None = None  # e.g. "ssh://git@example.com/{path}"

    # Web
    web_host: str = "127.0.0.1"
    web_port: int = 8747

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        init_kwargs = getattr(init_settings, "init_kwargs", {})
        config_file = resolve_config_file(init_kwargs.get("config_file"))
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigFileSource(settings_cls, config_file),
            file_secret_settings,
        )

    @property
    def config_path(self) -> Path:
        """The YAML file these settings were read from, and where `config` writes."""
        return resolve_config_file(self.config_file)

    @property
    def repos_path(self) -> Path:
        return Path(self.repos_directory).expanduser()

    @property
    def scan_config(self) -> ScanConfig:
        return ScanConfig(
            root=self.repos_path,
            default_branch=self.default_branch,
            max_depth=self.scan_depth or None,
        )

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"

    @property
    def json_logs(self) -> bool:
        return self.log_format.lower() == "json"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def parse_setting(field_name: str, raw: str) -> Any:
    """Convert a command-line string to the type of a settings field."""
    field = Settings.model_fields[field_name]
    annotation = (
        Annotated[(field.annotation, *field.metadata)] if field.metadata else field.annotation
    )
    try:
        return TypeAdapter(annotation).validate_python(raw)
    except ValidationError as exc:
        reason = exc.errors()[0]["msg"]
        raise ConfigurationError(
            f"invalid value for {field_name}: {reason}",
            details={"key": field_name, "value": raw},
        ) from exc
