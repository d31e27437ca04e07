"""Configuration loading with pydantic-settings.

Layers, lowest to highest precedence:

1. Built-in defaults (``config.models``)
2. Global file: ``~/.config/shipshape/config.yaml``
3. Repo file: ``<root>/.shipshape.yml`` (or ``.yaml``), or the file named by
   ``--config``, which replaces the repo lookup
4. Environment: ``SHIPSHAPE__<SECTION>__<KEY>``
5. Keyword overrides passed to :func:`load_config`

YAML layers are merged section by section; lists are replaced, not
concatenated, so a repo ``exclude_patterns`` fully replaces the global one.
"""

from functools import reduce
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from shipshape.config.models import DiscoveryConfig, LoggingConfig, ShipShapeConfig
from shipshape.core.errors import ConfigError

log = structlog.get_logger(__name__)

GLOBAL_CONFIG_PATH = Path("~/.config/shipshape/config.yaml").expanduser()
REPO_CONFIG_NAMES = (".shipshape.yml", ".shipshape.yaml")


def read_config_file(path: Path) -> dict[str, Any]:
    """Parse one YAML layer. A missing file is an empty layer."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def merge_layers(*layers: dict[str, Any]) -> dict[str, Any]:
    """Merge layers left to right; nested mappings merge, anything else is replaced."""

    def merge(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
        merged = dict(lower)
        for key, value in upper.items():
            below = merged.get(key)
            merged[key] = (
                merge(below, value)
                if isinstance(below, dict) and isinstance(value, dict)
                else value
            )
        return merged

    return reduce(merge, layers, {})


def find_repo_config(repo_root: Path) -> Path | None:
    return next(
        (repo_root / name for name in REPO_CONFIG_NAMES if (repo_root / name).is_file()),
        None,
    )


def config_files(repo_root: Path, config_path: Path | None = None) -> list[Path]:
    """YAML files that apply to ``repo_root``, lowest precedence first.

    Raises:
        ConfigError: ``config_path`` was given but does not exist.
    """
    if config_path is not None and not config_path.is_file():
        raise ConfigError.file_not_found(str(config_path))
    files = [GLOBAL_CONFIG_PATH] if GLOBAL_CONFIG_PATH.is_file() else []
    repo_file = config_path if config_path is not None else find_repo_config(repo_root)
    if repo_file is not None:
        files.append(repo_file)
    return files


class _FileLayersSource(PydanticBaseSettingsSource):
    """Settings source serving the already-merged YAML layers."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._data


def _settings_class(file_data: dict[str, Any]) -> type[BaseSettings]:
    # A fresh class per load keeps concurrent loads for different repos apart

    class Settings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="SHIPSHAPE__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        discovery: DiscoveryConfig = DiscoveryConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # First wins
            return (init_settings, env_settings, _FileLayersSource(settings_cls, file_data))

    return Settings


def _invalid_value(error: ValidationError) -> ConfigError:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first["loc"])
    return ConfigError.invalid_value(field, first.get("input"), first["msg"])


def load_config(
    repo_root: Path | None = None,
    config_path: Path | None = None,
    **overrides: Any,
) -> ShipShapeConfig:
    """Resolve the configuration for a discovery of ``repo_root``.

    Args:
        repo_root: Repository being discovered (default: cwd).
        config_path: Explicit config file; replaces the repo-level lookup.
        **overrides: Highest-precedence values by section, e.g.
            ``discovery={"timeout_sec": 5}``.

    Raises:
        ConfigError: Missing explicit file, unparsable YAML or a value that
            fails validation.
    """
    files = config_files(repo_root or Path.cwd(), config_path)
    file_data = merge_layers(*(read_config_file(path) for path in files))

    try:
        settings = _settings_class(file_data)(**overrides)
    except ValidationError as e:
        raise _invalid_value(e) from e

    log.debug("config_loaded", files=[str(path) for path in files])
    return ShipShapeConfig.model_validate(settings.model_dump())
