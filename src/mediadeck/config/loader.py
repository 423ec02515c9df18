import logging
import os
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator, model_validator

from mediadeck.config.settings import config as settings
from mediadeck.errors import StorageConfigError
from mediadeck.projects.models import RegistryCache
from mediadeck.storage.models import StorageGroup
from mediadeck.storage.resolver import ErrorTracker, iter_slots

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_LOCATIONS = [
    "mediadeck.yaml",
    "~/.config/mediadeck/config.yaml",
    "/etc/mediadeck/config.yaml",
]


class PathsConfig(BaseModel):
    projects_folder: str = "Projects"
    global_folder: str = "_GLOBAL_"
    assets_folder: str = "Assets"


class AppConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    storage: Dict[str, StorageGroup]
    paths: PathsConfig = Field(default_factory=PathsConfig)

    # Runtime state, never written back to the config file
    registry: RegistryCache = Field(default_factory=RegistryCache, exclude=True)
    errors: ErrorTracker = Field(default_factory=ErrorTracker, exclude=True)
    _manager: Any = PrivateAttr(default=None)

    @field_validator("storage", mode="before")
    @classmethod
    def _group_ids_as_strings(cls, value):
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        return value

    @model_validator(mode="after")
    def _unique_labels(self):
        # Labels key the registry, so two slots must never share one
        seen = {}
        for group_id, drive_type, backup_id, slot in iter_slots(self):
            if not slot.label:
                continue
            where = f"{group_id} {drive_type.value} {backup_id}".rstrip()
            if slot.label in seen:
                raise ValueError(f"label '{slot.label}' is used by both {seen[slot.label]} and {where}")
            seen[slot.label] = where
        return self


def find_config_file(path: Optional[str] = None) -> str:
    """Resolves the configuration file: explicit path, environment, then default locations."""
    if path:
        candidates = [path]
    elif settings.config_file:
        candidates = [settings.config_file]
    else:
        candidates = DEFAULT_CONFIG_LOCATIONS

    for candidate in candidates:
        expanded = os.path.expanduser(candidate)
        if os.path.exists(expanded):
            return expanded

    raise StorageConfigError(f"Configuration file not found (looked in: {', '.join(candidates)})")


def parse_config(data) -> AppConfig:
    if not isinstance(data, dict):
        raise StorageConfigError("Configuration must be a mapping")
    if not isinstance(data.get("storage"), dict):
        raise StorageConfigError("Configuration has no 'storage' table")
    try:
        return AppConfig(**data)
    except ValidationError as e:
        raise StorageConfigError(f"Invalid storage configuration: {e}") from e


def load_config(path: Optional[str] = None) -> AppConfig:
    config_path = find_config_file(path)
    try:
        with open(config_path, "r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise StorageConfigError(f"Cannot read configuration {config_path}: {e}") from e

    app_config = parse_config(data)
    logger.debug(f"Loaded {len(app_config.storage)} storage groups from {config_path}")
    return app_config
