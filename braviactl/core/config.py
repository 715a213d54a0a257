"""Configuration loading and validation for the YAML device profiles file."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from importlib import resources
from pathlib import Path
from typing import Any

import yaml
from jsonschema import ValidationError, validators

from braviactl.core.errors import ConfigError
from braviactl.core.model import (
    DEFAULT_DISCOVERY_TIMEOUT_MS,
    DEFAULT_INTER_COMMAND_DELAY_MS,
    DEFAULT_PORT,
    DEFAULT_PSK,
    DEFAULT_REQUEST_TIMEOUT_MS,
    SessionConfig,
)

LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """YAML loader that rejects duplicate mapping keys."""


def _construct_mapping(loader: UniqueKeyLoader, node: yaml.Node, deep: bool = False) -> dict[str, Any]:
    mapping: dict[str, Any] = {}
    for key_node, value_node in node.value:
        key = loader.construct_object(key_node, deep=deep)
        if key in mapping:
            raise ConfigError(f"Duplicate key '{key}' in YAML document")
        mapping[key] = loader.construct_object(value_node, deep=deep)
    return mapping


UniqueKeyLoader.add_constructor(
    yaml.resolver.BaseResolver.DEFAULT_MAPPING_TAG,
    _construct_mapping,
)


@dataclass(frozen=True)
class LoadedConfig:
    devices: dict[str, SessionConfig] = field(default_factory=dict)
    default: str | None = None
    discovery_timeout_ms: int = DEFAULT_DISCOVERY_TIMEOUT_MS
    warnings: tuple[str, ...] = ()
    source: Path | None = None

    def resolve_profile(self, name: str | None = None) -> SessionConfig:
        profile = name or self.default
        if profile is None:
            if len(self.devices) == 1:
                return next(iter(self.devices.values()))
            raise ConfigError("No device selected. Pass --host or --profile, or set 'default' in the config file.")
        device = self.devices.get(profile)
        if device is None:
            available = ", ".join(sorted(self.devices)) or "<none>"
            raise ConfigError(f"Unknown device profile '{profile}'. Available: {available}")
        return device


def config_path() -> Path:
    xdg_config = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return xdg_config / "braviactl/config.yaml"


def _load_schema_validator() -> Any:
    schema_text = resources.files("braviactl.schemas").joinpath("config.schema.json").read_text(
        encoding="utf-8"
    )
    schema = json.loads(schema_text)
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Could not read config file {path}: {exc}") from exc

    try:
        loaded = yaml.load(content, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain a mapping at root")
    return loaded


def _build_device(doc: dict[str, Any]) -> SessionConfig:
    return SessionConfig(
        host=doc["host"],
        port=int(doc.get("port", DEFAULT_PORT)),
        psk=str(doc.get("psk", DEFAULT_PSK)),
        request_timeout_ms=int(doc.get("request_timeout_ms", DEFAULT_REQUEST_TIMEOUT_MS)),
        inter_command_delay_ms=int(doc.get("inter_command_delay_ms", DEFAULT_INTER_COMMAND_DELAY_MS)),
    )


def load_config(path: Path | None = None) -> LoadedConfig:
    path = path or config_path()
    if not path.exists():
        LOGGER.debug("No config file at %s", path)
        return LoadedConfig()

    doc = _read_yaml(path)
    validator = _load_schema_validator()
    try:
        validator.validate(doc)
    except ValidationError as exc:
        where = ".".join(str(p) for p in exc.path)
        where = f" ({where})" if where else ""
        raise ConfigError(f"Schema validation failed for {path}{where}: {exc.message}") from exc

    devices = {name: _build_device(spec) for name, spec in doc.get("devices", {}).items()}
    default = doc.get("default")
    if default is not None and default not in devices:
        raise ConfigError(f"Default profile '{default}' is not defined under 'devices' in {path}")

    warnings: list[str] = []
    for name, device in devices.items():
        if device.psk == DEFAULT_PSK:
            warning = f"Profile '{name}' uses the factory pre-shared key"
            LOGGER.warning(warning)
            warnings.append(warning)

    return LoadedConfig(
        devices=devices,
        default=default,
        discovery_timeout_ms=int(doc.get("discovery_timeout_ms", DEFAULT_DISCOVERY_TIMEOUT_MS)),
        warnings=tuple(warnings),
        source=path,
    )


def resolve_profile(name: str | None = None, path: Path | None = None) -> SessionConfig:
    return load_config(path).resolve_profile(name)
