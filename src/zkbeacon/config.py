"""Configuration loading and resolution for zkbeacon."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from .errors import ConfigurationError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationConfig:
    """The three settings needed to register this process.

    A field is ``None`` when it was not configured; empty strings never
    reach this object.
    """
    coordination_address: Optional[str] = None
    node_path: Optional[str] = None
    node_payload: Optional[bytes] = None

    def missing_fields(self) -> list[str]:
        missing = []
        if self.coordination_address is None:
            missing.append("address")
        if self.node_path is None:
            missing.append("path")
        if self.node_payload is None:
            missing.append("value")
        return missing

    @property
    def is_complete(self) -> bool:
        return not self.missing_fields()


class ConfigResolver:
    """Collects raw directive values and turns them into a RegistrationConfig.

    Setters store values verbatim. Format checks on the address and path,
    and the payload size limit, are left to the ZooKeeper client.
    """

    def __init__(self):
        self._address: Any = None
        self._path: Any = None
        self._payload: Any = None
        self._config: Optional[RegistrationConfig] = None

    def set_address(self, raw: str) -> None:
        self._address = raw

    def set_path(self, raw: str) -> None:
        self._path = raw

    def set_payload(self, raw: bytes | str) -> None:
        self._payload = raw

    def finalize(self) -> RegistrationConfig:
        """Build the config once all directives have been applied.

        Missing fields are reported as warnings and left as ``None``.
        Raises ConfigurationError if a value cannot be turned into an
        owned string or byte sequence.
        """
        if self._config is not None:
            return self._config

        address = _own_text(self._address, "coordination_address")
        path = _own_text(self._path, "coordination_path")
        payload = _own_bytes(self._payload, "coordination_value")

        for directive, value in (
            ("coordination_address", address),
            ("coordination_path", path),
            ("coordination_value", payload),
        ):
            if value is None:
                logger.warning("No %s was given", directive)

        self._config = RegistrationConfig(
            coordination_address=address,
            node_path=path,
            node_payload=payload,
        )
        return self._config


def _own_text(raw: Any, directive: str) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"{directive}: value is not valid UTF-8") from exc
    if not isinstance(raw, str):
        raise ConfigurationError(
            f"{directive}: expected a string, got {type(raw).__name__}"
        )
    return str(raw) or None


def _own_bytes(raw: Any, directive: str) -> Optional[bytes]:
    if raw is None:
        return None
    if isinstance(raw, str):
        try:
            raw = raw.encode("utf-8")
        except UnicodeEncodeError as exc:
            raise ConfigurationError(f"{directive}: value cannot be encoded as UTF-8") from exc
    if not isinstance(raw, (bytes, bytearray, memoryview)):
        raise ConfigurationError(
            f"{directive}: expected bytes or a string, got {type(raw).__name__}"
        )
    return bytes(raw) or None


DIRECTIVES: dict[str, Callable[[ConfigResolver, Any], None]] = {
    "coordination_address": ConfigResolver.set_address,
    "coordination_path": ConfigResolver.set_path,
    "coordination_value": ConfigResolver.set_payload,
}


def apply_directive(resolver: ConfigResolver, name: str, value: Any) -> None:
    """Apply one directive, enforcing that it takes exactly one scalar value."""
    setter = DIRECTIVES.get(name)
    if setter is None:
        raise ConfigurationError(f"unknown directive '{name}'")
    if value is None or isinstance(value, (list, tuple, dict, set)):
        raise ConfigurationError(f"directive '{name}' takes exactly one value")
    setter(resolver, value)


def _read_yaml(path: str | Path) -> dict:
    path = Path(path)
    try:
        with open(path) as f:
            # BaseLoader keeps every scalar as the text written in the file
            data = yaml.load(f, Loader=yaml.BaseLoader) or {}
    except OSError as exc:
        raise ConfigurationError(f"cannot read config file '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in '{path}': {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file '{path}' must contain a mapping")
    return data


def load_config(path: str | Path) -> RegistrationConfig:
    """Load a RegistrationConfig from a YAML file.

    Keys other than the three directives belong to the host and are ignored.
    """
    return resolve_config(path)


def resolve_config(
    path: str | Path | None = None,
    overrides: Optional[dict[str, Any]] = None,
) -> RegistrationConfig:
    """Resolve directives from an optional YAML file plus overrides.

    Override values that are not ``None`` take precedence over the file.
    """
    data = _read_yaml(path) if path is not None else {}
    for name, value in (overrides or {}).items():
        if value is not None:
            data[name] = value

    resolver = ConfigResolver()
    for name in DIRECTIVES:
        if name in data:
            apply_directive(resolver, name, data[name])
    return resolver.finalize()


def overrides_from_args(args) -> dict[str, Any]:
    """Map CLI arguments onto directive names."""
    return {
        "coordination_address": getattr(args, "address", None),
        "coordination_path": getattr(args, "path", None),
        "coordination_value": getattr(args, "value", None),
    }
