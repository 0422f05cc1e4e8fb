"""Configuration loader for the light bridge."""

import ipaddress
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from magicbridge.devices.base import DeviceIdentity
from magicbridge.errors import ConfigError
from magicbridge.topics import is_valid_device_name

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = ".magicdrc"
DEFAULT_MQTT_PORT = 1883
DEFAULT_DEVICE_PORT = 5577
DEFAULT_CLIENT_ID = "magicbridge"


@dataclass
class BrokerConfig:
    """MQTT broker connection configuration."""

    host: str
    port: int = DEFAULT_MQTT_PORT
    username: Optional[str] = None
    password: Optional[str] = None
    client_id: str = DEFAULT_CLIENT_ID
    cert_path: Optional[Path] = None
    key_path: Optional[Path] = None
    root_ca_path: Optional[Path] = None

    @property
    def uses_mtls(self) -> bool:
        return self.cert_path is not None and self.key_path is not None

    def validate(self) -> None:
        """Validate that all configured certificate files exist."""
        for path, name in [
            (self.cert_path, "certificate"),
            (self.key_path, "private key"),
            (self.root_ca_path, "root CA"),
        ]:
            if path is not None and not path.exists():
                raise ConfigError(f"{name} not found at {path}")


@dataclass
class BridgeConfig:
    """Full bridge configuration: one broker, an ordered list of controllers."""

    broker: BrokerConfig
    devices: list[DeviceIdentity] = field(default_factory=list)


def _parse_port(value: Any, what: str, default: int) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ConfigError(f"Invalid {what} port: {value!r}")
    try:
        port = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid {what} port: {value!r}") from e
    if not 0 <= port <= 65535:
        raise ConfigError(f"{what} port out of range: {port}")
    return port


def _lower_keys(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ConfigError(f"{what} must be a JSON object")
    return {str(k).lower(): v for k, v in data.items()}


def _parse_device(entry: Any) -> DeviceIdentity:
    data = _lower_keys(entry, "Controller entry")

    name = data.get("name")
    if not isinstance(name, str) or not is_valid_device_name(name):
        raise ConfigError(f"Invalid controller name: {name!r}")

    address = data.get("ip", data.get("address"))
    try:
        address = str(ipaddress.ip_address(address))
    except ValueError as e:
        raise ConfigError(f"Invalid address for controller {name}: {address!r}") from e

    port = _parse_port(data.get("port"), f"controller {name}", DEFAULT_DEVICE_PORT)
    return DeviceIdentity(name=name, address=address, port=port)


def _optional_path(value: Any) -> Optional[Path]:
    return Path(value).expanduser() if value else None


def parse_config(raw: Any) -> BridgeConfig:
    """Build a BridgeConfig from decoded JSON, applying environment overrides.

    Environment variables:
        MQTT_HOST, MQTT_PORT, MQTT_USER, MQTT_PASS: Override broker settings

    Raises:
        ConfigError: If any field is missing or malformed
    """
    data = _lower_keys(raw, "Configuration")

    host = os.environ.get("MQTT_HOST", data.get("mqtt_host", ""))
    if not host or not isinstance(host, str):
        raise ConfigError("mqtt_host is required")

    broker = BrokerConfig(
        host=host,
        port=_parse_port(os.environ.get("MQTT_PORT", data.get("mqtt_port")), "MQTT", DEFAULT_MQTT_PORT),
        username=os.environ.get("MQTT_USER", data.get("mqtt_user")) or None,
        password=os.environ.get("MQTT_PASS", data.get("mqtt_pass")) or None,
        client_id=data.get("mqtt_client_id") or DEFAULT_CLIENT_ID,
        cert_path=_optional_path(data.get("mqtt_cert_path")),
        key_path=_optional_path(data.get("mqtt_key_path")),
        root_ca_path=_optional_path(data.get("mqtt_root_ca_path")),
    )

    controllers = data.get("controllers") or []
    if not isinstance(controllers, list):
        raise ConfigError("controllers must be a list")

    devices = [_parse_device(entry) for entry in controllers]
    names = [d.name for d in devices]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate controller names: {', '.join(duplicates)}")

    return BridgeConfig(broker=broker, devices=devices)


def load_config(config_path: Optional[str] = None) -> BridgeConfig:
    """Load bridge configuration from a JSON file.

    Environment variables:
        MAGICBRIDGE_CONFIG: Override config file location

    Args:
        config_path: Path to config JSON file. Defaults to ./.magicdrc

    Returns:
        BridgeConfig with validated broker and controller settings

    Raises:
        ConfigError: If the file cannot be read or is malformed
    """
    path_str = config_path or os.environ.get("MAGICBRIDGE_CONFIG", DEFAULT_CONFIG_PATH)
    config_file = Path(path_str).expanduser()

    try:
        with open(config_file) as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"Could not read {config_file}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Wrong format {config_file}: {e}") from e

    config = parse_config(raw)
    config.broker.validate()

    logger.info(f"Loaded config: broker={config.broker.host}:{config.broker.port}, controllers={len(config.devices)}")
    return config
