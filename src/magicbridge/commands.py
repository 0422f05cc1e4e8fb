"""Translation of light-namespace messages into device commands."""

from dataclasses import dataclass
from typing import Union

from magicbridge.errors import DecodeError
from magicbridge.topics import command_suffix

POWER_SUFFIX = "on"
VALUE_SUFFIX = "value"

# Only this exact payload switches a light on.
POWER_ON_PAYLOAD = b"True"

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1


@dataclass(frozen=True)
class PowerCommand:
    """Switch the controller on or off."""

    on: bool


@dataclass(frozen=True)
class BrightnessCommand:
    """Set a monochrome level on the RGB channels, white channel off."""

    level: int

    @property
    def rgbw(self) -> tuple[int, int, int, int]:
        return self.level, self.level, self.level, 0


class NoMatch:
    """Marker for a topic that carries no command."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_MATCH"

    def __bool__(self) -> bool:
        return False


NO_MATCH = NoMatch()

DeviceCommand = Union[PowerCommand, BrightnessCommand, NoMatch]


def parse_level(payload: bytes) -> int:
    """Parse a base-10 integer payload and narrow it to 8 bits.

    Accepts an optional leading sign and ASCII digits only. Out-of-range
    values wrap around (``256`` -> 0, ``-1`` -> 255) rather than clamp.

    Raises:
        DecodeError: If the payload is not an integer
    """
    try:
        text = payload.decode("ascii")
    except UnicodeDecodeError as e:
        raise DecodeError(f"Non-ASCII brightness payload: {payload!r}") from e

    digits = text[1:] if text[:1] in ("+", "-") else text
    if not digits.isdigit():
        raise DecodeError(f"Invalid brightness payload: {payload!r}")

    value = int(text)
    if not INT64_MIN <= value <= INT64_MAX:
        raise DecodeError(f"Brightness payload out of range: {payload!r}")

    return value & 0xFF


def translate(topic: str, payload: bytes) -> DeviceCommand:
    """Translate a topic and payload into a device command.

    Args:
        topic: MQTT topic (light/{name}/on or light/{name}/value)
        payload: Raw message payload

    Returns:
        PowerCommand, BrightnessCommand, or NO_MATCH for any other topic

    Raises:
        DecodeError: If a value payload is not an integer
    """
    suffix = command_suffix(topic)

    if suffix == POWER_SUFFIX:
        return PowerCommand(on=payload == POWER_ON_PAYLOAD)

    if suffix == VALUE_SUFFIX:
        return BrightnessCommand(level=parse_level(payload))

    return NO_MATCH
