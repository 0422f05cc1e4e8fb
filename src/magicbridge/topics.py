"""Topic grammar for the light namespace.

Every controller owns the tree ``light/<name>/...``. The second segment is
the device name and the last segment selects the command.
"""

from dataclasses import dataclass
from typing import Optional

TOPIC_ROOT = "light"
SEPARATOR = "/"
MULTI_LEVEL_WILDCARD = "#"
SINGLE_LEVEL_WILDCARD = "+"


@dataclass(frozen=True)
class InboundMessage:
    """A message delivered by the broker."""

    topic: str
    payload: bytes


def device_filter(device_name: str) -> str:
    """Return the subscription filter covering a device's namespace."""
    return SEPARATOR.join((TOPIC_ROOT, device_name, MULTI_LEVEL_WILDCARD))


def device_name_for(topic: str) -> Optional[str]:
    """Extract the device name from a topic in the light namespace.

    Returns:
        The ``<name>`` segment, or None if the topic is outside ``light/<name>/``
    """
    parts = topic.split(SEPARATOR)
    if len(parts) < 3 or parts[0] != TOPIC_ROOT or not parts[1]:
        return None
    return parts[1]


def command_suffix(topic: str) -> Optional[str]:
    """Return the last segment of a ``light/<name>/.../<suffix>`` topic."""
    if device_name_for(topic) is None:
        return None
    return topic.rsplit(SEPARATOR, 1)[1]


def is_valid_device_name(name: str) -> bool:
    """A device name must be a single, literal, non-empty topic segment."""
    if not name:
        return False
    return not any(c in name for c in (SEPARATOR, MULTI_LEVEL_WILDCARD, SINGLE_LEVEL_WILDCARD))
