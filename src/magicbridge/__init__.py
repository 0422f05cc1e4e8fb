"""MQTT bridge for Magic Home WiFi LED controllers."""

__version__ = "0.1.0"
