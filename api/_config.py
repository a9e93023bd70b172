"""Konfiguration från miljövariabler - läses per anrop, inte vid import."""
import os
from typing import NamedTuple

REQUIRED_VARS = ("SHELLY_HOST", "SHELLY_AUTH_KEY", "SHELLY_DEVICE_ID")
DEFAULT_CHANNEL = 0


class ConfigError(Exception):
    """Saknade eller ogiltiga miljövariabler."""

    status_code = 500

    def __init__(self, payload: dict):
        super().__init__(payload.get("error", "Config error"))
        self.payload = payload


class ShellyConfig(NamedTuple):
    host: str
    auth_key: str
    device_id: str
    channel: int

    @property
    def api_base(self) -> str:
        return f"https://{self.host}"

    @property
    def switch_key(self) -> str:
        return f"switch:{self.channel}"


def _normalize_host(host: str) -> str:
    # t.ex. shelly-106-eu.shelly.cloud (utan schema, :6022 eller /jrpc)
    host = host.strip()
    for prefix in ("https://", "http://"):
        if host.startswith(prefix):
            host = host[len(prefix):]
    return host.rstrip("/")


def load_config(environ=None) -> ShellyConfig:
    env = os.environ if environ is None else environ

    missing = [name for name in REQUIRED_VARS if not env.get(name, "").strip()]
    if missing:
        raise ConfigError({"ok": False, "error": "Missing env vars", "need": missing})

    raw_channel = env.get("SHELLY_CHANNEL", "").strip()
    if raw_channel:
        try:
            channel = int(raw_channel)
        except ValueError:
            channel = -1
        if channel < 0:
            raise ConfigError({
                "ok": False,
                "error": "Invalid SHELLY_CHANNEL",
                "value": raw_channel,
            })
    else:
        channel = DEFAULT_CHANNEL

    return ShellyConfig(
        host=_normalize_host(env["SHELLY_HOST"]),
        auth_key=env["SHELLY_AUTH_KEY"].strip(),
        device_id=env["SHELLY_DEVICE_ID"].strip(),
        channel=channel,
    )
