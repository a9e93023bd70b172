"""GET /api/status - Aktuellt läge för den konfigurerade kanalen, utan att växla."""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))
from _config import ConfigError, load_config
from _http import JsonHandler
from _log import logger
from _shelly import ShellyCloudError, get_device_status, read_output


def run_status() -> tuple:
    try:
        config = load_config()
        current, online = read_output(get_device_status(config), config.channel)
        return 200, {"ok": True, "channel": config.channel, "on": current, "online": online}

    except (ConfigError, ShellyCloudError) as e:
        logger.warning("Status misslyckades (%s): %s", e.status_code, e)
        return e.status_code, e.payload
    except Exception as e:
        logger.exception("Oväntat fel i status")
        return 500, {"ok": False, "error": str(e)}


class handler(JsonHandler):
    ALLOWED_METHODS = ("GET", "OPTIONS")

    def do_GET(self):
        status_code, payload = run_status()
        self.send_json(status_code, payload)
