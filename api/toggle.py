"""POST /api/toggle - Växlar en Shelly-kanal via Shelly Cloud (på -> av, av -> på)."""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))
from _config import ConfigError, load_config
from _http import JsonHandler
from _log import logger
from _shelly import ShellyCloudError, get_device_status, probe, read_output, set_switch


def run_toggle() -> tuple:
    """Läs nuvarande läge, sätt det motsatta. Returnerar (statuskod, payload)."""
    try:
        config = load_config()
        probe(config)
        device_list = get_device_status(config)
        current, online = read_output(device_list, config.channel)

        next_on = not current
        logger.info(
            "Växlar %s %s: %s -> %s (online=%s)",
            config.device_id, config.switch_key, current, next_on, online,
        )
        result = set_switch(config, next_on)
        return 200, {"ok": True, "from": current, "to": next_on, "result": result}

    except (ConfigError, ShellyCloudError) as e:
        logger.warning("Toggle misslyckades (%s): %s", e.status_code, e)
        return e.status_code, e.payload
    except Exception as e:
        logger.exception("Oväntat fel i toggle")
        return 500, {"ok": False, "error": str(e)}


class handler(JsonHandler):
    ALLOWED_METHODS = ("POST", "OPTIONS")

    def do_POST(self):
        self.drain_body()
        status_code, payload = run_toggle()
        self.send_json(status_code, payload)
