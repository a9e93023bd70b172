"""Shelly Cloud API-klient (v2) - läser och sätter en switch-kanal via molnet."""
import time
from urllib.parse import quote_plus
import requests
from _log import logger

TIMEOUT = 15
MIN_INTERVAL_S = 1.0  # Shelly Cloud tillåter ca 1 anrop/sekund
MAX_ATTEMPTS = 4
BACKOFF_BASE_S = 1.0

# Gäller bara inom en varm instans, ingen garanti mellan parallella anrop
_throttle = {"last": None}


class ShellyCloudError(Exception):
    """Fel mot Shelly Cloud, bär HTTP-status och JSON-svar till klienten."""

    def __init__(self, status_code: int, payload: dict):
        super().__init__(payload.get("error") or payload.get("step") or "Shelly error")
        self.status_code = status_code
        self.payload = payload


def wait_for_slot():
    """Vänta tills MIN_INTERVAL_S har gått sedan förra API-anropet."""
    now = time.monotonic()
    last = _throttle["last"]
    if last is not None:
        remaining = MIN_INTERVAL_S - (now - last)
        if remaining > 0:
            logger.debug("Throttle: väntar %.2fs", remaining)
            time.sleep(remaining)
    _throttle["last"] = time.monotonic()


def _parse_body(resp) -> dict:
    text = resp.text
    if not text:
        return {}
    try:
        return resp.json()
    except ValueError:
        return {"raw": text}


def _api_url(config, path: str) -> str:
    return f"{config.api_base}{path}"


def _error_text(config, error) -> str:
    """Felmeddelande utan auth_key (requests lägger hela URL:en i texten)."""
    text = str(error)
    for secret in (config.auth_key, quote_plus(config.auth_key)):
        if secret:
            text = text.replace(secret, "***")
    return text


def probe(config):
    """Kontrollera att host/DNS/TLS fungerar, alla HTTP-svar räknas som nåbara."""
    try:
        requests.get(config.api_base, timeout=TIMEOUT)
    except requests.RequestException as e:
        logger.warning("Probe mot %s misslyckades: %s", config.api_base, _error_text(config, e))
        raise ShellyCloudError(502, {
            "ok": False,
            "step": "probe",
            "apiBase": config.api_base,
            "error": _error_text(config, e),
        })


def get_device_status(config):
    """Hämta status för enheten, returnerar listan som molnet svarar med."""
    wait_for_slot()
    try:
        resp = requests.post(
            _api_url(config, "/v2/devices/api/get"),
            params={"auth_key": config.auth_key},
            json={"ids": [config.device_id], "select": ["status"]},
            timeout=TIMEOUT,
        )
    except requests.RequestException as e:
        raise ShellyCloudError(502, {"ok": False, "step": "get_fetch", "error": _error_text(config, e)})

    body = _parse_body(resp)
    if not resp.ok:
        logger.warning("Statusanrop gav HTTP %s", resp.status_code)
        payload = {"ok": False, "step": "get_http", "status": resp.status_code, "body": body}
        if resp.status_code == 429:
            payload["error"] = "rate_limited"
            raise ShellyCloudError(429, payload)
        raise ShellyCloudError(502, payload)
    return body


def read_output(device_list, channel: int):
    """Plocka ut status["switch:<kanal>"].output, returnerar (output, online)."""
    if not isinstance(device_list, list) or not device_list:
        raise ShellyCloudError(500, {
            "ok": False,
            "error": "No device state returned. Wrong DEVICE_ID or device not in this account?",
            "deviceList": device_list,
        })

    device = device_list[0]
    if not isinstance(device, dict):
        device = {}
    online = device.get("online")
    status = device.get("status")

    if not isinstance(status, dict):
        raise ShellyCloudError(500, {
            "ok": False,
            "error": "Device returned without status object (device offline or no status from API).",
            "online": online,
            "deviceMeta": {
                "id": device.get("id"),
                "gen": device.get("gen"),
                "type": device.get("type"),
                "code": device.get("code"),
            },
            "device": device_list[0],
        })

    switch_key = f"switch:{channel}"
    switch_obj = status.get(switch_key)
    current = switch_obj.get("output") if isinstance(switch_obj, dict) else None

    # bool är det enda godkända, 0/1 eller "on" räknas inte
    if not isinstance(current, bool):
        raise ShellyCloudError(500, {
            "ok": False,
            "error": f'Cannot read status["{switch_key}"].output',
            "online": online,
            "statusKeys": list(status.keys()),
            "switchObj": switch_obj,
        })

    return current, online


def set_switch(config, on: bool) -> dict:
    """Slå på/av kanalen. 429 görs om med exponentiell backoff."""
    body = None
    for attempt in range(1, MAX_ATTEMPTS + 1):
        wait_for_slot()
        try:
            resp = requests.post(
                _api_url(config, "/v2/devices/api/set/switch"),
                params={"auth_key": config.auth_key},
                json={"id": config.device_id, "channel": config.channel, "on": on},
                timeout=TIMEOUT,
            )
        except requests.RequestException as e:
            raise ShellyCloudError(502, {"ok": False, "step": "set_fetch", "error": _error_text(config, e)})

        body = _parse_body(resp)
        if resp.status_code == 429:
            if attempt < MAX_ATTEMPTS:
                delay = BACKOFF_BASE_S * 2 ** (attempt - 1)
                logger.warning(
                    "Rate limit (429) på försök %d/%d, nytt försök om %.1fs",
                    attempt, MAX_ATTEMPTS, delay,
                )
                time.sleep(delay)
                continue
            break

        if not resp.ok:
            logger.warning("Set-anrop gav HTTP %s", resp.status_code)
            raise ShellyCloudError(502, {
                "ok": False,
                "step": "set_http",
                "status": resp.status_code,
                "body": body,
            })
        return body

    logger.error("Rate limit kvarstår efter %d försök", MAX_ATTEMPTS)
    raise ShellyCloudError(429, {
        "ok": False,
        "step": "set_http",
        "error": "rate_limited",
        "status": 429,
        "attempts": MAX_ATTEMPTS,
        "body": body,
    })
