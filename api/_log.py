"""Gemensam logger för alla API-routes (stderr fångas av Vercel)."""
import logging
import os

logger = logging.getLogger("shelly_toggle")
logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())

if not logger.hasHandlers():
    console = logging.StreamHandler()
    console.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s", "%Y-%m-%d %H:%M:%S"
    ))
    logger.addHandler(console)
