"""Loaded via NESTSPEC_PLUGINS=demo_plugin (with this directory on PYTHONPATH)."""
import logging

logger = logging.getLogger(__name__)


def register() -> None:
    logging.getLogger("nestspec").setLevel(logging.INFO)
    logger.info("demo plugin registered; STEP logs are now visible")
