"""
HTTPTunnel entry point — runs the relay until interrupted.

Configuration comes from the environment (see config/settings.py):
HT_WHITELIST, HT_MASTER_KEY, HT_MAX_SESSION_AGE, HT_HOST, HT_PORT,
HT_LOG_LEVEL.
"""

import logging
import sys

from config.settings import Settings
from tunnel          import RelayServer


def setup_logging(level: str = Settings.LOG_LEVEL):
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(
        Settings.LOG_FORMAT, datefmt="%H:%M:%S",
    ))
    root_logger.addHandler(console_handler)


def build_relay() -> RelayServer:
    """Construct the relay from Settings; raises ValueError on bad config."""
    whitelist = Settings.parse_whitelist(Settings.WHITELISTED_HOSTS)
    if not whitelist:
        raise ValueError("HT_WHITELIST names no hosts")
    return RelayServer(
        whitelisted_hosts=whitelist,
        master_key=Settings.parse_master_key(Settings.MASTER_KEY),
        max_session_age=Settings.parse_positive_int(
            Settings.MAX_SESSION_AGE, "HT_MAX_SESSION_AGE"
        ),
        host=Settings.RELAY_HOST,
        port=Settings.parse_positive_int(Settings.RELAY_PORT, "HT_PORT"),
    )


def main():
    setup_logging()
    logger = logging.getLogger("HTTPTunnel.Main")

    try:
        relay = build_relay()
    except ValueError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(2)

    logger.info("%s v%s starting", Settings.APP_NAME, Settings.APP_VERSION)
    try:
        relay.bind()
    except OSError as exc:
        logger.error("Cannot listen on %s:%d: %s", relay.host, relay.port, exc)
        relay.stop()
        sys.exit(2)

    try:
        relay.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down…")
    finally:
        relay.stop()
    logger.info("Goodbye!")


if __name__ == "__main__":
    main()
