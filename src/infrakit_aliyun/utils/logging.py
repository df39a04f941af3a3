"""Logging utilities."""

import logging
import sys

# Libraries whose INFO output is mostly per-request chatter.
NOISY_LOGGERS = ("asyncio", "httpx", "httpcore", "aliyunsdkcore", "asyncssh", "aiohttp.access")


def setup_logging(level: str = "INFO"):
    """Configure root logging to stderr.

    Stdout is left alone so CLI commands can print machine-readable output.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )

    # Keep third-party libraries quiet unless debugging
    quiet_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
