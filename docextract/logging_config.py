"""
logging_config.py

Application-wide logging setup.

Call setup_logging() once when the app is created.
"""

import logging
import sys

_QUIET_LOGGERS = [
    "httpx",          # OpenAI SDK uses httpx
    "httpcore",
    "openai",
    "urllib3",
    "PIL",
    "multipart",
]

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger.

    Parameters:
    - log_level: "DEBUG", "INFO", "WARNING", ...
    """

    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Reloads (uvicorn --reload) would otherwise stack handlers
    if root.handlers:
        root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(console)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured: level=%s", log_level.upper())
