"""Root logger setup.

Format: timestamp [LEVEL] logger: message
"""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once at startup. Unknown level names fall back to INFO."""
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # httpx logs every request at INFO; price polling would flood the log
    logging.getLogger("httpx").setLevel(logging.WARNING)
