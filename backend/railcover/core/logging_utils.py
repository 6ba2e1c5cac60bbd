import logging
from typing import Optional


def configure_logging_if_needed(level: Optional[str] = None) -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level=(level or "INFO").upper(),
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    elif level:
        root.setLevel(level.upper())
