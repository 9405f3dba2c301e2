import logging
import sys
from typing import Iterable

from restaurant_ops.utils.logging_redaction import install_redaction_filter

NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def setup_logging(level: str = "INFO", quiet: Iterable[str] = NOISY_LOGGERS) -> None:
    """
    Configure application logging once at startup.

    Tokens sent to the dashboard backend are redacted from every record.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    install_redaction_filter()
