"""
Logging setup for the Blog API.

``setup_logging`` attaches a single console handler to the root logger so
that every module-level ``logging.getLogger(__name__)`` logger in the
package writes through the same format.  It is idempotent: repeated calls
(test sessions, reloads) leave an already configured root logger alone.
"""
import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
