"""MoxMuse - Logging setup for the CLI and server."""

import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging once, quieting chatty HTTP libraries."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
