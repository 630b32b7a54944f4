from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: int = logging.INFO, *, verbose: bool = False) -> None:
    """
    Console logging for the demo app.

    `verbose` turns on glint's per-resource debug lines without making
    every third-party logger chatty.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)

    if verbose:
        logging.getLogger("glint").setLevel(logging.DEBUG)

    logging.getLogger("PIL").setLevel(logging.WARNING)
