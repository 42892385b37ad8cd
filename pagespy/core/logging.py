import logging
import sys
from typing import Iterable, Optional

from pagespy.core.config import LOG_FORMAT, LOG_LEVEL, QUIET_LOGGERS


def _parse_level(level: str) -> int:
    numeric_level = getattr(logging, str(level).upper(), None)
    return numeric_level if isinstance(numeric_level, int) else logging.INFO


def setup_logging(level: Optional[str] = None, quiet: Iterable[str] = QUIET_LOGGERS) -> int:
    """
    Configure le logger racine (stdout) et le namespace `pagespy`.
    Niveau inconnu -> INFO. Retourne le niveau numérique appliqué.
    """
    numeric_level = _parse_level(level or LOG_LEVEL)

    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("pagespy").setLevel(numeric_level)

    # En DEBUG on garde tout, sinon on coupe le bruit des dépendances
    for name in quiet:
        logging.getLogger(name).setLevel(
            numeric_level if numeric_level <= logging.DEBUG else logging.WARNING
        )
    return numeric_level
