"""
Reintento con backoff exponencial para lecturas idempotentes.
Las escrituras nunca pasan por acá: reintentar después de un éxito parcial podría duplicar reservas.
"""

import functools
import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.config import READ_RETRY_ATTEMPTS, READ_RETRY_BACKOFF_SECONDS

logger = logging.getLogger(__name__)


def retry_read(func):
    """
    Reintenta la función ante errores transitorios de la base de datos.
    El primer argumento debe ser la sesión, que se limpia con rollback antes de reintentar.
    """

    @functools.wraps(func)
    def wrapper(db: Session, *args, **kwargs):
        attempts = max(1, READ_RETRY_ATTEMPTS)
        for attempt in range(attempts):
            try:
                return func(db, *args, **kwargs)
            except OperationalError as e:
                db.rollback()
                if attempt == attempts - 1:
                    raise
                delay = READ_RETRY_BACKOFF_SECONDS * (2**attempt)
                logger.warning(
                    f"{func.__name__} failed (attempt {attempt + 1}/{attempts}): {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                time.sleep(delay)

    return wrapper
