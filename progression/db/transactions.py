"""Atomic units of work with bounded retry on concurrent modification."""

from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from progression.core.config import settings
from progression.core.exceptions import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# A stale version counter and a unique-key race on lazy creation both mean
# another writer got there first; the whole unit is replayed from fresh reads.
RETRYABLE_ERRORS = (StaleDataError, IntegrityError)


def run_atomic(
    db: Session,
    operation: Callable[[], T],
    *,
    label: str = "operation",
    attempts: Optional[int] = None,
) -> T:
    """Run *operation* and commit it as a single unit.

    ``operation`` must perform all of its reads inside the call so a retry
    observes the state left by the competing writer. Retryable failures are
    replayed up to ``CONFLICT_RETRY_ATTEMPTS`` times before ``ConflictError``
    is raised. Any other exception rolls the unit back and propagates.
    """

    max_attempts = max(int(attempts or settings.CONFLICT_RETRY_ATTEMPTS), 1)
    attempt = 1

    while True:
        try:
            result = operation()
            db.commit()
            return result
        except RETRYABLE_ERRORS as exc:
            db.rollback()
            if attempt >= max_attempts:
                logger.warning(
                    "Conflit persistant sur %s après %s tentative(s): %s",
                    label,
                    attempt,
                    exc,
                )
                raise ConflictError() from exc
            logger.info(
                "Conflit détecté sur %s (tentative %s/%s), nouvelle tentative.",
                label,
                attempt,
                max_attempts,
            )
            attempt += 1
        except Exception:
            db.rollback()
            raise


__all__ = ["RETRYABLE_ERRORS", "run_atomic"]
