# Fichier : progression/utils/time_utils.py
from __future__ import annotations

from datetime import datetime, timezone


def utcnow() -> datetime:
    """Horodatage UTC naïf, format utilisé par toutes les colonnes DateTime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


__all__ = ["utcnow"]
