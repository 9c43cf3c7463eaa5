# Fichier: progression/core/security.py

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Union

from jose import jwt

from progression.core.config import settings

# --- Configuration de la Sécurité ---
SECRET_KEY = settings.SECRET_KEY
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

logger = logging.getLogger(__name__)

# --- Fonctions Utilitaires ---
def create_access_token(subject: Union[str, Any], expires_delta: timedelta = None) -> str:
    """Crée un token d'accès JWT.

    Les tokens sont normalement émis par le service d'authentification ; cette
    fonction sert aux outils internes et aux tests.
    """
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"exp": expire, "sub": str(subject)}
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def decode_subject(token: str) -> str | None:
    """Return the ``sub`` claim of *token* (raises ``JWTError`` when invalid)."""
    payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    return payload.get("sub")


__all__ = ["ALGORITHM", "SECRET_KEY", "create_access_token", "decode_subject"]
