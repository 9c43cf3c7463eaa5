# Fichier : progression/utils/lang_utils.py
from __future__ import annotations

import re

from progression.core.exceptions import InvalidInputError

_LANGUAGE_PATTERN = re.compile(r"^[a-z]{2}$")
_IDENTIFIER_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.:-]*$")
MAX_IDENTIFIER_LENGTH = 100


def normalize_language(value: str | None) -> str:
    """
    Retourne le code ISO 639-1 en minuscules ("ES" -> "es").
    Lève InvalidInputError si la valeur n'est pas un code à deux lettres.
    """
    code = (value or "").strip().lower()
    if not _LANGUAGE_PATTERN.match(code):
        raise InvalidInputError("invalid_language")
    return code


def normalize_identifier(value: str | None, *, code: str = "invalid_identifier") -> str:
    """
    Valide un identifiant de contenu ("es-casa", "es-gram-ser").
    Les identifiants sont insensibles à la casse et stockés en minuscules.
    """
    if not isinstance(value, str):
        raise InvalidInputError(code)
    identifier = value.strip().lower()
    if not identifier or len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise InvalidInputError(code)
    if not _IDENTIFIER_PATTERN.match(identifier):
        raise InvalidInputError(code)
    return identifier


__all__ = ["MAX_IDENTIFIER_LENGTH", "normalize_identifier", "normalize_language"]
