"""Utilitaires de fuseau horaire sans dépendance réseau.

Ce module fournit l'analyse des décalages `±HH:MM` et l'estimation grossière d'un fuseau à partir
de la seule longitude, utilisée en repli quand aucun service n'est joignable.
"""

from __future__ import annotations

import math
import re

from backend.domain.geo_types import TimezoneResult

_OFFSET_RE = re.compile(r"([+-])(\d{2}):(\d{2})")
DEGREES_PER_HOUR = 15
MAX_OFFSET_HOURS = 12


def parse_utc_offset(text: str | None) -> int:
    """Convertit `+05:30` / `-03:00` en minutes signées.

    Toute chaîne non conforme vaut 0 (UTC); ce n'est pas une erreur.
    """
    if not text:
        return 0
    match = _OFFSET_RE.search(text)
    if not match:
        return 0
    sign = 1 if match.group(1) == "+" else -1
    hours = int(match.group(2))
    minutes = int(match.group(3))
    return sign * (hours * 60 + minutes)


def approximate_timezone(longitude: float) -> TimezoneResult:
    """Estime un fuseau entier à partir de la longitude (15° par heure), borné à ±12 h."""
    # arrondi au demi supérieur, -7.5 -> -7
    hours = math.floor(longitude / DEGREES_PER_HOUR + 0.5)
    hours = max(-MAX_OFFSET_HOURS, min(MAX_OFFSET_HOURS, hours))
    sign = "+" if hours >= 0 else "-"
    return TimezoneResult(
        timezone=f"UTC{sign}{abs(hours)}",
        utc_offset=hours * 60,
        source="estimate",
    )
