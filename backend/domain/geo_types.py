"""
Types éphémères de la résolution de lieux.

Ce module définit les résultats normalisés produits par les clients de géocodage et de fuseau
horaire, avant enrichissement et persistance sous forme de `Location`.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

TimezoneSource = Literal["provider", "estimate"]


class GeocodingResult(BaseModel):
    """Candidat normalisé renvoyé par la recherche de lieux."""

    name: str
    display_name: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    country: str | None = None
    region: str | None = None


class TimezoneResult(BaseModel):
    """
    Fuseau horaire d'un point.

    `source` distingue une réponse du fournisseur d'une estimation par la longitude; la forme de
    sortie est identique dans les deux cas.
    """

    timezone: str
    utc_offset: int  # minutes
    source: TimezoneSource = "provider"


class PlaceSearch(BaseModel):
    """Résultat d'une recherche externe; `degraded` signale le repli après échec."""

    candidates: list[GeocodingResult] = Field(default_factory=list)
    degraded: bool = False


class ResolvedPlace(GeocodingResult):
    """Meilleur candidat enrichi de son fuseau, non persisté."""

    timezone: str
    utc_offset: int
    timezone_source: TimezoneSource = "provider"

    @classmethod
    def combine(cls, place: GeocodingResult, tz: TimezoneResult) -> ResolvedPlace:
        """Fusionne un candidat et son fuseau horaire."""
        return cls(
            **place.model_dump(),
            timezone=tz.timezone,
            utc_offset=tz.utc_offset,
            timezone_source=tz.source,
        )
