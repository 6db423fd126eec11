"""Résolution des lieux de naissance.

Ce module coordonne le cache local des lieux déjà résolus, la recherche externe (géocodage), la
détermination du fuseau horaire et le dédoublonnage par proximité avant persistance.

Ordre des opérations dans `resolve_search`:
- garde sur les requêtes trop courtes (aucun appel);
- consultation du cache; s'il suffit, aucun appel externe;
- sinon géocodage, fuseau par candidat (séquentiel), persistance, fusion sans doublons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import structlog
from structlog.typing import FilteringBoundLogger

from backend.app.metrics import LOCATION_PERSIST_ERRORS, LOCATION_SEARCH_TOTAL
from backend.domain.entities import Location, LocationCreate, User
from backend.domain.geo_types import GeocodingResult, PlaceSearch, ResolvedPlace, TimezoneResult


class LocationRepository(Protocol):
    """Contrat du dépôt de lieux consommé par le résolveur."""

    def find_by_id(self, location_id: str) -> Location | None: ...

    def search_by_name_substring(self, query: str) -> list[Location]: ...

    def find_near(
        self, latitude: float, longitude: float, tolerance: float
    ) -> Location | None: ...

    def insert(self, fields: LocationCreate) -> Location: ...


class PlaceSearchProvider(Protocol):
    """Recherche de lieux en texte libre; ne lève pas en cas d'échec réseau."""

    def search_places(self, query: str, limit: int = 5) -> PlaceSearch: ...


class TimezoneProvider(Protocol):
    """Fuseau horaire par coordonnées; renvoie toujours un résultat."""

    def get_timezone(self, latitude: float, longitude: float) -> TimezoneResult: ...


@dataclass(frozen=True)
class ResolverLimits:
    """Seuils de la résolution (voir Settings.LOCATION_*)."""

    min_query_len: int = 2
    cache_sufficient: int = 3
    max_results: int = 10
    remote_limit: int = 5
    dedup_tolerance: float = 0.01


def is_duplicate(a: Location, b: Location, tolerance: float = 0.01) -> bool:
    """Deux lieux sont des doublons si lat et lon diffèrent chacune de moins de `tolerance`."""
    return (
        abs(a.latitude - b.latitude) < tolerance
        and abs(a.longitude - b.longitude) < tolerance
    )


def merge_unique(
    existing: list[Location], additions: list[Location], tolerance: float = 0.01
) -> list[Location]:
    """Ajoute à `existing` chaque élément de `additions` qui ne double aucun élément déjà retenu."""
    merged = list(existing)
    for candidate in additions:
        if not any(is_duplicate(kept, candidate, tolerance) for kept in merged):
            merged.append(candidate)
    return merged


class LocationResolver:
    """Orchestrateur cache + géocodage + fuseau horaire pour les lieux de naissance.

    Responsabilités:
    - Servir les recherches depuis le dépôt quand il contient assez de correspondances.
    - Compléter via le fournisseur externe et persister les nouveaux lieux.
    - Fournir le meilleur candidat unique lors de la saisie d'une fiche (`resolve_one`).
    """

    def __init__(
        self,
        repository: LocationRepository,
        place_search: PlaceSearchProvider,
        timezone_lookup: TimezoneProvider,
        limits: ResolverLimits | None = None,
    ):
        """Initialise le résolveur avec ses dépendances injectées."""
        self.repo = repository
        self.places = place_search
        self.timezones = timezone_lookup
        self.limits = limits or ResolverLimits()
        self._log = structlog.get_logger(__name__, component="location_resolver")

    def resolve_search(self, query: str | None, user: User | None = None) -> list[Location]:
        """Recherche de lieux pour l'autocomplétion.

        Paramètres:
        - query: texte saisi; `None` ou moins de `min_query_len` caractères utiles -> `[]`.
        - user: utilisateur courant (journalisation uniquement).

        Retour: au plus `max_results` lieux, ceux du cache d'abord puis les nouveaux.
        """
        text = (query or "").strip()
        if len(text) < self.limits.min_query_len:
            LOCATION_SEARCH_TOTAL.labels("rejected").inc()
            return []

        log = self._log.bind(query=text, user_id=user.id if user else None)
        local = self.repo.search_by_name_substring(text)
        if len(local) >= self.limits.cache_sufficient:
            LOCATION_SEARCH_TOTAL.labels("cache").inc()
            log.debug("location_search_cache_hit", count=len(local))
            return local[: self.limits.max_results]

        LOCATION_SEARCH_TOTAL.labels("remote").inc()
        search = self.places.search_places(text, limit=self.limits.remote_limit)
        if search.degraded:
            log.info("location_search_degraded", local=len(local))

        created = self._persist_candidates(search.candidates, log)
        merged = merge_unique(local, created, self.limits.dedup_tolerance)
        log.info(
            "location_search_resolved",
            local=len(local),
            remote=len(search.candidates),
            returned=min(len(merged), self.limits.max_results),
        )
        return merged[: self.limits.max_results]

    def resolve_one(self, query: str) -> ResolvedPlace | None:
        """Meilleur candidat unique enrichi de son fuseau; `None` si introuvable.

        Ne persiste rien: c'est à l'appelant d'enregistrer le lieu s'il l'accepte.
        """
        text = (query or "").strip()
        if not text:
            return None
        search = self.places.search_places(text, limit=1)
        if not search.candidates:
            return None
        place = search.candidates[0]
        tz = self.timezones.get_timezone(place.latitude, place.longitude)
        return ResolvedPlace.combine(place, tz)

    def persist(self, place: ResolvedPlace) -> Location:
        """Enregistre un lieu accepté, ou renvoie celui déjà stocké à proximité."""
        existing = self.repo.find_near(
            place.latitude, place.longitude, self.limits.dedup_tolerance
        )
        if existing is not None:
            return existing
        return self.repo.insert(_to_create(place, place.timezone, place.utc_offset))

    def _persist_candidates(
        self, candidates: list[GeocodingResult], log: FilteringBoundLogger
    ) -> list[Location]:
        # séquentiel: l'ordre de création conditionne le dédoublonnage
        resolved: list[Location] = []
        for candidate in candidates:
            try:
                existing = self.repo.find_near(
                    candidate.latitude, candidate.longitude, self.limits.dedup_tolerance
                )
                if existing is not None:
                    resolved.append(existing)
                    continue
                tz = self.timezones.get_timezone(candidate.latitude, candidate.longitude)
                resolved.append(self.repo.insert(_to_create(candidate, tz.timezone, tz.utc_offset)))
            except Exception as err:
                LOCATION_PERSIST_ERRORS.inc()
                log.warning(
                    "location_persist_failed",
                    candidate=candidate.display_name,
                    error=str(err),
                )
        return resolved


def _to_create(place: GeocodingResult, timezone: str, utc_offset: int) -> LocationCreate:
    return LocationCreate(
        name=place.name,
        display_name=place.display_name,
        latitude=place.latitude,
        longitude=place.longitude,
        timezone=timezone,
        utc_offset=utc_offset,
        country=place.country or None,
        region=place.region or None,
    )
