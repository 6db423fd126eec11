"""Clients HTTP externes (géocodage, fuseaux horaires).

Objectif du module
------------------
- Encapsuler les appels réseau vers des services tiers (Nominatim, TimeAPI).
- Valider les réponses via des schémas explicites et ne renvoyer que des types normalisés
  (`PlaceSearch`, `TimezoneResult`); aucune charge brute ne sort de ce module.
- Ne jamais lever vers l'appelant en cas d'échec réseau: repli journalisé.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from backend.app.metrics import GEOCODING_LATENCY, GEOCODING_REQUESTS
from backend.domain.geo_types import GeocodingResult, PlaceSearch, TimezoneResult
from backend.domain.timezones import approximate_timezone, parse_utc_offset

DEFAULT_TIMEOUT_S = 5.0
DEFAULT_SEARCH_LIMIT = 5


class ProviderError(RuntimeError):
    """Réponse inexploitable d'un fournisseur (statut non 2xx, corps invalide)."""

    def __init__(self, provider: str, message: str, status_code: int | None = None) -> None:
        """Initialise l'erreur avec le fournisseur et le code HTTP éventuel."""
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"{provider}: {message}")


# Schémas des réponses fournisseurs (champs optionnels, le reste est ignoré)


class NominatimAddress(BaseModel):
    """Sous-champs d'adresse structurée Nominatim."""

    model_config = ConfigDict(extra="ignore")

    country: str | None = None
    state: str | None = None
    region: str | None = None


class NominatimPlace(BaseModel):
    """Élément de la réponse `/search` de Nominatim (coordonnées en chaînes décimales)."""

    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    display_name: str
    lat: float
    lon: float
    address: NominatimAddress | None = None

    def normalize(self) -> GeocodingResult:
        """Convertit l'élément fournisseur en `GeocodingResult`."""
        short = (self.name or "").strip() or self.display_name.split(",")[0].strip()
        address = self.address or NominatimAddress()
        return GeocodingResult(
            name=short,
            display_name=self.display_name,
            latitude=self.lat,
            longitude=self.lon,
            country=address.country or None,
            region=address.state or address.region or None,
        )


class TimeApiOffset(BaseModel):
    """Décalage courant renvoyé sous forme d'objet par TimeAPI."""

    model_config = ConfigDict(extra="ignore")

    seconds: int | None = None
    offset: str | None = None


class TimeApiZone(BaseModel):
    """Réponse `/TimeZone/coordinate` de TimeAPI."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    time_zone: str | None = Field(default=None, alias="timeZone")
    current_utc_offset: str | TimeApiOffset | None = Field(
        default=None, alias="currentUtcOffset"
    )

    def offset_minutes(self) -> int:
        """Décalage en minutes; `+00:00` si absent."""
        raw = self.current_utc_offset
        if isinstance(raw, TimeApiOffset):
            if raw.offset:
                return parse_utc_offset(raw.offset)
            if raw.seconds is not None:
                return int(raw.seconds / 60)
            return 0
        return parse_utc_offset(raw or "+00:00")


class _ProviderClient:
    """Socle commun: client httpx borné en temps et appel GET JSON instrumenté."""

    provider = "provider"

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._log = structlog.get_logger(__name__, component=self.provider)
        self._client = httpx.Client(
            headers=headers or {},
            timeout=httpx.Timeout(timeout, connect=min(timeout, 2.0)),
            transport=transport,
        )

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        start = time.perf_counter()
        try:
            resp = self._client.get(f"{self.base_url}{path}", params=params)
        finally:
            GEOCODING_LATENCY.labels(self.provider).observe(time.perf_counter() - start)
        if not resp.is_success:
            raise ProviderError(self.provider, "non-success status", resp.status_code)
        try:
            return resp.json()
        except ValueError as exc:
            raise ProviderError(self.provider, "invalid json body", resp.status_code) from exc

    def close(self) -> None:
        """Ferme le pool de connexions HTTP."""
        self._client.close()


class PlaceSearchClient(_ProviderClient):
    """Recherche de lieux en texte libre via l'API Nominatim (OpenStreetMap)."""

    provider = "nominatim"

    def __init__(
        self,
        base_url: str,
        user_agent: str,
        timeout: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialise le client; Nominatim exige un User-Agent identifiant l'application."""
        super().__init__(
            base_url,
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            transport=transport,
        )

    def search_places(self, query: str, limit: int = DEFAULT_SEARCH_LIMIT) -> PlaceSearch:
        """Recherche des lieux correspondant à `query`.

        Args:
            query: Texte libre (nom de ville, adresse...).
            limit: Nombre maximal de candidats demandés.

        Returns:
            PlaceSearch: Candidats normalisés; liste vide et `degraded=True` si le fournisseur
            est indisponible.

        Raises:
            ValueError: Si la requête est vide (rejetée avant tout appel réseau).
        """
        if not query or not query.strip():
            raise ValueError("query ne doit pas être vide")
        params = {
            "q": query,
            "format": "json",
            "limit": max(1, limit),
            "addressdetails": 1,
            "extratags": 1,
        }
        try:
            payload = self._get_json("/search", params)
        except (httpx.HTTPError, ProviderError) as exc:
            GEOCODING_REQUESTS.labels(self.provider, "fallback").inc()
            self._log.warning("geocoding_search_failed", query=query, error=str(exc))
            return PlaceSearch(candidates=[], degraded=True)

        if not isinstance(payload, list):
            GEOCODING_REQUESTS.labels(self.provider, "fallback").inc()
            self._log.warning("geocoding_unexpected_payload", query=query)
            return PlaceSearch(candidates=[], degraded=True)

        candidates: list[GeocodingResult] = []
        for item in payload:
            try:
                candidates.append(NominatimPlace.model_validate(item).normalize())
            except ValidationError as exc:
                self._log.warning(
                    "geocoding_item_skipped", query=query, errors=exc.error_count()
                )
        GEOCODING_REQUESTS.labels(self.provider, "ok").inc()
        self._log.debug("geocoding_search_ok", query=query, count=len(candidates))
        return PlaceSearch(candidates=candidates[: max(1, limit)])


class TimezoneClient(_ProviderClient):
    """Fuseau horaire par coordonnées via TimeAPI, avec repli sur l'estimation par longitude."""

    provider = "timeapi"

    def get_timezone(self, latitude: float, longitude: float) -> TimezoneResult:
        """Retourne le fuseau horaire du point (`source="estimate"` en cas de repli).

        Raises:
            ValueError: Si les coordonnées sont hors bornes (rejetées avant tout appel réseau).
        """
        if not -90.0 <= latitude <= 90.0 or not -180.0 <= longitude <= 180.0:
            raise ValueError(f"coordonnées hors bornes: ({latitude}, {longitude})")
        try:
            payload = self._get_json(
                "/TimeZone/coordinate",
                {"latitude": latitude, "longitude": longitude},
            )
            zone = TimeApiZone.model_validate(payload)
        except (httpx.HTTPError, ProviderError, ValidationError) as exc:
            GEOCODING_REQUESTS.labels(self.provider, "fallback").inc()
            fallback = approximate_timezone(longitude)
            self._log.warning(
                "timezone_lookup_fallback",
                latitude=latitude,
                longitude=longitude,
                estimate=fallback.timezone,
                error=str(exc),
            )
            return fallback
        GEOCODING_REQUESTS.labels(self.provider, "ok").inc()
        return TimezoneResult(
            timezone=zone.time_zone or "UTC",
            utc_offset=zone.offset_minutes(),
            source="provider",
        )
