"""
Entités du domaine métier.

Ce module définit les modèles de données persistés par l'application: utilisateurs, dossiers,
fiches de naissance (charts) et lieux résolus.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

COORDINATE_PRECISION = 7


def utcnow() -> datetime:
    """Horodatage courant en UTC."""
    return datetime.now(UTC)


def new_id() -> str:
    """Identifiant opaque pour un nouvel enregistrement."""
    return uuid.uuid4().hex


class Record(BaseModel):
    """Base commune: alias camelCase côté JSON, noms Python côté code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(Record):
    """Utilisateur authentifié; `password_hash` ne sort jamais de l'API."""

    id: str = Field(default_factory=new_id)
    email: str
    password_hash: str = ""
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Folder(Record):
    """Dossier de rangement des fiches, propre à un utilisateur."""

    id: str = Field(default_factory=new_id)
    name: str
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Chart(Record):
    """Fiche de naissance d'un client (le calcul astrologique n'est pas couvert)."""

    id: str = Field(default_factory=new_id)
    client_name: str
    birth_date: str  # YYYY-MM-DD
    birth_time: str  # HH:MM
    birth_place: str
    location_id: str | None = None
    notes: str | None = None
    folder_id: str | None = None
    user_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class LocationCreate(Record):
    """Champs d'un lieu à insérer (identifiant et horodatages attribués par le dépôt)."""

    name: str
    display_name: str
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    timezone: str
    utc_offset: int
    country: str | None = None
    region: str | None = None

    @field_validator("latitude", "longitude")
    @classmethod
    def _fixed_precision(cls, value: float) -> float:
        return round(value, COORDINATE_PRECISION)


class Location(LocationCreate):
    """Lieu résolu et persisté; immuable une fois créé."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(default_factory=new_id)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @classmethod
    def from_create(cls, fields: LocationCreate) -> Location:
        """Construit un lieu complet à partir des champs d'insertion."""
        now = utcnow()
        return cls(**fields.model_dump(), created_at=now, updated_at=now)
