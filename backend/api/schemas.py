# Schémas Pydantic exposés par l'API (requêtes et réponses).

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from backend.domain.entities import Location


class ApiModel(BaseModel):
    """Base des schémas: JSON en camelCase, noms Python acceptés en entrée."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SignupRequest(ApiModel):
    """Payload pour l'inscription d'un nouvel utilisateur."""

    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str | None = None
    last_name: str | None = None


class LoginRequest(ApiModel):
    """Payload pour la connexion d'un utilisateur."""

    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(ApiModel):
    """Utilisateur tel qu'exposé par l'API (sans hash de mot de passe)."""

    id: str
    email: str
    first_name: str | None = None
    last_name: str | None = None
    profile_image_url: str | None = None
    created_at: datetime
    updated_at: datetime


class FolderRequest(ApiModel):
    """Création ou renommage d'un dossier."""

    name: str = Field(min_length=1, max_length=255)


class FolderResponse(ApiModel):
    id: str
    name: str
    user_id: str
    created_at: datetime
    updated_at: datetime


class ChartCreateRequest(ApiModel):
    """Création d'une fiche de naissance.

    Champs:
    - client_name: str
    - birth_date: str (YYYY-MM-DD)
    - birth_time: str (HH:MM)
    - birth_place: str (texte libre; résolu si `location_id` est absent)
    - location_id / folder_id / notes: optionnels
    """

    client_name: str = Field(min_length=1, max_length=255)
    birth_date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    birth_time: str = Field(pattern=r"^\d{2}:\d{2}$")
    birth_place: str = Field(min_length=1)
    location_id: str | None = None
    folder_id: str | None = None
    notes: str | None = None


class ChartUpdateRequest(ApiModel):
    """Mise à jour partielle d'une fiche; seuls les champs fournis sont modifiés."""

    client_name: str | None = Field(default=None, min_length=1, max_length=255)
    birth_date: str | None = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    birth_time: str | None = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    birth_place: str | None = Field(default=None, min_length=1)
    location_id: str | None = None
    folder_id: str | None = None
    notes: str | None = None

    @field_validator("client_name", "birth_date", "birth_time", "birth_place", mode="before")
    @classmethod
    def _not_null(cls, value):
        # champ omis: inchangé; champ fourni: jamais vidé
        if value is None:
            raise ValueError("ce champ ne peut pas être null")
        return value


class ChartResponse(ApiModel):
    id: str
    client_name: str
    birth_date: str
    birth_time: str
    birth_place: str
    location_id: str | None = None
    notes: str | None = None
    folder_id: str | None = None
    user_id: str
    created_at: datetime
    updated_at: datetime


class StatsResponse(BaseModel):
    """Compteurs du tableau de bord (clés camelCase natives)."""

    totalCharts: int
    totalFolders: int
    totalClients: int
    thisMonth: int


LocationResponse = Location
