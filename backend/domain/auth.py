"""
Authentification des praticiens.

Mots de passe hachés (PBKDF2 via passlib) et jetons de session JWT signés. Le claim `sub` porte
l'identifiant de l'utilisateur propriétaire des fiches, dossiers et recherches de lieux.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from passlib.context import CryptContext
from pydantic import BaseModel, ValidationError

_passwords = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class SessionClaims(BaseModel):
    """Claims d'un jeton de session valide."""

    sub: str
    email: str
    exp: datetime | None = None


def hash_password(password: str) -> str:
    return _passwords.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Vrai si `password` correspond au hash stocké; un compte sans hash ne se connecte jamais."""
    return bool(password_hash) and _passwords.verify(password, password_hash)


def create_access_token(
    secret: str, alg: str, expires_min: int, payload: dict[str, Any]
) -> str:
    """Signe un jeton portant `payload`, valable `expires_min` minutes."""
    claims = {**payload, "exp": datetime.now(UTC) + timedelta(minutes=expires_min)}
    return jwt.encode(claims, secret, algorithm=alg)


def decode_token(token: str, secret: str, alg: str) -> SessionClaims | None:
    """Claims du jeton, ou `None` s'il est mal formé, mal signé ou expiré."""
    try:
        return SessionClaims.model_validate(jwt.decode(token, secret, algorithms=[alg]))
    except (jwt.InvalidTokenError, ValidationError):
        return None
