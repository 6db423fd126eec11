"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Extraire l'utilisateur de session à partir du jeton `Authorization: Bearer ...`.
- Résoudre les services au moment de l'appel via le conteneur, pour que les tests puissent
  remplacer ses attributs sans recharger les routes.
"""

from fastapi import Header, HTTPException

from backend.core.container import container
from backend.core.http_constants import HTTP_UNAUTHORIZED
from backend.domain.auth import decode_token
from backend.domain.entities import User


def get_current_user(authorization: str | None = Header(None)) -> User:
    """Extrait et valide l'utilisateur courant à partir du token d'autorisation."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="missing_token")
    token = authorization.split(" ", 1)[1]
    data = decode_token(token, container.settings.JWT_SECRET, container.settings.JWT_ALG)
    if not data:
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="invalid_token")
    user = container.user_repo.get(data.sub)
    if not user:
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="user_not_found")
    return user
