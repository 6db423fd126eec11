"""
Routes d'authentification pour l'API.

Ce module fournit les endpoints d'inscription, de connexion et de lecture de l'utilisateur de
session. Les autres routes dépendent de `get_current_user` (voir `backend.api.deps`).
"""

from fastapi import APIRouter, Depends, HTTPException

from backend.api.deps import get_current_user
from backend.api.schemas import LoginRequest, SignupRequest, TokenResponse, UserResponse
from backend.core.container import container
from backend.core.http_constants import HTTP_CONFLICT, HTTP_CREATED, HTTP_UNAUTHORIZED
from backend.domain.auth import create_access_token, hash_password, verify_password
from backend.domain.entities import User

router = APIRouter(tags=["auth"])


@router.post("/auth/signup", response_model=UserResponse, status_code=HTTP_CREATED)
def signup(p: SignupRequest):
    """Inscrit un nouvel utilisateur dans le système."""
    if container.user_repo.get_by_email(str(p.email)):
        raise HTTPException(status_code=HTTP_CONFLICT, detail="email_exists")
    user = User(
        email=str(p.email),
        password_hash=hash_password(p.password),
        first_name=p.first_name,
        last_name=p.last_name,
    )
    return container.user_repo.save(user)


@router.post("/auth/login", response_model=TokenResponse)
def login(p: LoginRequest):
    """Authentifie un utilisateur et retourne un token d'accès."""
    user = container.user_repo.get_by_email(str(p.email))
    if not user or not verify_password(p.password, user.password_hash):
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="invalid_credentials")
    token = create_access_token(
        secret=container.settings.JWT_SECRET,
        alg=container.settings.JWT_ALG,
        expires_min=container.settings.JWT_EXPIRES_MIN,
        payload={"sub": user.id, "email": user.email},
    )
    return TokenResponse(access_token=token)


@router.get("/api/auth/user", response_model=UserResponse)
def current_user(user: User = Depends(get_current_user)):
    """Retourne l'utilisateur de la session courante."""
    return user
