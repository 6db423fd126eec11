"""Routes de recherche et de consultation des lieux de naissance.

Objectif du module
------------------
- `GET /api/locations/search?q=` : autocomplétion (cache local puis géocodage externe).
- `GET /api/locations/{location_id}` : lecture d'un lieu résolu.

Les défaillances des fournisseurs externes ne remontent jamais ici: au pire la liste est vide ou
partielle. Un paramètre `q` absent est rejeté (422) avant tout appel réseau.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from backend.api.deps import get_current_user
from backend.api.schemas import LocationResponse
from backend.core.container import container
from backend.core.http_constants import HTTP_NOT_FOUND
from backend.domain.entities import User

router = APIRouter(prefix="/api/locations", tags=["locations"])


@router.get("/search", response_model=list[LocationResponse])
def search_locations(
    q: str = Query(..., description="Texte libre; moins de 2 caractères -> []"),
    user: User = Depends(get_current_user),
):
    """Recherche des lieux correspondant à `q`."""
    return container.location_resolver.resolve_search(q, user)


@router.get("/{location_id}", response_model=LocationResponse)
def get_location(location_id: str, user: User = Depends(get_current_user)):
    """Récupère un lieu par identifiant, sinon 404."""
    location = container.location_repo.find_by_id(location_id)
    if location is None:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Location not found")
    return location
