"""Routes de gestion des fiches de naissance (charts) et statistiques.

Objectif du module
------------------
- Offrir les endpoints REST de création, lecture, mise à jour et suppression des fiches de
  l'utilisateur courant, plus le tableau de bord `/api/stats`.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response

from backend.api.deps import get_current_user
from backend.api.schemas import (
    ChartCreateRequest,
    ChartResponse,
    ChartUpdateRequest,
    StatsResponse,
)
from backend.core.container import container
from backend.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CREATED,
    HTTP_NO_CONTENT,
    HTTP_NOT_FOUND,
)
from backend.domain.entities import User

router = APIRouter(prefix="/api", tags=["charts"])


@router.get("/charts", response_model=list[ChartResponse])
def list_charts(
    folder_id: str | None = Query(None, alias="folderId"),
    search: str | None = None,
    user: User = Depends(get_current_user),
):
    """Liste les fiches (filtre par nom de client ou par dossier)."""
    return container.chart_service.list(user, folder_id=folder_id, search=search)


@router.get("/charts/{chart_id}", response_model=ChartResponse)
def get_chart(chart_id: str, user: User = Depends(get_current_user)):
    """Récupère une fiche existante par identifiant, sinon 404."""
    try:
        return container.chart_service.get(user, chart_id)
    except KeyError:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Chart not found") from None


@router.post("/charts", response_model=ChartResponse, status_code=HTTP_CREATED)
def create_chart(payload: ChartCreateRequest, user: User = Depends(get_current_user)):
    """Crée une fiche; le lieu est résolu depuis `birthPlace` si `locationId` manque."""
    try:
        return container.chart_service.create(user, payload.model_dump())
    except ValueError as err:
        raise HTTPException(status_code=HTTP_BAD_REQUEST, detail=str(err)) from err


@router.put("/charts/{chart_id}", response_model=ChartResponse)
def update_chart(
    chart_id: str, payload: ChartUpdateRequest, user: User = Depends(get_current_user)
):
    """Met à jour les champs fournis d'une fiche."""
    try:
        return container.chart_service.update(
            user, chart_id, payload.model_dump(exclude_unset=True)
        )
    except KeyError:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Chart not found") from None
    except ValueError as err:
        raise HTTPException(status_code=HTTP_BAD_REQUEST, detail=str(err)) from err


@router.delete("/charts/{chart_id}", status_code=HTTP_NO_CONTENT)
def delete_chart(chart_id: str, user: User = Depends(get_current_user)):
    """Supprime une fiche."""
    try:
        container.chart_service.delete(user, chart_id)
    except KeyError:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Chart not found") from None
    return Response(status_code=HTTP_NO_CONTENT)


@router.get("/stats", response_model=StatsResponse)
def stats(user: User = Depends(get_current_user)):
    """Compteurs du tableau de bord de l'utilisateur."""
    return container.chart_service.stats(user)
