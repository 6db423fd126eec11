"""Routes de gestion des dossiers de l'utilisateur courant."""

from fastapi import APIRouter, Depends, HTTPException, Response

from backend.api.deps import get_current_user
from backend.api.schemas import FolderRequest, FolderResponse
from backend.core.container import container
from backend.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT, HTTP_NOT_FOUND
from backend.domain.entities import User

router = APIRouter(prefix="/api/folders", tags=["folders"])


@router.get("", response_model=list[FolderResponse])
def list_folders(user: User = Depends(get_current_user)):
    return container.folder_service.list(user)


@router.post("", response_model=FolderResponse, status_code=HTTP_CREATED)
def create_folder(payload: FolderRequest, user: User = Depends(get_current_user)):
    return container.folder_service.create(user, payload.name)


@router.put("/{folder_id}", response_model=FolderResponse)
def rename_folder(
    folder_id: str, payload: FolderRequest, user: User = Depends(get_current_user)
):
    try:
        return container.folder_service.rename(user, folder_id, payload.name)
    except KeyError:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Folder not found") from None


@router.delete("/{folder_id}", status_code=HTTP_NO_CONTENT)
def delete_folder(folder_id: str, user: User = Depends(get_current_user)):
    """Supprime un dossier; ses fiches sont conservées sans dossier."""
    try:
        container.folder_service.delete(user, folder_id)
    except KeyError:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="Folder not found") from None
    return Response(status_code=HTTP_NO_CONTENT)
