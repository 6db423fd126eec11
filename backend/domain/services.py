from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import structlog

from backend.domain.entities import Chart, Folder, User, utcnow
from backend.domain.location_resolver import LocationResolver


class FolderService:
    """Service métier des dossiers d'un utilisateur.

    Les dossiers d'un autre utilisateur sont traités comme inexistants.
    """

    def __init__(self, folder_repo, chart_repo):
        """Initialise le service avec les dépôts de dossiers et de fiches."""
        self.folders = folder_repo
        self.charts = chart_repo

    def list(self, user: User) -> list[Folder]:
        return self.folders.list_by_user(user.id)

    def get(self, user: User, folder_id: str) -> Folder:
        """Retourne le dossier `folder_id` de l'utilisateur; `KeyError` sinon."""
        folder = self.folders.get(folder_id)
        if folder is None or folder.user_id != user.id:
            raise KeyError("folder_not_found")
        return folder

    def create(self, user: User, name: str) -> Folder:
        return self.folders.save(Folder(name=name, user_id=user.id))

    def rename(self, user: User, folder_id: str, name: str) -> Folder:
        folder = self.get(user, folder_id)
        return self.folders.save(folder.model_copy(update={"name": name, "updated_at": utcnow()}))

    def delete(self, user: User, folder_id: str) -> None:
        """Supprime le dossier et détache ses fiches (elles sont conservées)."""
        self.get(user, folder_id)
        for chart in self.charts.list_by_folder(folder_id):
            self.charts.save(chart.model_copy(update={"folder_id": None, "updated_at": utcnow()}))
        self.folders.delete(folder_id)


class ChartService:
    """Service métier des fiches de naissance.

    Responsabilités:
    - CRUD des fiches de l'utilisateur courant (les fiches d'autrui sont invisibles).
    - Rattacher un lieu résolu quand seul le lieu de naissance en texte libre est fourni.
    - Statistiques du tableau de bord.
    """

    def __init__(self, chart_repo, folder_repo, location_repo, resolver: LocationResolver):
        """Initialise le service avec ses dépendances.

        Paramètres:
        - chart_repo / folder_repo / location_repo: dépôts (InMemory ou Redis).
        - resolver: résolveur de lieux utilisé pour `birth_place` sans `location_id`.
        """
        self.charts = chart_repo
        self.folders = folder_repo
        self.locations = location_repo
        self.resolver = resolver
        self._log = structlog.get_logger(__name__, component="chart_service")

    def list(
        self, user: User, folder_id: str | None = None, search: str | None = None
    ) -> list[Chart]:
        """Liste les fiches: recherche par nom de client, sinon par dossier, sinon toutes."""
        if search:
            return self.charts.search_by_client_name(user.id, search)
        if folder_id and folder_id != "undefined":
            return [c for c in self.charts.list_by_folder(folder_id) if c.user_id == user.id]
        return self.charts.list_by_user(user.id)

    def get(self, user: User, chart_id: str) -> Chart:
        """Retourne la fiche `chart_id` de l'utilisateur; `KeyError` sinon."""
        chart = self.charts.get(chart_id)
        if chart is None or chart.user_id != user.id:
            raise KeyError("chart_not_found")
        return chart

    def create(self, user: User, data: dict[str, Any]) -> Chart:
        """Crée une fiche; `ValueError` si le dossier ou le lieu référencé est inconnu."""
        fields = dict(data)
        self._check_folder(user, fields.get("folder_id"))
        fields["location_id"] = self._link_location(
            fields.get("birth_place"), fields.get("location_id")
        )
        return self.charts.save(Chart(**fields, user_id=user.id))

    def update(self, user: User, chart_id: str, updates: dict[str, Any]) -> Chart:
        """Met à jour une fiche; le lieu est re-résolu si seul `birth_place` change."""
        chart = self.get(user, chart_id)
        changes = dict(updates)
        if "folder_id" in changes:
            self._check_folder(user, changes["folder_id"])
        if "location_id" in changes:
            changes["location_id"] = self._link_location(None, changes["location_id"])
        elif changes.get("birth_place") and changes["birth_place"] != chart.birth_place:
            changes["location_id"] = self._link_location(changes["birth_place"], None)
        changes["updated_at"] = utcnow()
        # revalidation complète: une mise à jour invalide lève ValidationError (ValueError)
        return self.charts.save(Chart.model_validate({**chart.model_dump(), **changes}))

    def delete(self, user: User, chart_id: str) -> None:
        self.get(user, chart_id)
        self.charts.delete(chart_id)

    def stats(self, user: User, now: datetime | None = None) -> dict[str, int]:
        """Compteurs du tableau de bord (fiches, dossiers, clients distincts, fiches du mois)."""
        charts = self.charts.list_by_user(user.id)
        folders = self.folders.list_by_user(user.id)
        current = now or datetime.now(UTC)
        month_start = current.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        return {
            "totalCharts": len(charts),
            "totalFolders": len(folders),
            "totalClients": len({c.client_name for c in charts}),
            "thisMonth": sum(1 for c in charts if c.created_at >= month_start),
        }

    def _check_folder(self, user: User, folder_id: str | None) -> None:
        if folder_id is None:
            return
        folder = self.folders.get(folder_id)
        if folder is None or folder.user_id != user.id:
            raise ValueError("folder_not_found")

    def _link_location(self, birth_place: str | None, location_id: str | None) -> str | None:
        if location_id:
            if self.locations.find_by_id(location_id) is None:
                raise ValueError("location_not_found")
            return location_id
        if not birth_place:
            return None
        place = self.resolver.resolve_one(birth_place)
        if place is None:
            self._log.info("birth_place_unresolved", birth_place=birth_place)
            return None
        return self.resolver.persist(place).id
