"""
Repositories pour la gestion des données.

Ce module fournit des implémentations de repositories pour les utilisateurs, dossiers, fiches et
lieux, avec des versions en mémoire (dev/tests) et Redis.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import redis

from backend.domain.entities import Chart, Folder, Location, LocationCreate, User


def _contains(haystack: str | None, needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def _within(location: Location, latitude: float, longitude: float, tolerance: float) -> bool:
    return (
        abs(location.latitude - latitude) < tolerance
        and abs(location.longitude - longitude) < tolerance
    )


# ---------------------------------------------------------------------------
# En mémoire
# ---------------------------------------------------------------------------


class InMemoryUserRepo:
    """Dépôt utilisateurs en mémoire (email indexée par scan simple)."""

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, User] = {}

    def get(self, user_id: str) -> User | None:
        """Retourne un utilisateur par id."""
        return self._db.get(user_id)

    def get_by_email(self, email: str) -> User | None:
        """Recherche un utilisateur par email."""
        return next((u for u in self._db.values() if u.email == email), None)

    def save(self, user: User) -> User:
        """Sauvegarde un utilisateur."""
        self._db[user.id] = user
        return user


class InMemoryFolderRepo:
    """Dépôt de dossiers en mémoire."""

    def __init__(self):
        self._db: dict[str, Folder] = {}

    def list_by_user(self, user_id: str) -> list[Folder]:
        return [f for f in self._db.values() if f.user_id == user_id]

    def get(self, folder_id: str) -> Folder | None:
        return self._db.get(folder_id)

    def save(self, folder: Folder) -> Folder:
        self._db[folder.id] = folder
        return folder

    def delete(self, folder_id: str) -> bool:
        return self._db.pop(folder_id, None) is not None


class InMemoryChartRepo:
    """
    Dépôt de fiches en mémoire (utilisé pour dev/tests).

    Stocke les enregistrements dans un dict local, non persistant; l'ordre d'insertion est conservé.
    """

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, Chart] = {}

    def save(self, chart: Chart) -> Chart:
        """Enregistre/écrase une fiche et la renvoie."""
        self._db[chart.id] = chart
        return chart

    def get(self, chart_id: str) -> Chart | None:
        """Retourne une fiche par id, ou None si elle est absente."""
        return self._db.get(chart_id)

    def delete(self, chart_id: str) -> bool:
        return self._db.pop(chart_id, None) is not None

    def list_by_user(self, user_id: str) -> list[Chart]:
        return [c for c in self._db.values() if c.user_id == user_id]

    def list_by_folder(self, folder_id: str) -> list[Chart]:
        return [c for c in self._db.values() if c.folder_id == folder_id]

    def search_by_client_name(self, user_id: str, query: str) -> list[Chart]:
        """Fiches de l'utilisateur dont le nom du client contient `query` (insensible à la casse)."""
        needle = query.lower()
        return [c for c in self.list_by_user(user_id) if _contains(c.client_name, needle)]


class InMemoryLocationRepo:
    """
    Dépôt de lieux résolus en mémoire.

    Les écritures sont sérialisées par un verrou; aucune contrainte d'unicité n'est posée sur les
    coordonnées (le dédoublonnage relève du résolveur).
    """

    def __init__(self):
        """Initialise une base mémoire vide."""
        self._db: dict[str, Location] = {}
        self._lock = threading.Lock()

    def find_by_id(self, location_id: str) -> Location | None:
        """Retourne un lieu par identifiant."""
        return self._db.get(location_id)

    def search_by_name_substring(self, query: str) -> list[Location]:
        """Lieux dont `name` ou `display_name` contient `query`, dans l'ordre d'insertion."""
        needle = query.lower()
        with self._lock:
            rows = list(self._db.values())
        return [
            loc
            for loc in rows
            if _contains(loc.name, needle) or _contains(loc.display_name, needle)
        ]

    def find_near(self, latitude: float, longitude: float, tolerance: float) -> Location | None:
        """Premier lieu stocké à moins de `tolerance` degrés sur les deux axes."""
        with self._lock:
            rows = list(self._db.values())
        return next((loc for loc in rows if _within(loc, latitude, longitude, tolerance)), None)

    def insert(self, fields: LocationCreate) -> Location:
        """Crée un lieu (identifiant et horodatages attribués ici)."""
        location = Location.from_create(fields)
        with self._lock:
            self._db[location.id] = location
        return location


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------


class _RedisStore:
    """Stockage JSON générique: clé `{prefix}:{id}` et index ordonné `{prefix}:ids`."""

    def __init__(self, client: redis.Redis, prefix: str, model: type):
        self.client = client
        self.prefix = prefix
        self.model = model
        self.idx_key = f"{prefix}:ids"

    def key(self, record_id: str) -> str:
        return f"{self.prefix}:{record_id}"

    def get(self, record_id: str):
        raw = self.client.get(self.key(record_id))
        return self.model.model_validate_json(raw) if raw else None

    def save(self, record):
        key = self.key(record.id)
        pipe = self.client.pipeline()
        if not self.client.exists(key):
            pipe.rpush(self.idx_key, record.id)
        pipe.set(key, record.model_dump_json())
        pipe.execute()
        return record

    def delete(self, record_id: str) -> bool:
        pipe = self.client.pipeline()
        pipe.delete(self.key(record_id))
        pipe.lrem(self.idx_key, 0, record_id)
        deleted, _ = pipe.execute()
        return bool(deleted)

    def all(self) -> list:
        ids = self.client.lrange(self.idx_key, 0, -1) or []
        return self.many(ids)

    def many(self, ids: Iterable[str]) -> list:
        keys = [self.key(i) for i in ids]
        if not keys:
            return []
        return [self.model.model_validate_json(raw) for raw in self.client.mget(keys) if raw]


class RedisUserRepo:
    """Dépôt utilisateurs via Redis avec index email->id (hash)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self.idx_key = "user:idx:email"

    def get(self, user_id: str) -> User | None:
        raw = self.client.get(f"user:{user_id}")
        return User.model_validate_json(raw) if raw else None

    def get_by_email(self, email: str) -> User | None:
        """Recherche un utilisateur par email via l'index Redis."""
        user_id = self.client.hget(self.idx_key, email)
        if not user_id:
            return None
        return self.get(user_id)

    def save(self, user: User) -> User:
        """Sauvegarde un utilisateur et met à jour l'index email."""
        pipe = self.client.pipeline()
        pipe.set(f"user:{user.id}", user.model_dump_json())
        pipe.hset(self.idx_key, user.email, user.id)
        pipe.execute()
        return user


class RedisFolderRepo:
    """Dépôt de dossiers adossé à Redis (clé: `folder:{id}`)."""

    def __init__(self, url: str):
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self._store = _RedisStore(self.client, "folder", Folder)

    def list_by_user(self, user_id: str) -> list[Folder]:
        return [f for f in self._store.all() if f.user_id == user_id]

    def get(self, folder_id: str) -> Folder | None:
        return self._store.get(folder_id)

    def save(self, folder: Folder) -> Folder:
        return self._store.save(folder)

    def delete(self, folder_id: str) -> bool:
        return self._store.delete(folder_id)


class RedisChartRepo:
    """Dépôt de fiches adossé à Redis (clé: `chart:{id}`)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self._store = _RedisStore(self.client, "chart", Chart)

    def save(self, chart: Chart) -> Chart:
        """Sérialise en JSON et stocke l'enregistrement sous `chart:{id}`."""
        return self._store.save(chart)

    def get(self, chart_id: str) -> Chart | None:
        """Charge et désérialise la fiche `chart:{id}`, si présente."""
        return self._store.get(chart_id)

    def delete(self, chart_id: str) -> bool:
        return self._store.delete(chart_id)

    def list_by_user(self, user_id: str) -> list[Chart]:
        return [c for c in self._store.all() if c.user_id == user_id]

    def list_by_folder(self, folder_id: str) -> list[Chart]:
        return [c for c in self._store.all() if c.folder_id == folder_id]

    def search_by_client_name(self, user_id: str, query: str) -> list[Chart]:
        needle = query.lower()
        return [c for c in self.list_by_user(user_id) if _contains(c.client_name, needle)]


class RedisLocationRepo:
    """Dépôt de lieux adossé à Redis (clé: `location:{id}`, index `location:ids`)."""

    def __init__(self, url: str):
        """Crée un client Redis à partir de l'URL fournie."""
        self.client = redis.Redis.from_url(url, decode_responses=True)
        self._store = _RedisStore(self.client, "location", Location)

    def find_by_id(self, location_id: str) -> Location | None:
        return self._store.get(location_id)

    def search_by_name_substring(self, query: str) -> list[Location]:
        """Balayage de l'index; suffisant pour un cache de lieux de taille modeste."""
        needle = query.lower()
        return [
            loc
            for loc in self._store.all()
            if _contains(loc.name, needle) or _contains(loc.display_name, needle)
        ]

    def find_near(self, latitude: float, longitude: float, tolerance: float) -> Location | None:
        return next(
            (
                loc
                for loc in self._store.all()
                if _within(loc, latitude, longitude, tolerance)
            ),
            None,
        )

    def insert(self, fields: LocationCreate) -> Location:
        return self._store.save(Location.from_create(fields))

