"""Configuration de test pour pytest avec gestion des chemins.

Ce module configure pytest pour résoudre les imports backend en ajoutant la racine du projet au
sys.path, et fournit des doublures pour les dépôts et les fournisseurs externes du conteneur.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from backend...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from fastapi.testclient import TestClient  # noqa: E402

from backend.app.main import app  # noqa: E402
from backend.core.container import container  # noqa: E402
from backend.infra.repositories import (  # noqa: E402
    InMemoryChartRepo,
    InMemoryFolderRepo,
    InMemoryLocationRepo,
    InMemoryUserRepo,
)
from tests.fakes import (  # noqa: E402
    MOSCOW,
    MOSCOW_TZ,
    FakePlaceSearch,
    FakeTimezoneLookup,
)


@pytest.fixture
def fake_places():
    """Recherche de lieux factice renvoyant Moscou par défaut."""
    return FakePlaceSearch([MOSCOW])


@pytest.fixture
def fake_timezones():
    """Fuseaux factices: Europe/Moscow pour Moscou, estimation ailleurs."""
    return FakeTimezoneLookup({(MOSCOW.latitude, MOSCOW.longitude): MOSCOW_TZ})


@pytest.fixture
def location_repo():
    return InMemoryLocationRepo()


@pytest.fixture(autouse=True)
def test_container(monkeypatch, fake_places, fake_timezones, location_repo):
    """Remplace dépôts et clients du conteneur global, puis recâble les services."""
    monkeypatch.setattr(container, "user_repo", InMemoryUserRepo())
    monkeypatch.setattr(container, "folder_repo", InMemoryFolderRepo())
    monkeypatch.setattr(container, "chart_repo", InMemoryChartRepo())
    monkeypatch.setattr(container, "location_repo", location_repo)
    monkeypatch.setattr(container, "place_search", fake_places)
    monkeypatch.setattr(container, "timezone_lookup", fake_timezones)
    monkeypatch.setattr(container, "storage_backend", "memory")
    # enregistre les valeurs courantes pour que monkeypatch les restaure
    for name in ("location_resolver", "folder_service", "chart_service"):
        monkeypatch.setattr(container, name, getattr(container, name))
    container.wire()
    yield container


@pytest.fixture
def client():
    return TestClient(app)


def _auth_headers(client: TestClient, email: str) -> dict[str, str]:
    password = "s3cret-password"
    r = client.post("/auth/signup", json={"email": email, "password": password})
    assert r.status_code == 201, r.text
    r = client.post("/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['access_token']}"}


@pytest.fixture
def auth_headers(client):
    """En-têtes d'un utilisateur inscrit et connecté."""
    return _auth_headers(client, "astro@example.com")


@pytest.fixture
def other_auth_headers(client):
    """En-têtes d'un second utilisateur, pour vérifier le cloisonnement."""
    return _auth_headers(client, "other@example.com")
