"""Tests des routes de dossiers."""

from backend.core.http_constants import HTTP_CREATED, HTTP_NO_CONTENT, HTTP_NOT_FOUND, HTTP_OK


def test_folder_lifecycle(client, auth_headers):
    r = client.post("/api/folders", json={"name": "Clients"}, headers=auth_headers)
    assert r.status_code == HTTP_CREATED
    folder = r.json()
    assert folder["name"] == "Clients"

    r = client.put(f"/api/folders/{folder['id']}", json={"name": "VIP"}, headers=auth_headers)
    assert r.status_code == HTTP_OK
    assert r.json()["name"] == "VIP"

    listed = client.get("/api/folders", headers=auth_headers).json()
    assert [f["name"] for f in listed] == ["VIP"]

    r = client.delete(f"/api/folders/{folder['id']}", headers=auth_headers)
    assert r.status_code == HTTP_NO_CONTENT
    assert client.get("/api/folders", headers=auth_headers).json() == []


def test_delete_folder_keeps_charts(client, auth_headers):
    folder = client.post("/api/folders", json={"name": "Tmp"}, headers=auth_headers).json()
    chart = client.post(
        "/api/charts",
        json={
            "clientName": "Lena",
            "birthDate": "1992-02-29",
            "birthTime": "23:59",
            "birthPlace": "Moscow",
            "folderId": folder["id"],
        },
        headers=auth_headers,
    ).json()

    client.delete(f"/api/folders/{folder['id']}", headers=auth_headers)

    r = client.get(f"/api/charts/{chart['id']}", headers=auth_headers)
    assert r.status_code == HTTP_OK
    assert r.json()["folderId"] is None


def test_folder_of_other_user(client, auth_headers, other_auth_headers):
    folder = client.post("/api/folders", json={"name": "Mine"}, headers=auth_headers).json()
    r = client.put(
        f"/api/folders/{folder['id']}", json={"name": "Stolen"}, headers=other_auth_headers
    )
    assert r.status_code == HTTP_NOT_FOUND
    r = client.delete(f"/api/folders/{folder['id']}", headers=other_auth_headers)
    assert r.status_code == HTTP_NOT_FOUND
    assert client.get("/api/folders", headers=other_auth_headers).json() == []
