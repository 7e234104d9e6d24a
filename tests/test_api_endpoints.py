"""Tests for the companion service endpoints."""
from __future__ import annotations

import pytest


@pytest.fixture
def profile(client):
    response = client.post("/api/profiles", json={"name": "Alice", "role": "Eng"})
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def project(client, profile, project_input):
    response = client.post("/api/projects", json=project_input(profile["id"]))
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def seeded(client):
    from impact_flow.application.demo_data import get_initial_data

    data = get_initial_data(True)
    client.post("/api/profiles/seed", json={"profiles": [p.to_wire() for p in data.profiles]})
    client.post("/api/projects/seed", json={"projects": [p.to_wire() for p in data.projects]})
    client.post("/api/criteria/seed", json={"criteria": [c.to_wire() for c in data.criteria]})
    return data


class TestHealth:
    """Test health endpoints."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert "timestamp" in body

    def test_database_health(self, client):
        assert client.get("/api/health/database").json()["status"] == "ok"

    def test_root(self, client):
        assert "Impact Flow" in client.get("/").json()["message"]


class TestProfileEndpoints:
    """Test /api/profiles."""

    def test_create_and_get(self, client, profile):
        assert profile["name"] == "Alice"
        assert profile["avatar"] is None

        response = client.get(f"/api/profiles/{profile['id']}")
        assert response.status_code == 200
        assert response.json() == profile
        assert client.get("/api/profiles").json() == [profile]

    def test_get_missing(self, client):
        response = client.get("/api/profiles/nope")
        assert response.status_code == 404
        assert response.json()["detail"] == "Profile not found"

    def test_invalid_body(self, client):
        assert client.post("/api/profiles", json={"name": "Alice"}).status_code == 422
        assert client.post("/api/profiles", json={"name": "A", "role": "B", "avatar": "x"}).status_code == 422

    def test_put_replaces(self, client, profile):
        response = client.put(f"/api/profiles/{profile['id']}", json={"name": "Alicia", "role": "Lead"})
        assert response.status_code == 200
        assert response.json() == {"id": profile["id"], "name": "Alicia", "role": "Lead", "avatar": None}

    def test_put_missing(self, client):
        assert client.put("/api/profiles/nope", json={"name": "A", "role": "B"}).status_code == 404

    def test_delete(self, client, profile):
        response = client.delete(f"/api/profiles/{profile['id']}")
        assert response.status_code == 204
        assert response.content == b""
        assert client.delete(f"/api/profiles/{profile['id']}").status_code == 404

    def test_delete_cascades_in_database(self, client, profile, project):
        client.post("/api/criteria", json={"projectId": project["id"], "description": "done"})

        client.delete(f"/api/profiles/{profile['id']}")

        assert client.get("/api/projects").json() == []
        assert client.get("/api/criteria").json() == []


class TestProjectEndpoints:
    """Test /api/projects."""

    def test_create_fills_defaults(self, project, profile):
        assert project["profileId"] == profile["id"]
        assert project["status"] == "planned"
        assert project["comments"] == ""
        assert project["dueDate"] is None
        assert project["createdAt"]

    def test_unknown_profile_is_bad_request(self, client, project_input):
        response = client.post("/api/projects", json=project_input("missing"))
        assert response.status_code == 400

    def test_invalid_status(self, client, profile, project_input):
        response = client.post("/api/projects", json=project_input(profile["id"], status="done"))
        assert response.status_code == 422

    def test_put_keeps_created_at(self, client, project):
        body = dict(project, name="Renamed", status="blocked", createdAt="1999-01-01T00:00:00.000Z")
        response = client.put(f"/api/projects/{project['id']}", json=body)

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["status"] == "blocked"
        assert response.json()["createdAt"] == project["createdAt"]
        assert client.get(f"/api/projects/{project['id']}").json()["createdAt"] == project["createdAt"]

    def test_by_profile(self, client, seeded):
        names = {p["name"] for p in client.get("/api/projects/profile/2").json()}
        assert names == {"API Performance Optimization", "Database Migration"}
        assert client.get("/api/projects/profile/unknown").json() == []

    def test_delete_by_profile(self, client, seeded):
        response = client.delete("/api/projects/profile/2")
        assert response.status_code == 200
        assert response.json() == {"deleted": 2}
        assert client.delete("/api/projects/profile/2").json() == {"deleted": 0}

    def test_delete_missing(self, client):
        assert client.delete("/api/projects/nope").status_code == 404


class TestCriteriaEndpoints:
    """Test /api/criteria."""

    def test_crud(self, client, project):
        created = client.post("/api/criteria", json={"projectId": project["id"], "description": "done"})
        assert created.status_code == 201
        criteria = created.json()
        assert criteria["isComplete"] is False

        updated = client.put(
            f"/api/criteria/{criteria['id']}",
            json={"projectId": project["id"], "description": "done", "isComplete": True},
        )
        assert updated.json()["isComplete"] is True
        assert client.get(f"/api/criteria/project/{project['id']}").json() == [updated.json()]

        assert client.delete(f"/api/criteria/{criteria['id']}").status_code == 204
        assert client.get(f"/api/criteria/{criteria['id']}").status_code == 404

    def test_delete_by_project(self, client, seeded):
        assert client.delete("/api/criteria/project/p1").json() == {"deleted": 3}
        assert client.get("/api/criteria/project/p1").json() == []


class TestSeedEndpoints:
    """Test bulk seeding."""

    def test_seed_messages(self, client):
        from impact_flow.application.demo_data import get_initial_data

        data = get_initial_data(True)
        response = client.post("/api/profiles/seed", json={"profiles": [p.to_wire() for p in data.profiles]})
        assert response.status_code == 201
        assert response.json() == {"message": "Seeded 3 profiles"}

    def test_seed_is_idempotent(self, client, seeded):
        again = client.post("/api/projects/seed", json={"projects": [p.to_wire() for p in seeded.projects]})
        assert again.json() == {"message": "Seeded 4 projects"}
        assert len(client.get("/api/projects").json()) == 4
        assert len(client.get("/api/criteria").json()) == 9

    def test_seed_with_unknown_parent(self, client):
        body = {"criteria": [{"id": "c1", "projectId": "nope", "description": "d", "isComplete": False}]}
        assert client.post("/api/criteria/seed", json=body).status_code == 400


class TestErrorHandlers:
    """Test the domain error mapping."""

    def test_only_raised_domain_errors_are_mapped(self):
        from impact_flow.domain.errors import DomainError, NotFoundError, ReferentialIntegrityError, StorageError
        from impact_flow.main import app

        mapped = {
            exc for exc in app.exception_handlers
            if isinstance(exc, type) and issubclass(exc, DomainError)
        }
        assert mapped == {NotFoundError, ReferentialIntegrityError, StorageError}
