"""API tests for library element endpoints."""

import pytest
from httpx import AsyncClient

from src.modules.common.schemas import SignedInUser

BASE_URL = "/api/v1/library-elements"


def user_headers(user: SignedInUser) -> dict:
    return {
        "X-User-Id": str(user.user_id),
        "X-Org-Id": str(user.org_id),
        "X-Org-Role": user.org_role.value,
        "X-User-Login": user.login,
        "X-User-Email": user.email,
    }


async def create_panel(client: AsyncClient, user: SignedInUser, name: str = "CPU", **overrides) -> dict:
    payload = {"name": name, "kind": 1, "model": {"type": "graph", "description": "CPU usage"}, **overrides}
    response = await client.post(BASE_URL, json=payload, headers=user_headers(user))
    assert response.status_code == 201, response.text
    return response.json()


class TestLibraryElementAPI:
    """API tests for library element endpoints."""

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        """Test the health endpoint."""
        response = await client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_create_element_success(self, client: AsyncClient, editor: SignedInUser):
        """Test successful element creation."""
        data = await create_panel(client, editor)

        assert data["name"] == "CPU"
        assert data["kind"] == 1
        assert data["type"] == "graph"
        assert data["description"] == "CPU usage"
        assert data["version"] == 1
        assert data["folder_id"] == 0
        assert data["model"]["title"] == "CPU"
        assert data["meta"]["folder_name"] == "General"
        assert data["meta"]["created_by"]["name"] == "editor"

    @pytest.mark.asyncio
    async def test_create_element_validation_errors(self, client: AsyncClient, editor: SignedInUser):
        """Test request validation and malformed models."""
        response = await client.post(BASE_URL, json={"kind": 1, "model": {}}, headers=user_headers(editor))
        assert response.status_code == 422

        response = await client.post(
            BASE_URL, json={"name": "CPU", "kind": 3, "model": {}}, headers=user_headers(editor)
        )
        assert response.status_code == 422

        response = await client.post(
            BASE_URL, json={"name": "CPU", "kind": 1, "model": "[1]"}, headers=user_headers(editor)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requests_need_a_user(self, client: AsyncClient):
        """Test requests without user headers are rejected."""
        response = await client.get(BASE_URL)

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_create_element_forbidden_and_missing_folder(
        self, client: AsyncClient, editor: SignedInUser, viewer: SignedInUser
    ):
        """Test folder access errors."""
        response = await client.post(
            BASE_URL, json={"name": "CPU", "kind": 1, "model": {}}, headers=user_headers(viewer)
        )
        assert response.status_code == 403

        response = await client.post(
            BASE_URL, json={"name": "CPU", "kind": 1, "model": {}, "folder_id": 999}, headers=user_headers(editor)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_create_element_conflict(self, client: AsyncClient, editor: SignedInUser):
        """Test duplicate names conflict."""
        await create_panel(client, editor)

        response = await client.post(
            BASE_URL, json={"name": "CPU", "kind": 1, "model": {}}, headers=user_headers(editor)
        )

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_get_element(self, client: AsyncClient, editor: SignedInUser, viewer: SignedInUser):
        """Test getting an element by uid."""
        created = await create_panel(client, editor)

        response = await client.get(f"{BASE_URL}/{created['uid']}", headers=user_headers(viewer))

        assert response.status_code == 200
        assert response.json()["id"] == created["id"]

        response = await client.get(f"{BASE_URL}/missing", headers=user_headers(viewer))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_patch_flow_with_stale_version(self, client: AsyncClient, editor: SignedInUser):
        """Test renaming bumps the version and a stale version is refused."""
        created = await create_panel(client, editor)
        url = f"{BASE_URL}/{created['uid']}"

        response = await client.patch(url, json={"version": 1, "name": "CPU2"}, headers=user_headers(editor))
        assert response.status_code == 200
        assert response.json()["version"] == 2
        assert response.json()["model"]["title"] == "CPU2"

        response = await client.patch(url, json={"version": 1, "name": "CPU3"}, headers=user_headers(editor))
        assert response.status_code == 412

        response = await client.get(url, headers=user_headers(editor))
        assert response.json()["name"] == "CPU2"

    @pytest.mark.asyncio
    async def test_patch_element_missing(self, client: AsyncClient, editor: SignedInUser):
        """Test patching an unknown uid."""
        response = await client.patch(f"{BASE_URL}/missing", json={"version": 1}, headers=user_headers(editor))

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_element(self, client: AsyncClient, editor: SignedInUser, viewer: SignedInUser):
        """Test deleting an element, blocked while connected."""
        created = await create_panel(client, editor)
        url = f"{BASE_URL}/{created['uid']}"

        response = await client.delete(url, headers=user_headers(viewer))
        assert response.status_code == 403

        response = await client.post(f"{url}/connections/12", headers=user_headers(editor))
        assert response.status_code == 201
        assert response.json()["connection_id"] == 12

        response = await client.delete(url, headers=user_headers(editor))
        assert response.status_code == 423

        response = await client.delete(f"{url}/connections/12", headers=user_headers(editor))
        assert response.status_code == 204

        response = await client.delete(url, headers=user_headers(editor))
        assert response.status_code == 204

        response = await client.get(url, headers=user_headers(editor))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_connections(self, client: AsyncClient, editor: SignedInUser):
        """Test listing connections and the connection count on reads."""
        created = await create_panel(client, editor)
        url = f"{BASE_URL}/{created['uid']}"

        for dashboard_id in (3, 4, 4):
            response = await client.post(f"{url}/connections/{dashboard_id}", headers=user_headers(editor))
            assert response.status_code == 201

        response = await client.get(f"{url}/connections", headers=user_headers(editor))
        assert response.status_code == 200
        assert [c["connection_id"] for c in response.json()] == [3, 4]

        response = await client.get(url, headers=user_headers(editor))
        assert response.json()["meta"]["connections"] == 2

        response = await client.delete(f"{url}/connections/99", headers=user_headers(editor))
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_search_elements(self, client: AsyncClient, editor: SignedInUser, test_folder: dict):
        """Test search with filters and pagination."""
        await create_panel(client, editor, "alpha")
        await create_panel(client, editor, "beta")
        await create_panel(client, editor, "gamma", folder_id=test_folder["id"])

        response = await client.get(BASE_URL, params={"per_page": 2}, headers=user_headers(editor))
        assert response.status_code == 200
        data = response.json()
        assert data["total_count"] == 3
        assert data["has_more"] is True
        assert [e["name"] for e in data["data"]] == ["alpha", "beta"]

        response = await client.get(
            BASE_URL, params={"sort_direction": "alpha-desc", "folder_filter": "0"}, headers=user_headers(editor)
        )
        assert [e["name"] for e in response.json()["data"]] == ["beta", "alpha"]

        response = await client.get(
            BASE_URL, params={"folder_filter": str(test_folder["id"])}, headers=user_headers(editor)
        )
        assert [e["meta"]["folder_uid"] for e in response.json()["data"]] == ["infra"]

        response = await client.get(BASE_URL, params={"folder_filter": "x"}, headers=user_headers(editor))
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_search_hides_other_orgs(
        self, client: AsyncClient, editor: SignedInUser, other_org_editor: SignedInUser
    ):
        """Test search is scoped to the caller's org."""
        await create_panel(client, editor)

        response = await client.get(BASE_URL, headers=user_headers(other_org_editor))

        assert response.status_code == 200
        assert response.json()["total_count"] == 0

    @pytest.mark.asyncio
    async def test_correlation_id_is_echoed(self, client: AsyncClient):
        """Test responses carry the request's correlation id, or a generated one."""
        response = await client.get("/api/v1/health", headers={"X-Correlation-ID": "req-123"})
        assert response.headers["X-Correlation-ID"] == "req-123"

        response = await client.get("/api/v1/health")
        assert response.headers["X-Correlation-ID"]

    @pytest.mark.asyncio
    async def test_search_exclude_uids(self, client: AsyncClient, editor: SignedInUser):
        """Test repeated exclude_uids parameters drop those elements, and no parameter drops nothing."""
        first = await create_panel(client, editor, name="alpha")
        second = await create_panel(client, editor, name="beta")
        await create_panel(client, editor, name="gamma")

        response = await client.get(BASE_URL, headers=user_headers(editor))
        assert response.json()["total_count"] == 3

        response = await client.get(
            BASE_URL, params=[("exclude_uids", first["uid"]), ("exclude_uids", second["uid"])], headers=user_headers(editor)
        )
        assert response.status_code == 200
        assert [e["name"] for e in response.json()["data"]] == ["gamma"]

    @pytest.mark.asyncio
    async def test_lifespan_without_table_creation(self):
        """Test the lifespan sizes the thread pool and skips table creation when disabled."""
        import anyio

        from src.infrastructure.app_factory import lifespan_factory
        from src.infrastructure.config.settings import get_settings
        from src.interfaces.main import app

        lifespan = lifespan_factory(get_settings(), create_tables_on_startup=False)
        async with lifespan(app):
            assert anyio.to_thread.current_default_thread_limiter().total_tokens == 100
