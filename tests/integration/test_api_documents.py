"""Integration tests for document and version API endpoints."""

from __future__ import annotations

from typing import Any
from uuid import uuid4

import pytest
from httpx import AsyncClient

from docchain.database.models import Project


async def _save(
    client: AsyncClient,
    project: Project,
    document_type: str,
    content: str,
    status: str | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"content": content}
    if status is not None:
        payload["status"] = status
    response = await client.put(
        f"/api/projects/{project.id}/documents/{document_type}", json=payload
    )
    assert response.status_code == 200, response.text
    return response.json()


@pytest.mark.integration
class TestDocumentTypes:
    """Tests for GET /api/document-types."""

    @pytest.mark.asyncio
    async def test_lists_types_in_generation_order(
        self, async_client: AsyncClient
    ) -> None:
        response = await async_client.get("/api/document-types")

        types = response.json()
        assert [t["type"] for t in types] == [
            "project-request",
            "technical-spec",
            "prd",
            "user-flows",
            "ui-guide",
            "implementation-plan",
        ]
        assert types[0]["position"] == 1
        assert types[0]["previous"] is None
        assert types[0]["next"] == "technical-spec"
        assert types[-1]["next"] is None
        assert types[1]["name"] == "Technical Specification"


@pytest.mark.integration
class TestManualSave:
    """Tests for PUT /api/projects/{id}/documents/{type}."""

    @pytest.mark.asyncio
    async def test_first_save_creates_document(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        data = await _save(async_client, project, "prd", "# PRD")

        assert data["type"] == "prd"
        assert data["status"] == "draft"

        versions = await async_client.get(f"/api/documents/{data['id']}/versions")
        assert versions.json() == []

    @pytest.mark.asyncio
    async def test_overwrite_keeps_manual_version(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "prd", "first")
        data = await _save(async_client, project, "prd", "second")

        versions = (await async_client.get(f"/api/documents/{data['id']}/versions")).json()

        assert data["content"] == "second"
        assert len(versions) == 1
        assert versions[0]["content"] == "first"
        assert versions[0]["source"] == "manual"

    @pytest.mark.asyncio
    async def test_unchanged_save_writes_no_version(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "prd", "same")
        data = await _save(async_client, project, "prd", "same")

        versions = (await async_client.get(f"/api/documents/{data['id']}/versions")).json()
        assert versions == []

    @pytest.mark.asyncio
    async def test_status_only_change(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "prd", "same")
        data = await _save(async_client, project, "prd", "same", status="completed")

        versions = (await async_client.get(f"/api/documents/{data['id']}/versions")).json()
        assert data["status"] == "completed"
        assert versions == []

    @pytest.mark.asyncio
    async def test_save_updates_project_metadata(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "project-request", "Request", "completed")

        response = await async_client.get(f"/api/projects/{project.id}")

        metadata = response.json()["metadata"]
        assert metadata["document_count"] == 1
        assert metadata["completed_count"] == 1

    @pytest.mark.asyncio
    async def test_save_for_missing_project(self, async_client: AsyncClient) -> None:
        response = await async_client.put(
            f"/api/projects/{uuid4()}/documents/prd", json={"content": "x"}
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_save_unknown_type(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        response = await async_client.put(
            f"/api/projects/{project.id}/documents/marketing", json={"content": "x"}
        )
        assert response.status_code == 422


@pytest.mark.integration
class TestReadDocuments:
    """Tests for reading documents by project, type and ID."""

    @pytest.mark.asyncio
    async def test_list_in_canonical_order(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "implementation-plan", "plan")
        await _save(async_client, project, "project-request", "request")
        await _save(async_client, project, "ui-guide", "ui")

        response = await async_client.get(f"/api/projects/{project.id}/documents")

        assert [d["type"] for d in response.json()] == [
            "project-request",
            "ui-guide",
            "implementation-plan",
        ]

    @pytest.mark.asyncio
    async def test_list_for_missing_project(self, async_client: AsyncClient) -> None:
        response = await async_client.get(f"/api/projects/{uuid4()}/documents")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_by_type_and_id(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        saved = await _save(async_client, project, "user-flows", "flows")

        by_type = await async_client.get(
            f"/api/projects/{project.id}/documents/user-flows"
        )
        by_id = await async_client.get(f"/api/documents/{saved['id']}")

        assert by_type.json()["id"] == saved["id"]
        assert by_id.json()["content"] == "flows"

    @pytest.mark.asyncio
    async def test_get_missing_type(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        response = await async_client.get(f"/api/projects/{project.id}/documents/prd")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_get_missing_document(self, async_client: AsyncClient) -> None:
        response = await async_client.get(f"/api/documents/{uuid4()}")
        assert response.status_code == 404


@pytest.mark.integration
class TestStatusDeleteRestore:
    """Tests for status changes, deletion and version restore."""

    @pytest.mark.asyncio
    async def test_patch_status(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        saved = await _save(async_client, project, "prd", "text")

        response = await async_client.patch(
            f"/api/documents/{saved['id']}", json={"status": "completed"}
        )

        assert response.status_code == 200
        assert response.json()["status"] == "completed"

    @pytest.mark.asyncio
    async def test_patch_invalid_status(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        saved = await _save(async_client, project, "prd", "text")

        response = await async_client.patch(
            f"/api/documents/{saved['id']}", json={"status": "archived"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_document(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        saved = await _save(async_client, project, "prd", "text")

        response = await async_client.delete(f"/api/documents/{saved['id']}")
        project_data = (await async_client.get(f"/api/projects/{project.id}")).json()

        assert response.status_code == 204
        assert project_data["metadata"]["document_count"] == 0

    @pytest.mark.asyncio
    async def test_delete_missing_document(self, async_client: AsyncClient) -> None:
        response = await async_client.delete(f"/api/documents/{uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_versions_for_missing_document(
        self, async_client: AsyncClient
    ) -> None:
        response = await async_client.get(f"/api/documents/{uuid4()}/versions")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_restore_version(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        await _save(async_client, project, "prd", "original")
        saved = await _save(async_client, project, "prd", "edited")
        [version] = (await async_client.get(f"/api/documents/{saved['id']}/versions")).json()

        response = await async_client.post(
            f"/api/documents/{saved['id']}/versions/{version['id']}/restore"
        )

        assert response.status_code == 200
        assert response.json()["content"] == "original"
        versions = (await async_client.get(f"/api/documents/{saved['id']}/versions")).json()
        assert sorted(v["content"] for v in versions) == ["edited", "original"]

    @pytest.mark.asyncio
    async def test_restore_missing_version(
        self, async_client: AsyncClient, project: Project
    ) -> None:
        saved = await _save(async_client, project, "prd", "text")

        response = await async_client.post(
            f"/api/documents/{saved['id']}/versions/{uuid4()}/restore"
        )

        assert response.status_code == 404
