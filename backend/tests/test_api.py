"""
HTTP-level tests: routers, status codes and error rendering.
"""

import uuid

API = "/api/v1/projects"


async def _new_project(client, title="Portfolio"):
    response = await client.post(API, json={"title": title})
    assert response.status_code == 201
    return response.json()


async def _home(client, project_id):
    files = (await client.get(f"{API}/{project_id}/files")).json()
    return next(f for f in files if f["is_home"])


async def test_health(client):
    response = await client.get("/health")
    assert response.json() == {"status": "ok"}


async def test_project_crud(client):
    project = await _new_project(client)

    listed = (await client.get(API)).json()
    assert [p["id"] for p in listed] == [project["id"]]

    patched = await client.patch(f"{API}/{project['id']}", json={"status": "published"})
    assert patched.json()["status"] == "published"

    assert (await client.delete(f"{API}/{project['id']}")).status_code == 204
    assert (await client.get(f"{API}/{project['id']}")).status_code == 404


async def test_project_summary(client):
    project = await _new_project(client)
    summary = (await client.get(f"{API}/{project['id']}/summary")).json()

    assert summary["file_count"] == 3
    assert summary["orphan_block_count"] == 0
    assert summary["home_file_id"] is not None


async def test_protected_delete_returns_policy_message(client):
    project = await _new_project(client)
    home = await _home(client, project["id"])

    response = await client.delete(f"{API}/{project['id']}/files/{home['id']}")

    assert response.status_code == 403
    assert response.json() == {
        "detail": "Cannot delete page files. They are managed by the editor. Use archive instead."
    }


async def test_allowed_operations_and_validation(client):
    project = await _new_project(client)
    home = await _home(client, project["id"])
    base = f"{API}/{project['id']}/files/{home['id']}"

    allowed = (await client.get(f"{base}/operations")).json()
    assert allowed["delete"] is False
    assert allowed["ui_edit"] is True

    result = (await client.get(f"{base}/operations/raw_edit")).json()
    assert result["success"] is False
    assert result["error"] == "Cannot raw edit page files. Use the visual editor instead."


async def test_duplicate_path_conflicts(client):
    project = await _new_project(client)
    payload = {"name": "Landing", "type": "page"}

    first = await client.post(f"{API}/{project['id']}/files", json=payload)
    second = await client.post(f"{API}/{project['id']}/files", json=payload)

    assert first.status_code == 201
    assert first.json()["path"] == "/pages/landing.page"
    assert second.status_code == 409


async def test_unknown_ids_are_404(client):
    project = await _new_project(client)
    missing = uuid.uuid4()

    assert (await client.get(f"{API}/{missing}/summary")).status_code == 404
    assert (await client.get(f"{API}/{project['id']}/files/{missing}")).status_code == 404
    assert (await client.get(f"{API}/{project['id']}/blocks/{missing}")).status_code == 404
    assert (await client.get(f"{API}/{project['id']}/versions/12345")).status_code == 404


async def test_block_on_archived_file_conflicts(client):
    project = await _new_project(client)
    created = await client.post(f"{API}/{project['id']}/files", json={"name": "Card", "type": "component"})
    file_id = created.json()["id"]
    await client.post(f"{API}/{project['id']}/files/{file_id}/archive")

    response = await client.post(f"{API}/{project['id']}/blocks", json={"file_id": file_id, "type": "card"})

    assert response.status_code == 409


async def test_block_tree_and_integrity(client):
    project = await _new_project(client)
    home = await _home(client, project["id"])

    tree = (await client.get(f"{API}/{project['id']}/files/{home['id']}/blocks/tree")).json()
    integrity = (await client.get(f"{API}/{project['id']}/blocks/integrity")).json()

    assert tree[0]["block"]["type"] == "section"
    assert len(tree[0]["children"]) == 2
    assert len(integrity["valid"]) == 3
    assert integrity["orphans"] == []


async def test_manual_snapshot_and_restore(client):
    project = await _new_project(client)
    base = f"{API}/{project['id']}"

    snapshot = await client.post(f"{base}/versions", json={"label": "initial"})
    assert snapshot.status_code == 201
    assert snapshot.json()["trigger"] == "manual"
    assert snapshot.json()["metadata"]["operation"] == "manual_snapshot"

    await client.post(f"{base}/files", json={"name": "extra", "type": "css"})
    assert len((await client.get(f"{base}/files")).json()) == 4

    restored = await client.post(f"{base}/versions/{snapshot.json()['id']}/restore")
    assert restored.status_code == 200
    assert len((await client.get(f"{base}/files")).json()) == 3

    by_label = (await client.get(f"{base}/versions/labels/initial")).json()
    assert by_label["id"] == snapshot.json()["id"]
    assert len(by_label["snapshot"]["files"]) == 3

    versions = (await client.get(f"{base}/versions")).json()
    assert versions[0]["trigger"] == "before_risky_operation"
